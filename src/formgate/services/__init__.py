"""Service layer — rule-chain evaluation, remote checks, and form decisions.

Services may import from domain, config, and plugins.
"""
