"""Domain layer — outcomes, rules, rule chains, and per-field state.

This layer depends only on stdlib and pydantic.
It must never import from services, plugins, or config.
"""
