"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, formgate.toml only contains
overrides.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RemoteConfig(BaseModel):
    """[remote] section — uniqueness lookup transport."""

    model_config = {"frozen": True}

    base_url: str = ""
    endpoint: str = "/ajax/{resource}/check/{field}"
    timeout_seconds: float = Field(default=10.0, gt=0)
    available_status: str = "available"


class FormConfig(BaseModel):
    """[form] section — submission behaviour."""

    model_config = {"frozen": True}

    group_suffix: str = "[]"
    pending_blocks_submit: bool = True
