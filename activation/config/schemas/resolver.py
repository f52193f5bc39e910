"""Resolver + host probe config schemas."""
from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class ResolverConfig(BaseModel):
    enabled: bool = True
    exclude: List[str] = Field(default_factory=list)
    catalog_dir: str = "configs/catalog"
    environment: str = "none"

    model_config = ConfigDict(extra="forbid")


class HostConfig(BaseModel):
    # capability -> number of providers known before resolution
    capabilities: Dict[str, int] = Field(default_factory=dict)
    # capability -> importable python module proving its presence
    probe_imports: Dict[str, str] = Field(default_factory=dict)
    # user-declared components (seeded before any module runs)
    components: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")
