"""
Compiler settings, overridable from the environment.
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel

VFC_DEFAULT_START_NODE_ID = "start_node"
VFC_DEFAULT_START_EDGE_ID = "start_to_entry"

_TRUTHY = {"1", "true", "yes", "on"}


class CompilerSettings(BaseModel):
    start_node_id: str = VFC_DEFAULT_START_NODE_ID
    start_edge_id: str = VFC_DEFAULT_START_EDGE_ID
    # Raise on edges whose endpoints do not compile instead of dropping them.
    strict_dangling_edges: bool = False
    log_level: str = "INFO"
    telemetry_dir: Optional[str] = None

    @classmethod
    def from_env(cls, **overrides: object) -> "CompilerSettings":
        values = {
            "strict_dangling_edges": os.getenv("VFC_STRICT_DANGLING_EDGES", "").strip().lower()
            in _TRUTHY,
            "log_level": os.getenv("VFC_LOG_LEVEL", "INFO").upper(),
            "telemetry_dir": os.getenv("VFC_TELEMETRY_DIR") or None,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
