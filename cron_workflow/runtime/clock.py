"""
Default clock and run id helpers injected into ``run``.
"""

from __future__ import annotations

import os
import secrets
from datetime import datetime, timezone


def now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def new_run_id(prefix: str = "run") -> str:
    return f"{prefix}-{os.getpid()}-{secrets.token_hex(6)}"
