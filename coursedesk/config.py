"""
Runtime settings.

Values come from environment variables; command-line flags override them.

    COURSEDESK_API_URL      storage service base URL (unset -> local JSON store)
    COURSEDESK_STORE        path of the local JSON store
    COURSEDESK_FACULTY_ID   owner of created/imported courses
    COURSEDESK_MAX_ACTIVE   admission ceiling per owner (default 15)
    COURSEDESK_TIMEOUT      HTTP timeout in seconds (default 30)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_MAX_ACTIVE = 15
DEFAULT_TIMEOUT = 30.0


@dataclass
class Settings:
    api_url: Optional[str] = None
    store_path: Optional[Path] = None
    faculty_id: Optional[str] = None
    max_active: int = DEFAULT_MAX_ACTIVE
    timeout: float = DEFAULT_TIMEOUT


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    value = env.get(name)
    try:
        return float(value) if value not in (None, "") else default
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if env is None else env
    store = env.get("COURSEDESK_STORE") or None
    return Settings(
        api_url=env.get("COURSEDESK_API_URL") or None,
        store_path=Path(store) if store else None,
        faculty_id=env.get("COURSEDESK_FACULTY_ID") or None,
        max_active=_int(env, "COURSEDESK_MAX_ACTIVE", DEFAULT_MAX_ACTIVE),
        timeout=_float(env, "COURSEDESK_TIMEOUT", DEFAULT_TIMEOUT),
    )
