"""Opaque id generation and the UTC clock used for audit timestamps."""

import uuid
from datetime import datetime, timezone


def new_id(prefix: str) -> str:
    """Return a fresh opaque id such as ``territory_3f2a9c...``."""
    return f"{prefix}_{uuid.uuid4().hex}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
