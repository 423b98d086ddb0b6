"""Short identifiers for recovery sessions and log correlation."""

from uuid import uuid4

DEFAULT_ID_LENGTH = 12


def new_id(prefix: str, length: int = DEFAULT_ID_LENGTH) -> str:
    return f"{prefix}_{uuid4().hex[:length]}"
