"""User name lookup for process owners."""

import pwd
from functools import lru_cache


@lru_cache(maxsize=256)
def resolve_username(uid: int) -> str:
    """Return the login name for uid, or the numeric id if it has none."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)
