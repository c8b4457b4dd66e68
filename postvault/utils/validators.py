"""
Identifier Validation Utilities

Validation for creator ids and post ids, plus the filesystem-safe naming used
for per-post output files.
"""

import re
from typing import Optional, Tuple


CREATOR_ID_PATTERN = re.compile(r'^[a-zA-Z0-9]([a-zA-Z0-9\-_]{0,61}[a-zA-Z0-9])?$')

# Path separators and characters Windows refuses in filenames
UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')

MAX_TITLE_CHARS = 120


def validate_creator_id(creator_id: str) -> Tuple[bool, str, str]:
    """
    Validate a creator id, which doubles as a subdomain of fanbox.cc.

    Returns:
        Tuple of (is_valid, normalized_id, error_message)
    """
    if not creator_id or not isinstance(creator_id, str):
        return False, "", "Creator id cannot be empty"
    normalized = creator_id.strip().lower()
    if not CREATOR_ID_PATTERN.match(normalized):
        return False, "", f"Invalid creator id: {creator_id!r}"
    return True, normalized, ""


def parse_post_id(value: Optional[str]) -> Optional[int]:
    """
    Parse an optional post id bound.

    Post ids are numeric strings of varying length, so bounds are compared as
    integers; an empty value means no bound.

    Raises:
        ValueError: If the value is set but not a non-negative integer.
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    if not value.isdigit():
        raise ValueError(f"Post id must be numeric, got {value!r}")
    return int(value)


def safe_title(title: str) -> str:
    """Make a post title usable as part of a filename."""
    cleaned = UNSAFE_FILENAME_CHARS.sub('_', title or '').strip().strip('.')
    cleaned = re.sub(r'\s+', ' ', cleaned)
    return cleaned[:MAX_TITLE_CHARS]


def output_basename(post_id: str, title: str) -> str:
    """`{id}-{title}` with the title sanitized, or just the id if nothing is left."""
    title_part = safe_title(title)
    return f"{post_id}-{title_part}" if title_part else str(post_id)


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or not str(value).strip():
        return default
    value = str(value).strip().lower()
    if value in ('1', 'true', 'yes', 'on'):
        return True
    if value in ('0', 'false', 'no', 'off'):
        return False
    raise ValueError(f"Not a boolean: {value!r}")
