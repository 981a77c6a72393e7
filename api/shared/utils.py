"""Common utility functions."""
from uuid import UUID


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate text to specified length."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)] + suffix


def is_valid_uuid(uuid_string: str) -> bool:
    """Check if string is valid UUID."""
    try:
        UUID(str(uuid_string))
        return True
    except ValueError:
        return False


def is_blank(value: object) -> bool:
    """True for None and for strings that are empty after stripping."""
    return value is None or (isinstance(value, str) and not value.strip())
