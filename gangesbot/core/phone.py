import re

_PHONE_RE = re.compile(r"^\+?[0-9]{8,15}$")


def normalize_phone(phone: str) -> str:
    """Strip spaces, dashes and brackets; keep an optional leading '+'."""
    cleaned = re.sub(r"[\s\-().]", "", phone or "")
    if not _PHONE_RE.match(cleaned):
        raise ValueError("Invalid phone number")
    return cleaned
