"""
Input validation utilities
"""
import re
from typing import Optional

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def validate_hex_color(color: Optional[str]) -> Optional[str]:
    """Validate a #RRGGBB stream color"""
    if color is None:
        return None
    if not _HEX_COLOR.match(color):
        raise ValueError("Color must be a hex value like #3B82F6")
    return color.upper()


def validate_reason(reason: str) -> str:
    """Recommit reasons may not be blank"""
    reason = (reason or "").strip()
    if not reason:
        raise ValueError("A reason is required to change a committed date")
    return reason


def validate_name(name: str, field: str = "Name") -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError(f"{field} cannot be empty")
    return name
