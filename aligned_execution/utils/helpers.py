"""
General helper utilities
"""
import re
from typing import List, Optional

_BULLET = re.compile(r"^[-•*]\s*")
_NUMBERED = re.compile(r"^\d+\.\s*")
_TABS = re.compile(r"^\t+")


def parse_checklist_lines(text: str) -> List[str]:
    """Split pasted text into checklist entries, dropping bullets and numbering"""
    entries = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line:
            continue
        line = _BULLET.sub("", line)
        line = _NUMBERED.sub("", line)
        line = _TABS.sub("", line).strip()
        if line:
            entries.append(line)
    return entries


def actor_or_default(actor: Optional[str], default: str) -> str:
    """Use the given actor name unless it is blank"""
    actor = (actor or "").strip()
    return actor or default
