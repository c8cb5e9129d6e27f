"""
Frequency parser: free-text care instruction -> recurrence interval in days.

Rules are evaluated top to bottom and the first match wins, so an
instruction such as "every 10 days, weekly in summer" resolves to 10.
"""
import re
from typing import Callable, List, Optional, Pattern, Tuple

_RANGE = r"(\d+)(?:\s*[-–]\s*\d+)?"  # "7", "7-10" or "7–10"; the lower bound is used

# (pattern, days); days is either a constant or derived from the match
FREQUENCY_RULES: List[Tuple[Pattern, Callable[[re.Match], int]]] = [
    (re.compile(rf"every\s+{_RANGE}\s+days?\b"), lambda m: int(m.group(1))),
    (re.compile(rf"every\s+{_RANGE}\s+weeks?\b"), lambda m: int(m.group(1)) * 7),
    (re.compile(r"monthly|every\s+4\s+weeks"), lambda m: 28),
    (re.compile(r"bi-weekly|every\s+2\s+weeks"), lambda m: 14),
    (re.compile(r"weekly"), lambda m: 7),
]


def frequency_days(instruction: Optional[str]) -> int:
    """
    Derive a recurrence interval from a care instruction.

    Args:
        instruction: Free text such as "Every 7-10 days; let top soil dry"

    Returns:
        Interval in days, 0 when no recurring schedule can be derived
    """
    if not instruction:
        return 0

    text = instruction.lower()
    for pattern, days in FREQUENCY_RULES:
        match = pattern.search(text)
        if match:
            return days(match)

    return 0
