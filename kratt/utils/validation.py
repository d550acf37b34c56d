"""Input parsing and validation for command-line values."""

import math
import re

_DURATION_PATTERN = re.compile(
    r"^(?:(?P<hours>\d+(?:\.\d+)?)h)?(?:(?P<minutes>\d+(?:\.\d+)?)m)?(?:(?P<seconds>\d+(?:\.\d+)?)s)?$"
)

# Characters git refuses in ref names
_FORBIDDEN_BRANCH_CHARS = set("~^:?*[]\\")


def parse_duration(value: str) -> float:
    """Parse ``30m``, ``90s``, ``1h30m`` or a plain number of seconds.

    Raises:
        ValueError: If the value is not a positive duration
    """
    text = value.strip().lower()
    if not text:
        raise ValueError("empty duration")

    try:
        seconds = float(text)
    except ValueError:
        match = _DURATION_PATTERN.match(text)
        if not match or not any(match.groupdict().values()):
            raise ValueError(f"invalid duration: {value!r}") from None
        parts = {unit: float(amount) for unit, amount in match.groupdict().items() if amount}
        seconds = parts.get("hours", 0.0) * 3600 + parts.get("minutes", 0.0) * 60 + parts.get("seconds", 0.0)

    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    return seconds


def split_command(value: str) -> list[str]:
    """Split a comma-separated argument vector, e.g. ``go,test,./...``.

    Raises:
        ValueError: If no program name remains
    """
    parts = [part.strip() for part in value.split(",")]
    parts = [part for part in parts if part]
    if not parts:
        raise ValueError("command must name a program")
    return parts


def is_valid_branch_name(name: str) -> bool:
    """Return whether ``name`` is usable as a new branch name."""
    if not name or name.strip() != name:
        return False
    if any(char.isspace() or char in _FORBIDDEN_BRANCH_CHARS for char in name):
        return False
    if name.startswith((".", "/")) or name.endswith((".", "/")):
        return False
    if ".." in name or "//" in name or "@{" in name:
        return False
    if name.endswith(".lock") or name == "@":
        return False
    return True
