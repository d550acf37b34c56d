"""Source branch resolution for fetched pull request data.

The hosting service is expected to return a JSON document with a
``headRefName`` field. Looser payloads (other JSON shapes, or plain text)
are searched with a small set of patterns as a best-effort fallback.
"""

import json
import re
from typing import Any

import structlog

log = structlog.get_logger(__name__)

_STRUCTURED_KEYS = ("headRefName", "head_ref", "headRef", "branch")

_TEXT_PATTERNS = [
    re.compile(r'"headRefName"\s*:\s*"(?P<branch>[^"\s]+)"'),
    re.compile(r"(?im)^\s*(?:headRefName|head[ _]?ref|head[ _]?branch|source[ _]?branch|branch)\s*[:=]\s*(?P<branch>\S+)\s*$"),
]


def _from_structured(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None

    for key in _STRUCTURED_KEYS:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()

    # REST shape: {"head": {"ref": "..."}}
    head = data.get("head")
    if isinstance(head, dict):
        ref = head.get("ref")
        if isinstance(ref, str) and ref.strip():
            return ref.strip()

    return None


def _from_text(info: str) -> str | None:
    for pattern in _TEXT_PATTERNS:
        match = pattern.search(info)
        if match:
            return match.group("branch").strip("'\"`")
    return None


def resolve_source_branch(info: str) -> str:
    """Extract the source branch name from pull request data.

    Args:
        info: The serialized pull request document.

    Returns:
        The branch name.

    Raises:
        ValueError: If no branch can be found.
    """
    try:
        data = json.loads(info)
    except ValueError:
        data = None

    branch = _from_structured(data)
    if branch:
        return branch

    branch = _from_text(info)
    if branch:
        log.warning("branch_resolved_from_text", branch=branch)
        return branch

    raise ValueError("pull request data has no source branch field")
