"""
Heuristic SQL-injection pre-filter.

Flags request values that look like SQL keywords or carry quote/terminator
characters. Parameterized statements in the submission store are the real
defense; this only turns obviously hostile input away early.
"""

import re
from typing import Any, Mapping


SQL_INJECTION_PATTERNS = [
    re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|UNION|DECLARE)\b", re.IGNORECASE),
    re.compile(r"(--|;|/\*|\*/|xp_|sp_)", re.IGNORECASE),
    re.compile(r"('|\"|`|;|\||&|\$)"),
]


def is_suspicious(value: str) -> bool:
    """Check a single string against every pattern."""
    return any(pattern.search(value) for pattern in SQL_INJECTION_PATTERNS)


def contains_injection(data: Any) -> bool:
    """Recursively check every string leaf of a dict, list or scalar."""
    if isinstance(data, str):
        return is_suspicious(data)
    if isinstance(data, Mapping):
        return any(contains_injection(v) for v in data.values())
    if isinstance(data, (list, tuple)):
        return any(contains_injection(item) for item in data)
    return False


def scan_request(body: Any, query: Any, params: Any) -> bool:
    """Return True if the body, query string or path parameters look hostile."""
    return contains_injection(body) or contains_injection(query) or contains_injection(params)
