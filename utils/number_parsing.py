from __future__ import annotations

import re
from typing import Any, Optional

_SHORTHAND_RE = re.compile(r"^([0-9]+(?:\.[0-9]+)?)([KMB]?)$")
_FACTORS = {"": 1, "K": 1000, "M": 1000000, "B": 1000000000}


def parse_count(value: Any) -> Optional[int]:
    """Parse counts like 500, '500+', '1.2K', '3M' or '1,204 connections' into an int.

    Returns None for unparsable inputs. Booleans are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    s = str(value).strip().upper().replace(",", "")
    if not s:
        return None
    sign = -1 if s.startswith("-") else 1
    s = s.lstrip("+-")
    if s.endswith("+"):
        s = s[:-1]
    m = _SHORTHAND_RE.match(s)
    if m:
        return sign * int(round(float(m.group(1)) * _FACTORS[m.group(2)]))
    digits = "".join(ch for ch in s if ch.isdigit())
    return sign * int(digits) if digits else None
