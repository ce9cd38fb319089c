# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Phone normalization. Pure computation.
"""

import re
from typing import Optional

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: Optional[str]) -> str:
    """
    Reduce a directory phone string to a dialable digit string.
    Ten digits get the "1" country code prepended; any other length is
    passed through so numbers already carrying a country code survive.
    Returns "" when there is nothing to dial.
    """
    if not raw:
        return ""
    digits = _NON_DIGITS.sub("", raw)
    if len(digits) == 10:
        return "1" + digits
    return digits
