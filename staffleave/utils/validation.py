"""
Pure form-field validators shared by user administration
"""
import re
from datetime import date
from typing import Optional, Union

_IC_NUMERIC = re.compile(r"^\d{12}$")
_IC_DASHED = re.compile(r"^\d{6}-\d{2}-\d{4}$")

MIN_YEAR = 1900
MAX_YEAR = 2100


def validate_required_text(value: Optional[str]) -> bool:
    """True when value has at least one non-whitespace character"""
    return bool(value) and len(value.strip()) > 0


def validate_ic_number(value: Optional[str]) -> bool:
    """
    Identity-card number: twelve digits, either bare ("123456789012")
    or grouped 6-2-4 with dashes ("123456-78-9012").
    """
    if not value:
        return False
    v = value.strip()
    return bool(_IC_NUMERIC.match(v) or _IC_DASHED.match(v))


def _to_int(part: Union[str, int, None]) -> Optional[int]:
    if isinstance(part, bool):
        return None
    if isinstance(part, int):
        return part
    if part is None:
        return None
    try:
        return int(str(part).strip())
    except ValueError:
        return None


def validate_date_parts(
    day: Union[str, int, None],
    month: Union[str, int, None],
    year: Union[str, int, None],
) -> bool:
    """True when day/month/year form a real calendar date between 1900 and 2100"""
    d, m, y = _to_int(day), _to_int(month), _to_int(year)
    if d is None or m is None or y is None:
        return False
    if m < 1 or m > 12:
        return False
    if d < 1 or d > 31:
        return False
    if y < MIN_YEAR or y > MAX_YEAR:
        return False
    try:
        date(y, m, d)
    except ValueError:
        return False
    return True
