"""
Flexible day/month/year date parsing

Roster and service-history extracts mix layouts such as 19/Feb/1969,
19-feb-1969, 19/02/1969 and 19/February/1969.
"""

import re
from datetime import date, datetime
from typing import Optional

from ..exceptions import UnparsableDateError

# Tried in order; %d also accepts a one-digit day.
DATE_FORMATS = (
    '%d/%b/%Y',
    '%d-%b-%Y',
    '%d/%m/%Y',
    '%d-%m-%Y',
    '%d/%B/%Y',
    '%d-%B-%Y',
)

# Day, zero-padded month number or month name, and a four-digit year, with
# one separator kind
_DATE_SHAPE = re.compile(r'^\d{1,2}([/-])(?:\d{2}|[A-Za-z]+)\1\d{4}$')


def _title_case_month(text: str) -> str:
    parts = text.split('/')
    if len(parts) == 3 and len(parts[1]) > 2 and parts[1].isalpha():
        parts[1] = parts[1][:1].upper() + parts[1][1:].lower()
        return '/'.join(parts)
    return text


def parse_date(text: str) -> date:
    """
    Parse a day/month/year date in any accepted layout

    Args:
        text: Raw date text

    Returns:
        Parsed calendar date

    Raises:
        UnparsableDateError: If text is empty or matches no layout

    Examples:
        >>> parse_date('19/FEB/1969')
        datetime.date(1969, 2, 19)
        >>> parse_date('5-03-2001')
        datetime.date(2001, 3, 5)
    """
    text = (text or '').strip()
    if not text:
        raise UnparsableDateError("empty date")

    text = _title_case_month(text)
    if _DATE_SHAPE.match(text):
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue

    raise UnparsableDateError(f"unparsed date: {text}")


def try_parse_date(text: str) -> Optional[date]:
    """Parse a date, returning None instead of raising."""
    try:
        return parse_date(text)
    except UnparsableDateError:
        return None


def compute_age(dob: str, today: Optional[date] = None) -> int:
    """
    Age in whole years on `today` (0 if dob does not parse)

    The year difference is reduced by one while this year's birthday is
    still ahead, so a 29 Feb birthday counts as reached on 29 Feb only.
    """
    born = try_parse_date(dob)
    if born is None:
        return 0

    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return max(age, 0)
