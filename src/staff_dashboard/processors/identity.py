"""
Canonical person and school identifiers

Person ids arrive as "123456", "123456.0" or " 123456 " depending on which
extract (and which spreadsheet export) produced them. School ids are embedded
in composite "<School Name> - <ID>" fields.
"""

import re

from .text_normalizer import digits_only, normalize_text, strip_dot_zero

# A run of 5+ digits followed only by non-digits up to the end
_TRAILING_ID = re.compile(r'(\d{5,})\D*$')
_ANY_ID = re.compile(r'\d{5,}')


def resolve_person_id(raw: str) -> str:
    """
    Canonical digits-only person id ('' when unresolvable)

    Examples:
        >>> resolve_person_id(' 123456.0 ')
        '123456'
        >>> resolve_person_id('N/A')
        ''
    """
    return digits_only(strip_dot_zero(raw))


def resolve_unit_id(composite: str) -> str:
    """
    School id from a composite name field ('' when none found)

    The last 5+ digit run at the end of the text wins; otherwise the first
    5+ digit run anywhere. Shorter runs (e.g. "School12") are never ids.

    Examples:
        >>> resolve_unit_id('North Public School - 000123456')
        '000123456'
        >>> resolve_unit_id('School12 Annex - 98765')
        '98765'
        >>> resolve_unit_id('Block 4521 Annex')
        ''
    """
    text = normalize_text(composite)
    match = _TRAILING_ID.search(text)
    if match:
        return match.group(1)
    match = _ANY_ID.search(text)
    if match:
        return match.group(0)
    return ''
