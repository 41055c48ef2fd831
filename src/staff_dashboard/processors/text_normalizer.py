"""
Text normalization for raw extract fields

Extracts exported from spreadsheets carry byte-order marks, non-breaking
spaces, doubled spaces and numbers serialized as "12345.0".
"""

import math
import re

import pandas as pd

BOM = '\ufeff'
NBSP = '\u00a0'

_ZERO_WIDTH = re.compile('[\u200b\u200c\u200d\u2060]')
_WHITESPACE_RUN = re.compile(r'\s+')


def normalize_text(value: str) -> str:
    """
    Strip BOM, zero-width and NBSP characters, collapse whitespace runs and trim

    Examples:
        >>> normalize_text('\\ufeff  Zone\\u00a0 North ')
        'Zone North'
        >>> normalize_text('')
        ''
    """
    if not value:
        return ''
    value = _ZERO_WIDTH.sub('', value.replace(BOM, '')).replace(NBSP, ' ')
    return _WHITESPACE_RUN.sub(' ', value).strip()


def strip_dot_zero(value: str) -> str:
    """
    Normalize text and drop a trailing ".0" left by numeric serialization

    Examples:
        >>> strip_dot_zero('9876543210.0')
        '9876543210'
        >>> strip_dot_zero('10.05')
        '10.05'
    """
    value = normalize_text(value)
    if value.endswith('.0'):
        return value[:-2]
    return value


def digits_only(value: str) -> str:
    """
    Keep only decimal digits, in order

    Examples:
        >>> digits_only('EMP-00123 / 45')
        '0012345'
    """
    if not value:
        return ''
    return ''.join(ch for ch in value if '0' <= ch <= '9')


def parse_count(value: str) -> int:
    """
    Convert a counter field to int, returning 0 for blank/invalid text

    Thousands separators and a trailing ".0" are tolerated.

    Examples:
        >>> parse_count('1,204.0')
        1204
        >>> parse_count('n/a')
        0
        >>> parse_count('inf')
        0
    """
    value = strip_dot_zero(value).replace(',', '')
    if not value:
        return 0
    number = pd.to_numeric(value, errors='coerce')
    if pd.isna(number) or not math.isfinite(number):
        return 0
    return int(number)
