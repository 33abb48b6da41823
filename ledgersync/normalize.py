"""
Text and number normalization for bank notifications.

The bank sends its SMS notifications with accented letters written as an
ASCII letter followed by a mark (``a'`` for ``á``, ``o:`` for ``ö``, ``o"``
for ``ő``). Amounts are grouped with spaces (``12 345``) and dates are dot
separated (``2020.05.01``).
"""

import logging
import math
import re

import numpy as np

from .exceptions import NumericFormatError

logger = logging.getLogger(__name__)

# No replacement output can start another entry, so applying the table twice
# changes nothing.
DIACRITIC_REPLACEMENTS = [
    ("a'", 'á'), ("A'", 'Á'),
    ("e'", 'é'), ("E'", 'É'),
    ("i'", 'í'), ("I'", 'Í'),
    ("o'", 'ó'), ("O'", 'Ó'),
    ("u'", 'ú'), ("U'", 'Ú'),
    ('o:', 'ö'), ('O:', 'Ö'),
    ('u:', 'ü'), ('U:', 'Ü'),
    ('o"', 'ő'), ('O"', 'Ő'),
    ('u"', 'ű'), ('U"', 'Ű'),
]

_INTEGER_RE = re.compile(r'^[+-]?[0-9]+$')
_WHITESPACE_RE = re.compile(r'\s+')


def repair_text(text):
    """Replace transliterated accents with the accented letters."""
    for transliterated, accented in DIACRITIC_REPLACEMENTS:
        text = text.replace(transliterated, accented)
    return text


def parse_amount(text):
    """
    Parse a space-grouped integer such as ``"12 345"``.

    Args:
        text (str): Amount as written in the notification

    Returns:
        int: Parsed amount

    Raises:
        NumericFormatError: If the text is not an integer once whitespace is removed
    """
    if text is None:
        raise NumericFormatError("Invalid amount format: None")

    cleaned = _WHITESPACE_RE.sub('', text)
    if not _INTEGER_RE.match(cleaned):
        raise NumericFormatError(f"Invalid amount format: {text!r}")
    return int(cleaned)


def normalize_date(text):
    """Turn ``2020.05.01`` into ``2020-05-01``. The calendar date is not validated."""
    return text.replace('.', '-')


def parse_balance_input(text):
    """
    Parse a balance typed in by the user.

    Several balances can be entered at once separated by ``+``; commas are
    treated as thousands separators.

    Args:
        text (str): User input, e.g. ``"1,200.50 + 30"``

    Returns:
        float: Sum of all terms

    Raises:
        NumericFormatError: If any term is not a number or the sum is not finite
    """
    total = 0.0
    for term in text.split('+'):
        cleaned = term.replace(',', '').strip()
        try:
            total += float(cleaned)
        except ValueError:
            raise NumericFormatError(f"Cannot parse number: {term.strip()!r}")

    if not math.isfinite(total):
        raise NumericFormatError(f"Cannot parse number: {text!r}")

    logger.debug(f"Parsed balance input {text!r} as {total}")
    return total


def round_half_up(value):
    """Round to the nearest integer, halves towards positive infinity."""
    return int(np.floor(value + 0.5))


def to_milliunits(amount):
    """Convert a currency amount to ledger milliunits."""
    return round_half_up(amount * 1000)
