"""
Bank profiles: the ordered notification rules of each supported bank.

Rules are tried in order and the first match wins, so a rule whose pattern
overlaps with a later one must come first. The texts below are the bank's
own spelling, including its nonstandard accents (``Kàrtya``, ``tranzakciò``).
"""

import logging
import re

from .models import (
    CASH_WITHDRAWAL,
    BankProfile,
    FreeformName,
    PatternRule,
    Transaction,
    TransactionKind,
)
from .normalize import normalize_date, parse_amount, repair_text

logger = logging.getLogger(__name__)

BUDAPEST_BANK_SOURCE_TAG = 'BB-SMS-'
BUDAPEST_BANK_NUMBERS = frozenset(['+36303444770', '+36309266245'])
BUDAPEST_BANK_PAYEE = 'Budapest Bank'


def _card_purchase(match):
    return Transaction(
        kind=TransactionKind.POS,
        value=-parse_amount(match.group(1)),
        date=normalize_date(match.group(2)),
        time=match.group(3),
        balance=parse_amount(match.group(4)),
        partner=FreeformName(repair_text(match.group(5))),
        memo="",
    )


def _cash_withdrawal(match):
    # The location goes to the memo, the payee is the cash account.
    return Transaction(
        kind=TransactionKind.ATM,
        value=-parse_amount(match.group(1)),
        date=normalize_date(match.group(2)),
        time=match.group(3),
        balance=parse_amount(match.group(4)),
        partner=CASH_WITHDRAWAL,
        memo=repair_text(match.group(5)),
    )


def _card_refund(match):
    return Transaction(
        kind=TransactionKind.INCOMING_POS,
        value=parse_amount(match.group(1)),
        date=normalize_date(match.group(2)),
        time=match.group(3),
        partner=FreeformName(repair_text(match.group(4))),
        balance=parse_amount(match.group(5)),
        memo="",
    )


def _incoming_transfer(match):
    return Transaction(
        kind=TransactionKind.INCOMING_TRANSFER,
        value=parse_amount(match.group(1)),
        date=normalize_date(match.group(2)),
        balance=parse_amount(match.group(3)),
        partner=FreeformName(match.group(4)),
        memo=match.group(5),
    )


def _outgoing_transfer(match):
    return Transaction(
        kind=TransactionKind.OUTGOING_TRANSFER,
        value=-parse_amount(match.group(1)),
        date=normalize_date(match.group(2)),
        balance=parse_amount(match.group(3)),
        partner=FreeformName(match.group(4)),
        memo=match.group(5),
    )


def _utility_payment(match):
    memo = match.group(1)
    if match.group(6) is not None:
        memo = f"{memo} {match.group(6)}"

    return Transaction(
        kind=TransactionKind.RECURRING_UTILITY,
        value=-parse_amount(match.group(2)),
        partner=FreeformName(match.group(3)),
        date=normalize_date(match.group(4)),
        balance=parse_amount(match.group(5)),
        memo=memo,
    )


def _loan_payment(match):
    return Transaction(
        kind=TransactionKind.LOAN_PAYMENT,
        value=-parse_amount(match.group(2)),
        partner=FreeformName(BUDAPEST_BANK_PAYEE),
        date=normalize_date(match.group(3)),
        balance=parse_amount(match.group(4)),
        memo=match.group(1),
    )


def _ignore(match):
    return None


BUDAPEST_BANK_RULES = (
    PatternRule(
        name='card_purchase',
        pattern=re.compile(
            r'^Visa Prémium(?: Kàrtya)? POS tranzakciò ([0-9 ]+)Ft '
            r'Idöpont: ([0-9.]+) ([0-9:]+) E: ([0-9 ]+)Ft Hely: (.+)\Z'
        ),
        extract=_card_purchase,
        kind=TransactionKind.POS,
    ),
    PatternRule(
        name='cash_withdrawal',
        pattern=re.compile(
            r'^Visa Prémium(?: Kàrtya)? ATM tranzakciò ([0-9 ]+)Ft '
            r'Idöpont: ([0-9.]+) ([0-9:]+) E: ([0-9 ]+)Ft Hely: (.+)\Z'
        ),
        extract=_cash_withdrawal,
        kind=TransactionKind.ATM,
    ),
    PatternRule(
        name='card_refund',
        pattern=re.compile(
            r'^Visa Prémium Kàrtya utòlagos jòvàiràs ([0-9 ]+)Ft '
            r'Idöpont: ([0-9.]+) ([0-9:]+) Hely: (.+) E: ([0-9 ]+)Ft\Z'
        ),
        extract=_card_refund,
        kind=TransactionKind.INCOMING_POS,
    ),
    PatternRule(
        name='incoming_transfer',
        pattern=re.compile(
            r'^HUF fizetési szàmla \([0-9]+\) utalàs érkezett ([0-9 ]+)Ft '
            r'([0-9.]+) E: ([0-9 ]+)Ft Küldö: (.*) Közl: (.*)\Z'
        ),
        extract=_incoming_transfer,
        kind=TransactionKind.INCOMING_TRANSFER,
    ),
    PatternRule(
        name='outgoing_transfer',
        pattern=re.compile(
            r'^HUF fizetési szàmla \([0-9]+\) (?:àllandò )?utalàsi megbìzàs teljesült '
            r'([0-9 ]+)Ft ([0-9.]+) E: ([0-9 ]+)Ft Kedv\.: (.*) Közl: (.*)\Z'
        ),
        extract=_outgoing_transfer,
        kind=TransactionKind.OUTGOING_TRANSFER,
    ),
    PatternRule(
        name='utility_payment',
        pattern=re.compile(
            r'^HUF fizetési szàmla \([0-9]+\) közüzemi megbìzàsa teljesült: (.*?) '
            r'([0-9 ]+)Ft Kedv\.: (.*) ([0-9.]+) E: ([0-9 ]+)Ft(?: Közl: (.*))?\Z'
        ),
        extract=_utility_payment,
        kind=TransactionKind.RECURRING_UTILITY,
    ),
    PatternRule(
        name='loan_payment',
        pattern=re.compile(
            r'^HUF fizetési szàmla \([0-9]+\) esedékes (hitel/ tartozàs|kamat) törlesztve '
            r'([0-9 ]+)Ft ([0-9.]+) E: ([0-9 ]+)Ft Közl: (.*)\Z'
        ),
        extract=_loan_payment,
        kind=TransactionKind.LOAN_PAYMENT,
    ),
    PatternRule(
        name='failed_card_transaction',
        pattern=re.compile(r'^Sikertelen Visa Prémium (?:Kàrtya )?POS'),
        extract=_ignore,
    ),
)

BUDAPEST_BANK = BankProfile(
    name='budapest_bank',
    rules=BUDAPEST_BANK_RULES,
    source_identifiers=BUDAPEST_BANK_NUMBERS,
    source_tag=BUDAPEST_BANK_SOURCE_TAG,
)

PROFILES = {
    BUDAPEST_BANK.name: BUDAPEST_BANK,
}


def get_profile(name):
    """
    Look up a bank profile by name.

    Raises:
        ValueError: If no profile has that name
    """
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown bank profile: {name}. Expected one of: {sorted(PROFILES)}")
