"""
ledgersync - Import bank notifications into YNAB and reconcile currency balances.

This package provides functionality to:
- Parse bank SMS notifications into transactions with ordered, per-bank rules
- Build ledger payloads with import ids so repeated imports never double-book
- Convert multi-currency balances into the budget currency
- Book currency fluctuations, updating the latest adjustment while it is fresh

Amounts sent to the ledger are milliunits (1 currency unit = 1000 milliunits).
"""

from .builder import build_payload, build_payloads, import_key
from .currency import convert_balance, fetch_rates, sum_currencies
from .exceptions import (
    LedgerSyncError,
    NumericFormatError,
    RateUnavailableError,
    UnrecognizedMessageError,
)
from .models import CASH_WITHDRAWAL, BankProfile, PatternRule, Transaction, TransactionKind
from .normalize import normalize_date, parse_amount, repair_text
from .parser import parse_message, parse_messages
from .profiles import BUDAPEST_BANK, get_profile
from .reconcile import reconcile_fluctuation, should_update

__all__ = [
    'build_payload',
    'build_payloads',
    'import_key',
    'convert_balance',
    'fetch_rates',
    'sum_currencies',
    'LedgerSyncError',
    'NumericFormatError',
    'RateUnavailableError',
    'UnrecognizedMessageError',
    'CASH_WITHDRAWAL',
    'BankProfile',
    'PatternRule',
    'Transaction',
    'TransactionKind',
    'normalize_date',
    'parse_amount',
    'repair_text',
    'parse_message',
    'parse_messages',
    'BUDAPEST_BANK',
    'get_profile',
    'reconcile_fluctuation',
    'should_update',
]
