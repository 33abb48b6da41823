"""
Data model shared by the parser, the payload builder and the reconciler.

Notification values are kept in the units the bank reports them in (whole
forints for HUF accounts). Ledger amounts are milliunits.
"""

from dataclasses import dataclass, field
from enum import Enum
from re import Pattern
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple, Union


class TransactionKind(str, Enum):
    POS = 'pos'
    ATM = 'atm'
    INCOMING_POS = 'incoming-pos'
    INCOMING_TRANSFER = 'incoming-transfer'
    OUTGOING_TRANSFER = 'outgoing-transfer'
    RECURRING_UTILITY = 'recurring-utility'
    LOAN_PAYMENT = 'loan-payment'

    @property
    def is_credit(self):
        return self in (TransactionKind.INCOMING_POS, TransactionKind.INCOMING_TRANSFER)


@dataclass(frozen=True)
class FreeformName:
    """A payee known only by the name in the notification."""
    name: str


@dataclass(frozen=True)
class CashWithdrawal:
    """Marks a transaction to be booked as a transfer to the cash account."""


CASH_WITHDRAWAL = CashWithdrawal()

Partner = Union[FreeformName, CashWithdrawal]


@dataclass(frozen=True)
class Transaction:
    """
    A transaction extracted from one notification.

    ``value`` is signed (debits negative, credits positive). ``balance`` is
    the account balance right after the transaction as reported by the bank.
    """
    kind: TransactionKind
    value: int
    balance: int
    date: str
    partner: Partner
    memo: str = ""
    time: Optional[str] = None


@dataclass(frozen=True)
class PatternRule:
    """
    One entry of a bank profile.

    ``extract`` receives the regex match. A rule with ``kind`` set to None is
    a discard rule: its extractor returns None for messages that are
    recognized but carry no transaction.
    """
    name: str
    pattern: Pattern
    extract: Callable[..., Optional[Transaction]]
    kind: Optional[TransactionKind] = None

    @property
    def is_discard(self):
        return self.kind is None


@dataclass(frozen=True)
class BankProfile:
    """Ordered rules and sender identifiers of one bank's notifications."""
    name: str
    rules: Tuple[PatternRule, ...]
    source_identifiers: FrozenSet[str]
    source_tag: str


class ClearedState(str, Enum):
    UNCLEARED = 'uncleared'
    CLEARED = 'cleared'
    RECONCILED = 'reconciled'


@dataclass(frozen=True)
class LedgerAccount:
    id: str
    name: str
    cleared_balance: int
    transfer_payee_id: Optional[str] = None

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data['id'],
            name=data['name'],
            cleared_balance=data['cleared_balance'],
            transfer_payee_id=data.get('transfer_payee_id'),
        )


@dataclass(frozen=True)
class LedgerTransaction:
    id: str
    date: str
    amount: int
    payee_name: Optional[str]
    cleared: ClearedState
    account_id: Optional[str] = None
    memo: Optional[str] = None
    approved: bool = True
    # Full API record; updates send it back with only the amount changed
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data['id'],
            date=data['date'],
            amount=data['amount'],
            payee_name=data.get('payee_name'),
            cleared=ClearedState(data['cleared']),
            account_id=data.get('account_id'),
            memo=data.get('memo'),
            approved=data.get('approved', True),
            raw=dict(data),
        )


@dataclass(frozen=True)
class ImportContext:
    """Ledger accounts a batch of notifications is imported into."""
    primary_account: LedgerAccount
    cash_account: LedgerAccount
    source_tag: str


@dataclass(frozen=True)
class CreateTransaction:
    payload: dict = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateTransaction:
    transaction_id: str
    payload: dict = field(default_factory=dict)
    previous_amount: int = 0


LedgerMutation = Union[CreateTransaction, UpdateTransaction]
