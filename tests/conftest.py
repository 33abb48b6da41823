import sqlite3
from datetime import datetime

import pytest

from ledgersync.models import ClearedState, ImportContext, LedgerAccount, LedgerTransaction

# Sample notifications, one per rule of the Budapest Bank profile
sample_messages = {
    'pos': (
        "Visa Prémium Kàrtya POS tranzakciò 1 500Ft Idöpont: 2021.03.10 12:34:56 "
        "E: 98 500Ft Hely: Pe'k Kft"
    ),
    'pos_short': (
        "Visa Prémium POS tranzakciò 990Ft Idöpont: 2021.03.10 18:01:00 "
        "E: 97 510Ft Hely: Bolt"
    ),
    'atm': (
        "Visa Prémium Kàrtya ATM tranzakciò 20 000Ft Idöpont: 2021.03.11 08:00:00 "
        "E: 77 510Ft Hely: OTP ATM Szo:llo:"
    ),
    'incoming_pos': (
        "Visa Prémium Kàrtya utòlagos jòvàiràs 2 000Ft Idöpont: 2021.03.12 10:00:00 "
        "Hely: Bolt E: 79 510Ft"
    ),
    'incoming_transfer': (
        "HUF fizetési szàmla (1234) utalàs érkezett 300 000Ft 2021.03.01 E: 380 500Ft "
        "Küldö: Munkaado Kft Közl: Fizetes"
    ),
    'outgoing_transfer': (
        "HUF fizetési szàmla (1234) utalàsi megbìzàs teljesült 50 000Ft 2021.03.02 "
        "E: 330 500Ft Kedv.: Lakberlo Közl: Berleti dij"
    ),
    'standing_order': (
        "HUF fizetési szàmla (1234) àllandò utalàsi megbìzàs teljesült 10 000Ft 2021.03.03 "
        "E: 320 500Ft Kedv.: Megtakaritas Közl: Havi"
    ),
    'utility': (
        "HUF fizetési szàmla (1234) közüzemi megbìzàsa teljesült: ELMU 12 345Ft "
        "Kedv.: ELMU Nyrt 2021.03.05 E: 308 155Ft Közl: 2021/03"
    ),
    'utility_no_memo': (
        "HUF fizetési szàmla (1234) közüzemi megbìzàsa teljesült: Viz 4 000Ft "
        "Kedv.: Vizmu 2021.03.06 E: 304 155Ft"
    ),
    'loan': (
        "HUF fizetési szàmla (1234) esedékes kamat törlesztve 5 000Ft 2021.03.15 "
        "E: 299 155Ft Közl: Szemelyi kolcson"
    ),
    'failed': "Sikertelen Visa Prémium POS tranzakciò 1 000Ft Idöpont: 2021.03.10 12:00:00",
    'unknown': "Tisztelt Ugyfelunk! Uj bankkartyaja elkeszult.",
}

BANK_NUMBER = '+36303444770'
OTHER_NUMBER = '+36201111111'


@pytest.fixture
def messages():
    return dict(sample_messages)


@pytest.fixture
def sms_account():
    return LedgerAccount(id='acc-sms', name='Bank', cleared_balance=100000, transfer_payee_id='payee-sms')


@pytest.fixture
def cash_account():
    return LedgerAccount(id='acc-cash', name='Cash', cleared_balance=5000, transfer_payee_id='payee-cash')


@pytest.fixture
def import_context(sms_account, cash_account):
    return ImportContext(primary_account=sms_account, cash_account=cash_account, source_tag='BB-SMS-')


@pytest.fixture
def make_ledger_transaction():
    """Helper fixture to create ledger transactions with defaults"""
    def _create(id, date, amount, payee_name='Currency fluctuation', cleared=ClearedState.RECONCILED,
                account_id='acc-wise'):
        return LedgerTransaction(
            id=id,
            date=date,
            amount=amount,
            payee_name=payee_name,
            cleared=cleared,
            account_id=account_id,
        )
    return _create


class FakeLedger:
    """In-memory stand-in for LedgerClient that records every write."""

    def __init__(self, accounts, transactions=None, budget_name='Budget'):
        self.budget = {'id': 'budget-1', 'name': budget_name}
        self.accounts = list(accounts)
        self.transactions = dict(transactions or {})
        self.created = []
        self.updated = []
        self.bulk_created = []

    def find_budget_by_name(self, name):
        if name != self.budget['name']:
            raise ValueError(f"Cannot find budget with name: {name}")
        return self.budget

    def list_accounts(self, budget_id):
        return list(self.accounts)

    def list_transactions(self, budget_id, account_id):
        return list(self.transactions.get(account_id, []))

    def create_transaction(self, budget_id, payload):
        self.created.append(payload)
        return dict(payload, id=f"new-{len(self.created)}")

    def update_transaction(self, budget_id, transaction_id, payload):
        self.updated.append((transaction_id, payload))
        return dict(payload, id=transaction_id)

    def bulk_create_transactions(self, budget_id, payloads):
        self.bulk_created.extend(payloads)
        return [f"tx-{i}" for i in range(len(payloads))], []


@pytest.fixture
def fake_ledger_factory():
    return FakeLedger


def apple_timestamp(value):
    """Nanoseconds since 2001-01-01, the Messages database date format."""
    return int((value - datetime(2001, 1, 1)).total_seconds()) * 1000000000


@pytest.fixture
def message_db(tmp_path):
    """Helper fixture to create a Messages database with the given rows"""
    def _create(rows):
        db_path = tmp_path / 'chat.db'
        conn = sqlite3.connect(db_path)
        conn.execute("CREATE TABLE handle (ROWID INTEGER PRIMARY KEY AUTOINCREMENT, id TEXT)")
        conn.execute(
            "CREATE TABLE message (ROWID INTEGER PRIMARY KEY AUTOINCREMENT, "
            "text TEXT, handle_id INTEGER, date INTEGER)"
        )
        handles = {}
        for sender, _, _ in rows:
            if sender not in handles:
                cursor = conn.execute("INSERT INTO handle (id) VALUES (?)", (sender,))
                handles[sender] = cursor.lastrowid
        for sender, text, sent_at in rows:
            conn.execute(
                "INSERT INTO message (text, handle_id, date) VALUES (?, ?, ?)",
                (text, handles[sender], apple_timestamp(sent_at)),
            )
        conn.commit()
        conn.close()
        return db_path
    return _create
