"""
Currency fluctuation reconciliation.

A foreign-currency account is tracked in the ledger in the budget currency,
so its cleared balance drifts away from the real balance as rates move. The
drift is booked against a dedicated payee ("currency fluctuation").

Running the reconciliation every day would add a new adjustment each day.
Instead the latest adjustment is updated in place while it is fresh: less
than 7 days old and in the current calendar month. Otherwise a new
adjustment is created. Either way the cleared balance ends up equal to the
computed total.
"""

import logging
import math
from datetime import date, timedelta

import pandas as pd

from .models import ClearedState, CreateTransaction, UpdateTransaction
from .utils import format_milliunits

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW = timedelta(days=7)

CLEARED_STATES = [ClearedState.CLEARED.value, ClearedState.RECONCILED.value]


def _as_date(value):
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def should_update(latest_date, today):
    """
    Whether an adjustment dated ``latest_date`` can absorb today's correction.

    Both conditions must hold: the adjustment is less than 7 days away from
    today, and it is in the same year and month as today.
    """
    latest_date = _as_date(latest_date)
    today = _as_date(today)

    is_recent = abs(today - latest_date) < FRESHNESS_WINDOW
    same_month = (latest_date.year, latest_date.month) == (today.year, today.month)
    return is_recent and same_month


def history_frame(history):
    """Ledger transactions as a DataFrame, one row per transaction."""
    columns = ['id', 'date', 'amount', 'payee_name', 'cleared']
    if not history:
        return pd.DataFrame(columns=columns)

    return pd.DataFrame({
        'id': [tr.id for tr in history],
        'date': [tr.date for tr in history],
        'amount': [tr.amount for tr in history],
        'payee_name': [tr.payee_name for tr in history],
        'cleared': [ClearedState(tr.cleared).value for tr in history],
    })


def find_latest_adjustment(history, payee_name):
    """
    Latest cleared or reconciled transaction of the fluctuation payee.

    Args:
        history (list of LedgerTransaction): Transactions of the account
        payee_name (str): Name of the fluctuation payee

    Returns:
        LedgerTransaction or None: The first one on a date tie
    """
    df = history_frame(history)
    mask = df['cleared'].isin(CLEARED_STATES) & (df['payee_name'] == payee_name)
    candidates = df[mask]
    if candidates.empty:
        return None

    latest_date = candidates['date'].max()
    position = candidates.index[candidates['date'] == latest_date][0]
    return history[position]


def reconcile_fluctuation(target_total, account, history, payee_name, today):
    """
    Decide how to bring the account's cleared balance to ``target_total``.

    Args:
        target_total (int): Computed true balance in milliunits
        account (LedgerAccount): The reconciled account
        history (list of LedgerTransaction): Transactions of the account
        payee_name (str): Name of the fluctuation payee
        today (str or date): Date of the run

    Returns:
        CreateTransaction or UpdateTransaction: The mutation to send to the ledger

    Raises:
        AssertionError: If ``target_total`` is not a whole number of milliunits
    """
    if not math.isfinite(target_total) or target_total != int(target_total):
        raise AssertionError(f"Sum should be an integer in milliunits, got {target_total}")
    target_total = int(target_total)

    today = _as_date(today)
    delta = target_total - account.cleared_balance
    latest = find_latest_adjustment(history, payee_name)

    if latest is not None and should_update(latest.date, today):
        payload = {
            'account_id': latest.account_id or account.id,
            'date': latest.date,
            'payee_name': latest.payee_name,
            'memo': latest.memo,
            'cleared': ClearedState(latest.cleared).value,
            'approved': latest.approved,
            **latest.raw,
            'amount': latest.amount + delta,
        }
        logger.info(f"Updating transaction (payee: '{latest.payee_name}', date: '{latest.date}'):")
        logger.info(f"\t- Previous amount: {format_milliunits(latest.amount)}")
        logger.info(f"\t- New amount: {format_milliunits(payload['amount'])}")
        return UpdateTransaction(
            transaction_id=latest.id,
            payload=payload,
            previous_amount=latest.amount,
        )

    payload = {
        'account_id': account.id,
        'amount': delta,
        'date': today.isoformat(),
        'payee_name': payee_name,
        'cleared': ClearedState.RECONCILED.value,
        'approved': True,
    }
    logger.info(f"Creating new transaction (payee: '{payee_name}', date: '{payload['date']}'):")
    logger.info(f"\t- New amount: {format_milliunits(delta)}")
    return CreateTransaction(payload=payload)
