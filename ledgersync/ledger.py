"""
YNAB ledger client and helpers.

The client is a thin wrapper over the YNAB REST API. HTTP errors are not
interpreted: ``requests.HTTPError`` propagates to the caller.
"""

import logging

import requests

from .models import (
    ClearedState,
    CreateTransaction,
    LedgerAccount,
    LedgerTransaction,
    UpdateTransaction,
)

logger = logging.getLogger(__name__)

YNAB_API_URL = 'https://api.ynab.com/v1'

DEFAULT_START_DATE = '2001-01-01'


class LedgerClient:
    """Authenticated access to one YNAB user's budgets."""

    def __init__(self, token, base_url=YNAB_API_URL, session=None):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({'Authorization': f'Bearer {token}'})

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        logger.debug(f"{method} {url}")
        response = self.session.request(method, url, **kwargs)
        response.raise_for_status()
        return response.json()['data']

    def find_budget_by_name(self, name):
        """
        Find a budget summary by name.

        Raises:
            ValueError: If no budget has that name
        """
        budgets = self._request('GET', '/budgets')['budgets']
        for budget in budgets:
            if budget['name'] == name:
                return budget
        raise ValueError(f"Cannot find budget with name: {name}")

    def list_accounts(self, budget_id):
        data = self._request('GET', f'/budgets/{budget_id}/accounts')
        return [LedgerAccount.from_api(a) for a in data['accounts']]

    def list_transactions(self, budget_id, account_id):
        logger.info("Downloading transactions")
        data = self._request('GET', f'/budgets/{budget_id}/accounts/{account_id}/transactions')
        return [LedgerTransaction.from_api(t) for t in data['transactions']]

    def create_transaction(self, budget_id, payload):
        data = self._request('POST', f'/budgets/{budget_id}/transactions', json={'transaction': payload})
        return data.get('transaction')

    def update_transaction(self, budget_id, transaction_id, payload):
        data = self._request(
            'PUT',
            f'/budgets/{budget_id}/transactions/{transaction_id}',
            json={'transaction': payload},
        )
        return data.get('transaction')

    def bulk_create_transactions(self, budget_id, payloads):
        """
        Create many transactions at once.

        Returns:
            tuple: (created transaction ids, duplicate import ids)
        """
        data = self._request('POST', f'/budgets/{budget_id}/transactions', json={'transactions': payloads})
        return data.get('transaction_ids', []), data.get('duplicate_import_ids', [])


def find_by_name(items, name):
    """
    Find an account (or anything with a ``name``) by name.

    Raises:
        ValueError: If nothing has that name
    """
    for item in items:
        if item.name == name:
            return item
    raise ValueError(f"Cannot find account with name: {name}")


def is_cleared(transaction):
    return ClearedState(transaction.cleared) in (ClearedState.CLEARED, ClearedState.RECONCILED)


def latest_cleared_date(history, default=DEFAULT_START_DATE):
    """Date of the latest cleared or reconciled transaction, ``default`` if there is none."""
    dates = [tr.date for tr in history if is_cleared(tr)]
    if not dates:
        return default
    return max(dates)


def apply_mutation(client, budget_id, mutation):
    """
    Send a reconciliation decision to the ledger.

    Returns:
        dict: The created or updated transaction

    Raises:
        RuntimeError: If the ledger returns no transaction
    """
    if isinstance(mutation, UpdateTransaction):
        result = client.update_transaction(budget_id, mutation.transaction_id, mutation.payload)
    elif isinstance(mutation, CreateTransaction):
        result = client.create_transaction(budget_id, mutation.payload)
    else:
        raise TypeError(f"Unknown ledger mutation: {type(mutation).__name__}")

    if result is None:
        raise RuntimeError(f"Null response from ledger for {type(mutation).__name__}")
    return result
