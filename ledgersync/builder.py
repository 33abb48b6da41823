"""
Turns parsed transactions into ledger transaction payloads.

Every payload carries an import id built from the source tag, date, value
and balance of the notification. The ledger ignores a payload whose import
id it has already seen, so importing the same notifications again books
nothing twice. The memo is not part of the id.
"""

import logging

from .models import CashWithdrawal, ClearedState

logger = logging.getLogger(__name__)

MILLIUNITS_PER_UNIT = 1000


def import_key(source_tag, date, value, balance):
    """Build the import id of a notification, e.g. ``BB-SMS-:2020-05-01:-1500:98500``."""
    return f"{source_tag}:{date}:{value}:{balance}"


def build_payload(transaction, context):
    """
    Build the ledger payload of one transaction.

    Cash withdrawals are booked as transfers to the cash account, every other
    partner becomes a payee name.

    Args:
        transaction (Transaction): Parsed notification
        context (ImportContext): Target accounts and source tag

    Returns:
        dict: Payload for the ledger's create transaction call
    """
    payload = {
        'account_id': context.primary_account.id,
        'date': transaction.date,
        'amount': transaction.value * MILLIUNITS_PER_UNIT,
        'cleared': ClearedState.CLEARED.value,
        'approved': True,
        'memo': transaction.memo,
        'import_id': import_key(
            context.source_tag,
            transaction.date,
            transaction.value,
            transaction.balance,
        ),
    }

    if isinstance(transaction.partner, CashWithdrawal):
        if not context.cash_account.transfer_payee_id:
            raise ValueError(f"Cash account has no transfer payee: {context.cash_account.name}")
        payload['payee_id'] = context.cash_account.transfer_payee_id
    else:
        payload['payee_name'] = transaction.partner.name

    return payload


def build_payloads(transactions, context):
    payloads = [build_payload(tr, context) for tr in transactions]
    logger.info(f"Ready to import {len(payloads)} transactions")
    for payload in payloads:
        logger.info(f"{payload}")
    return payloads
