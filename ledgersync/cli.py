"""
Command line entry points.

Each command takes the path of the JSON config file as its only argument:

- ``ledgersync-sms``: import bank SMS notifications into the ledger
- ``ledgersync-wise``: reconcile the Wise multi-currency account
- ``ledgersync-foreign``: reconcile foreign-currency accounts from balances
  typed in by the user

Any error is logged and the process exits with status 1.
"""

import argparse
import logging
import os
from datetime import date

from .builder import build_payloads
from .currency import convert_balance, fetch_rates, sum_currencies
from .ledger import LedgerClient, apply_mutation, find_by_name, latest_cleared_date
from .models import ImportContext
from .normalize import parse_balance_input, to_milliunits
from .parser import parse_messages
from .profiles import get_profile
from .rates import RateClient
from .reconcile import reconcile_fluctuation
from .sources import default_database_path, read_messages
from .utils import format_milliunits, load_config, setup_logging

logger = logging.getLogger(__name__)


def load_budget(ledger, budget_name, account_name):
    """Budget, its accounts, and the transactions of the named account."""
    budget = ledger.find_budget_by_name(budget_name)
    accounts = ledger.list_accounts(budget['id'])
    account = find_by_name(accounts, account_name)
    history = ledger.list_transactions(budget['id'], account.id)
    return budget, accounts, account, history


def import_sms(config, ledger, db_path=None):
    """
    Import new bank notifications into the SMS account.

    Messages are read from the date of the latest cleared transaction on;
    notifications imported before are skipped by the ledger via their
    import ids.

    Returns:
        tuple: (created transaction ids, duplicate import ids)
    """
    config.require('ynab_token', 'budget_name', 'sms_account_name', 'cash_account_name')
    profile = get_profile(config.bank_profile)

    budget, accounts, sms_account, history = load_budget(
        ledger, config.budget_name, config.sms_account_name)
    starting_date = latest_cleared_date(history)

    db_path = db_path or config.sms_database or default_database_path()
    messages = read_messages(db_path, profile.source_identifiers, starting_date)
    transactions = parse_messages(profile, messages['text'])

    context = ImportContext(
        primary_account=sms_account,
        cash_account=find_by_name(accounts, config.cash_account_name),
        source_tag=profile.source_tag,
    )
    payloads = build_payloads(transactions, context)
    if not payloads:
        logger.info("Nothing to import")
        return [], []

    transaction_ids, duplicate_ids = ledger.bulk_create_transactions(budget['id'], payloads)
    logger.info(f"Successfully imported {len(transaction_ids)} transactions ({len(duplicate_ids)} duplicates)")
    return transaction_ids, duplicate_ids


def reconcile_wise(config, ledger, rates, today=None):
    """Book the currency fluctuation of the Wise account."""
    config.require('ynab_token', 'transferwise_token', 'budget_name', 'budget_currency',
                   'transferwise_account_name', 'currency_fluctuation_payee')
    today = today or date.today()

    balances = rates.get_balances()
    logger.info("Transferwise balances:")
    for currency, value in balances.items():
        logger.info(f"\t- {currency}: {format_milliunits(value)}")

    total = sum_currencies(balances, config.budget_currency, rates.get_spot_rate)

    budget, _, account, history = load_budget(
        ledger, config.budget_name, config.transferwise_account_name)
    mutation = reconcile_fluctuation(
        total, account, history, config.currency_fluctuation_payee, today)
    return apply_mutation(ledger, budget['id'], mutation)


def prompt_balance(account_name, currency, read_input=input):
    text = read_input(f"Enter the balance or balances for account '{account_name}' in {currency}:\n")
    return to_milliunits(parse_balance_input(text))


def reconcile_foreign_accounts(config, ledger, rates, read_input=input, today=None):
    """
    Book the currency fluctuation of every foreign-currency account.

    The user types in each account's balance in the account currency. One rate
    is fetched per currency.

    Returns:
        list: The created or updated transactions, one per account
    """
    config.require('ynab_token', 'transferwise_token', 'budget_name', 'budget_currency',
                   'currency_fluctuation_payee', 'foreign_currency_accounts')
    today = today or date.today()
    accounts_currency = config.foreign_currency_accounts

    balances = {
        name: prompt_balance(name, currency, read_input)
        for name, currency in accounts_currency.items()
    }
    logger.info("Total balances:")
    for name, milliunits in balances.items():
        logger.info(f"\t- {name}: {format_milliunits(milliunits)} {accounts_currency[name]}")

    currency_rates = fetch_rates(accounts_currency.values(), config.budget_currency, rates.get_spot_rate)

    budget = ledger.find_budget_by_name(config.budget_name)
    accounts = ledger.list_accounts(budget['id'])

    results = []
    for name, milliunits in balances.items():
        account = find_by_name(accounts, name)
        history = ledger.list_transactions(budget['id'], account.id)
        rate = currency_rates[accounts_currency[name]]
        mutation = reconcile_fluctuation(
            convert_balance(milliunits, rate),
            account,
            history,
            config.currency_fluctuation_payee,
            today,
        )
        results.append(apply_mutation(ledger, budget['id'], mutation))
    return results


def _run(name, description, command, argv=None):
    parser = argparse.ArgumentParser(prog=name, description=description)
    parser.add_argument('config', type=str, help='Path to the JSON config file')
    args = parser.parse_args(argv)

    setup_logging(log_level=os.getenv('LOG_LEVEL', 'info'), log_name=name)
    try:
        config = load_config(args.config)
        command(config)
    except Exception as e:
        logger.error(f"Error: {str(e)}", exc_info=logger.isEnabledFor(logging.DEBUG))
        return 1
    return 0


def sms_main(argv=None):
    def command(config):
        logger.info("Connecting to YNAB")
        import_sms(config, LedgerClient(config.ynab_token))

    return _run('ledgersync-sms', 'Import bank SMS notifications into YNAB', command, argv)


def wise_main(argv=None):
    def command(config):
        reconcile_wise(config, LedgerClient(config.ynab_token), RateClient(config.transferwise_token))

    return _run('ledgersync-wise', 'Reconcile the Wise account balance in YNAB', command, argv)


def foreign_main(argv=None):
    def command(config):
        reconcile_foreign_accounts(
            config, LedgerClient(config.ynab_token), RateClient(config.transferwise_token))

    return _run('ledgersync-foreign', 'Reconcile foreign-currency account balances in YNAB', command, argv)
