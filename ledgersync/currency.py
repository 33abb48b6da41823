"""
Conversion of multi-currency balances into the budget currency.

Rates are fetched concurrently, one lookup per currency. The conversion only
starts once every rate is known: a single failed lookup fails the whole sum.
Each converted balance is rounded on its own before summing, so the total is
off by at most one milliunit per currency.
"""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

import pandas as pd

from .normalize import round_half_up

logger = logging.getLogger(__name__)


def lookup_rate(rate_lookup, source, target):
    """Rate of ``source`` in ``target``; 1 for the same currency without a lookup."""
    if source == target:
        return 1.0
    return rate_lookup(source, target)


def fetch_rates(currencies, target_currency, rate_lookup, max_workers=None):
    """
    Fetch the rate of every currency into the target currency.

    Args:
        currencies (iterable of str): Source currency codes
        target_currency (str): Currency to convert into
        rate_lookup (callable): ``rate_lookup(source, target) -> float``
        max_workers (int, optional): Thread pool size

    Returns:
        dict: currency -> rate

    Raises:
        Whatever the first failing lookup raised; pending lookups are cancelled.
    """
    currencies = list(dict.fromkeys(currencies))
    if not currencies:
        return {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(lookup_rate, rate_lookup, currency, target_currency): currency
            for currency in currencies
        }
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        for future in pending:
            future.cancel()

        for future in done:
            error = future.exception()
            if error is not None:
                logger.error(f"Rate lookup failed for {futures[future]}-{target_currency}: {error}")
                raise error

        rates = {futures[future]: future.result() for future in futures}

    for currency in currencies:
        logger.info(f"Rate for {currency}-{target_currency}: {rates[currency]}")
    return rates


def convert_balance(value, rate):
    """Convert a balance with a rate, rounded to whole milliunits."""
    return round_half_up(value * rate)


def balances_frame(balances, rates):
    """Table of balances, rates and converted values, one row per currency."""
    df = pd.DataFrame({
        'currency': list(balances.keys()),
        'balance': list(balances.values()),
    })
    df['rate'] = df['currency'].map(rates)
    df['converted'] = [convert_balance(value, rate) for value, rate in zip(df['balance'], df['rate'])]
    return df


def sum_currencies(balances, target_currency, rate_lookup, max_workers=None):
    """
    Total of multi-currency balances in the target currency.

    Args:
        balances (dict): currency -> balance in milliunits
        target_currency (str): Currency of the total
        rate_lookup (callable): ``rate_lookup(source, target) -> float``
        max_workers (int, optional): Thread pool size for the rate lookups

    Returns:
        int: Total in target currency milliunits
    """
    rates = fetch_rates(balances.keys(), target_currency, rate_lookup, max_workers)
    if not balances:
        return 0

    df = balances_frame(balances, rates)
    logger.debug(f"Converted balances:\n{df.to_string(index=False)}")
    return int(df['converted'].sum())
