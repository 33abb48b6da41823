"""
Notification parser.

A message is matched against the rules of a bank profile in order. The first
rule that matches decides the result: a Transaction, or None for messages the
bank sends that carry no transaction (failed card payments). A message that
matches no rule raises UnrecognizedMessageError and aborts the batch.
"""

import logging

from .exceptions import UnrecognizedMessageError

logger = logging.getLogger(__name__)


def parse_message(profile, text):
    """
    Parse one notification text.

    Args:
        profile (BankProfile): Rules of the sending bank
        text (str): Raw message text

    Returns:
        Transaction or None: None when the matching rule discards the message

    Raises:
        UnrecognizedMessageError: If no rule matches
    """
    if text is None:
        raise ValueError("Message text cannot be null")

    for rule in profile.rules:
        match = rule.pattern.search(text)
        if match is not None:
            logger.debug(f"Message matched rule {rule.name}")
            return rule.extract(match)

    raise UnrecognizedMessageError(text, profile.name)


def parse_messages(profile, texts):
    """
    Parse a batch of notifications, keeping their order.

    Discarded messages are left out of the result. The first unrecognized
    message aborts the whole batch.

    Args:
        profile (BankProfile): Rules of the sending bank
        texts (iterable of str): Message texts, oldest first

    Returns:
        list: Transactions in message order
    """
    transactions = []
    discarded = 0
    for text in texts:
        transaction = parse_message(profile, text)
        if transaction is None:
            discarded += 1
            continue
        transactions.append(transaction)

    logger.info(f"Parsed {len(transactions)} transactions ({discarded} messages discarded)")
    return transactions
