"""
Utility functions for ledgersync.

This module contains helpers used across the package that are not directly
related to parsing notifications or reconciling balances: logging setup,
configuration loading and amount formatting.
"""

import json
import logging
import os
import pathlib
from dataclasses import dataclass, field, fields
from typing import Dict, Optional

logger = logging.getLogger(__name__)


# Chatty third-party loggers kept at WARNING unless debugging
QUIET_LOGGERS = ('urllib3', 'requests')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(debug=False, log_level='info', log_name='ledgersync'):
    """
    Configure logging for one command run.

    Records go to the console and to a log file. The file is ``LOG_FILE``
    when set, otherwise ``<log_name>.log`` in the working directory, so each
    command keeps its own history.

    Args:
        debug (bool): Log everything, including HTTP connection details
        log_level (str): Level name used when not debugging
        log_name (str): Base name of the default log file

    Returns:
        str: Path of the log file
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    log_file = os.getenv('LOG_FILE') or f'{log_name}.log'
    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file, encoding='utf-8'),
            logging.StreamHandler(),
        ],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    return log_file


def format_milliunits(milliunits):
    """Format a milliunit amount as a currency amount, e.g. ``-1234500`` -> ``-1234.5``."""
    amount = round(milliunits / 1000, 3)
    if amount == int(amount):
        return str(int(amount))
    return f"{amount:.3f}".rstrip('0')


@dataclass(frozen=True)
class Config:
    """Settings of all commands, loaded once from a JSON file."""
    ynab_token: Optional[str] = None
    budget_name: Optional[str] = None
    sms_account_name: Optional[str] = None
    cash_account_name: Optional[str] = None
    sms_database: Optional[str] = None
    bank_profile: str = 'budapest_bank'
    transferwise_token: Optional[str] = None
    budget_currency: Optional[str] = None
    transferwise_account_name: Optional[str] = None
    currency_fluctuation_payee: Optional[str] = None
    foreign_currency_accounts: Dict[str, str] = field(default_factory=dict)

    def require(self, *names):
        """
        Check that the given settings are present.

        Raises:
            ValueError: Listing every missing setting
        """
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            raise ValueError(f"Missing required config fields: {missing}")
        return self


def load_config(path):
    """
    Load the configuration file.

    Args:
        path (str or pathlib.Path): Path to a JSON document

    Returns:
        Config: Parsed settings

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the document is not a JSON object or has unknown fields
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.debug(f"Reading config: {path}")
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid config file {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Config must be a JSON object, got {type(data).__name__}")

    known = {f.name for f in fields(Config)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config fields: {unknown}")

    return Config(**data)
