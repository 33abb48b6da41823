"""
Reads bank notifications from the local messages database.

The database is the macOS Messages store (``~/Library/Messages/chat.db``).
Message dates are stored as nanoseconds since 2001-01-01; the query converts
them to local time and returns messages oldest first.
"""

import logging
import os
import pathlib
import re
import sqlite3

import pandas as pd

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r'\+[0-9]+')

MESSAGE_COLUMNS = ['rowid', 'text', 'date_']


def default_database_path():
    """
    Location of the Messages database of the current user.

    Raises:
        RuntimeError: If HOME is not set
    """
    home = os.getenv('HOME')
    if not home:
        raise RuntimeError("Cannot locate iMessage database (no HOME in env)")
    return pathlib.Path(home) / 'Library' / 'Messages' / 'chat.db'


def build_message_query(source_identifiers):
    """
    Build the query for messages sent by the given phone numbers.

    The numbers are inlined into the query, so they are validated first.

    Args:
        source_identifiers (iterable of str): Sender phone numbers, e.g. ``+36301234567``

    Returns:
        str: SQL with a single ``?`` parameter for the starting date

    Raises:
        ValueError: If a number is not ``+`` followed by digits
    """
    identifiers = sorted(source_identifiers)
    if not identifiers:
        raise ValueError("At least one bank SMS number is required")
    if not all(_IDENTIFIER_RE.fullmatch(n) for n in identifiers):
        raise ValueError("Bank SMS numbers must start with '+' and be followed only by numbers.")

    clause = ', '.join(f"'{n}'" for n in identifiers)
    return f"""
SELECT
    rowid,
    text,
    datetime(date/1000000000 + strftime('%s','2001-01-01'), 'unixepoch', 'localtime') as date_
FROM message
WHERE
    handle_id in
        (SELECT rowid from handle WHERE id in ({clause}))
    AND date_ >= date(?)
ORDER BY date ASC
"""


def read_messages(db_path, source_identifiers, starting_date):
    """
    Read notifications received on or after ``starting_date``.

    Args:
        db_path (str or pathlib.Path): Messages database
        source_identifiers (iterable of str): Sender phone numbers
        starting_date (str): ``YYYY-MM-DD``

    Returns:
        pd.DataFrame: Columns rowid, text, date_, oldest message first

    Raises:
        FileNotFoundError: If the database does not exist
        ValueError: If a returned message has no text
    """
    db_path = pathlib.Path(db_path)
    if not db_path.exists():
        raise FileNotFoundError(f"Messages database not found: {db_path}")

    query = build_message_query(source_identifiers)
    logger.info(f"Querying all SMS messages since {starting_date}")

    conn = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)
    try:
        df = pd.read_sql_query(query, conn, params=(starting_date,))
    finally:
        conn.close()

    df.columns = MESSAGE_COLUMNS
    if df['text'].isna().any():
        bad_rows = df.loc[df['text'].isna(), 'rowid'].tolist()
        raise ValueError(f"Query returned messages without text: {bad_rows}")

    logger.info(f"Found {len(df)} messages")
    return df
