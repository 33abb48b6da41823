"""
Wise (formerly TransferWise) client for balances and exchange rates.
"""

import logging
import re

import requests

from .exceptions import RateUnavailableError
from .normalize import to_milliunits

logger = logging.getLogger(__name__)

WISE_API_URL = 'https://api.transferwise.com'

_DATE_RE = re.compile(r'\d{4}-\d{2}-\d{2}')


class RateClient:

    def __init__(self, token, base_url=WISE_API_URL, session=None):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({'Authorization': f'Bearer {token}'})

    def _get(self, path, params=None):
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url} {params or ''}")
        response = self.session.get(url, params=params)
        response.raise_for_status()
        return response.json()

    def get_personal_profile_id(self):
        profiles = self._get('/v1/profiles')
        for profile in profiles:
            if profile.get('type') == 'personal':
                return profile['id']
        raise RuntimeError("Cannot get personal Transferwise profile ID")

    def get_balances(self):
        """
        Balances of the personal multi-currency account.

        Returns:
            dict: currency -> balance in milliunits, balances of the same currency summed
        """
        profile_id = self.get_personal_profile_id()
        accounts = self._get('/v1/borderless-accounts', params={'profileId': profile_id})
        account = next((a for a in accounts if a.get('profileId') == profile_id), None)
        if account is None:
            raise RuntimeError("Cannot match profileId in account response")

        balances = {}
        for balance in account['balances']:
            currency = balance['amount']['currency']
            value = to_milliunits(balance['amount']['value'])
            balances[currency] = balances.get(currency, 0) + value
        return balances

    def get_spot_rate(self, source, target, date=None):
        """
        Exchange rate from ``source`` to ``target``.

        Args:
            source (str): Source currency code
            target (str): Target currency code
            date (str, optional): ``YYYY-MM-DD``, rate at noon of that day

        Returns:
            float: The rate, 1.0 for the same currency

        Raises:
            RateUnavailableError: If the response holds no usable rate
        """
        if source == target:
            return 1.0

        params = {'source': source, 'target': target}
        if date and _DATE_RE.fullmatch(date):
            params['time'] = f"{date}T12:00"

        rates = self._get('/v1/rates', params=params)
        try:
            return float(rates[0]['rate'])
        except (IndexError, KeyError, TypeError, ValueError) as e:
            raise RateUnavailableError(source, target, f"unexpected response {rates!r}") from e
