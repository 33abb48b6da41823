import json
from datetime import date, datetime
from unittest import mock

import pytest

from conftest import BANK_NUMBER, OTHER_NUMBER, sample_messages
from ledgersync.cli import (
    import_sms,
    prompt_balance,
    reconcile_foreign_accounts,
    reconcile_wise,
    sms_main,
    wise_main,
)
from ledgersync.exceptions import NumericFormatError, UnrecognizedMessageError
from ledgersync.models import ClearedState, LedgerAccount
from ledgersync.utils import Config


@pytest.fixture(autouse=True)
def log_file(monkeypatch, tmp_path):
    """Keep log output of the commands inside the test directory"""
    path = tmp_path / 'logs' / 'ledgersync.log'
    monkeypatch.setenv('LOG_FILE', str(path))
    return path


class FakeRates:
    """Rate client returning fixed balances and rates"""

    def __init__(self, balances=None, rates=None):
        self.balances = balances or {}
        self.rates = rates or {}

    def get_balances(self):
        return dict(self.balances)

    def get_spot_rate(self, source, target, date=None):
        if source == target:
            return 1.0
        return self.rates[(source, target)]


class TestImportSms:
    """Test suite for the SMS import command"""

    @pytest.fixture
    def config(self):
        return Config(ynab_token='t', budget_name='Budget', sms_account_name='Bank', cash_account_name='Cash')

    def test_imports_new_messages(self, config, fake_ledger_factory, sms_account, cash_account,
                                  make_ledger_transaction, message_db):
        history = {'acc-sms': [
            make_ledger_transaction('old', '2021-03-05', -1000, payee_name='Bolt', account_id='acc-sms'),
        ]}
        ledger = fake_ledger_factory([sms_account, cash_account], history)
        db_path = message_db([
            (BANK_NUMBER, sample_messages['incoming_transfer'], datetime(2021, 3, 1, 12)),
            (BANK_NUMBER, sample_messages['pos'], datetime(2021, 3, 10, 12)),
            (OTHER_NUMBER, "Szia!", datetime(2021, 3, 10, 13)),
            (BANK_NUMBER, sample_messages['failed'], datetime(2021, 3, 10, 14)),
            (BANK_NUMBER, sample_messages['atm'], datetime(2021, 3, 11, 8)),
        ])

        created, duplicates = import_sms(config, ledger, db_path=db_path)

        assert created == ['tx-0', 'tx-1']
        assert duplicates == []
        assert [p['date'] for p in ledger.bulk_created] == ['2021-03-10', '2021-03-11']
        assert all(p['account_id'] == 'acc-sms' for p in ledger.bulk_created)
        assert ledger.bulk_created[1]['payee_id'] == 'payee-cash'

    def test_uncleared_history_reads_everything(self, config, fake_ledger_factory, sms_account,
                                                cash_account, make_ledger_transaction, message_db):
        history = {'acc-sms': [
            make_ledger_transaction('new', '2021-03-20', -1, cleared=ClearedState.UNCLEARED,
                                    account_id='acc-sms'),
        ]}
        ledger = fake_ledger_factory([sms_account, cash_account], history)
        db_path = message_db([
            (BANK_NUMBER, sample_messages['incoming_transfer'], datetime(2021, 3, 1, 12)),
        ])

        created, _ = import_sms(config, ledger, db_path=db_path)
        assert len(created) == 1

    def test_nothing_to_import(self, config, fake_ledger_factory, sms_account, cash_account, message_db):
        ledger = fake_ledger_factory([sms_account, cash_account])
        db_path = message_db([(OTHER_NUMBER, "Szia!", datetime(2021, 3, 10, 13))])

        assert import_sms(config, ledger, db_path=db_path) == ([], [])
        assert ledger.bulk_created == []

    def test_unknown_message_aborts(self, config, fake_ledger_factory, sms_account, cash_account,
                                    message_db):
        ledger = fake_ledger_factory([sms_account, cash_account])
        db_path = message_db([
            (BANK_NUMBER, sample_messages['pos'], datetime(2021, 3, 10, 12)),
            (BANK_NUMBER, sample_messages['unknown'], datetime(2021, 3, 11, 12)),
        ])

        with pytest.raises(UnrecognizedMessageError):
            import_sms(config, ledger, db_path=db_path)
        assert ledger.bulk_created == []

    def test_missing_settings(self, fake_ledger_factory):
        with pytest.raises(ValueError):
            import_sms(Config(ynab_token='t'), fake_ledger_factory([]))


class TestReconcileWise:
    """Test suite for the Wise reconciliation command"""

    @pytest.fixture
    def config(self):
        return Config(
            ynab_token='t',
            transferwise_token='w',
            budget_name='Budget',
            budget_currency='HUF',
            transferwise_account_name='Wise',
            currency_fluctuation_payee='Currency fluctuation',
        )

    def test_creates_adjustment(self, config, fake_ledger_factory):
        wise = LedgerAccount(id='acc-wise', name='Wise', cleared_balance=4000000)
        ledger = fake_ledger_factory([wise])
        rates = FakeRates({'EUR': 10000, 'HUF': 500000}, {('EUR', 'HUF'): 390.0})

        result = reconcile_wise(config, ledger, rates, today=date(2021, 3, 15))

        assert result['id'] == 'new-1'
        assert ledger.created == [{
            'account_id': 'acc-wise',
            'amount': 400000,
            'date': '2021-03-15',
            'payee_name': 'Currency fluctuation',
            'cleared': 'reconciled',
            'approved': True,
        }]

    def test_updates_fresh_adjustment(self, config, fake_ledger_factory, make_ledger_transaction):
        wise = LedgerAccount(id='acc-wise', name='Wise', cleared_balance=4000000)
        history = {'acc-wise': [make_ledger_transaction('fx-1', '2021-03-12', 50000)]}
        ledger = fake_ledger_factory([wise], history)
        rates = FakeRates({'EUR': 10000, 'HUF': 500000}, {('EUR', 'HUF'): 390.0})

        reconcile_wise(config, ledger, rates, today=date(2021, 3, 15))

        assert ledger.created == []
        transaction_id, payload = ledger.updated[0]
        assert transaction_id == 'fx-1'
        assert payload['amount'] == 450000


class TestReconcileForeignAccounts:
    """Test suite for the foreign-currency reconciliation command"""

    @pytest.fixture
    def config(self):
        return Config(
            ynab_token='t',
            transferwise_token='w',
            budget_name='Budget',
            budget_currency='HUF',
            currency_fluctuation_payee='Currency fluctuation',
            foreign_currency_accounts={'Revolut EUR': 'EUR', 'Cash USD': 'USD'},
        )

    def test_reconciles_each_account(self, config, fake_ledger_factory, make_ledger_transaction):
        accounts = [
            LedgerAccount(id='acc-eur', name='Revolut EUR', cleared_balance=48000000),
            LedgerAccount(id='acc-usd', name='Cash USD', cleared_balance=3000000),
        ]
        history = {'acc-eur': [make_ledger_transaction('fx-eur', '2021-03-14', 1000, account_id='acc-eur')]}
        ledger = fake_ledger_factory(accounts, history)
        rates = FakeRates(rates={('EUR', 'HUF'): 400.0, ('USD', 'HUF'): 300.0})
        answers = iter(['100.5+20', '10'])

        results = reconcile_foreign_accounts(
            config, ledger, rates, read_input=lambda prompt: next(answers), today=date(2021, 3, 15))

        assert len(results) == 2
        assert ledger.updated == [('fx-eur', mock.ANY)]
        assert ledger.updated[0][1]['amount'] == 1000 + 200000
        assert ledger.created[0]['account_id'] == 'acc-usd'
        assert ledger.created[0]['amount'] == 0

    def test_bad_balance_input(self, config, fake_ledger_factory):
        with pytest.raises(NumericFormatError):
            reconcile_foreign_accounts(
                config, fake_ledger_factory([]), FakeRates(), read_input=lambda prompt: 'abc')


class TestPromptBalance:
    """Test suite for reading balances typed in by the user"""

    def test_prompt_mentions_account_and_currency(self):
        read_input = mock.Mock(return_value='12.5')

        assert prompt_balance('Revolut EUR', 'EUR', read_input) == 12500
        prompt = read_input.call_args[0][0]
        assert 'Revolut EUR' in prompt
        assert 'EUR' in prompt

    def test_sum_of_balances(self):
        assert prompt_balance('Cash', 'USD', lambda prompt: '1,000 + 250.25') == 1250250


class TestEntryPoints:
    """Test suite for the console scripts"""

    def test_missing_config_exits_with_error(self, tmp_path):
        assert sms_main([str(tmp_path / 'missing.json')]) == 1

    def test_incomplete_config_exits_with_error(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'ynab_token': 't'}))
        assert wise_main([str(path)]) == 1

    def test_success(self, tmp_path, monkeypatch):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'ynab_token': 't', 'budget_name': 'Budget'}))
        import_sms = mock.Mock()
        monkeypatch.setattr('ledgersync.cli.import_sms', import_sms)

        assert sms_main([str(path)]) == 0
        import_sms.assert_called_once()

    def test_logs_under_command_name(self, tmp_path, monkeypatch):
        setup_logging = mock.Mock()
        monkeypatch.setattr('ledgersync.cli.setup_logging', setup_logging)

        sms_main([str(tmp_path / 'missing.json')])
        assert setup_logging.call_args.kwargs['log_name'] == 'ledgersync-sms'
