"""
tests/test_cli.py
Command line entry point with the Zoom client mocked out.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from callreport.cli.report_cli import cli, resolve_log_level, shift_months, validate_date_range
from callreport.config.settings import Settings
from callreport.zoom.exceptions import ScopeError

from factories import call_path, iso, raw_call_log

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

SETTINGS = Settings(
    zoom_account_id='acct',
    zoom_client_id='client',
    zoom_client_secret='secret',
)


class TestDateRange:
    def test_valid_range(self):
        date_from, date_to = validate_date_range(
            datetime(2024, 3, 1), datetime(2024, 3, 10), now=NOW
        )

        assert date_from.tzinfo == timezone.utc
        assert date_to == datetime(2024, 3, 10, tzinfo=timezone.utc)

    @pytest.mark.parametrize('date_from, date_to, message', [
        (datetime(2024, 3, 16), datetime(2024, 3, 17), 'in the past'),
        (datetime(2023, 9, 1), datetime(2023, 9, 10), 'last 6 months'),
        (datetime(2024, 3, 10), datetime(2024, 3, 10), 'after from date'),
        (datetime(2024, 2, 1), datetime(2024, 3, 1), 'within one month'),
    ])
    def test_rejected_ranges(self, date_from, date_to, message):
        with pytest.raises(click.BadParameter) as exc:
            validate_date_range(date_from, date_to, now=NOW)

        assert message in exc.value.message

    def test_shift_months_clamps_day(self):
        assert shift_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
        assert shift_months(datetime(2024, 3, 15), -6) == datetime(2023, 9, 15)


def _mock_client(call_logs, scope_error=None):
    client = MagicMock()
    client.__enter__.return_value = client
    client.__exit__.return_value = False
    client.auth.scopes = ['phone:read:admin']
    if scope_error:
        client.auth.verify_scopes.side_effect = scope_error
    client.get_all_call_history.return_value = call_logs
    client.get_call_path.return_value = call_path({'operator_ext_number': ''}, {})
    return client


def _recent_range():
    end = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(days=1)
    start = end - timedelta(days=7)
    return start.strftime('%Y-%m-%d'), end.strftime('%Y-%m-%d')


class TestReportCommand:
    def test_prints_report_json(self):
        client = _mock_client([raw_call_log(id='in-1', start_time=iso('09:00'), end_time=iso('09:05'))])
        start, end = _recent_range()

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=SETTINGS), \
                patch('callreport.cli.report_cli.create_client', return_value=client):
            result = CliRunner().invoke(cli, ['report', '--from', start, '--to', end])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            'report': [[{
                'rep_ext': '100',
                'rep_email': 'rep100@example.com',
                'customer_did': '+15550001111',
                'duration': 600,
            }]]
        }
        client.auth.verify_scopes.assert_called_once()

    def test_writes_output_file(self, tmp_path):
        client = _mock_client([raw_call_log()])
        start, end = _recent_range()
        output = tmp_path / 'report.json'

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=SETTINGS), \
                patch('callreport.cli.report_cli.create_client', return_value=client):
            result = CliRunner().invoke(
                cli, ['report', '--from', start, '--to', end, '--output', str(output)]
            )

        assert result.exit_code == 0, result.output
        assert len(json.loads(output.read_text())['report']) == 1

    def test_missing_scope_fails(self):
        client = _mock_client([], scope_error=ScopeError('Scope not found'))
        start, end = _recent_range()

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=SETTINGS), \
                patch('callreport.cli.report_cli.create_client', return_value=client):
            result = CliRunner().invoke(cli, ['report', '--from', start, '--to', end])

        assert result.exit_code != 0
        assert 'Scope not found' in result.output
        client.get_all_call_history.assert_not_called()

    def test_empty_history_fails(self):
        client = _mock_client([])
        start, end = _recent_range()

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=SETTINGS), \
                patch('callreport.cli.report_cli.create_client', return_value=client):
            result = CliRunner().invoke(cli, ['report', '--from', start, '--to', end])

        assert result.exit_code != 0
        assert 'No call logs' in result.output

    def test_malformed_call_log_fails_cleanly(self):
        client = _mock_client([raw_call_log(id='bad', duration='n/a')])
        start, end = _recent_range()

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=SETTINGS), \
                patch('callreport.cli.report_cli.create_client', return_value=client):
            result = CliRunner().invoke(cli, ['report', '--from', start, '--to', end])

        assert result.exit_code == 1
        assert 'malformed' in result.output

    def test_missing_configuration(self):
        start, end = _recent_range()

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=Settings()):
            result = CliRunner().invoke(cli, ['report', '--from', start, '--to', end])

        assert result.exit_code != 0
        assert 'ZOOM_ACCOUNT_ID' in result.output


class TestVerifyCommand:
    def test_verify_ok(self):
        client = _mock_client([])

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=SETTINGS), \
                patch('callreport.cli.report_cli.create_client', return_value=client):
            result = CliRunner().invoke(cli, ['verify'])

        assert result.exit_code == 0
        assert 'phone:read:admin' in result.output


class TestDatePrompts:
    def _invoke(self, client, answers):
        with patch('callreport.cli.report_cli.Settings.from_env', return_value=SETTINGS), \
                patch('callreport.cli.report_cli.create_client', return_value=client):
            return CliRunner().invoke(cli, ['report'], input='\n'.join(answers) + '\n')

    def test_rejected_start_date_is_asked_again(self):
        client = _mock_client([raw_call_log()])
        start, end = _recent_range()

        result = self._invoke(client, ['2099-01-01', start, end])

        assert result.exit_code == 0, result.output
        assert 'Date must be in the past' in result.output
        assert client.get_all_call_history.call_count == 1

    def test_rejected_end_date_is_asked_again(self):
        client = _mock_client([raw_call_log()])
        start, end = _recent_range()

        result = self._invoke(client, [start, start, end])

        assert result.exit_code == 0, result.output
        assert 'To date must be after from date' in result.output

    def test_invalid_option_value_is_a_usage_error(self):
        _, end = _recent_range()

        result = CliRunner().invoke(cli, ['report', '--from', '2099-01-01', '--to', end])

        assert result.exit_code == 2
        assert 'Date must be in the past' in result.output


class TestLogLevel:
    def test_resolve_log_level(self):
        assert resolve_log_level('WARNING') == logging.WARNING
        assert resolve_log_level('NOPE') == logging.INFO

    def test_log_level_setting_is_applied(self):
        settings = Settings(log_level='WARNING')

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=settings), \
                patch('callreport.cli.report_cli.logging.basicConfig') as basic_config:
            CliRunner().invoke(cli, ['verify'])

        assert basic_config.call_args.kwargs['level'] == logging.WARNING

    def test_verbose_overrides_log_level_setting(self):
        settings = Settings(log_level='WARNING')

        with patch('callreport.cli.report_cli.Settings.from_env', return_value=settings), \
                patch('callreport.cli.report_cli.logging.basicConfig') as basic_config:
            CliRunner().invoke(cli, ['--verbose', 'verify'])

        assert basic_config.call_args.kwargs['level'] == logging.DEBUG
