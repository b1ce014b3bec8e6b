"""Unit tests for CLI argument parsing and command execution."""

import json
import logging
from decimal import Decimal

import pytest

from gymledger.cli import _json_default, create_parser, main
from gymledger.utils.cli_utils import CommandCategory, CommandRegistry


@pytest.fixture(autouse=True)
def local_only(tmp_path, monkeypatch):
    """Run commands against a fresh SQLite cache with no primary store."""
    monkeypatch.setenv("GYMLEDGER_CACHE_PATH", str(tmp_path / "cache" / "fallback.db"))
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


def _register(capsys, *extra):
    code, out, _ = _run(
        capsys, '--format', 'json', 'members', 'register',
        '--first-name', 'Salim', '--last-name', 'Al Harthy',
        '--date-of-birth', '1990-05-01', '--mobile', '+968 91234567',
        '--id-number', '12345678', '--emergency-name', 'Aisha',
        '--emergency-phone', '+968 99887766', '--emergency-relationship', 'Sister',
        '--date', '2024-01-15', *extra
    )
    assert code == 0
    return json.loads(out)


def test_global_options():
    """Test global CLI options."""
    parser = create_parser()

    args = parser.parse_args(['-v', '--log-file', 'test.log', '--config-dir', '/tmp/gym', 'payments', 'list'])
    assert args.verbose is True
    assert args.log_file == 'test.log'
    assert args.config_dir == '/tmp/gym'
    assert args.format == 'text'
    assert args.command_key == 'payments list'


def test_subcommands_are_qualified():
    parser = create_parser()
    assert parser.parse_args(['members', 'list']).command_key == 'members list'
    assert parser.parse_args(['payments', 'list']).command_key == 'payments list'
    assert parser.parse_args(['revenue']).command_key == 'revenue'

    assert 'members register' in CommandRegistry.get_category_commands(CommandCategory.MEMBERS)
    assert 'settings set-price' in CommandRegistry.get_category_commands(CommandCategory.SETTINGS)


def test_members_list_options():
    parser = create_parser()
    args = parser.parse_args(['members', 'list', '--status', 'expiring', '--search', 'salim', '--date', '2024-02-10'])
    assert args.status == 'expiring'
    assert args.search == 'salim'
    assert args.date == '2024-02-10'


def test_invalid_arguments(capsys):
    parser = create_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(['members', 'list', '--status', 'pending'])

    with pytest.raises(SystemExit):
        parser.parse_args(['report'])

    with pytest.raises(SystemExit):
        parser.parse_args(['settings', 'set-price', '--duration', 'monthly', '--price', 'cheap'])

    with pytest.raises(SystemExit):
        parser.parse_args(['members'])


def test_validator_rejects_bad_values(capsys):
    code, _, err = _run(capsys, 'revenue', '--month', '13')
    assert code == 1
    assert "Invalid value for --month: 13" in err

    code, _, err = _run(capsys, 'members', 'list', '--date', '15/01/2024')
    assert code == 1
    assert "Invalid value for --date" in err


def test_register_then_list(capsys):
    result = _register(capsys, '--duration', 'threeMonths')
    assert result['member']['expiry_date'] == "2024-04-15"
    assert result['payment']['amount'] == 80
    assert result['payment']['description'] == "Initial membership payment - threeMonths subscription"

    code, out, _ = _run(capsys, '--format', 'json', 'members', 'list', '--date', '2024-03-01')
    assert code == 0
    members = json.loads(out)
    assert [m['id'] for m in members] == [result['member']['id']]
    assert members[0]['effective_status'] == "active"

    code, out, _ = _run(capsys, 'members', 'list', '--status', 'expiring', '--date', '2024-01-20')
    assert code == 0
    assert "No members found" in out


def test_register_invalid_date_of_birth(capsys):
    with pytest.raises(SystemExit):
        create_parser().parse_args(['members', 'register'])

    code, _, err = _run(
        capsys, 'members', 'register',
        '--first-name', 'Salim', '--last-name', 'Al Harthy',
        '--date-of-birth', 'May 1990', '--mobile', '+968 91234567',
        '--id-number', '12345678', '--emergency-name', 'Aisha',
        '--emergency-phone', '+968 99887766', '--emergency-relationship', 'Sister',
    )
    assert code == 1
    assert "date_of_birth" in err


def test_payments_and_revenue(capsys):
    member_id = _register(capsys)['member']['id']

    code, out, _ = _run(
        capsys, 'payments', 'add', member_id, '--amount', '12.5',
        '--type', 'training', '--date', '2024-01-20'
    )
    assert code == 0
    assert "Recorded 12.5 OMR (training)" in out

    code, out, _ = _run(capsys, '--format', 'json', 'payments', 'list', '--member', member_id)
    payments = json.loads(out)
    assert sorted(p['amount'] for p in payments) == [12.5, 30]

    code, out, _ = _run(capsys, '--format', 'json', 'revenue', '--year', '2024', '--month', '1')
    assert code == 0
    stats = json.loads(out)
    assert stats['monthly_revenue'] == 42.5
    assert stats['total_revenue'] == 42.5

    code, out, _ = _run(capsys, '--format', 'json', 'report', '--year', '2024')
    report = json.loads(out)
    assert report['months'][0]['month'] == "January"
    assert report['months'][0]['new_members'] == 1
    assert report['months'][0]['renewals'] == 1
    assert report['totals']['revenue'] == 42.5

    code, out, _ = _run(capsys, '--format', 'json', 'payments', 'summary')
    rows = json.loads(out)
    assert {(row['type'], row['total_amount']) for row in rows} == {("membership", 30), ("training", 12.5)}


def test_renew_suspend_history(capsys):
    member = _register(capsys)['member']

    code, out, _ = _run(capsys, 'members', 'renew', member['id'], '--duration', 'yearly', '--date', '2024-02-20')
    assert code == 0
    assert "until 2025-02-20 (300 OMR)" in out

    code, out, _ = _run(capsys, 'members', 'suspend', member['id'])
    assert "is suspended" in out

    code, out, _ = _run(capsys, '--format', 'json', 'members', 'list', '--date', '2024-03-01')
    assert json.loads(out)[0]['effective_status'] == "suspended"

    code, out, _ = _run(capsys, 'members', 'reactivate', member['id'])
    assert "is active" in out

    code, out, _ = _run(capsys, '--format', 'json', 'members', 'history', member['member_number'])
    history = json.loads(out)
    assert [entry['date'] for entry in history] == ["2024-02-20", "2024-01-15"]


def test_renew_unknown_member(capsys):
    code, _, err = _run(capsys, 'members', 'renew', 'missing')
    assert code == 1
    assert "Member missing not found" in err


def test_delete_without_main_database(capsys):
    member_id = _register(capsys)['member']['id']

    code, _, err = _run(capsys, 'members', 'delete', member_id)
    assert code == 1
    assert "main database is not configured" in err

    code, out, _ = _run(capsys, '--format', 'json', 'members', 'list')
    assert len(json.loads(out)) == 1


def test_settings(capsys):
    code, out, _ = _run(capsys, 'settings', 'set-price', '--duration', 'monthly', '--price', '35')
    assert code == 0
    assert "set to 35 OMR" in out

    code, out, _ = _run(capsys, '--format', 'json', 'settings', 'show')
    settings = json.loads(out)
    assert settings['membership_prices']['monthly'] == 35
    assert settings['gym_name'] == "Warriors Gym"

    code, out, _ = _run(capsys, 'settings', 'show')
    assert "Membership Prices" in out


def test_configuration_error(capsys, tmp_path):
    config_dir = tmp_path / "broken"
    config_dir.mkdir()
    (config_dir / "config.yaml").write_text("logging:\n  level: LOUD\n")

    code, _, err = _run(capsys, '--config-dir', str(config_dir), 'settings', 'show')
    assert code == 1
    assert "Unknown log level" in err


def test_json_default():
    assert _json_default(Decimal("30")) == 30
    assert _json_default(Decimal("12.5")) == 12.5
    assert _json_default(Decimal("12345678.123456789012")) == "12345678.123456789012"
