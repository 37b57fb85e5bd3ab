import json

import pytest
from scripts import migrate_provider_tiers as cli


class DummySession:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def cli_setup(monkeypatch):
    holder: dict[str, object] = {
        "run_return": {"total": 0, "migrated": 0, "errors": [], "details": [], "dryRun": False},
        "status_return": {
            "totalProviders": 3,
            "migratedProviders": 1,
            "needsMigration": 2,
            "migrationComplete": False,
            "tierDistribution": {"NEW": 1},
        },
    }

    def session_factory():
        session = DummySession()
        holder["session"] = session
        return session

    class FakeMigrationService:
        def __init__(self, db):
            self.db = db
            self.calls = []
            holder["service_instance"] = self

        def migrate_legacy_providers(self, **kwargs):
            self.calls.append(kwargs)
            return holder["run_return"]

        def migration_status(self):
            self.calls.append({"status": True})
            return holder["status_return"]

    monkeypatch.setattr(cli, "_import_dependencies", lambda: (session_factory, FakeMigrationService))
    return holder


def test_default_run_migrates(cli_setup, capsys):
    cli_setup["run_return"] = {
        "total": 2,
        "migrated": 2,
        "errors": [],
        "details": [{"providerId": "p-1", "assignedTier": "NEW", "metrics": {}}],
        "dryRun": False,
    }

    exit_code = cli.main([])

    assert exit_code == 0
    summary = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert summary["migrated"] == 2
    service = cli_setup["service_instance"]
    assert service.calls == [{"dry_run": False, "batch_size": None}]
    assert cli_setup["session"].closed is True


def test_dry_run_and_batch_size_are_forwarded(cli_setup, capsys):
    exit_code = cli.main(["--dry-run", "--batch-size", "25"])

    assert exit_code == 0
    assert cli_setup["service_instance"].calls == [{"dry_run": True, "batch_size": 25}]


def test_errors_return_exit_code_two(cli_setup, capsys):
    cli_setup["run_return"] = {
        "total": 2,
        "migrated": 1,
        "errors": [{"providerId": "p-2", "error": "boom"}],
        "details": [],
        "dryRun": False,
    }

    exit_code = cli.main([])

    assert exit_code == 2
    summary = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert summary["errors"][0]["providerId"] == "p-2"


def test_status_only_skips_migration(cli_setup, capsys):
    exit_code = cli.main(["--status"])

    assert exit_code == 0
    summary = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert summary["needsMigration"] == 2
    assert cli_setup["service_instance"].calls == [{"status": True}]


def test_service_failure_returns_exit_code_one(monkeypatch, cli_setup, capsys):
    def _explode(args):
        raise RuntimeError("database unreachable")

    monkeypatch.setattr(cli, "run", _explode)

    assert cli.main([]) == 1
    assert capsys.readouterr().out == ""


@pytest.mark.parametrize("value", ["0", "-3", "ten"])
def test_batch_size_must_be_positive_integer(value):
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["--batch-size", value])
