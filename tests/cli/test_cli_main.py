"""
End-to-end tests for the console: a SQLite file in tmp_path, a session
file beside it, and main() driven with argv lists.
"""

import pytest

from invoicing_kernel.db.engine import reset_engine
from invoicing_kernel.domain.accounts import Role, User
from invoicing_services.persistence import PersistenceAdapter
from scripts.cli.main import build_parser, main
from tests.conftest import build_document


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("INVOICING_CONFIG", raising=False)
    base = [
        "--db-url", f"sqlite:///{tmp_path / 'cli.db'}",
        "--session-file", str(tmp_path / "session" / "session.json"),
    ]

    def _run(*argv):
        return main(base + list(argv))

    yield _run
    reset_engine()


@pytest.fixture
def seeded(run, capsys):
    assert run("init-db", "--admin-password", "secret") == 0
    capsys.readouterr()
    return run


class TestParser:

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_report_dates_parsed(self):
        args = build_parser().parse_args(["report", "--start", "2024-01-01"])
        assert args.start.isoformat() == "2024-01-01"
        assert args.end is None


class TestInitDb:

    def test_seeds_settings_and_admin(self, run, capsys):
        assert run("init-db", "--admin-password", "secret") == 0

        out = capsys.readouterr().out
        assert "Settings seeded." in out
        assert "Admin user 'Admin' created." in out

    def test_second_run_does_not_reseed(self, seeded, capsys):
        assert seeded("init-db", "--admin-password", "other") == 0

        out = capsys.readouterr().out
        assert "seeded" not in out
        assert "Database ready." in out

    def test_reset_wipes_data_and_session(self, seeded, capsys):
        PersistenceAdapter().save_document(build_document())
        seeded("login", "Admin", "secret")

        assert seeded("init-db", "--admin-password", "fresh", "--reset") == 0
        capsys.readouterr()

        assert PersistenceAdapter().fetch_all().invoices == ()
        assert seeded("whoami") == 1
        assert seeded("login", "Admin", "fresh") == 0


class TestSession:

    def test_login_whoami_logout(self, seeded, capsys):
        assert seeded("login", "admin@example.com", "secret") == 0
        assert "Signed in as Admin (admin)." in capsys.readouterr().out

        assert seeded("whoami") == 0
        assert "Admin <admin@example.com> (admin)" in capsys.readouterr().out

        assert seeded("logout") == 0
        assert "Signed out." in capsys.readouterr().out

        assert seeded("whoami") == 1
        assert "Not signed in" in capsys.readouterr().err

    def test_bad_password(self, seeded, capsys):
        assert seeded("login", "Admin", "wrong") == 1
        assert "Invalid credentials" in capsys.readouterr().err

    def test_commands_need_a_session(self, seeded, capsys):
        assert seeded("report") == 1
        assert "Not signed in" in capsys.readouterr().err


class TestViews:

    def test_list_and_report(self, seeded, capsys):
        PersistenceAdapter().save_document(build_document(status="paid"))
        seeded("login", "Admin", "secret")
        capsys.readouterr()

        assert seeded("list") == 0
        out = capsys.readouterr().out
        assert "INV-0001" in out
        assert "Acme Resorts" in out

        assert seeded("report", "--start", "2024-01-01", "--end", "2024-01-31") == 0
        out = capsys.readouterr().out
        assert "REPORT 2024-01-01 .. 2024-01-31" in out
        assert "132.50" in out

    def test_empty_quotation_list(self, seeded, capsys):
        seeded("login", "Admin", "secret")
        capsys.readouterr()

        assert seeded("list", "--kind", "quotation") == 0
        assert "No quotations." in capsys.readouterr().out

    def test_dashboard(self, seeded, capsys):
        seeded("login", "Admin", "secret")
        capsys.readouterr()

        assert seeded("dashboard") == 0
        assert "DASHBOARD" in capsys.readouterr().out

    def test_viewer_has_no_dashboard(self, seeded, capsys):
        PersistenceAdapter().upsert_users([
            User(name="Mariyam", email="mariyam@example.com", role=Role.VIEWER, password="pw"),
        ])
        seeded("login", "Mariyam", "pw")
        capsys.readouterr()

        assert seeded("dashboard") == 1
        assert "not available to viewers" in capsys.readouterr().err

    def test_viewer_report_is_refused(self, seeded, capsys):
        PersistenceAdapter().upsert_users([
            User(name="Mariyam", email="mariyam@example.com", role=Role.VIEWER, password="pw"),
        ])
        seeded("login", "Mariyam", "pw")
        capsys.readouterr()

        assert seeded("report") == 1
        assert "ERROR" in capsys.readouterr().err


class TestCommandLogging:

    def test_records_carry_command_and_one_correlation_id(self, seeded, captured_logs):
        assert seeded("-v", "login", "Admin", "secret") == 0

        records = [r for r in captured_logs() if r.get("command") == "login"]

        assert {"cli_command_started", "auth_succeeded"} <= {r["message"] for r in records}
        assert len({r["correlation_id"] for r in records}) == 1

    def test_each_run_gets_its_own_correlation_id(self, seeded, captured_logs):
        seeded("-v", "logout")
        seeded("-v", "logout")

        started = [r for r in captured_logs() if r["message"] == "cli_command_started"]

        assert len(started) == 2
        assert started[0]["correlation_id"] != started[1]["correlation_id"]
