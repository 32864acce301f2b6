# Overview: Pytest coverage for the Flask CLI command groups.

from subsidiary_hub.models import User
from subsidiary_hub.persistence import EngineKind, get_state, load_database_settings, read_settings_document


class TestUsersCommands:

    def test_create_and_list(self, app, db_session, sub_a):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create",
            "--username", "cli_clerk",
            "--password", "cli-pass-1",
            "--role", "staff",
            "--subsidiary-id", str(sub_a.id),
        ])
        assert result.exit_code == 0, result.output
        assert "PASS Created user cli_clerk" in result.output

        user = db_session.query(User).filter_by(username="cli_clerk").one()
        assert user.subsidiary_id == sub_a.id

        listed = runner.invoke(args=["users", "list"])
        assert "cli_clerk" in listed.output
        assert f"subsidiary {sub_a.id}" in listed.output

    def test_create_rejects_missing_subsidiary(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create",
            "--username", "orphan",
            "--password", "orphan-pass",
            "--role", "staff",
        ])
        assert result.exit_code != 0
        assert "subsidiaryId is required" in result.output


class TestSystemCommands:

    def test_ensure_admin_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        first = runner.invoke(args=["system", "ensure-admin"])
        second = runner.invoke(args=["system", "ensure-admin"])

        assert "Created default admin" in first.output
        assert "already exists" in second.output
        assert db_session.query(User).filter_by(username="admin").count() == 1


class TestDbConfigCommands:

    def test_set_engine(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["db-config", "set-engine", "MySQL"])
        assert result.exit_code == 0, result.output
        assert "Restart the server" in result.output

        assert load_database_settings(get_state().config_path).engine is EngineKind.MYSQL

        shown = runner.invoke(args=["db-config", "show"])
        assert "Configured engine: mysql" in shown.output
        assert "Active engine: sqlite (ready: True)" in shown.output

    def test_set_engine_writes_only_the_selector(self, app, db_session, tmp_path, monkeypatch):
        path = str(tmp_path / "db.config.json")
        monkeypatch.setattr(get_state(), "config_path", path)
        monkeypatch.setenv("PGPASSWORD", "env-secret")

        result = app.test_cli_runner().invoke(args=["db-config", "set-engine", "mysql"])
        assert result.exit_code == 0, result.output
        assert read_settings_document(path) == {"engine": "mysql"}

    def test_set_unknown_engine(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["db-config", "set-engine", "oracle"])
        assert result.exit_code != 0
        assert "Invalid database engine" in result.output
