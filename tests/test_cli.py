import pytest

from fintrack_api import cli


class TestCli:
    def test_init_db_creates_schema(self, tmp_path, monkeypatch):
        db_path = tmp_path / "cli.db"
        monkeypatch.setenv("FINTRACK_DATABASE_URL", f"sqlite:///{db_path}")
        monkeypatch.setenv("FINTRACK_STORAGE", "sql")

        assert cli.main(["init-db"]) == 0
        assert db_path.exists()

    def test_init_db_refuses_json_backend(self, monkeypatch):
        monkeypatch.setenv("FINTRACK_STORAGE", "json")

        assert cli.main(["init-db"]) == 1

    def test_invalid_port_is_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["serve", "--port", "99999"])
