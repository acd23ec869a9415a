import pytest

from staffdb import ConfigError, load_config
from staffdb.config import REQUIRED_KEYS

ENV_TEXT = """
DB_NAME=staffdb
DB_USER=postgres
DB_PASSWORD=secret
DB_HOST=localhost
DB_PORT=5432
"""


@pytest.fixture(autouse=True)
def clean_environ(monkeypatch):
    for key in REQUIRED_KEYS + ("COUNT_STRATEGY", "COUNT_ENFORCEMENT", "LOG_FILE"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text(ENV_TEXT)
    return path


class TestLoadConfig:
    """Test .env loading and validation."""

    def test_defaults(self, env_file):
        config = load_config(str(env_file))
        assert config.DB_NAME == "staffdb"
        assert config.COUNT_STRATEGY == "statement"
        assert config.COUNT_ENFORCEMENT == "app"
        assert config.LOG_FILE == "staffdb.log"

    def test_db_params(self, env_file):
        params = load_config(str(env_file)).db_params()
        assert params == {
            "dbname": "staffdb",
            "user": "postgres",
            "password": "secret",
            "host": "localhost",
            "port": "5432"
        }

    def test_environment_overrides_file(self, env_file, monkeypatch):
        monkeypatch.setenv("DB_HOST", "db.internal")
        monkeypatch.setenv("COUNT_STRATEGY", "row")
        config = load_config(str(env_file))
        assert config.DB_HOST == "db.internal"
        assert config.COUNT_STRATEGY == "row"

    def test_missing_keys(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("DB_NAME=staffdb\n")
        with pytest.raises(ConfigError, match="DB_USER"):
            load_config(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "absent.env"))

    def test_unknown_strategy(self, env_file):
        env_file.write_text(ENV_TEXT + "COUNT_STRATEGY=hourly\n")
        with pytest.raises(ConfigError, match="COUNT_STRATEGY"):
            load_config(str(env_file))

    def test_unknown_enforcement(self, env_file):
        env_file.write_text(ENV_TEXT + "COUNT_ENFORCEMENT=both\n")
        with pytest.raises(ConfigError, match="COUNT_ENFORCEMENT"):
            load_config(str(env_file))
