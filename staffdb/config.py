import os
from dataclasses import dataclass

from dotenv import dotenv_values

from .errors import ConfigError

REQUIRED_KEYS = ("DB_NAME", "DB_USER", "DB_PASSWORD", "DB_HOST", "DB_PORT")

STRATEGIES = ("statement", "row")
ENFORCEMENTS = ("app", "trigger")


@dataclass
class Config:
    """Class holding configuration parameters for connecting and maintaining counts"""
    DB_NAME: str
    DB_USER: str
    DB_PASSWORD: str
    DB_HOST: str
    DB_PORT: str

    COUNT_STRATEGY: str = "statement"
    COUNT_ENFORCEMENT: str = "app"
    LOG_FILE: str = "staffdb.log"

    def db_params(self) -> dict:
        """Keyword arguments for psycopg2.connect"""
        return {
            'dbname': self.DB_NAME,
            'user': self.DB_USER,
            'password': self.DB_PASSWORD,
            'host': self.DB_HOST,
            'port': self.DB_PORT
        }


def load_config(path: str = ".env") -> Config:
    """
    Build Config from a .env file overlaid by the process environment.
    Raises ConfigError on missing keys or unknown strategy values.
    """

    values = {**dotenv_values(path), **os.environ}

    missing = [key for key in REQUIRED_KEYS if not values.get(key)]
    if missing:
        raise ConfigError(f"Missing configuration keys: {', '.join(missing)}")

    config = Config(
        DB_NAME=values["DB_NAME"],
        DB_USER=values["DB_USER"],
        DB_PASSWORD=values["DB_PASSWORD"],
        DB_HOST=values["DB_HOST"],
        DB_PORT=values["DB_PORT"],
        COUNT_STRATEGY=values.get("COUNT_STRATEGY") or "statement",
        COUNT_ENFORCEMENT=values.get("COUNT_ENFORCEMENT") or "app",
        LOG_FILE=values.get("LOG_FILE") or "staffdb.log"
    )

    if config.COUNT_STRATEGY not in STRATEGIES:
        raise ConfigError(f"COUNT_STRATEGY must be one of {STRATEGIES}, got '{config.COUNT_STRATEGY}'")
    if config.COUNT_ENFORCEMENT not in ENFORCEMENTS:
        raise ConfigError(f"COUNT_ENFORCEMENT must be one of {ENFORCEMENTS}, got '{config.COUNT_ENFORCEMENT}'")

    return config
