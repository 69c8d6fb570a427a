# survey_utils/config.py
"""
Configuration for the GP Survey Dashboard

Version: 2.1.0
Settings are read from one of two places:
- Streamlit Cloud: st.secrets sections DB_CONFIG, DATA_SOURCE, APP_CONFIG
- Local: a .env file (or the process environment) with flat names
  such as DB_HOST, DATA_SOURCE, SURVEY_JSON_PATH, CACHE_TTL_SECONDS

The survey records come either from the SQL mirror ('database') or from a
JSON export of the dataCollections store ('json'). Asking for the database
without complete credentials falls back to the JSON export.
"""

import os
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

SOURCE_DATABASE = "database"
SOURCE_JSON = "json"

DEFAULT_JSON_PATH = "data/dataCollections.json"
DEFAULT_TABLE = "data_collections"


def is_running_on_streamlit_cloud() -> bool:
    """True when a secrets.toml is available to the app"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class DatabaseConfig:
    """Credentials of the survey SQL mirror"""
    host: str = ""
    port: int = 3306
    user: str = ""
    password: str = ""
    database: str = "gp_survey"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)


@dataclass
class DataSourceConfig:
    """Where survey records are loaded from"""
    source: str = SOURCE_JSON
    json_path: str = DEFAULT_JSON_PATH
    table: str = DEFAULT_TABLE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# (name, default, cast); the same name is used in .env and in the APP_CONFIG secrets section
_APP_SETTINGS = [
    ("FY_START_YEAR", "2020", int),
    ("DB_POOL_SIZE", "5", int),
    ("DB_POOL_RECYCLE", "3600", int),
    ("CACHE_TTL_SECONDS", "300", int),
    ("TIMEZONE", "Asia/Kolkata", str),
    ("ENABLE_EXCEL_EXPORT", True, _as_bool),
    ("ENABLE_DEBUG_MODE", False, _as_bool),
]


class Config:
    """
    Settings singleton

    Usage:
        from survey_utils.config import config

        source = config.get_data_source()          # DataSourceConfig copy
        ttl = config.get_app_setting("CACHE_TTL_SECONDS", 300)

        if config.is_feature_enabled("EXCEL_EXPORT"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        if not self.is_cloud:
            self._load_env_file()

        lookup = self._secrets_lookup() if self.is_cloud else self._env_lookup()

        self._db_config = self._read_db_config(lookup)
        self._data_source = self._read_data_source(lookup)
        self._app_config = self._read_app_config(lookup)

        self._log_config_status()
        self._initialized = True

    # ==================== SOURCES ====================

    @staticmethod
    def _load_env_file():
        for env_path in (Path.cwd() / ".env", Path(__file__).parent.parent / ".env"):
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                return

    @staticmethod
    def _env_lookup() -> Callable[[str, str, str, Any], Any]:
        def lookup(section: str, key: str, env_name: str, default: Any) -> Any:
            return os.getenv(env_name, default)
        return lookup

    @staticmethod
    def _secrets_lookup() -> Callable[[str, str, str, Any], Any]:
        import streamlit as st

        def lookup(section: str, key: str, env_name: str, default: Any) -> Any:
            return st.secrets.get(section, {}).get(key, default)
        return lookup

    # ==================== READERS ====================

    @staticmethod
    def _read_db_config(lookup) -> DatabaseConfig:
        return DatabaseConfig(
            host=str(lookup("DB_CONFIG", "host", "DB_HOST", "")),
            port=int(lookup("DB_CONFIG", "port", "DB_PORT", 3306)),
            user=str(lookup("DB_CONFIG", "user", "DB_USER", "")),
            password=str(lookup("DB_CONFIG", "password", "DB_PASSWORD", "")),
            database=str(lookup("DB_CONFIG", "database", "DB_NAME", "gp_survey")),
        )

    def _read_data_source(self, lookup) -> DataSourceConfig:
        default_source = SOURCE_DATABASE if self._db_config.is_configured() else SOURCE_JSON
        source = str(lookup("DATA_SOURCE", "source", "DATA_SOURCE", default_source)).strip().lower()

        if source not in (SOURCE_DATABASE, SOURCE_JSON):
            logger.warning(f"Unknown DATA_SOURCE '{source}', using '{SOURCE_JSON}'")
            source = SOURCE_JSON
        elif source == SOURCE_DATABASE and not self._db_config.is_configured():
            logger.warning("Database selected but not configured, using JSON export instead")
            source = SOURCE_JSON

        return DataSourceConfig(
            source=source,
            json_path=str(lookup("DATA_SOURCE", "json_path", "SURVEY_JSON_PATH", DEFAULT_JSON_PATH)),
            table=str(lookup("DATA_SOURCE", "table", "SURVEY_TABLE", DEFAULT_TABLE)),
        )

    @staticmethod
    def _read_app_config(lookup) -> Dict[str, Any]:
        return {
            name: cast(lookup("APP_CONFIG", name, name, default))
            for name, default, cast in _APP_SETTINGS
        }

    def _log_config_status(self):
        where = "☁️ STREAMLIT CLOUD" if self.is_cloud else "💻 LOCAL"
        logger.info(f"Running in {where} environment")
        if self._db_config.is_configured():
            logger.info(f"✅ Database: {self._db_config.host}/{self._db_config.database}")
        logger.info(f"✅ Survey source: {self._data_source.source}")

    # ==================== PUBLIC GETTERS ====================

    def get_db_config(self) -> Dict[str, Any]:
        return self._db_config.to_dict()

    def is_database_configured(self) -> bool:
        return self._db_config.is_configured()

    def get_data_source(self) -> DataSourceConfig:
        """A copy, so callers cannot change the shared settings"""
        return DataSourceConfig(**self._data_source.to_dict())

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Feature flags are ENABLE_<FEATURE> settings; unknown features are on."""
        return bool(self._app_config.get(f"ENABLE_{feature.upper()}", True))

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()


# ==================== SINGLETON INSTANCE ====================

config = Config()

__all__ = [
    'config',
    'Config',
    'DatabaseConfig',
    'DataSourceConfig',
    'SOURCE_DATABASE',
    'SOURCE_JSON',
]
