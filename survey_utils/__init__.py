# survey_utils/__init__.py
"""
Shared utilities for the GP Survey Dashboard pages

- config: settings from .env or Streamlit Cloud secrets, data source selection
- db: pooled engine for the survey SQL mirror
- survey_engine: normalization, aggregation, completion, charts, export

Usage:
    from survey_utils import config, check_db_connection
    from survey_utils.survey_engine import SurveyDataProcessor, FilterState
"""

from .config import (
    config,
    Config,
    DataSourceConfig,
    SOURCE_DATABASE,
    SOURCE_JSON,
)

from .db import (
    get_db_engine,
    check_db_connection,
    reset_db_engine,
    read_frame,
)

__all__ = [
    # Config
    'config',
    'Config',
    'DataSourceConfig',
    'SOURCE_DATABASE',
    'SOURCE_JSON',

    # Database
    'get_db_engine',
    'check_db_connection',
    'reset_db_engine',
    'read_frame',
]

__version__ = '2.1.0'
