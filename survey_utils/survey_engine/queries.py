# survey_utils/survey_engine/queries.py
"""
Data Loading for the Survey Dashboard

Loads raw survey submissions from one of two sources:
- database: SQL mirror of the dataCollections store (one row per
  submission, formData kept as a JSON column)
- json: an export file holding either a list of documents or an
  {id: document} mapping

Malformed survey content never fails a load. Infrastructure problems
(unreachable database, missing or unreadable file) raise DataSourceError.

CHANGELOG:
- v1.1.0: Accept {id: document} exports, keeping the id on the record
- v1.0.0: Initial implementation
"""

import json
import logging
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
import streamlit as st

from ..config import SOURCE_DATABASE, SOURCE_JSON, DataSourceConfig, config
from ..db import read_frame
from .records import SurveyRecord

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = config.get_app_setting("CACHE_TTL_SECONDS", 300)

_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

# SQL column -> document field
ROW_FIELDS = {
    'id': 'id',
    'gp_name': 'gpName',
    'district': 'district',
    'block': 'block',
    'financial_year': 'financialYear',
    'submitted_at': 'submittedAt',
    'last_updated_at': 'lastUpdatedAt',
    'user_id': 'userId',
    'form_data': 'formData',
}


class DataSourceError(Exception):
    """The configured survey source could not be read."""


# =============================================================================
# ROW / DOCUMENT DECODING
# =============================================================================

def _timestamp_text(value: Any) -> Any:
    if isinstance(value, (datetime, date, pd.Timestamp)):
        return value.isoformat()
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def decode_form_data(value: Any, context: str = "") -> Dict[str, Any]:
    """
    formData as stored in a JSON column: dict, JSON text or bytes.
    Anything undecodable becomes {} with a warning.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode('utf-8', errors='replace')
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as e:
            logger.warning(f"Undecodable form_data{context}: {e}")
            return {}
        if isinstance(decoded, dict):
            return decoded
    logger.warning(f"form_data{context} is not an object, treating as empty")
    return {}


def record_from_row(row: Dict[str, Any]) -> SurveyRecord:
    """Build a SurveyRecord from one SQL row (snake_case columns)."""
    document = {field: row.get(column) for column, field in ROW_FIELDS.items()}
    document['submittedAt'] = _timestamp_text(document['submittedAt'])
    document['lastUpdatedAt'] = _timestamp_text(document['lastUpdatedAt'])
    document['formData'] = decode_form_data(
        document['formData'], context=f" for {document.get('gpName')!r}"
    )
    return SurveyRecord.from_dict(document)


def records_from_rows(df: pd.DataFrame) -> List[SurveyRecord]:
    if df is None or df.empty:
        return []
    df = df.astype(object).where(df.notna(), None)
    return [record_from_row(row) for row in df.to_dict('records')]


def records_from_documents(payload: Any) -> List[SurveyRecord]:
    """
    Records from a decoded JSON export.

    Accepts a list of documents or an {id: document} mapping.
    """
    if isinstance(payload, list):
        return [SurveyRecord.from_dict(doc) for doc in payload if isinstance(doc, dict)]

    if isinstance(payload, dict):
        return [
            SurveyRecord.from_dict(doc, record_id=str(doc_id))
            for doc_id, doc in payload.items()
            if isinstance(doc, dict)
        ]

    raise DataSourceError(f"Survey export must be a list or an object, got {type(payload).__name__}")


# =============================================================================
# QUERIES
# =============================================================================

class SurveyQueries:
    """
    Data loading class for survey submissions.

    Usage:
        queries = SurveyQueries()
        records = queries.load_records()

        # Explicit source
        queries = SurveyQueries(DataSourceConfig(source='json', json_path='export.json'))
    """

    def __init__(self, source: DataSourceConfig = None):
        """
        Args:
            source: Data source settings (default: from config)
        """
        self.source = source or config.get_data_source()

    def load_records(self) -> List[SurveyRecord]:
        """
        Load every survey submission from the configured source.

        Raises:
            DataSourceError: source unreachable or unreadable
        """
        if self.source.source == SOURCE_DATABASE:
            records = self._load_from_database()
        elif self.source.source == SOURCE_JSON:
            records = self._load_from_json()
        else:
            raise DataSourceError(f"Unknown data source: {self.source.source}")

        logger.info(f"Loaded {len(records)} survey records from {self.source.source}")
        return records

    # =========================================================================
    # SOURCES
    # =========================================================================

    def _load_from_database(self) -> List[SurveyRecord]:
        table = self.source.table
        if not _IDENTIFIER.match(table or ''):
            raise DataSourceError(f"Invalid survey table name: {table!r}")

        query = f"""
            SELECT
                id,
                gp_name,
                district,
                block,
                financial_year,
                submitted_at,
                last_updated_at,
                user_id,
                form_data
            FROM {table}
            ORDER BY district, block, gp_name, financial_year
        """

        try:
            logger.debug(f"Executing survey query on {table}")
            df = read_frame(query)
        except Exception as e:
            logger.error(f"Error loading survey records from {table}: {e}")
            raise DataSourceError(f"Could not load survey records from database: {e}") from e

        return records_from_rows(df)

    def _load_from_json(self) -> List[SurveyRecord]:
        path = Path(self.source.json_path)

        if not path.exists():
            logger.error(f"Survey export not found: {path}")
            raise DataSourceError(f"Survey export not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading survey export {path}: {e}")
            raise DataSourceError(f"Could not read survey export {path}: {e}") from e

        return records_from_documents(payload)


# =============================================================================
# CACHED LOADER (Module-level for st.cache_data)
# =============================================================================

@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner="Loading survey data...")
def load_records_cached(source: str, json_path: str, table: str) -> List[SurveyRecord]:
    """
    Cached load keyed by the source settings.
    Note: takes plain strings for cache key compatibility.
    """
    return SurveyQueries(DataSourceConfig(source=source, json_path=json_path, table=table)).load_records()
