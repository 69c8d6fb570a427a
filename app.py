# app.py
"""
GP Survey Dashboard - Main Entry Point

Landing page: where survey records come from, whether that source is
reachable, and a short overview of what has been submitted so far.

Version: 1.0.0
"""

import logging
from pathlib import Path

import streamlit as st

from survey_utils.config import config, SOURCE_DATABASE
from survey_utils.db import check_db_connection, reset_db_engine
from survey_utils.survey_engine import (
    DataSourceError,
    current_fiscal_year,
    format_indian_number,
    load_records_cached,
    local_today,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ==================== PAGE CONFIGURATION ====================

APP_NAME = "GP Survey Dashboard"
APP_ICON = "🏘️"
APP_VERSION = "1.0.0"

st.set_page_config(
    page_title=APP_NAME,
    page_icon=APP_ICON,
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .survey-title { font-size: 2.3rem; font-weight: 700; color: #2e7d32; margin-bottom: 0.25rem; }
    .survey-tagline { font-size: 1.05rem; color: #5f6b66; margin-bottom: 1.5rem; }
    .page-card {
        background: #f4f8f4;
        border-left: 4px solid #2e7d32;
        border-radius: 6px;
        padding: 1.1rem 1.3rem;
        margin-bottom: 0.8rem;
    }
    .page-card span { color: #5f6b66; }
    .survey-footer { text-align: center; color: #8a938f; font-size: 0.85rem; margin-top: 2.5rem; }
</style>
""", unsafe_allow_html=True)

PAGES = [
    ("📊 Consolidated Dashboard",
     "Population, education, migration, finances and land use rolled up by district, block and GP."),
    ("📋 GP Reports",
     "Submission coverage by financial year, completion scores, GP snapshots and Excel export."),
]


# ==================== SECTIONS ====================

def show_data_source_status() -> bool:
    """Sidebar status of the configured source. Returns True if it can be read."""
    source = config.get_data_source()

    with st.sidebar:
        st.markdown("### 🗄️ Data Source")

        if source.source == SOURCE_DATABASE:
            db_ok, db_error = check_db_connection(source.table)
            if db_ok:
                st.success(f"✅ Database: `{source.table}`")
                return True
            st.error(f"⚠️ {db_error}")
            if st.button("🔄 Retry connection", use_container_width=True):
                reset_db_engine()
                st.rerun()
            return False

        if Path(source.json_path).exists():
            st.success(f"✅ JSON export: `{source.json_path}`")
            return True
        st.warning(f"⚠️ JSON export not found: `{source.json_path}`")
        st.caption("Set SURVEY_JSON_PATH in .env or configure the database.")
        return False


def show_overview():
    source = config.get_data_source()
    try:
        records = load_records_cached(source.source, source.json_path, source.table)
    except DataSourceError as e:
        logger.error(f"Overview unavailable: {e}")
        st.error(f"Could not load survey records: {e}")
        return

    this_year = current_fiscal_year(local_today(config.get_app_setting("TIMEZONE")))
    gps = {r.gp_name for r in records if r.gp_name}
    districts = {r.district for r in records if r.district}

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Submissions", format_indian_number(len(records)))
    col2.metric("Gram Panchayats", format_indian_number(len(gps)))
    col3.metric("Districts", format_indian_number(len(districts)))
    col4.metric(
        f"Submitted in {this_year}",
        format_indian_number(sum(1 for r in records if r.financial_year == this_year)),
    )


def show_main_app():
    st.markdown(f'<p class="survey-title">{APP_ICON} {APP_NAME}</p>', unsafe_allow_html=True)
    st.markdown(
        '<p class="survey-tagline">Gram Panchayat socio-economic survey statistics</p>',
        unsafe_allow_html=True
    )

    if show_data_source_status():
        show_overview()

    st.markdown("### Pages")
    for title, blurb in PAGES:
        st.markdown(
            f'<div class="page-card"><strong>{title}</strong><br><span>{blurb}</span></div>',
            unsafe_allow_html=True
        )

    if config.is_feature_enabled("DEBUG_MODE"):
        with st.expander("🔧 Configuration"):
            st.json({
                "data_source": config.get_data_source().to_dict(),
                **{k: v for k, v in config.app_config.items() if not k.startswith("DB_")},
            })

    st.markdown(
        f'<div class="survey-footer">{APP_NAME} v{APP_VERSION}</div>',
        unsafe_allow_html=True
    )


if __name__ == "__main__":
    show_main_app()
