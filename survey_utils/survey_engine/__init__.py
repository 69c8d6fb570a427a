# survey_utils/survey_engine/__init__.py
"""
Survey Aggregation & Completion Engine

Turns schema-drifted GP survey submissions into consistent aggregate
statistics, completion scores, coverage tables and filter options.

Components:
- records: SurveyRecord model
- normalizer: Category alias resolution and dual-shape (map / array) storage
- fiscal_year: April-March financial year labels
- metrics: Aggregate totals, GP finances, GP snapshot metrics
- completion: Per-submission completion score and coverage tables
- grouping: District / block / village distribution, year series, pyramid
- filters: District -> Block -> GP cascade and sidebar rendering
- data_processor: Load once, filter many
- queries: Loading records from SQL or a JSON export
- charts: Altair visualizations
- export: Formatted Excel report generation

Usage:
    from survey_utils.survey_engine import (
        SurveyQueries,
        SurveyDataProcessor,
        FilterState,
        SurveyCharts,
        SurveyExport,
    )
"""

from .records import SurveyRecord, coerce_records
from .normalizer import (
    NormalizedSubmission,
    normalize,
    normalize_record,
    parse_float,
    parse_int,
    resolve_category,
    village_matches,
    filter_water_bodies,
)
from .fiscal_year import current_fiscal_year, enumerate_fiscal_years, fiscal_year_start, local_today
from .metrics import (
    AggregateMetrics,
    SurveyMetrics,
    aggregate,
    gp_finance_breakdown,
    gp_snapshot_metrics,
    road_breakdown,
)
from .completion import CompletionResult, score, coverage_table, coverage_long, gp_report_summary
from .grouping import Distribution, distribution, year_series, population_pyramid
from .filters import FilterState, FilterOptions, resolve_options, apply_filters, render_sidebar_filters
from .data_processor import SurveyDataProcessor
from .queries import SurveyQueries, DataSourceError, load_records_cached
from .charts import SurveyCharts
from .export import SurveyExport, build_report_filename
from .formatters import format_indian_number, format_indian_currency, format_hectares, format_percentage

# Constants
from .constants import (
    ALL,
    CATEGORIES,
    CATEGORY_KEYS,
    CATEGORY_LABELS,
    COLORS,
    EXPORT_LEVELS,
    HEALTH_FACILITY_LABELS,
    ROAD_LABELS,
)

__all__ = [
    # Classes
    'SurveyRecord',
    'NormalizedSubmission',
    'AggregateMetrics',
    'SurveyMetrics',
    'CompletionResult',
    'Distribution',
    'FilterState',
    'FilterOptions',
    'SurveyDataProcessor',
    'SurveyQueries',
    'DataSourceError',
    'SurveyCharts',
    'SurveyExport',

    # Engine functions
    'coerce_records',
    'normalize',
    'normalize_record',
    'parse_float',
    'parse_int',
    'resolve_category',
    'village_matches',
    'filter_water_bodies',
    'current_fiscal_year',
    'enumerate_fiscal_years',
    'fiscal_year_start',
    'local_today',
    'aggregate',
    'gp_finance_breakdown',
    'gp_snapshot_metrics',
    'road_breakdown',
    'score',
    'coverage_table',
    'coverage_long',
    'gp_report_summary',
    'distribution',
    'year_series',
    'population_pyramid',
    'resolve_options',
    'apply_filters',
    'render_sidebar_filters',
    'load_records_cached',
    'build_report_filename',

    # Formatting
    'format_indian_number',
    'format_indian_currency',
    'format_hectares',
    'format_percentage',

    # Constants
    'ALL',
    'CATEGORIES',
    'CATEGORY_KEYS',
    'CATEGORY_LABELS',
    'COLORS',
    'EXPORT_LEVELS',
    'HEALTH_FACILITY_LABELS',
    'ROAD_LABELS',
]

__version__ = '1.0.0'
