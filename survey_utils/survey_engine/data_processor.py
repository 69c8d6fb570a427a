# survey_utils/survey_engine/data_processor.py
"""
Data Processor for the Survey Dashboard

Normalizes every loaded record once and flattens it into pandas frames.
Each filter change then only slices those frames ("Load Once, Filter Many").

Results are memoised per FilterState. The memo only saves work:
process() on a fresh processor returns the same values.
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .constants import ALL, DEBUG_TIMING
from .filters import FilterState, matches, resolve_options
from .frames import SurveyFrames, build_frames
from .grouping import distribution_from_frames, population_pyramid_from_frames, year_series_from_frames
from .metrics import SurveyMetrics
from .normalizer import NormalizedSubmission, normalize_record
from .records import SurveyRecord, coerce_records

logger = logging.getLogger(__name__)


class SurveyDataProcessor:
    """
    Process loaded survey records based on the current filter selection.

    Usage:
        processor = SurveyDataProcessor(records)
        result = processor.process(FilterState(district='Koraput'))

        result['metrics'].total_population
        result['distribution'].rows
    """

    def __init__(self, records: Iterable[Any]):
        """
        Args:
            records: Raw record dicts or SurveyRecords
        """
        t = time.perf_counter()

        self.records: List[SurveyRecord] = coerce_records(records)
        self.submissions: List[NormalizedSubmission] = [normalize_record(r) for r in self.records]
        self.frames: SurveyFrames = build_frames(self.submissions)

        self._memo: Dict[FilterState, Dict[str, Any]] = {}

        logger.info(
            f"Survey data processor ready: {len(self.records)} records "
            f"in {time.perf_counter() - t:.3f}s"
        )

    # =========================================================================
    # MAIN ENTRY POINT
    # =========================================================================

    def process(self, filter_state: FilterState = None) -> Dict[str, Any]:
        """
        Process all data for one filter selection.

        Args:
            filter_state: Current selection (default: nothing selected)

        Returns:
            Dict containing:
            - metrics: AggregateMetrics
            - distribution: Distribution
            - year_series_df, pyramid_df, finance_df, road_df: DataFrames
            - options: FilterOptions
            - filtered_records: List[SurveyRecord]
            - frames: SurveyFrames scoped to the selection
        """
        filter_state = filter_state or FilterState()

        if filter_state in self._memo:
            return self._memo[filter_state]

        start_time = time.perf_counter()

        if DEBUG_TIMING:
            print(f"\n{'='*60}")
            print(f"🔄 PROCESSING SURVEY DATA {filter_state}")
            print(f"{'='*60}")

        result = {}

        # =====================================================================
        # 1. FILTER RECORDS
        # =====================================================================
        t = time.perf_counter()
        indexes = [i for i, record in enumerate(self.records) if matches(record, filter_state)]
        frames = self.frames if filter_state.is_unfiltered else self.frames.subset(indexes)
        result['filtered_records'] = [self.records[i] for i in indexes]
        result['frames'] = frames
        if DEBUG_TIMING:
            print(f"   📊 [filter] {time.perf_counter()-t:.3f}s → {len(indexes):,} records")

        # =====================================================================
        # 2. METRICS
        # =====================================================================
        t = time.perf_counter()
        metrics = SurveyMetrics(frames)
        result['metrics'] = metrics.calculate_overview_metrics()
        result['finance_df'] = metrics.gp_finance_breakdown()
        result['road_df'] = metrics.road_breakdown()
        if DEBUG_TIMING:
            print(f"   📊 [metrics] {time.perf_counter()-t:.3f}s")

        # =====================================================================
        # 3. GROUPING
        # =====================================================================
        t = time.perf_counter()
        result['distribution'] = distribution_from_frames(frames, filter_state)
        result['year_series_df'] = year_series_from_frames(frames)
        result['pyramid_df'] = population_pyramid_from_frames(frames)
        if DEBUG_TIMING:
            print(f"   📊 [grouping] {time.perf_counter()-t:.3f}s")

        # =====================================================================
        # 4. FILTER OPTIONS (always from the full record set)
        # =====================================================================
        result['options'] = resolve_options(self.records, filter_state)
        result['_processed_at'] = datetime.now()

        if DEBUG_TIMING:
            print(f"✅ Processing done in {time.perf_counter()-start_time:.3f}s")

        self._memo[filter_state] = result
        return result

    # =========================================================================
    # SINGLE SUBMISSION LOOKUP
    # =========================================================================

    def find_submission(self, gp_name: str, financial_year: str = ALL) -> Optional[NormalizedSubmission]:
        """
        The submission for a GP and year. With year 'all', the submission
        from the latest financial year; duplicates within a year go to the
        most recently touched one.
        """
        candidates = [
            sub for sub in self.submissions
            if sub.record.gp_name == gp_name
            and (financial_year == ALL or sub.record.financial_year == financial_year)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda sub: (sub.record.financial_year, sub.record.last_touched))

    def clear_cache(self):
        self._memo.clear()
