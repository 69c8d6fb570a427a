# survey_utils/survey_engine/export.py
"""
Formatted Excel Export for GP Survey Reports

Creates Excel reports with:
- Report sheet: one row per village per category (Demographics,
  Education per school, Migration & Employment) and one row per
  submission for Panchayat Finances
- Summary sheet: aggregate metrics of the exported submissions

Export levels mirror the reports page buttons: 'gp', 'block', 'district'
and 'all'. The selected year always applies; only the level's own
geography filter is applied on top of it.

Uses openpyxl for formatting capabilities.
"""

import logging
from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, Iterable, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .constants import ALL, EXCEL_STYLES, EXPORT_LEVELS, PANCHAYAT_FINANCES
from .filters import FilterState
from .metrics import aggregate
from .normalizer import normalize_record
from .records import SurveyRecord, coerce_records

logger = logging.getLogger(__name__)

BASE_COLUMNS = ['GP Name', 'District', 'Block', 'Financial Year', 'Submitted At', 'Village', 'Category']

REPORT_COLUMNS = BASE_COLUMNS + [
    'Total Population',
    'Total Households',
    'Male Population',
    'Female Population',
    'School Name',
    'Total Teachers',
    'Total Students',
    'Infrastructure Status',
    'Households Reporting Migration',
    'MGNREGS Cards',
    'Landless Households',
    'MGNREGS Workdays',
    'CFC',
    'SFC',
    'Own Sources',
    'MGNREGS',
    'Total Revenue',
]

CURRENCY_COLUMNS = {'CFC', 'SFC', 'Own Sources', 'MGNREGS', 'Total Revenue'}
TEXT_COLUMNS = set(BASE_COLUMNS) | {'School Name', 'Infrastructure Status'}


# =============================================================================
# SCOPE & FILENAME
# =============================================================================

def export_scope(records: Iterable[Any], level: str, filter_state: FilterState) -> List[SurveyRecord]:
    """Records included in an export at the given level."""
    if level not in EXPORT_LEVELS:
        raise ValueError(f"Unknown export level: {level!r}")

    state = filter_state or FilterState()
    selected = []
    for record in coerce_records(records):
        if state.year != ALL and record.financial_year != state.year:
            continue
        if level == 'gp' and state.gp != ALL and record.gp_name != state.gp:
            continue
        if level == 'block' and state.block != ALL and record.block != state.block:
            continue
        if level == 'district' and state.district != ALL and record.district != state.district:
            continue
        selected.append(record)
    return selected


def _safe_name(value: str) -> str:
    return str(value).replace('/', '-').replace('\\', '-').strip()


def build_report_filename(level: str, filter_state: FilterState, as_of: date = None) -> str:
    """
    e.g. GP_Report_Rampur_2024-06-01.xlsx, Block_Report_..., District_Report_...,
    or All_GP_Report_2024-06-01.xlsx when the level has no selection.
    """
    state = filter_state or FilterState()
    stamp = (as_of or date.today()).isoformat()

    if level == 'gp' and state.gp != ALL:
        return f"GP_Report_{_safe_name(state.gp)}_{stamp}.xlsx"
    if level == 'block' and state.block != ALL:
        return f"Block_Report_{_safe_name(state.block)}_{stamp}.xlsx"
    if level == 'district' and state.district != ALL:
        return f"District_Report_{_safe_name(state.district)}_{stamp}.xlsx"
    return f"All_GP_Report_{stamp}.xlsx"


# =============================================================================
# REPORT ROWS
# =============================================================================

def build_report_rows(records: Iterable[Any]) -> List[Dict[str, Any]]:
    """Flat rows of the Report sheet, numeric values already parse-or-zero."""
    rows = []

    for record in coerce_records(records):
        sub = normalize_record(record)
        base = {
            'GP Name': record.gp_name,
            'District': record.district,
            'Block': record.block,
            'Financial Year': record.financial_year,
            'Submitted At': record.submitted_at[:10],
        }

        for village, data in sub.demographics.items():
            rows.append({
                **base,
                'Village': village,
                'Category': 'Demographics',
                'Total Population': data['totalPopulation'],
                'Total Households': data['households'],
                'Male Population': data['malePopulation'],
                'Female Population': data['femalePopulation'],
            })

        for village, schools in sub.education.items():
            for school in schools:
                rows.append({
                    **base,
                    'Village': village,
                    'Category': 'Education',
                    'School Name': school.get('name') or '',
                    'Total Teachers': school['teachersMale'] + school['teachersFemale'],
                    'Total Students': school['studentsTotal'],
                    'Infrastructure Status': school.get('infrastructureStatus') or '',
                })

        for village, data in sub.migration.items():
            rows.append({
                **base,
                'Village': village,
                'Category': 'Migration & Employment',
                'Households Reporting Migration': data['householdsReportingMigration'],
                'MGNREGS Cards': data['householdsWithMGNREGSCards'],
                'Landless Households': data['landlessHouseholds'],
                'MGNREGS Workdays': data['workdaysProvidedMGNREGS'],
            })

        if sub.has(PANCHAYAT_FINANCES):
            finances = sub.finances
            rows.append({
                **base,
                'Village': '',
                'Category': 'Panchayat Finances',
                'CFC': finances['cfc'],
                'SFC': finances['sfc'],
                'Own Sources': finances['ownSources'],
                'MGNREGS': finances['mgnregs'],
                'Total Revenue': sum(finances.values()),
            })

    return rows


# =============================================================================
# WORKBOOK
# =============================================================================

class SurveyExport:
    """
    Excel report generator for GP survey submissions.

    Usage:
        exporter = SurveyExport()
        excel_bytes = exporter.create_report(records, level='block', filter_state=state)

        st.download_button(
            label="Download Report",
            data=excel_bytes,
            file_name=build_report_filename('block', state),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
    """

    def __init__(self):
        """Initialize with default styles."""
        self.wb = None
        self._init_styles()

    def _init_styles(self):
        """Initialize reusable styles."""
        self.header_fill = PatternFill(
            start_color=EXCEL_STYLES['header_fill_color'],
            end_color=EXCEL_STYLES['header_fill_color'],
            fill_type='solid'
        )

        self.header_font = Font(
            bold=True,
            color=EXCEL_STYLES['header_font_color'],
            size=11
        )

        self.title_font = Font(bold=True, size=16)
        self.subtitle_font = Font(bold=True, size=12)

        thin_border = Side(style='thin', color='000000')
        self.cell_border = Border(
            left=thin_border,
            right=thin_border,
            top=thin_border,
            bottom=thin_border
        )

        self.center_align = Alignment(horizontal='center', vertical='center')
        self.right_align = Alignment(horizontal='right', vertical='center')

        self.number_format = EXCEL_STYLES['number_format']
        self.decimal_format = EXCEL_STYLES['decimal_format']

    # =========================================================================
    # MAIN EXPORT METHOD
    # =========================================================================

    def create_report(
        self,
        records: Iterable[Any],
        level: str = 'all',
        filter_state: FilterState = None
    ) -> BytesIO:
        """
        Create formatted Excel report.

        Args:
            records: All loaded records; the level scope is applied here
            level: 'gp', 'block', 'district' or 'all'
            filter_state: Current selection

        Returns:
            BytesIO containing Excel file
        """
        filter_state = filter_state or FilterState()
        scoped = export_scope(records, level, filter_state)

        self.wb = Workbook()

        self._create_report_sheet(build_report_rows(scoped))
        self._create_summary_sheet(scoped, level, filter_state)

        output = BytesIO()
        self.wb.save(output)
        output.seek(0)

        logger.info(f"Excel report created: level={level}, {len(scoped)} submissions")
        return output

    # =========================================================================
    # REPORT SHEET
    # =========================================================================

    def _create_report_sheet(self, rows: List[Dict[str, Any]]):
        ws = self.wb.active
        ws.title = "Report"

        for col_idx, header in enumerate(REPORT_COLUMNS, 1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border
            ws.column_dimensions[get_column_letter(col_idx)].width = max(12, min(len(header) + 4, 32))

        for row_idx, row in enumerate(rows, 2):
            for col_idx, header in enumerate(REPORT_COLUMNS, 1):
                value = row.get(header)
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.border = self.cell_border
                if value is not None and header not in TEXT_COLUMNS:
                    cell.number_format = self.number_format
                    cell.alignment = self.right_align

        ws.freeze_panes = 'A2'

    # =========================================================================
    # SUMMARY SHEET
    # =========================================================================

    def _create_summary_sheet(self, records: List[SurveyRecord], level: str, filter_state: FilterState):
        ws = self.wb.create_sheet("Summary")
        metrics = aggregate(records)

        row = 1
        ws.cell(row=row, column=1, value="GP Survey Report")
        ws.cell(row=row, column=1).font = self.title_font
        ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=3)
        row += 2

        info_rows = [
            ("Level:", level.upper()),
            ("District:", filter_state.district),
            ("Block:", filter_state.block),
            ("Gram Panchayat:", filter_state.gp),
            ("Financial Year:", filter_state.year),
            ("Generated:", datetime.now().strftime('%Y-%m-%d %H:%M')),
        ]
        for label, value in info_rows:
            ws.cell(row=row, column=1, value=label)
            ws.cell(row=row, column=2, value="All" if value == ALL else value)
            row += 1
        row += 1

        ws.cell(row=row, column=1, value="Aggregate Metrics")
        ws.cell(row=row, column=1).font = self.subtitle_font
        row += 1

        metric_rows = [
            ("Gram Panchayats", metrics.gp_count, self.number_format),
            ("Submissions", metrics.record_count, self.number_format),
            ("Data Submission Rate (%)", metrics.data_submission_rate, self.decimal_format),
            ("Total Population", metrics.total_population, self.number_format),
            ("Total Households", metrics.total_households, self.number_format),
            ("Total Schools", metrics.total_schools, self.number_format),
            ("Total Teachers", metrics.total_teachers, self.number_format),
            ("Total Students", metrics.total_students, self.number_format),
            ("Total Migrants", metrics.total_migrants, self.number_format),
            ("MGNREGS Cards", metrics.total_mgnregs_cards, self.number_format),
            ("Total Revenue (₹)", metrics.total_revenue, self.number_format),
            ("Water Bodies", metrics.total_water_bodies, self.number_format),
            ("Forest Area (ha)", metrics.total_forest_area, self.decimal_format),
            ("Agricultural Area (ha)", metrics.total_agricultural_area, self.decimal_format),
        ]

        for col_idx, header in enumerate(("Metric", "Value"), 1):
            cell = ws.cell(row=row, column=col_idx, value=header)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = self.center_align
            cell.border = self.cell_border
        row += 1

        for label, value, number_format in metric_rows:
            ws.cell(row=row, column=1, value=label).border = self.cell_border
            cell = ws.cell(row=row, column=2, value=value)
            cell.border = self.cell_border
            cell.number_format = number_format
            cell.alignment = self.right_align
            row += 1

        ws.column_dimensions['A'].width = 28
        ws.column_dimensions['B'].width = 20
