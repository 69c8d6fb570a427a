"""
Excel report export: scope per level, filenames and workbook layout.
"""

from datetime import date

import pytest
from openpyxl import load_workbook

from survey_utils.survey_engine import FilterState, SurveyExport, build_report_filename
from survey_utils.survey_engine.export import REPORT_COLUMNS, build_report_rows, export_scope


class TestExportScope:
    def test_level_applies_only_its_own_geography(self, sample_records):
        state = FilterState(district='Koraput', block='Jeypore', gp='Rampur')

        assert len(export_scope(sample_records, 'all', state)) == 4
        assert len(export_scope(sample_records, 'district', state)) == 3
        assert [r.gp_name for r in export_scope(sample_records, 'block', state)] == ['Rampur']
        assert [r.gp_name for r in export_scope(sample_records, 'gp', state)] == ['Rampur']

    def test_year_always_applies(self, sample_records):
        state = FilterState(year='2023-2024')
        assert [r.gp_name for r in export_scope(sample_records, 'all', state)] == ['Sundarpur']

    def test_unknown_level(self, sample_records):
        with pytest.raises(ValueError):
            export_scope(sample_records, 'village', FilterState())


class TestFilename:
    AS_OF = date(2024, 6, 1)

    def test_per_level(self):
        state = FilterState(district='Koraput', block='Jeypore', gp='Rampur')

        assert build_report_filename('gp', state, self.AS_OF) == "GP_Report_Rampur_2024-06-01.xlsx"
        assert build_report_filename('block', state, self.AS_OF) == "Block_Report_Jeypore_2024-06-01.xlsx"
        assert build_report_filename('district', state, self.AS_OF) == "District_Report_Koraput_2024-06-01.xlsx"
        assert build_report_filename('all', state, self.AS_OF) == "All_GP_Report_2024-06-01.xlsx"

    def test_level_without_selection_falls_back(self):
        assert build_report_filename('gp', FilterState(), self.AS_OF) == "All_GP_Report_2024-06-01.xlsx"


class TestReportRows:
    def test_rows_per_category(self, keyed_record, array_record):
        rows = build_report_rows([keyed_record, array_record])
        categories = [r['Category'] for r in rows]

        assert categories.count('Demographics') == 4
        assert categories.count('Education') == 3
        assert categories.count('Migration & Employment') == 4
        # Only the record that carries finances gets a finance row
        assert categories.count('Panchayat Finances') == 1

        finance = next(r for r in rows if r['Category'] == 'Panchayat Finances')
        assert finance['Total Revenue'] == 175000
        assert finance['Submitted At'] == '2024-06-01'

    def test_values_are_parsed(self, keyed_record):
        alpha = next(
            r for r in build_report_rows([keyed_record])
            if r['Category'] == 'Demographics' and r['Village'] == 'Alpha'
        )
        assert alpha['Total Population'] == 1200


class TestWorkbook:
    def test_sheets_and_headers(self, sample_records):
        output = SurveyExport().create_report(sample_records, level='all')
        wb = load_workbook(output)

        assert wb.sheetnames == ['Report', 'Summary']
        report = wb['Report']
        assert [c.value for c in report[1]] == REPORT_COLUMNS
        assert report.max_row == 1 + len(build_report_rows(sample_records))

    def test_summary_metrics(self, sample_records):
        state = FilterState(district='Koraput', block='Jeypore', gp='Rampur')
        wb = load_workbook(SurveyExport().create_report(sample_records, level='gp', filter_state=state))

        summary = {
            row[0]: row[1]
            for row in wb['Summary'].iter_rows(values_only=True)
            if row[0]
        }
        assert summary['Level:'] == 'GP'
        assert summary['Gram Panchayat:'] == 'Rampur'
        assert summary['Financial Year:'] == 'All'
        assert summary['Total Population'] == 2000
        assert summary['Gram Panchayats'] == 1

    def test_empty_scope_still_builds(self, sample_records):
        wb = load_workbook(SurveyExport().create_report(sample_records, level='all', filter_state=FilterState(year='1999-2000')))
        assert wb['Report'].max_row == 1
