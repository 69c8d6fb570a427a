"""
Completion scoring and the GP x financial year coverage tables.
"""

from datetime import date

import pytest

from survey_utils.survey_engine import (
    CATEGORIES,
    coverage_long,
    coverage_table,
    gp_report_summary,
    score,
)


# One meaningful payload per category
FILLED_PAYLOADS = {
    'Demographics': {'A': {'totalPopulation': 1}},
    'Education': {'A': [{'name': 'PS A'}]},
    'HealthChildcare': {'anganwadiCentres': [{'name': 'AWC'}]},
    'MigrationEmployment': {'A': {'landlessHouseholds': 2}},
    'RoadInfrastructure': {'A': {'kuchhaRoad': 1}},
    'PanchayatFinances': {'cfc': 1},
    'LandUseMapping': {'landUseData': {'A': {'forestArea': 3}}},
    'WaterResources': {'waterBodies': [{'type': 'Pond'}]},
}


# ═══════════════════════════════════════════════════════════════════════════════
# SCORE
# ═══════════════════════════════════════════════════════════════════════════════

class TestScore:
    def test_one_category_filled(self, record_factory):
        record = record_factory(form_data={
            'Demographics': {'Alpha': {'totalPopulation': '120', 'households': '30'}},
        })
        result = score(record)

        assert result.percentage == 12.5
        assert result.per_category['Demographics'] is True
        assert result.filled_count == 1

    def test_all_zero_finances_not_filled(self, record_factory):
        zero_finances = {'cfc': '0', 'sfc': '0', 'ownSources': '0', 'mgnregs': '0'}
        with_zero = score(record_factory(form_data={
            'Demographics': {'A': {'totalPopulation': 10}},
            'PanchayatFinances': zero_finances,
        }))
        with_revenue = score(record_factory(form_data={
            'Demographics': {'A': {'totalPopulation': 10}},
            'PanchayatFinances': {**zero_finances, 'sfc': '500'},
        }))

        assert with_zero.per_category['PanchayatFinances'] is False
        assert with_zero.percentage == 12.5
        assert with_revenue.percentage == 25.0

    def test_floor_when_keys_present_but_nothing_meaningful(self, record_factory):
        result = score(record_factory(form_data={
            'Demographics': {'A': {'totalPopulation': '0', 'households': ''}},
        }))

        assert result.filled_count == 0
        assert result.percentage == 12.5

    def test_empty_form_data_scores_zero(self, record_factory):
        assert score(record_factory(form_data={})).percentage == 0

    def test_identity_keys_are_not_content(self, record_factory):
        result = score(record_factory(form_data={
            'Demographics': [{'village': 'A', 'id': 7}],
        }))
        assert result.per_category['Demographics'] is False

    def test_free_text_counts(self, record_factory):
        result = score(record_factory(form_data={
            'Health and Childcare': {'phcs': [{'name': 'PHC Rampur'}]},
        }))
        assert result.per_category['HealthChildcare'] is True

    def test_alias_checked_when_primary_is_empty(self, record_factory):
        result = score(record_factory(form_data={
            'Road Infrastructure': {},
            'RoadInfrastructure': {'V1': {'totalCCRoad': 1.5}},
        }))
        assert result.per_category['RoadInfrastructure'] is True

    def test_keyed_record(self, keyed_record):
        result = score(keyed_record)

        assert result.filled_count == 6
        assert result.percentage == 75.0
        assert not result.per_category['HealthChildcare']
        assert not result.per_category['RoadInfrastructure']

    def test_positional_record(self, array_record):
        assert score(array_record).percentage == 37.5

    def test_every_category_filled(self, record_factory):
        result = score(record_factory(form_data=dict(FILLED_PAYLOADS)))

        assert result.percentage == 100
        assert result.is_complete
        assert set(result.per_category) == set(CATEGORIES)

    @pytest.mark.parametrize("filled", range(1, 9))
    def test_percentage_is_multiple_of_one_eighth(self, record_factory, filled):
        form_data = {category: {'A': {'value': 1}} for category in CATEGORIES[:filled]}
        form_data.pop('PanchayatFinances', None)
        if filled >= 6:
            form_data['PanchayatFinances'] = {'cfc': 1}

        result = score(record_factory(form_data=form_data))
        assert result.percentage == filled * 12.5

    def test_scalar_category_payload_not_filled(self, record_factory):
        result = score(record_factory(form_data={
            'Migration and Employment': 'pending',
            'Road Infrastructure': 7,
        }))

        assert result.per_category['MigrationEmployment'] is False
        assert result.per_category['RoadInfrastructure'] is False
        assert result.percentage == 12.5

    @pytest.mark.parametrize("key", list(FILLED_PAYLOADS))
    @pytest.mark.parametrize("base", [
        {},
        {'Demographics': {'A': {'totalPopulation': 0}}},
        {'Education': {'A': [{'name': 'PS A'}]}},
    ])
    def test_adding_a_category_never_lowers_score(self, record_factory, base, key):
        before = score(record_factory(form_data=dict(base)))
        after = score(record_factory(form_data={**base, key: FILLED_PAYLOADS[key]}))

        assert after.percentage >= before.percentage

    def test_score_grows_as_categories_are_filled(self, record_factory):
        form_data, percentages = {}, []
        for key, payload in FILLED_PAYLOADS.items():
            form_data[key] = payload
            percentages.append(score(record_factory(form_data=dict(form_data))).percentage)

        assert percentages == sorted(percentages)
        assert percentages[-1] == 100


# ═══════════════════════════════════════════════════════════════════════════════
# COVERAGE
# ═══════════════════════════════════════════════════════════════════════════════

AS_OF = date(2025, 1, 15)
YEARS = ['2023-2024', '2024-2025', '2025-2026']


class TestCoverage:
    def test_long_grid(self, sample_records):
        df = coverage_long(sample_records, as_of=AS_OF, start_year=2023)

        assert len(df) == 4 * len(YEARS)

        rampur = df[df['gp_name'] == 'Rampur'].set_index('financial_year')
        assert rampur.loc['2024-2025', 'percentage'] == 75.0
        assert bool(rampur.loc['2024-2025', 'has_data'])
        assert rampur.loc['2023-2024', 'percentage'] == 0
        assert not bool(rampur.loc['2023-2024', 'has_data'])

    def test_best_submission_per_year_kept(self, record_factory):
        records = [
            record_factory(form_data={'Demographics': {'A': {'totalPopulation': 1}}},
                           submitted_at='2024-05-01'),
            record_factory(form_data={}, submitted_at='2024-09-01'),
        ]
        df = coverage_long(records, as_of=AS_OF, start_year=2024)
        row = df[df['financial_year'] == '2024-2025'].iloc[0]

        assert row['percentage'] == 12.5
        assert row['last_touched'] == '2024-09-01'

    def test_wide_table(self, sample_records):
        df = coverage_table(sample_records, as_of=AS_OF, start_year=2023)

        assert list(df.columns) == ['gp_name', 'district', 'block'] + YEARS
        assert df['gp_name'].tolist() == ['Bhawanipatna', 'Kotpad', 'Rampur', 'Sundarpur']

        sundarpur = df[df['gp_name'] == 'Sundarpur'].iloc[0]
        assert sundarpur['2023-2024'] == 37.5
        assert sundarpur['2024-2025'] == 0

    def test_empty(self):
        assert coverage_long([]).empty
        df = coverage_table([], as_of=AS_OF, start_year=2024)
        assert df.empty
        assert list(df.columns) == ['gp_name', 'district', 'block', '2024-2025', '2025-2026']


class TestReportSummary:
    def test_per_gp_summary(self, record_factory):
        records = [
            record_factory(financial_year='2024-2025', form_data={'Demographics': {'A': {'totalPopulation': 1}}},
                           last_updated_at='2024-10-01'),
            record_factory(financial_year='2023-2024', form_data={}),
            record_factory(gp_name='Kotpad', block='Kotpad'),
        ]
        df = gp_report_summary(records)

        assert df['gp_name'].tolist() == ['Kotpad', 'Rampur']
        rampur = df[df['gp_name'] == 'Rampur'].iloc[0]
        assert rampur['total_submissions'] == 2
        assert rampur['years'] == ['2023-2024', '2024-2025']
        assert rampur['last_touched'] == '2024-10-01'
        assert rampur['best_completion'] == 12.5

    def test_empty(self):
        assert gp_report_summary([]).empty
