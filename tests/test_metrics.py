"""
Aggregate totals, GP finance breakdown and single-GP snapshot metrics.
"""

import copy
import math

import pandas as pd
import pytest

from survey_utils.survey_engine import (
    AggregateMetrics,
    SurveyRecord,
    aggregate,
    gp_finance_breakdown,
    gp_snapshot_metrics,
    normalize_record,
    road_breakdown,
)


ZERO_TOTALS = [
    'totalPopulation', 'totalHouseholds', 'totalTeachers', 'totalStudents', 'totalMigrants',
    'totalMGNREGSCards', 'totalRevenue', 'totalForestArea', 'totalAgriculturalArea',
]


def _form_with_every_leaf(value):
    """formData whose numeric leaves all hold the same (unparseable) value."""
    return {
        'Demographics': {'A': {
            'totalPopulation': value, 'households': value,
            'malePopulation': value, 'femalePopulation': value,
        }},
        'Education': {'A': [{'name': 'PS A', 'teachersMale': value, 'teachersFemale': value, 'studentsTotal': value}]},
        'Migration and Employment': {'A': {
            'householdsReportingMigration': value, 'seasonalMigrantsMale': value,
            'permanentMigrantsFemale': value, 'householdsWithMGNREGSCards': value,
        }},
        'Road Infrastructure': {'A': {'totalCCRoad': value, 'kuchhaRoad': value}},
        'Panchayat Finances': {'cfc': value, 'sfc': value, 'ownSources': value, 'mgnregs': value},
        'Land Use Mapping': {'landUseData': {'A': {'forestArea': value, 'cultivableArea': value}}},
        'Water Resources': {'waterBodies': [{'type': 'Pond', 'location': 'A', 'irrigationPotential': value}]},
    }


@pytest.fixture
def facility_record(record_factory):
    return record_factory(form_data={
        'Demographics': {'Alpha': {'totalPopulation': 100}, 'Beta': {'totalPopulation': 80}},
        'Health and Childcare': {
            'phcs': [{'name': 'PHC Alpha', 'location': 'Alpha', 'status': 'Fully Functional'}],
            'subCentres': [
                {'name': 'SC Beta', 'location': 'beta ', 'status': 'Needs Repair'},
                {'name': 'SC Town', 'location': 'Other', 'otherLocation': 'Town', 'status': 'Non-Operational'},
            ],
            'anganwadiCentres': [
                {'name': 'AWC 1', 'location': 'Alpha', 'status': 'Partially Functional'},
                {'name': 'AWC 2', 'location': 'Alpha', 'status': 'Needs Repair'},
            ],
        },
        'Road Infrastructure': {
            'Alpha': {'totalCCRoad': '2.5', 'ccRoadRequired': '1', 'repairRequired': '0.5', 'kuchhaRoad': '3'},
            'Beta': {'totalCCRoad': 1.25, 'ccRoadRequired': 'n/a', 'kuchhaRoad': 2},
        },
    })


# ═══════════════════════════════════════════════════════════════════════════════
# AGGREGATE
# ═══════════════════════════════════════════════════════════════════════════════

class TestAggregate:
    def test_single_village_string_values(self, record_factory):
        record = record_factory(form_data={
            'Demographics': {'Alpha': {'totalPopulation': '120', 'households': '30'}},
        })
        metrics = aggregate([record])

        assert metrics.total_population == 120
        assert metrics.total_households == 30
        assert metrics.gp_count == 1

    def test_same_gp_two_years(self, record_factory):
        records = [
            record_factory(financial_year="2023-2024", form_data={'Demographics': {'A': {'totalPopulation': 100}}}),
            record_factory(financial_year="2024-2025", form_data={'Demographics': {'A': {'totalPopulation': 150}}}),
        ]
        metrics = aggregate(records)

        assert metrics.gp_count == 1
        assert metrics.record_count == 2
        assert metrics.data_submission_rate == 200
        assert metrics.total_population == 250

    def test_empty_input_is_all_zero(self):
        metrics = aggregate([])

        assert metrics == AggregateMetrics()
        assert all(value == 0 for value in metrics.to_dict().values())
        assert metrics.to_dict()['gpCount'] == 0

    def test_keyed_record_totals(self, keyed_record):
        metrics = aggregate([keyed_record])

        assert metrics.total_population == 2000
        assert metrics.total_households == 500
        assert metrics.total_schools == 2
        assert metrics.total_teachers == 7
        assert metrics.total_students == 200
        assert metrics.total_migrants == 40
        assert metrics.total_mgnregs_cards == 200
        assert metrics.total_revenue == 175000
        assert metrics.total_water_bodies == 2
        assert metrics.total_forest_area == pytest.approx(15.0)
        assert metrics.total_agricultural_area == pytest.approx(160.0)

    def test_shape_does_not_change_totals(self, record_factory):
        as_map = record_factory(form_data={
            'Demographics': {'V1': {'totalPopulation': 10}, 'V2': {'totalPopulation': 20}},
            'MigrationEmployment': {'V1': {'seasonalMigrantsMale': 3}, 'V2': {'permanentMigrantsFemale': 4}},
        })
        as_array = record_factory(form_data={
            'Demographics': [{'village': 'V1', 'totalPopulation': 10}, {'village': 'V2', 'totalPopulation': 20}],
            'Migration and Employment': [{'seasonalMigrantsMale': 3}, {'permanentMigrantsFemale': 4}],
        })

        assert aggregate([as_map]) == aggregate([as_array])

    def test_sample_records(self, sample_records):
        metrics = aggregate(sample_records)

        assert metrics.total_population == 3900
        assert metrics.gp_count == 4
        assert metrics.record_count == 4
        assert metrics.data_submission_rate == 100
        assert metrics.total_schools == 3

    def test_accepts_survey_records(self, survey_record):
        assert aggregate([survey_record]).total_population == 2000

    def test_camel_case_keys(self, keyed_record):
        data = aggregate([keyed_record]).to_dict()

        assert data['totalPopulation'] == 2000
        assert data['totalMGNREGSCards'] == 200
        assert data['dataSubmissionRate'] == 100

    def test_repeated_calls_are_identical(self, sample_records):
        original = copy.deepcopy(sample_records)

        assert aggregate(sample_records) == aggregate(sample_records)
        pd.testing.assert_frame_equal(gp_finance_breakdown(sample_records), gp_finance_breakdown(sample_records))
        assert sample_records == original

    @pytest.mark.parametrize("bad", ['n/a', None, [1, 2], 'NaN', 'inf', float('nan'), ''])
    def test_malformed_leaves_total_zero(self, record_factory, bad):
        record = record_factory(form_data=_form_with_every_leaf(bad))
        data = aggregate([record]).to_dict()

        assert all(math.isfinite(value) for value in data.values())
        for key in ZERO_TOTALS:
            assert data[key] == 0, key
        assert data['totalSchools'] == 1
        assert data['totalWaterBodies'] == 1
        assert data['gpCount'] == 1


# ═══════════════════════════════════════════════════════════════════════════════
# FINANCES
# ═══════════════════════════════════════════════════════════════════════════════

class TestFinanceBreakdown:
    def test_columns_and_order(self, sample_records):
        df = gp_finance_breakdown(sample_records)

        assert list(df.columns) == [
            'gp_name', 'district', 'block', 'CFC', 'SFC', 'Own Sources', 'MGNREGS', 'total_revenue'
        ]
        assert df.iloc[0]['gp_name'] == 'Rampur'
        assert df.iloc[0]['CFC'] == 100000
        assert df.iloc[0]['total_revenue'] == 175000
        # Ties keep first-appearance order
        assert df['gp_name'].tolist()[1:] == ['Sundarpur', 'Kotpad', 'Bhawanipatna']

    def test_summed_across_years(self, record_factory):
        records = [
            record_factory(financial_year="2023-2024", form_data={'PanchayatFinances': {'cfc': 100}}),
            record_factory(financial_year="2024-2025", form_data={'Panchayat Finances': {'sfc': '50'}}),
        ]
        df = gp_finance_breakdown(records)

        assert len(df) == 1
        assert df.iloc[0]['total_revenue'] == 150

    def test_empty(self):
        df = gp_finance_breakdown([])
        assert df.empty
        assert 'total_revenue' in df.columns


# ═══════════════════════════════════════════════════════════════════════════════
# ROADS
# ═══════════════════════════════════════════════════════════════════════════════

class TestRoadBreakdown:
    def test_summed_per_gp_longest_first(self, facility_record, record_factory):
        records = [
            facility_record,
            record_factory(gp_name="Kotpad", block="Kotpad",
                           form_data={'RoadInfrastructure': {'K1': {'totalCCRoad': '6', 'kuchhaRoad': 1}}}),
            record_factory(gp_name="Nuagaon", form_data={'Demographics': {'N1': {'totalPopulation': 5}}}),
        ]
        df = road_breakdown(records)

        assert list(df.columns) == [
            'gp_name', 'district', 'block', 'Total CC Road', 'CC Road Required', 'Repair Required', 'Kuchha Road'
        ]
        assert df['gp_name'].tolist() == ['Kotpad', 'Rampur']
        rampur = df.iloc[1]
        assert rampur['Total CC Road'] == pytest.approx(3.75)
        assert rampur['CC Road Required'] == pytest.approx(1.0)
        assert rampur['Kuchha Road'] == pytest.approx(5.0)

    def test_empty(self):
        df = road_breakdown([])
        assert df.empty
        assert 'Total CC Road' in df.columns


# ═══════════════════════════════════════════════════════════════════════════════
# SNAPSHOT
# ═══════════════════════════════════════════════════════════════════════════════

class TestSnapshot:
    def test_whole_gp(self, survey_record):
        snapshot = gp_snapshot_metrics(normalize_record(survey_record))

        assert snapshot['social']['total_population'] == 2000
        assert snapshot['social']['gender_ratio'] == 1041
        assert snapshot['social']['villages'] == 2
        assert snapshot['education']['student_teacher_ratio'] == 29
        assert snapshot['economic']['migration_rate'] == 8.0
        assert snapshot['economic']['mgnregs_percentage'] == 40.0
        assert snapshot['economic']['total_revenue'] == 175000
        assert snapshot['environmental']['total_water_bodies'] == 2
        assert snapshot['environmental']['irrigation_coverage'] == 28.1

    def test_single_village(self, survey_record):
        snapshot = gp_snapshot_metrics(normalize_record(survey_record), 'alpha')

        assert snapshot['social']['total_population'] == 1200
        assert snapshot['social']['gender_ratio'] == 1069
        assert snapshot['education']['total_schools'] == 1
        assert snapshot['education']['student_teacher_ratio'] == 30
        assert snapshot['economic']['migration_rate'] == 10.0
        assert snapshot['economic']['mgnregs_percentage'] == 50.0
        assert snapshot['economic']['total_revenue'] == 0

        env = snapshot['environmental']
        assert env['total_water_bodies'] == 1
        assert env['total_irrigation_structures'] == 1
        assert env['structures_needing_repair'] == 1
        assert env['total_irrigation_potential'] == 35.0
        assert env['irrigation_coverage'] == 35.0

    def test_zero_denominators(self):
        sub = normalize_record(SurveyRecord.from_dict({'gpName': 'Empty', 'formData': {}}))
        snapshot = gp_snapshot_metrics(sub)

        assert snapshot['social']['gender_ratio'] == 0
        assert snapshot['education']['student_teacher_ratio'] == 0
        assert snapshot['economic']['migration_rate'] == 0
        assert snapshot['environmental']['irrigation_coverage'] == 0

    def test_irrigation_coverage_capped(self, record_factory):
        sub = normalize_record(SurveyRecord.from_dict(record_factory(form_data={
            'Demographics': {'A': {'totalPopulation': 10}},
            'LandUseMapping': {'landUseData': {'A': {'cultivableArea': 10}}},
            'WaterResources': {'waterBodies': {'A': [{'irrigationPotential': 50}]}},
        })))

        assert gp_snapshot_metrics(sub)['environmental']['irrigation_coverage'] == 100.0

    def test_health_whole_gp(self, facility_record):
        health = gp_snapshot_metrics(normalize_record(SurveyRecord.from_dict(facility_record)))['health']

        assert health['facility_counts'] == {'phcs': 1, 'subCentres': 2, 'anganwadiCentres': 2}
        assert health['total_facilities'] == 5
        assert health['facilities_needing_repair'] == 2
        assert health['status_counts']['subCentres'] == {
            'Fully Functional': 0, 'Partially Functional': 0, 'Needs Repair': 1, 'Non-Operational': 1,
        }

    @pytest.mark.parametrize("village, counts, needing_repair", [
        ('alpha', {'phcs': 1, 'subCentres': 0, 'anganwadiCentres': 2}, 1),
        ('Beta', {'phcs': 0, 'subCentres': 1, 'anganwadiCentres': 0}, 1),
    ])
    def test_health_single_village(self, facility_record, village, counts, needing_repair):
        sub = normalize_record(SurveyRecord.from_dict(facility_record))
        health = gp_snapshot_metrics(sub, village)['health']

        assert health['facility_counts'] == counts
        assert health['facilities_needing_repair'] == needing_repair

    def test_roads_whole_gp_and_village(self, facility_record):
        sub = normalize_record(SurveyRecord.from_dict(facility_record))
        whole = gp_snapshot_metrics(sub)['infrastructure']
        alpha = gp_snapshot_metrics(sub, 'ALPHA')['infrastructure']

        assert whole['total_cc_road'] == pytest.approx(3.75)
        assert whole['cc_road_required'] == pytest.approx(1.0)
        assert whole['repair_required'] == pytest.approx(0.5)
        assert whole['kuchha_road'] == pytest.approx(5.0)
        assert [row['village'] for row in whole['by_village']] == ['Alpha', 'Beta']

        assert alpha['total_cc_road'] == pytest.approx(2.5)
        assert [row['village'] for row in alpha['by_village']] == ['Alpha']

    @pytest.mark.parametrize("bad", ['n/a', None, [1, 2], 'NaN'])
    def test_malformed_leaves_keep_snapshot_finite(self, record_factory, bad):
        sub = normalize_record(SurveyRecord.from_dict(record_factory(form_data=_form_with_every_leaf(bad))))

        for section in gp_snapshot_metrics(sub).values():
            for value in section.values():
                if isinstance(value, (int, float)):
                    assert math.isfinite(value)
                    assert value == 0 or value == 1
