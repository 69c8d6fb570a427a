"""
Shared pytest fixtures for the GP Survey Dashboard test suite.

Provides small, hand-built survey records covering both storage shapes
(keyed by village and positional arrays) and both category key spellings.
"""

import sys
from pathlib import Path

import pytest

# Ensure the project root is importable when running without an install
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from survey_utils.survey_engine import SurveyRecord


def make_record(gp_name="Rampur", district="Koraput", block="Jeypore",
                financial_year="2024-2025", form_data=None, **extra):
    """Raw record dict in the stored document format."""
    record = {
        'gpName': gp_name,
        'district': district,
        'block': block,
        'financialYear': financial_year,
        'submittedAt': extra.pop('submitted_at', '2024-06-01T10:00:00Z'),
        'lastUpdatedAt': extra.pop('last_updated_at', ''),
        'userId': extra.pop('user_id', f"user-{gp_name.lower()}"),
        'formData': form_data if form_data is not None else {},
    }
    record.update(extra)
    return record


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def keyed_record():
    """Every category stored keyed by village, human-readable keys."""
    return make_record(form_data={
        'Demographics': {
            'Alpha': {
                'totalPopulation': '1,200', 'households': '300',
                'malePopulation': '620', 'femalePopulation': '580',
                'age0to14Male': '150', 'age0to14Female': '140',
                'age15to60Male': '400', 'age15to60Female': '380',
                'ageAbove60Male': '70', 'ageAbove60Female': '60',
            },
            'Beta': {
                'totalPopulation': 800, 'households': 200,
                'malePopulation': 400, 'femalePopulation': 400,
            },
        },
        'Education': {
            'Alpha': [
                {'name': 'UPS Alpha', 'teachersMale': '2', 'teachersFemale': '3',
                 'studentsTotal': '150', 'infrastructureStatus': 'Good'},
            ],
            'Beta': [
                {'name': 'PS Beta', 'teachersMale': 1, 'teachersFemale': 1, 'studentsTotal': 50},
            ],
        },
        'Migration and Employment': {
            'Alpha': {
                'householdsReportingMigration': '30',
                'seasonalMigrantsMale': '20', 'seasonalMigrantsFemale': '5',
                'permanentMigrantsMale': '3', 'permanentMigrantsFemale': '2',
                'householdsWithMGNREGSCards': '150',
            },
            'Beta': {
                'householdsReportingMigration': 10,
                'seasonalMigrantsMale': 10,
                'householdsWithMGNREGSCards': 50,
            },
        },
        'Panchayat Finances': {'cfc': '100000', 'sfc': '50000', 'ownSources': '25000', 'mgnregs': '0'},
        'Land Use Mapping': {
            'landUseData': {
                'Alpha': {'forestArea': '10.5', 'cultivableArea': '100', 'irrigatedLand': '40'},
                'Beta': {'forestArea': 4.5, 'totalCultivableLand': 60},
            },
        },
        'Water Resources': {
            'waterBodies': [
                {'type': 'Pond', 'locations': ['alpha'], 'irrigationPotential': '20'},
                {'type': 'Tank', 'locations': ['Beta'], 'irrigationPotential': '10'},
            ],
            'irrigationStructures': [
                {'type': 'Check Dam', 'location': 'Alpha', 'status': 'Needs Repairs', 'irrigationPotential': 15},
            ],
        },
    })


@pytest.fixture
def array_record():
    """Same survey stored with positional arrays and camel-case aliases."""
    return make_record(
        gp_name="Sundarpur",
        block="Boriguma",
        financial_year="2023-2024",
        form_data={
            'Demographics': [
                {'village': 'V1', 'totalPopulation': 500, 'totalHouseholds': 100},
                {'village': 'V2', 'totalPopulation': 300, 'households': 60},
            ],
            'MigrationEmployment': [
                {'seasonalMigrantsMale': 5, 'householdsWithMGNREGSCards': 40},
                {'seasonalMigrantsFemale': '2'},
            ],
            'Education': [
                [{'name': 'PS V1', 'teachersMale': 1, 'studentsTotal': 40}],
                [],
            ],
        },
    )


@pytest.fixture
def sample_records(keyed_record, array_record, record_factory):
    """Two districts, three blocks, four GPs."""
    return [
        keyed_record,
        array_record,
        record_factory(
            gp_name="Kotpad", block="Kotpad", financial_year="2024-2025",
            form_data={'Demographics': {'K1': {'totalPopulation': 400, 'households': 90}}},
        ),
        record_factory(
            gp_name="Bhawanipatna", district="Kalahandi", block="Bhawanipatna",
            financial_year="2024-2025",
            form_data={'Demographics': {'B1': {'totalPopulation': 700, 'households': 150}}},
        ),
    ]


@pytest.fixture
def survey_record(keyed_record):
    return SurveyRecord.from_dict(keyed_record)
