# survey_utils/survey_engine/constants.py
"""
Constants for the Survey Aggregation Engine

Centralized configuration for:
- Canonical survey categories and their stored key aliases
- Numeric field lists per category
- Age buckets, filter sentinels
- Color schemes, chart and export settings
"""

# =====================================================================
# FILTER SENTINELS
# =====================================================================

ALL = 'all'

# =====================================================================
# SURVEY CATEGORIES
# =====================================================================

DEMOGRAPHICS = 'Demographics'
EDUCATION = 'Education'
HEALTH_CHILDCARE = 'HealthChildcare'
MIGRATION_EMPLOYMENT = 'MigrationEmployment'
ROAD_INFRASTRUCTURE = 'RoadInfrastructure'
PANCHAYAT_FINANCES = 'PanchayatFinances'
LAND_USE_MAPPING = 'LandUseMapping'
WATER_RESOURCES = 'WaterResources'

# Fixed order, used for completion scoring and report layout
CATEGORIES = [
    DEMOGRAPHICS,
    EDUCATION,
    HEALTH_CHILDCARE,
    MIGRATION_EMPLOYMENT,
    ROAD_INFRASTRUCTURE,
    PANCHAYAT_FINANCES,
    LAND_USE_MAPPING,
    WATER_RESOURCES,
]

# Stored formData keys per category: human-readable label first, camel-case alias second
CATEGORY_KEYS = {
    DEMOGRAPHICS: ['Demographics'],
    EDUCATION: ['Education'],
    HEALTH_CHILDCARE: ['Health and Childcare', 'HealthChildcare'],
    MIGRATION_EMPLOYMENT: ['Migration and Employment', 'MigrationEmployment'],
    ROAD_INFRASTRUCTURE: ['Road Infrastructure', 'RoadInfrastructure'],
    PANCHAYAT_FINANCES: ['Panchayat Finances', 'PanchayatFinances'],
    LAND_USE_MAPPING: ['Land Use Mapping', 'LandUseMapping'],
    WATER_RESOURCES: ['Water Resources', 'WaterResources'],
}

CATEGORY_LABELS = {
    DEMOGRAPHICS: 'Demographics',
    EDUCATION: 'Education',
    HEALTH_CHILDCARE: 'Health and Childcare',
    MIGRATION_EMPLOYMENT: 'Migration and Employment',
    ROAD_INFRASTRUCTURE: 'Road Infrastructure',
    PANCHAYAT_FINANCES: 'Panchayat Finances',
    LAND_USE_MAPPING: 'Land Use Mapping',
    WATER_RESOURCES: 'Water Resources',
}

# =====================================================================
# NUMERIC FIELDS
# =====================================================================

DEMOGRAPHICS_INT_FIELDS = [
    'totalPopulation',
    'households',
    'malePopulation',
    'femalePopulation',
    'age0to14Male',
    'age0to14Female',
    'age15to60Male',
    'age15to60Female',
    'ageAbove60Male',
    'ageAbove60Female',
]

SCHOOL_INT_FIELDS = [
    'teachersMale',
    'teachersFemale',
    'studentsTotal',
    'studentsMale',
    'studentsFemale',
    'newClassroomsRequired',
]

MIGRANT_FIELDS = [
    'seasonalMigrantsMale',
    'seasonalMigrantsFemale',
    'permanentMigrantsMale',
    'permanentMigrantsFemale',
]

MIGRATION_INT_FIELDS = [
    'householdsReportingMigration',
    *MIGRANT_FIELDS,
    'landlessHouseholds',
    'householdsWithMGNREGSCards',
    'workdaysProvidedMGNREGS',
]

ROAD_FLOAT_FIELDS = [
    'totalCCRoad',
    'ccRoadRequired',
    'repairRequired',
    'kuchhaRoad',
]

ROAD_LABELS = {
    'totalCCRoad': 'Total CC Road',
    'ccRoadRequired': 'CC Road Required',
    'repairRequired': 'Repair Required',
    'kuchhaRoad': 'Kuchha Road',
}

FINANCE_FIELDS = ['cfc', 'sfc', 'ownSources', 'mgnregs']

FINANCE_LABELS = {
    'cfc': 'CFC',
    'sfc': 'SFC',
    'ownSources': 'Own Sources',
    'mgnregs': 'MGNREGS',
}

LAND_USE_FLOAT_FIELDS = [
    'forestArea',
    'cultivableArea',
    'irrigatedLand',
    'nonCultivableArea',
    'commonLandArea',
]

# Renamed fields: canonical name -> legacy spellings
FIELD_ALIASES = {
    'households': ['totalHouseholds'],
    'cultivableArea': ['totalCultivableLand'],
}

HEALTH_FACILITY_LISTS = ['phcs', 'subCentres', 'anganwadiCentres']

HEALTH_FACILITY_LABELS = {
    'phcs': 'PHCs',
    'subCentres': 'Sub-Centres',
    'anganwadiCentres': 'Anganwadi Centres',
}

HEALTH_STATUSES = ['Fully Functional', 'Partially Functional', 'Needs Repair', 'Non-Operational']

# Keys that name a row rather than carry survey content
IDENTITY_KEYS = {'id', 'village'}

# =====================================================================
# AGE BUCKETS (population pyramid)
# =====================================================================

AGE_BUCKETS = {
    '0-14': ('age0to14Male', 'age0to14Female'),
    '15-60': ('age15to60Male', 'age15to60Female'),
    '60+': ('ageAbove60Male', 'ageAbove60Female'),
}

# =====================================================================
# BUSINESS LOGIC SETTINGS
# =====================================================================

# Financial year starts in April (month index >= 3 when zero-based)
FY_START_MONTH = 4
FY_FIRST_YEAR = 2020

# Reported when a submission has content but no category is recognised as filled
COMPLETION_FLOOR = 12.5

PLACEHOLDER_VILLAGE = 'Village {index}'

# Facility statuses counted as needing repair
REPAIR_STATUSES = ['Needs Repairs', 'Needs Repair', 'Critical Condition']

# =====================================================================
# COLOR SCHEME
# =====================================================================

COLORS = {
    "population": "#1f77b4",
    "households": "#2ca02c",
    "schools": "#ff7f0e",
    "male": "#0088FE",
    "female": "#FF8042",
    "seasonal": "#FFBB28",
    "permanent": "#8884D8",
    "cfc": "#0088FE",
    "sfc": "#00C49F",
    "own_sources": "#FFBB28",
    "mgnregs": "#FF8042",
    "cc_road": "#4CAF50",
    "cc_road_required": "#FFA726",
    "road_repair": "#EF5350",
    "kuchha_road": "#8D6E63",
    "fully_functional": "#4ba93f",
    "partially_functional": "#a3d977",
    "needs_repair": "#e64e2a",
    "non_operational": "#ff8c42",
    "complete": "#28a745",
    "partial": "#ffc107",
    "missing": "#e0e0e0",
    "grid": "#e0e0e0",
    "text_dark": "#333333",
    "text_light": "#999999",
}

# =====================================================================
# CHART DIMENSIONS
# =====================================================================

CHART_WIDTH = 800
CHART_HEIGHT = 400

# =====================================================================
# DEBUG
# =====================================================================

DEBUG_TIMING = False

# =====================================================================
# EXPORT SETTINGS
# =====================================================================

EXCEL_STYLES = {
    "header_fill_color": "1f77b4",
    "header_font_color": "FFFFFF",
    "number_format": '#,##0',
    "decimal_format": '#,##0.00',
}

EXPORT_LEVELS = ['gp', 'block', 'district', 'all']
