# survey_utils/survey_engine/normalizer.py
"""
Schema Normalizer for survey submissions

Survey payloads drifted across app versions:
- Categories stored under a human-readable key or a camel-case alias
- Village data stored as a keyed map OR a positional array
- Fields renamed (totalHouseholds -> households, totalCultivableLand -> cultivableArea)
- Numbers stored as strings, blanks, or garbage

Everything is resolved here, once per record. Downstream modules only ever
see the canonical keyed-map shape with numeric leaves already coerced.

CHANGELOG:
- v1.2.0: Flat water-body / irrigation lists grouped by embedded location,
          matched case-insensitively against the record's village names
- v1.1.0: Legacy field aliases (totalHouseholds, totalCultivableLand)
- v1.0.0: Initial implementation
"""

import logging
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from .constants import (
    CATEGORY_KEYS,
    DEMOGRAPHICS,
    DEMOGRAPHICS_INT_FIELDS,
    EDUCATION,
    FIELD_ALIASES,
    FINANCE_FIELDS,
    HEALTH_CHILDCARE,
    HEALTH_FACILITY_LISTS,
    LAND_USE_FLOAT_FIELDS,
    LAND_USE_MAPPING,
    MIGRATION_EMPLOYMENT,
    MIGRATION_INT_FIELDS,
    PANCHAYAT_FINANCES,
    PLACEHOLDER_VILLAGE,
    ROAD_FLOAT_FIELDS,
    ROAD_INFRASTRUCTURE,
    SCHOOL_INT_FIELDS,
    WATER_RESOURCES,
)
from .records import SurveyRecord

logger = logging.getLogger(__name__)

NormalizedCategory = Dict[str, Any]


# =============================================================================
# NUMERIC COERCION (parse-or-zero)
# =============================================================================

def parse_float(value: Any) -> float:
    """
    Parse a stored numeric leaf. Missing, blank, unparseable, NaN and
    infinite values all become 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, Real):
        number = float(value)
    else:
        text = str(value).strip().replace(',', '')
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            logger.debug(f"Unparseable numeric value {value!r}, using 0")
            return 0.0

    return number if math.isfinite(number) else 0.0


def parse_int(value: Any) -> int:
    """Integer variant of parse_float; fractional values truncate toward zero."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().replace(',', '')
        try:
            return int(text)
        except ValueError:
            pass
    return int(parse_float(value))


# =============================================================================
# NAME HELPERS
# =============================================================================

def normalize_name(value: Any) -> str:
    """Matching key for village names: trimmed and case-folded."""
    if value is None:
        return ''
    return str(value).strip().lower()


def village_matches(name: Any, selected: Any) -> bool:
    """Case-insensitive, whitespace-trimmed village comparison."""
    return normalize_name(name) == normalize_name(selected)


def placeholder_village(index: int) -> str:
    return PLACEHOLDER_VILLAGE.format(index=index + 1)


def _clean_name(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _canonical_village(name: str, village_names: Sequence[str]) -> str:
    """Prefer the record's own spelling of a village when names match loosely."""
    key = normalize_name(name)
    for known in village_names:
        if normalize_name(known) == key:
            return known
    return name


# =============================================================================
# CATEGORY LOOKUP
# =============================================================================

_KEY_TO_CATEGORY = {
    key: category
    for category, keys in CATEGORY_KEYS.items()
    for key in keys
}


def canonical_category(name: str) -> str:
    """Map a canonical name or any stored key spelling to the canonical category."""
    if name in CATEGORY_KEYS:
        return name
    if name in _KEY_TO_CATEGORY:
        return _KEY_TO_CATEGORY[name]
    raise ValueError(f"Unknown survey category: {name!r}")


def resolve_category(form_data: Optional[Mapping[str, Any]], category: str) -> Any:
    """
    Look up a category payload, trying the human-readable key first and the
    camel-case alias second. Returns None when the category is absent.
    """
    if not isinstance(form_data, Mapping):
        return None
    for key in CATEGORY_KEYS[canonical_category(category)]:
        payload = form_data.get(key)
        if payload is not None:
            return payload
    return None


def village_names_for(form_data: Optional[Mapping[str, Any]]) -> List[str]:
    """
    Ordered village names of a record, taken from its Demographics payload.
    Used to pair positional arrays in the other categories.
    """
    demographics = resolve_category(form_data, DEMOGRAPHICS)

    if isinstance(demographics, Mapping):
        return [str(name) for name in demographics.keys()]

    if isinstance(demographics, (list, tuple)):
        names = []
        for index, row in enumerate(demographics):
            embedded = _clean_name(row.get('village')) if isinstance(row, Mapping) else ''
            names.append(embedded or placeholder_village(index))
        return names

    return []


# =============================================================================
# SHAPE RESOLUTION
# =============================================================================

def _pair_rows(raw: Any, village_names: Optional[Sequence[str]]) -> List[Tuple[str, Any]]:
    """
    Resolve the array-vs-object ambiguity into (village, value) pairs.

    - Mapping: keys are already village names
    - Sequence: index i -> village_names[i], else the row's embedded
      'village' field, else "Village {i+1}"
    - None: no rows
    """
    if raw is None:
        return []

    if isinstance(raw, Mapping):
        return [(str(name), value) for name, value in raw.items()]

    if isinstance(raw, (list, tuple)):
        names = list(village_names or [])
        pairs = []
        seen = set()
        for index, value in enumerate(raw):
            name = _clean_name(names[index]) if index < len(names) else ''
            if not name and isinstance(value, Mapping):
                name = _clean_name(value.get('village'))
            if not name:
                name = placeholder_village(index)
            if name in seen:
                # Keep both rows rather than overwrite
                name = f"{name} ({index + 1})"
            seen.add(name)
            pairs.append((name, value))
        return pairs

    logger.warning(f"Unexpected village payload of type {type(raw).__name__}, ignoring")
    return []


def _coerce_row(
    row: Any,
    int_fields: Sequence[str] = (),
    float_fields: Sequence[str] = ()
) -> Dict[str, Any]:
    """Copy a row, apply field aliases and parse-or-zero to known numeric fields."""
    out = dict(row) if isinstance(row, Mapping) else {}

    for canonical, legacy_names in FIELD_ALIASES.items():
        if canonical not in int_fields and canonical not in float_fields:
            continue
        if out.get(canonical) is None:
            for legacy in legacy_names:
                if out.get(legacy) is not None:
                    out[canonical] = out[legacy]
                    break

    for name in int_fields:
        out[name] = parse_int(out.get(name))
    for name in float_fields:
        out[name] = parse_float(out.get(name))

    return out


def _coerce_items(value: Any, float_fields: Sequence[str] = ()) -> List[Dict[str, Any]]:
    """A per-village item collection: list of rows, a single row, or nothing."""
    if isinstance(value, Mapping):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [_coerce_row(item, float_fields=float_fields) for item in value if isinstance(item, Mapping)]


def _item_location(item: Any, location_keys: Sequence[str]) -> str:
    if not isinstance(item, Mapping):
        return ''
    for key in location_keys:
        value = item.get(key)
        if isinstance(value, (list, tuple)):
            value = next((v for v in value if _clean_name(v)), None)
        name = _clean_name(value)
        if name:
            return name
    return ''


def _group_items(
    raw: Any,
    village_names: Optional[Sequence[str]],
    location_keys: Sequence[str],
    float_fields: Sequence[str] = ()
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Resolve a nested sub-collection (water bodies, irrigation structures,
    common land areas) into {village: [items]}.

    Accepted shapes:
    - {village: [items]}
    - [[items], [items], ...] aligned with village_names
    - [item, item, ...] flat, grouped by each item's own location
    """
    if raw is None:
        return {}

    names = list(village_names or [])

    if isinstance(raw, Mapping):
        return {str(name): _coerce_items(items, float_fields) for name, items in raw.items()}

    if not isinstance(raw, (list, tuple)):
        logger.warning(f"Unexpected sub-collection of type {type(raw).__name__}, ignoring")
        return {}

    is_aligned = any(isinstance(v, (list, tuple)) for v in raw) and all(
        isinstance(v, (list, tuple)) or v is None for v in raw
    )

    if is_aligned:
        return {
            name: _coerce_items(items, float_fields)
            for name, items in _pair_rows(list(raw), names)
        }

    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for index, item in enumerate(raw):
        if not isinstance(item, Mapping):
            continue
        name = _item_location(item, location_keys)
        if not name and index < len(names):
            name = _clean_name(names[index])
        if not name:
            name = placeholder_village(index)
        name = _canonical_village(name, names)
        grouped.setdefault(name, []).append(_coerce_row(item, float_fields=float_fields))
    return grouped


# =============================================================================
# PER-CATEGORY NORMALIZERS
# =============================================================================

def _normalize_demographics(raw, village_names=None) -> NormalizedCategory:
    if isinstance(raw, (list, tuple)) and not village_names:
        village_names = village_names_for({DEMOGRAPHICS: raw})
    return {
        name: _coerce_row(row, int_fields=DEMOGRAPHICS_INT_FIELDS)
        for name, row in _pair_rows(raw, village_names)
    }


def _normalize_education(raw, village_names=None) -> NormalizedCategory:
    result = {}
    for name, schools in _pair_rows(raw, village_names):
        if isinstance(schools, (list, tuple)):
            result[name] = [
                _coerce_row(school, int_fields=SCHOOL_INT_FIELDS)
                for school in schools
                if isinstance(school, Mapping)
            ]
        else:
            result[name] = []
    return result


def _normalize_migration(raw, village_names=None) -> NormalizedCategory:
    return {
        name: _coerce_row(row, int_fields=MIGRATION_INT_FIELDS)
        for name, row in _pair_rows(raw, village_names)
    }


def _normalize_roads(raw, village_names=None) -> NormalizedCategory:
    return {
        name: _coerce_row(row, float_fields=ROAD_FLOAT_FIELDS)
        for name, row in _pair_rows(raw, village_names)
    }


def _normalize_finances(raw, village_names=None) -> NormalizedCategory:
    if raw is not None and not isinstance(raw, Mapping):
        logger.warning(f"Panchayat finances stored as {type(raw).__name__}, treating as zero")
        raw = {}
    raw = raw or {}
    return {name: parse_int(raw.get(name)) for name in FINANCE_FIELDS}


def _normalize_health(raw, village_names=None) -> NormalizedCategory:
    if raw is not None and not isinstance(raw, Mapping):
        logger.warning(f"Health payload stored as {type(raw).__name__}, treating as empty")
        raw = {}
    raw = raw or {}
    result = {}
    for name in HEALTH_FACILITY_LISTS:
        facilities = raw.get(name)
        if isinstance(facilities, Mapping):
            facilities = list(facilities.values())
        if not isinstance(facilities, (list, tuple)):
            facilities = []
        result[name] = [dict(f) for f in facilities if isinstance(f, Mapping)]
    return result


def _normalize_land_use(raw, village_names=None) -> NormalizedCategory:
    # Older submissions stored the village rows directly under the category
    if isinstance(raw, Mapping) and ('landUseData' in raw or 'commonLandAreas' in raw):
        rows, common = raw.get('landUseData'), raw.get('commonLandAreas')
    else:
        rows, common = raw, None

    return {
        'landUseData': {
            name: _coerce_row(row, float_fields=LAND_USE_FLOAT_FIELDS)
            for name, row in _pair_rows(rows, village_names)
        },
        'commonLandAreas': _group_items(
            common, village_names, ('village', 'location'), float_fields=('area',)
        ),
    }


def _normalize_water(raw, village_names=None) -> NormalizedCategory:
    if isinstance(raw, (list, tuple)):
        raw = {'waterBodies': raw}
    if raw is not None and not isinstance(raw, Mapping):
        logger.warning(f"Water resources stored as {type(raw).__name__}, treating as empty")
        raw = {}
    raw = raw or {}

    return {
        'waterBodies': _group_items(
            raw.get('waterBodies'), village_names, ('village', 'locations', 'location'),
            float_fields=('irrigationPotential',)
        ),
        'irrigationStructures': _group_items(
            raw.get('irrigationStructures'), village_names, ('village', 'location', 'locations'),
            float_fields=('irrigationPotential',)
        ),
    }


_NORMALIZERS: Dict[str, Callable[..., NormalizedCategory]] = {
    DEMOGRAPHICS: _normalize_demographics,
    EDUCATION: _normalize_education,
    HEALTH_CHILDCARE: _normalize_health,
    MIGRATION_EMPLOYMENT: _normalize_migration,
    ROAD_INFRASTRUCTURE: _normalize_roads,
    PANCHAYAT_FINANCES: _normalize_finances,
    LAND_USE_MAPPING: _normalize_land_use,
    WATER_RESOURCES: _normalize_water,
}


def normalize(
    category: str,
    raw_payload: Any,
    village_names: Optional[Sequence[str]] = None
) -> NormalizedCategory:
    """
    Normalize one category payload into its canonical shape.

    Args:
        category: Canonical category name or any stored key spelling
        raw_payload: Payload as stored (mapping, array, or None)
        village_names: Ordered village names for positional arrays

    Returns:
        Canonical structure for the category; never raises on bad content

    Example:
        >>> normalize('MigrationEmployment', [{'seasonalMigrantsMale': '5'}], ['V1'])
        {'V1': {'seasonalMigrantsMale': 5, ...}}
    """
    return _NORMALIZERS[canonical_category(category)](raw_payload, village_names)


# =============================================================================
# RECORD-LEVEL NORMALIZATION
# =============================================================================

@dataclass
class NormalizedSubmission:
    """
    A SurveyRecord with every category resolved to its canonical shape.

    Absent categories are present as empty structures (zero finances),
    and listed in neither `present` nor anywhere else.
    """
    record: SurveyRecord
    village_names: List[str]
    demographics: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    education: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    health: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    migration: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    roads: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    finances: Dict[str, int] = field(default_factory=dict)
    land_use: Dict[str, Any] = field(default_factory=dict)
    water: Dict[str, Any] = field(default_factory=dict)
    present: FrozenSet[str] = frozenset()

    def has(self, category: str) -> bool:
        return canonical_category(category) in self.present


def normalize_record(record: SurveyRecord) -> NormalizedSubmission:
    """Resolve every category of a record once, pairing arrays with its Demographics villages."""
    form_data = record.form_data
    village_names = village_names_for(form_data)

    payloads = {category: resolve_category(form_data, category) for category in CATEGORY_KEYS}
    normalized = {
        category: normalize(category, payload, village_names)
        for category, payload in payloads.items()
    }

    return NormalizedSubmission(
        record=record,
        village_names=village_names,
        demographics=normalized[DEMOGRAPHICS],
        education=normalized[EDUCATION],
        health=normalized[HEALTH_CHILDCARE],
        migration=normalized[MIGRATION_EMPLOYMENT],
        roads=normalized[ROAD_INFRASTRUCTURE],
        finances=normalized[PANCHAYAT_FINANCES],
        land_use=normalized[LAND_USE_MAPPING],
        water=normalized[WATER_RESOURCES],
        present=frozenset(c for c, payload in payloads.items() if payload is not None),
    )


# =============================================================================
# VILLAGE FILTERS
# =============================================================================

def filter_water_bodies(water_bodies: Sequence[Mapping[str, Any]], village: str) -> List[Mapping[str, Any]]:
    """Water bodies whose `locations` (or `location`) include the village, case-insensitively."""
    matched = []
    for body in water_bodies:
        locations = body.get('locations')
        if not isinstance(locations, (list, tuple)):
            locations = [body.get('location')]
        if any(village_matches(loc, village) for loc in locations):
            matched.append(body)
    return matched


def filter_irrigation_structures(structures: Sequence[Mapping[str, Any]], village: str) -> List[Mapping[str, Any]]:
    return [s for s in structures if village_matches(s.get('location'), village)]
