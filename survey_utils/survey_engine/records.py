# survey_utils/survey_engine/records.py
"""
Survey Record model

One SurveyRecord per GP per financial year, as stored in the
dataCollections document store. Records are read-only inputs to the
engine: every other module derives new structures from them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    """Coerce an identity field to a stripped string ('' when missing)."""
    if value is None:
        return ''
    return str(value).strip()


@dataclass(frozen=True)
class SurveyRecord:
    """
    A single survey submission.

    Attributes:
        gp_name: Gram Panchayat name
        district, block: Geography above the GP
        financial_year: Label formatted "YYYY-YYYY"
        submitted_at: ISO timestamp of the first submission
        last_updated_at: ISO timestamp of the latest write (may be empty)
        user_id: Submitting user
        form_data: Raw category payloads keyed by stored category key
        record_id: Document id in the store, when known
    """
    gp_name: str
    district: str
    block: str
    financial_year: str
    submitted_at: str = ''
    last_updated_at: str = ''
    user_id: str = ''
    form_data: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)
    record_id: str = ''

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], record_id: str = None) -> 'SurveyRecord':
        """
        Build a record from a raw document. Never raises on bad content:
        missing strings become '' and a non-mapping formData becomes {}.
        """
        if not isinstance(raw, Mapping):
            logger.warning(f"Skipping malformed survey document of type {type(raw).__name__}")
            raw = {}

        form_data = raw.get('formData')
        if not isinstance(form_data, Mapping):
            if form_data is not None:
                logger.warning(
                    f"formData for {raw.get('gpName')!r} is {type(form_data).__name__}, treating as empty"
                )
            form_data = {}

        return cls(
            gp_name=_as_text(raw.get('gpName')),
            district=_as_text(raw.get('district')),
            block=_as_text(raw.get('block')),
            financial_year=_as_text(raw.get('financialYear')),
            submitted_at=_as_text(raw.get('submittedAt')),
            last_updated_at=_as_text(raw.get('lastUpdatedAt')),
            user_id=_as_text(raw.get('userId')),
            form_data=dict(form_data),
            record_id=_as_text(record_id if record_id is not None else raw.get('id')),
        )

    @property
    def identity_key(self) -> Tuple[str, str]:
        """(userId or gpName, financialYear)"""
        return (self.user_id or self.gp_name, self.financial_year)

    @property
    def last_touched(self) -> str:
        """Most recent write: lastUpdatedAt when present, else submittedAt."""
        return self.last_updated_at or self.submitted_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            'gpName': self.gp_name,
            'district': self.district,
            'block': self.block,
            'financialYear': self.financial_year,
            'submittedAt': self.submitted_at,
            'lastUpdatedAt': self.last_updated_at,
            'userId': self.user_id,
            'formData': self.form_data,
        }


def coerce_records(records: Optional[Iterable[Any]]) -> List[SurveyRecord]:
    """Accept SurveyRecord instances or raw dicts and return SurveyRecords."""
    if not records:
        return []
    return [
        r if isinstance(r, SurveyRecord) else SurveyRecord.from_dict(r)
        for r in records
    ]
