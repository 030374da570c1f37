"""
Dataclasses mirroring database tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

# Placeholder summaries written by the complaint extraction job when it fails.
SENTINEL_SUMMARIES = ("No complaint found", "ERROR", "Failed to fetch pleadings.")

REACTION_VALUES = (1, -1)


def has_usable_summary(summary: Optional[str]) -> bool:
    """Return False for missing, blank, or sentinel complaint summaries."""
    if summary is None or not summary.strip():
        return False
    return summary not in SENTINEL_SUMMARIES


@dataclass(slots=True)
class ConsultantAssessment:
    case_viability: Optional[str]
    viability_reasoning: Optional[str]


@dataclass(slots=True)
class CaseRecord:
    id: str
    case_name: Optional[str] = None
    docket_number: Optional[str] = None
    status: Optional[str] = None
    nature_of_suit: Optional[str] = None
    cause_of_action: Optional[str] = None
    entity: Optional[str] = None
    source: Optional[str] = None
    court_name: Optional[str] = None
    judge: Optional[str] = None
    complaint_summary: Optional[str] = None
    filed: Optional[date] = None
    blaw_url: Optional[str] = None
    consultant: Optional[ConsultantAssessment] = None


@dataclass(slots=True)
class UserPreferenceRecord:
    user_id: str
    feature_key: str
    feature_value: str
    weight: float
