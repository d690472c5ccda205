import logging
from dataclasses import dataclass
from typing import Any, Mapping
from .script import QUALIFICATION_FIELDS, UNKNOWN

logger = logging.getLogger(__name__)

URGENCY_KEYWORDS = ("asap", "soon", "immediately", "next month", "30 day", "2 week", "urgent")
WEAK_BUDGET_PHRASES = (UNKNOWN, "not sure")

@dataclass(frozen=True)
class ScoreBreakdown:
    filled_count: int
    is_urgent: bool
    has_strong_budget: bool

    @property
    def tier(self) -> str:
        if self.filled_count >= 5 and self.is_urgent and self.has_strong_budget:
            return "hot"
        if self.filled_count >= 4:
            return "warm"
        return "cold"

def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()

def is_answered(value: Any) -> bool:
    """Set to something other than blank or the "unknown" sentinel."""
    text = _text(value)
    return bool(text) and text.lower() != UNKNOWN

def score_breakdown(fields: Mapping[str, Any]) -> ScoreBreakdown:
    filled = sum(1 for f in QUALIFICATION_FIELDS if is_answered(fields.get(f)))
    timeline = _text(fields.get("timeline")).lower()
    budget = _text(fields.get("budget")).lower()
    return ScoreBreakdown(
        filled_count=filled,
        is_urgent=any(k in timeline for k in URGENCY_KEYWORDS),
        has_strong_budget=bool(budget) and not any(p in budget for p in WEAK_BUDGET_PHRASES),
    )

def score_lead(fields: Mapping[str, Any]) -> str:
    """hot / warm / cold from the seven qualification fields."""
    breakdown = score_breakdown(fields)
    logger.debug("Lead scoring: %s -> %s", breakdown, breakdown.tier)
    return breakdown.tier
