"""Classification predicates over free-text statuses and fixed thresholds.

Status matching is a case-insensitive substring check against the configured
:class:`~dealer_mcp.config.StatusVocabulary`.  Keep all such checks here so a
change in upstream wording touches one module.
"""

from __future__ import annotations

from dealer_mcp.config import DEFAULT_VOCABULARY, StatusVocabulary
from dealer_mcp.constants import (
    EFFICIENT,
    EFFICIENT_BURDEN_LIMIT,
    HIGH_RISK_DISCOUNT_RATE,
    HOT_PROSPECT_DAYS,
    OVER_DISCOUNT,
    WARM_PROSPECT_DAYS,
    WATCH,
    WATCH_BURDEN_LIMIT,
)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    lowered = (text or "").lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def is_converted(status: str, vocabulary: StatusVocabulary = DEFAULT_VOCABULARY) -> bool:
    """A prospect is converted iff its status mentions DEAL or SPK."""
    return _contains_any(status, vocabulary.converted)


def is_delivered(status: str, vocabulary: StatusVocabulary = DEFAULT_VOCABULARY) -> bool:
    return _contains_any(status, vocabulary.delivered)


def is_bpkb_done(status: str, vocabulary: StatusVocabulary = DEFAULT_VOCABULARY) -> bool:
    return _contains_any(status, vocabulary.bpkb_done)


def is_credit(method: str, vocabulary: StatusVocabulary = DEFAULT_VOCABULARY) -> bool:
    return _contains_any(method, vocabulary.credit)


def gender_side(value: str, vocabulary: StatusVocabulary = DEFAULT_VOCABULARY) -> str | None:
    """Map a gender label to ``"male"``/``"female"``; exact match, case-insensitive."""
    lowered = (value or "").strip().lower()
    if lowered in {term.lower() for term in vocabulary.male}:
        return "male"
    if lowered in {term.lower() for term in vocabulary.female}:
        return "female"
    return None


def is_high_risk(discount: float, list_price: float) -> bool:
    """Strictly above the 12% discount-rate threshold."""
    if list_price <= 0:
        return False
    return discount / list_price > HIGH_RISK_DISCOUNT_RATE


def efficiency_label(avg_burden: float) -> str:
    if avg_burden < EFFICIENT_BURDEN_LIMIT:
        return EFFICIENT
    if avg_burden <= WATCH_BURDEN_LIMIT:
        return WATCH
    return OVER_DISCOUNT


def prospect_ratio_band(ratio: float | None) -> str:
    if ratio is None:
        return "gray"
    if ratio <= 3:
        return "red"
    if ratio <= 4:
        return "orange"
    if ratio <= 5:
        return "yellow"
    return "green"


def aging_bucket(days_since_registration: int) -> str:
    if days_since_registration < HOT_PROSPECT_DAYS:
        return "Hot"
    if days_since_registration <= WARM_PROSPECT_DAYS:
        return "Warm"
    return "Cold"
