"""Customer demographics over unit-sale applications."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from dealer_mcp.analytics.classification import gender_side
from dealer_mcp.analytics.grouping import counts_as_series
from dealer_mcp.config import DEFAULT_VOCABULARY, StatusVocabulary
from dealer_mcp.records import as_sales_overview

OCCUPATION_LIMIT = 10


def build_demographics(
    records: Iterable[Any] | None,
    *,
    vocabulary: StatusVocabulary = DEFAULT_VOCABULARY,
) -> dict[str, Any]:
    rows = as_sales_overview(records)
    genders = counts_as_series(rows, lambda r: r.gender)
    occupations = counts_as_series(rows, lambda r: r.occupation)

    male = female = 0
    for entry in genders:
        side = gender_side(entry["name"], vocabulary)
        if side == "male":
            male += entry["value"]
        elif side == "female":
            female += entry["value"]

    return {
        "total_customers": len(rows),
        "gender_split": genders,
        "male_count": male,
        "female_count": female,
        "male_percentage": round(male / (male + female) * 100) if rows and (male + female) else 0,
        "top_occupation": occupations[0]["name"] if occupations else "N/A",
        "occupations": occupations[:OCCUPATION_LIMIT],
        "customer_types": counts_as_series(rows, lambda r: r.consumer_type),
    }
