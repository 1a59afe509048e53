"""Global date-range and dealer group/region filters.

Filters run before any metric engine.  The date filter is fail-open: records
without a parsable date always pass.  Group and region come from the dealer
master when a record's dealer name or code matches (case-insensitively),
else from the record's own embedded fields.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, TypeVar

from dealer_mcp.analytics.timewindow import add_months, month_start
from dealer_mcp.records import (
    Dataset,
    as_master_dealers,
    embedded_group,
    embedded_region,
    registration_date,
    sales_date,
    transaction_date,
)

T = TypeVar("T")

ALL_TIME = "All Time"
LAST_30_DAYS = "Last 30 Days"
THIS_MONTH = "This Month"
LAST_QUARTER = "Last Quarter"
YEAR_TO_DATE = "Year to Date"

DATE_PRESETS: tuple[str, ...] = (LAST_30_DAYS, THIS_MONTH, LAST_QUARTER, YEAR_TO_DATE, ALL_TIME)

ALL = "All"
GROUP_SENTINELS = frozenset({"", ALL, "All Groups"})
REGION_SENTINELS = frozenset({"", ALL, "All Regions"})


def date_range_for(preset: str, reference: date) -> tuple[date | None, date]:
    """Inclusive ``(start, end)`` for a named preset; ``start`` is None for all time."""
    if preset == ALL_TIME:
        return None, reference
    if preset == LAST_30_DAYS:
        return reference - timedelta(days=30), reference
    if preset == THIS_MONTH:
        return month_start(reference), reference
    if preset == LAST_QUARTER:
        return add_months(reference, -3), reference
    if preset == YEAR_TO_DATE:
        return date(reference.year, 1, 1), reference
    raise ValueError(f"Unknown date preset {preset!r}; expected one of {', '.join(DATE_PRESETS)}")


class DealerDirectory:
    """Case-insensitive dealer identity -> (group, region) lookup."""

    def __init__(self, entries: dict[str, tuple[str, str]] | None = None) -> None:
        self._entries = dict(entries or {})

    @classmethod
    def from_records(cls, rows: Iterable[Any] | None) -> DealerDirectory:
        entries: dict[str, tuple[str, str]] = {}
        for dealer in as_master_dealers(rows):
            for identity in dealer.identities():
                entries.setdefault(identity.strip().lower(), (dealer.group, dealer.region))
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, *identities: str) -> tuple[str, str] | None:
        for identity in identities:
            if identity:
                match = self._entries.get(identity.strip().lower())
                if match is not None:
                    return match
        return None

    def groups(self) -> set[str]:
        return {group for group, _ in self._entries.values() if group}

    def regions(self) -> set[str]:
        return {region for _, region in self._entries.values() if region}


@dataclass(frozen=True)
class FilterSelection:
    date_preset: str = ALL_TIME
    group: str = ALL
    region: str = ALL

    def as_dict(self) -> dict[str, str]:
        return {"date_preset": self.date_preset, "group": self.group, "region": self.region}


def _resolve(record: Any, directory: DealerDirectory) -> tuple[str, str]:
    master = directory.lookup(record.dealer_name, record.dealer_code)
    group = master[0] if master and master[0] else embedded_group(record)
    region = master[1] if master and master[1] else embedded_region(record)
    return group, region


def _filter(
    records: Iterable[T],
    date_fn: Callable[[T], date | None],
    start: date | None,
    end: date,
    selection: FilterSelection,
    directory: DealerDirectory,
) -> tuple[T, ...]:
    check_group = selection.group not in GROUP_SENTINELS
    check_region = selection.region not in REGION_SENTINELS
    kept: list[T] = []
    for record in records:
        if start is not None:
            when = date_fn(record)
            if when is not None and not start <= when <= end:
                continue
        if check_group or check_region:
            group, region = _resolve(record, directory)
            if check_group and group != selection.group:
                continue
            if check_region and region != selection.region:
                continue
        kept.append(record)
    return tuple(kept)


def apply_global_filters(
    dataset: Dataset,
    selection: FilterSelection,
    reference: date,
    directory: DealerDirectory | None = None,
) -> Dataset:
    """Filter every base record set by date preset, then group and region."""
    directory = directory or DealerDirectory()
    start, end = date_range_for(selection.date_preset, reference)
    return Dataset(
        sales=_filter(dataset.sales, sales_date, start, end, selection, directory),
        details=_filter(dataset.details, transaction_date, start, end, selection, directory),
        prospects=_filter(dataset.prospects, registration_date, start, end, selection, directory),
    )


def filter_options(dataset: Dataset, directory: DealerDirectory | None = None) -> dict[str, Any]:
    """Distinct sorted group and region values for filter controls."""
    directory = directory or DealerDirectory()
    groups = directory.groups()
    regions = directory.regions()
    for record in (*dataset.sales, *dataset.details, *dataset.prospects):
        group, region = _resolve(record, directory)
        if group:
            groups.add(group)
        if region:
            regions.add(region)
    return {
        "date_presets": list(DATE_PRESETS),
        "groups": sorted(groups),
        "regions": sorted(regions),
    }

