"""Typed record models for the three spreadsheet exports plus the dealer master.

Spreadsheet rows arrive as flat mappings keyed by the export's column headers.
Each record kind declares, once, which columns feed each field and in which
fallback order (the ``*_FIELDS`` alias tables).  Analytics code reads typed
attributes and the named accessors at the bottom of this module, never raw
column names.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any, TypeVar

from dealer_mcp.constants import UNKNOWN
from dealer_mcp.normalization import has_value, to_date, to_number, to_text

SALES_OVERVIEW_FIELDS: dict[str, tuple[str, ...]] = {
    "dealer_name": ("Dealer/SO", "Nama Dealer"),
    "dealer_code": ("Kode Dealer",),
    "dealer_group": ("Grup Dealer",),
    "area": ("Area Dealer",),
    "finance_company": ("Fincoy",),
    "motor_type": ("Tipe ATPM",),
    "down_payment": ("DP Aktual",),
    "tenor": ("Tenor3",),
    "installment": ("Cicilan",),
    "gender": ("Gender5", "Gender"),
    "occupation": ("Pekerjaan4", "Pekerjaan"),
    "consumer_type": ("Konsumen",),
    "transaction": ("Transaksi",),
    "application_date": ("Tgl Mohon",),
    "ssu_date": ("Tanggal SSU",),
}

DETAIL_SALES_FIELDS: dict[str, tuple[str, ...]] = {
    "area": ("Area Dealer",),
    "dealer_code": ("Kode Dealer",),
    "dealer_name": ("Nama Dealer",),
    "dealer_group": ("Grup Dealer",),
    "salesman": ("Nama Salesman",),
    "salesman_status": ("Status Salesman",),
    "customer_type": ("Jenis Konsumen",),
    "purchase_method": ("Metode Pembelian",),
    "finance_company": ("Nama Fincoy/Perusahaan MOP", "Fincoy"),
    "down_payment": ("DP",),
    "tenor": ("Tenor",),
    "installment": ("Angsuran",),
    "motor_type": ("Tipe Motor",),
    "list_price": ("Harga OFR",),
    "total_discount": ("Diskon Total",),
    "net_sales": ("Net Sales",),
    "burden_dealer": ("Beban Dealer",),
    "burden_main_dealer": ("Beban MD",),
    "burden_brand": ("Beban AHM",),
    "burden_finance": ("Beban Fincoy",),
    "delivery_status": ("Status Delivery",),
    "bpkb_status": ("Status BPKB",),
    "prospect_date": ("Tanggal Prospect",),
    "spk_date": ("Tanggal SPK",),
    "billing_date": ("Tanggal Billing",),
    "handover_date": ("Tgl BSTK", "Tanggal BSTK"),
}

PROSPECT_FIELDS: dict[str, tuple[str, ...]] = {
    "region": ("Region",),
    "dealer_code": ("Kode Dealer",),
    "dealer_name": ("Nama Dealer",),
    "salesman": ("Salesman Name",),
    "employee_status": ("Employee Status",),
    "registration_date": ("RegistrationDate",),
    "follow_up_date": ("FollowUpDate",),
    "gender": ("Gender",),
    "occupation": ("Occupation",),
    "source": ("Source Prospect",),
    "first_status": ("First Prospect Status",),
    "status": ("Prospect Status",),
    "reason": ("Reason",),
    "follow_up_status": ("FollowUp Status",),
}

MASTER_DEALER_FIELDS: dict[str, tuple[str, ...]] = {
    "name": ("Nama Dealer", "Dealer Name", "Dealer", "Dealer/SO"),
    "code": ("Kode Dealer", "Dealer Code"),
    "group": ("Grup Dealer", "Group Dealer", "Group"),
    "region": ("Daerah", "Region", "Area Dealer", "Area"),
}

MASTER_DEALER_ALT_CODE_COLUMNS: tuple[str, ...] = (
    "Kode AHM",
    "Kode MD",
    "Kode Dealer AHM",
    "Kode Dealer MD",
    "Alt Code",
)


def pick(row: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    """Return the first non-blank value among ``aliases``, else ``None``."""
    for alias in aliases:
        value = row.get(alias)
        if has_value(value):
            return value
    return None


def _text(row: Mapping[str, Any], table: dict[str, tuple[str, ...]], name: str) -> str:
    return to_text(pick(row, table[name]))


def _number(row: Mapping[str, Any], table: dict[str, tuple[str, ...]], name: str) -> float:
    return to_number(pick(row, table[name]))


def _optional_number(
    row: Mapping[str, Any], table: dict[str, tuple[str, ...]], name: str
) -> float | None:
    value = pick(row, table[name])
    return None if value is None else to_number(value)


def _date(row: Mapping[str, Any], table: dict[str, tuple[str, ...]], name: str) -> date | None:
    return to_date(pick(row, table[name]))


# ── Record kinds ────────────────────────────────────────────────────


@dataclass(frozen=True)
class SalesOverviewRecord:
    """One unit-sale application from the Sales Overview export."""

    dealer_name: str = ""
    dealer_code: str = ""
    dealer_group: str = ""
    area: str = ""
    finance_company: str = ""
    motor_type: str = ""
    down_payment: float = 0.0
    tenor: float = 0.0
    installment: float = 0.0
    gender: str = ""
    occupation: str = ""
    consumer_type: str = ""
    transaction: str = ""
    application_date: date | None = None
    ssu_date: date | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> SalesOverviewRecord:
        t = SALES_OVERVIEW_FIELDS
        return cls(
            dealer_name=_text(row, t, "dealer_name"),
            dealer_code=_text(row, t, "dealer_code"),
            dealer_group=_text(row, t, "dealer_group"),
            area=_text(row, t, "area"),
            finance_company=_text(row, t, "finance_company"),
            motor_type=_text(row, t, "motor_type"),
            down_payment=_number(row, t, "down_payment"),
            tenor=_number(row, t, "tenor"),
            installment=_number(row, t, "installment"),
            gender=_text(row, t, "gender"),
            occupation=_text(row, t, "occupation"),
            consumer_type=_text(row, t, "consumer_type"),
            transaction=_text(row, t, "transaction"),
            application_date=_date(row, t, "application_date"),
            ssu_date=_date(row, t, "ssu_date"),
        )


@dataclass(frozen=True)
class DetailSalesRecord:
    """One billed transaction from the Detail Salespeople export."""

    area: str = ""
    dealer_code: str = ""
    dealer_name: str = ""
    dealer_group: str = ""
    salesman: str = ""
    salesman_status: str = ""
    customer_type: str = ""
    purchase_method: str = ""
    finance_company: str = ""
    down_payment: float = 0.0
    tenor: float = 0.0
    installment: float = 0.0
    motor_type: str = ""
    list_price: float = 0.0
    total_discount: float = 0.0
    net_sales: float | None = None
    burden_dealer: float | None = None
    burden_main_dealer: float = 0.0
    burden_brand: float = 0.0
    burden_finance: float = 0.0
    delivery_status: str = ""
    bpkb_status: str = ""
    prospect_date: date | None = None
    spk_date: date | None = None
    billing_date: date | None = None
    handover_date: date | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> DetailSalesRecord:
        t = DETAIL_SALES_FIELDS
        return cls(
            area=_text(row, t, "area"),
            dealer_code=_text(row, t, "dealer_code"),
            dealer_name=_text(row, t, "dealer_name"),
            dealer_group=_text(row, t, "dealer_group"),
            salesman=_text(row, t, "salesman"),
            salesman_status=_text(row, t, "salesman_status"),
            customer_type=_text(row, t, "customer_type"),
            purchase_method=_text(row, t, "purchase_method"),
            finance_company=_text(row, t, "finance_company"),
            down_payment=_number(row, t, "down_payment"),
            tenor=_number(row, t, "tenor"),
            installment=_number(row, t, "installment"),
            motor_type=_text(row, t, "motor_type"),
            list_price=_number(row, t, "list_price"),
            total_discount=_number(row, t, "total_discount"),
            net_sales=_optional_number(row, t, "net_sales"),
            burden_dealer=_optional_number(row, t, "burden_dealer"),
            burden_main_dealer=_number(row, t, "burden_main_dealer"),
            burden_brand=_number(row, t, "burden_brand"),
            burden_finance=_number(row, t, "burden_finance"),
            delivery_status=_text(row, t, "delivery_status"),
            bpkb_status=_text(row, t, "bpkb_status"),
            prospect_date=_date(row, t, "prospect_date"),
            spk_date=_date(row, t, "spk_date"),
            billing_date=_date(row, t, "billing_date"),
            handover_date=_date(row, t, "handover_date"),
        )


@dataclass(frozen=True)
class ProspectRecord:
    """One lead from the Prospect Acquisition export."""

    region: str = ""
    dealer_code: str = ""
    dealer_name: str = ""
    salesman: str = ""
    employee_status: str = ""
    registration_date: date | None = None
    follow_up_date: date | None = None
    gender: str = ""
    occupation: str = ""
    source: str = ""
    first_status: str = ""
    status: str = ""
    reason: str = ""
    follow_up_status: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ProspectRecord:
        t = PROSPECT_FIELDS
        return cls(
            region=_text(row, t, "region"),
            dealer_code=_text(row, t, "dealer_code"),
            dealer_name=_text(row, t, "dealer_name"),
            salesman=_text(row, t, "salesman"),
            employee_status=_text(row, t, "employee_status"),
            registration_date=_date(row, t, "registration_date"),
            follow_up_date=_date(row, t, "follow_up_date"),
            gender=_text(row, t, "gender"),
            occupation=_text(row, t, "occupation"),
            source=_text(row, t, "source"),
            first_status=_text(row, t, "first_status"),
            status=_text(row, t, "status"),
            reason=_text(row, t, "reason"),
            follow_up_status=_text(row, t, "follow_up_status"),
        )


@dataclass(frozen=True)
class MasterDealerRecord:
    """Dealer identity mapped to its group and region."""

    name: str = ""
    code: str = ""
    alternate_codes: tuple[str, ...] = ()
    group: str = ""
    region: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> MasterDealerRecord:
        t = MASTER_DEALER_FIELDS
        alternates = tuple(
            to_text(row.get(column))
            for column in MASTER_DEALER_ALT_CODE_COLUMNS
            if has_value(row.get(column))
        )
        return cls(
            name=_text(row, t, "name"),
            code=_text(row, t, "code"),
            alternate_codes=alternates,
            group=_text(row, t, "group"),
            region=_text(row, t, "region"),
        )

    def identities(self) -> tuple[str, ...]:
        return tuple(v for v in (self.name, self.code, *self.alternate_codes) if v)


# ── Coercion from raw rows ──────────────────────────────────────────

_R = TypeVar("_R")


def _coerce(rows: Iterable[Any] | None, record_type: type[_R]) -> list[_R]:
    if not rows:
        return []
    result: list[_R] = []
    for row in rows:
        if isinstance(row, record_type):
            result.append(row)
        elif isinstance(row, Mapping):
            result.append(record_type.from_row(row))  # type: ignore[attr-defined]
    return result


def as_sales_overview(rows: Iterable[Any] | None) -> list[SalesOverviewRecord]:
    return _coerce(rows, SalesOverviewRecord)


def as_detail_sales(rows: Iterable[Any] | None) -> list[DetailSalesRecord]:
    return _coerce(rows, DetailSalesRecord)


def as_prospects(rows: Iterable[Any] | None) -> list[ProspectRecord]:
    return _coerce(rows, ProspectRecord)


def as_master_dealers(rows: Iterable[Any] | None) -> list[MasterDealerRecord]:
    return _coerce(rows, MasterDealerRecord)


# ── Named accessors ─────────────────────────────────────────────────


def dealer_label(record: SalesOverviewRecord | DetailSalesRecord | ProspectRecord) -> str:
    """Dealer name, then dealer code, then ``Unknown``."""
    return record.dealer_name or record.dealer_code or UNKNOWN


def sales_date(record: SalesOverviewRecord) -> date | None:
    """Application date, falling back to the SSU (registration) date."""
    return record.application_date or record.ssu_date


def transaction_date(record: DetailSalesRecord) -> date | None:
    """Billing date, falling back to the SPK date."""
    return record.billing_date or record.spk_date


def billing_date(record: DetailSalesRecord) -> date | None:
    return record.billing_date


def registration_date(record: ProspectRecord) -> date | None:
    return record.registration_date


def effective_net_sales(record: DetailSalesRecord) -> float:
    """``Net Sales`` when the export carries it, else list price minus discount."""
    if record.net_sales is not None:
        return record.net_sales
    return record.list_price - record.total_discount


def dealer_burden(record: DetailSalesRecord) -> float:
    """``Beban Dealer`` when present, else the total discount."""
    if record.burden_dealer is not None:
        return record.burden_dealer
    return record.total_discount


def discount_rate(record: DetailSalesRecord) -> float:
    if record.list_price <= 0:
        return 0.0
    return record.total_discount / record.list_price


def embedded_region(record: SalesOverviewRecord | DetailSalesRecord | ProspectRecord) -> str:
    if isinstance(record, ProspectRecord):
        return record.region
    return record.area


def embedded_group(record: SalesOverviewRecord | DetailSalesRecord | ProspectRecord) -> str:
    if isinstance(record, ProspectRecord):
        return ""
    return record.dealer_group


# ── Dataset ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Dataset:
    """The three base record sets an analytics call works on."""

    sales: tuple[SalesOverviewRecord, ...] = ()
    details: tuple[DetailSalesRecord, ...] = ()
    prospects: tuple[ProspectRecord, ...] = ()

    @classmethod
    def from_rows(
        cls,
        sales: Iterable[Any] | None = None,
        details: Iterable[Any] | None = None,
        prospects: Iterable[Any] | None = None,
    ) -> Dataset:
        return cls(
            sales=tuple(as_sales_overview(sales)),
            details=tuple(as_detail_sales(details)),
            prospects=tuple(as_prospects(prospects)),
        )

    def dates(self) -> list[date]:
        """Every dated record's primary date, for the ``data_max`` reference policy."""
        observed: list[date | None] = [sales_date(r) for r in self.sales]
        observed.extend(transaction_date(r) for r in self.details)
        observed.extend(r.registration_date for r in self.prospects)
        return [d for d in observed if d is not None]

    def counts(self) -> dict[str, int]:
        return {
            "sales": len(self.sales),
            "details": len(self.details),
            "prospects": len(self.prospects),
        }
