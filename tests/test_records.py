"""Tests for typed record construction and the named field accessors."""

from __future__ import annotations

from datetime import date

from factories import detail_row, prospect_row, sales_row

from dealer_mcp.records import (
    Dataset,
    DetailSalesRecord,
    MasterDealerRecord,
    SalesOverviewRecord,
    as_detail_sales,
    dealer_burden,
    dealer_label,
    discount_rate,
    effective_net_sales,
    sales_date,
    transaction_date,
)


class TestFromRow:
    def test_detail_row_is_typed(self):
        record = DetailSalesRecord.from_row(detail_row())
        assert record.salesman == "Budi"
        assert record.list_price == 20_000_000
        assert record.billing_date == date(2024, 3, 10)
        assert record.finance_company == "FIF"

    def test_alias_fallback_order(self):
        record = SalesOverviewRecord.from_row(sales_row(**{"Dealer/SO": "", "Nama Dealer": "Alt"}))
        assert record.dealer_name == "Alt"

    def test_unknown_columns_ignored(self):
        record = DetailSalesRecord.from_row(detail_row(Extra="ignored"))
        assert not hasattr(record, "Extra")

    def test_missing_optional_numbers_stay_none(self):
        row = detail_row()
        del row["Net Sales"]
        del row["Beban Dealer"]
        record = DetailSalesRecord.from_row(row)
        assert record.net_sales is None
        assert record.burden_dealer is None

    def test_master_dealer_identities(self):
        dealer = MasterDealerRecord.from_row(
            {"Nama Dealer": "Dealer Satu", "Kode Dealer": "D001", "Kode AHM": "A-9", "Region": "West"}
        )
        assert dealer.identities() == ("Dealer Satu", "D001", "A-9")
        assert dealer.region == "West"

    def test_coercion_skips_non_mappings(self):
        assert len(as_detail_sales([detail_row(), "junk", None])) == 1
        assert as_detail_sales(None) == []


class TestAccessors:
    def test_effective_net_sales_prefers_export(self):
        assert effective_net_sales(DetailSalesRecord(list_price=100, total_discount=10, net_sales=95)) == 95

    def test_effective_net_sales_fallback(self):
        assert effective_net_sales(DetailSalesRecord(list_price=100, total_discount=10)) == 90

    def test_dealer_burden_fallback_to_discount(self):
        assert dealer_burden(DetailSalesRecord(total_discount=50)) == 50
        assert dealer_burden(DetailSalesRecord(total_discount=50, burden_dealer=0.0)) == 0.0

    def test_discount_rate_zero_price(self):
        assert discount_rate(DetailSalesRecord(total_discount=50)) == 0.0

    def test_dealer_label_fallbacks(self):
        assert dealer_label(DetailSalesRecord(dealer_code="D9")) == "D9"
        assert dealer_label(DetailSalesRecord()) == "Unknown"

    def test_date_fallbacks(self):
        assert transaction_date(DetailSalesRecord(spk_date=date(2024, 3, 1))) == date(2024, 3, 1)
        assert sales_date(SalesOverviewRecord(ssu_date=date(2024, 2, 2))) == date(2024, 2, 2)


class TestDataset:
    def test_from_rows_and_counts(self):
        dataset = Dataset.from_rows(
            sales=[sales_row()],
            details=[detail_row(), detail_row()],
            prospects=[prospect_row()],
        )
        assert dataset.counts() == {"sales": 1, "details": 2, "prospects": 1}

    def test_dates_skip_undated(self):
        dataset = Dataset.from_rows(
            sales=[sales_row(**{"Tgl Mohon": None})],
            details=[detail_row(**{"Tanggal Billing": "2024-03-20"})],
            prospects=[prospect_row()],
        )
        assert sorted(dataset.dates()) == [date(2024, 3, 1), date(2024, 3, 20)]
