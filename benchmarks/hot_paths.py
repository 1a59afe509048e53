#!/usr/bin/env python3
"""Performance benchmark for DealerDash ingestion and report hot paths."""

from __future__ import annotations

import argparse
import os
import tempfile
import time
from datetime import date, timedelta

from dealer_mcp.analytics import (
    build_burden_heat_table,
    build_finance_metrics,
    build_mtd_comparison,
    build_mtd_report,
    build_smart_alerts,
)
from dealer_mcp.constants import DETAIL_SALESPEOPLE
from dealer_mcp.data.repository import clear_cache, load_dataset, set_store
from dealer_mcp.data.store import SqliteRecordStore
from dealer_mcp.tools.reports import get_mtd_report_impl

DEALERS = ["Dealer Satu", "Dealer Dua", "Dealer Tiga", "Dealer Empat", "Dealer Lima"]
SALESMEN = [f"Sales {i:02d}" for i in range(40)]
MOTORS = ["BeAT", "Vario 125", "Scoopy", "PCX 160", "CBR150R"]
FINCOYS = ["FIF", "Adira", "WOM", "", "MUF"]

REFERENCE = date(2024, 3, 15)


def make_detail(i: int) -> dict:
    billed = REFERENCE - timedelta(days=i % 75)
    price = 18_000_000 + (i % 40) * 250_000
    discount = 600_000 + (i % 30) * 90_000
    return {
        "Nama Dealer": DEALERS[i % 5],
        "Kode Dealer": f"D{i % 5:03d}",
        "Grup Dealer": "Group A" if i % 2 else "Group B",
        "Area Dealer": "Jakarta" if i % 3 else "Bandung",
        "Nama Salesman": SALESMEN[i % len(SALESMEN)],
        "No Prospect": f"P-{i:07d}",
        "Metode Pembelian": "Cash" if i % 7 == 0 else "Kredit",
        "Nama Fincoy/Perusahaan MOP": FINCOYS[i % 5],
        "DP": 1_500_000 + (i % 10) * 100_000,
        "Tenor": 12 + (i % 4) * 6,
        "Angsuran": 700_000 + (i % 20) * 15_000,
        "Tipe Motor": MOTORS[i % 5],
        "Harga OFR": price,
        "Diskon Total": discount,
        "Net Sales": price - discount,
        "Beban Dealer": discount // 3,
        "Beban MD": discount // 3,
        "Beban AHM": discount // 6,
        "Beban Fincoy": discount // 6,
        "Status Delivery": "Terkirim" if i % 9 else "Belum Kirim",
        "Status BPKB": "Sudah Jadi" if i % 4 else "Proses",
        "Tanggal Billing": billed.isoformat(),
        "Tgl BSTK": (billed + timedelta(days=2)).isoformat(),
    }


def _make_store(records: int) -> SqliteRecordStore:
    store = SqliteRecordStore(":memory:")
    store.replace(DETAIL_SALESPEOPLE, [make_detail(i) for i in range(records)])
    return store


# ── Benchmarks ────────────────────────────────────────────────────────


def bench_disk_replace(records: int) -> tuple[float, float]:
    rows = [make_detail(i) for i in range(records)]
    with tempfile.NamedTemporaryFile(prefix="dealerdash-bench-", suffix=".db", delete=False) as tmp:
        db_path = tmp.name

    try:
        store = SqliteRecordStore(db_path)
        start = time.perf_counter()
        store.replace(DETAIL_SALESPEOPLE, rows)
        elapsed = time.perf_counter() - start
        store.close()
    finally:
        for suffix in ("", "-wal", "-shm"):
            try:
                os.remove(db_path + suffix)
            except FileNotFoundError:
                pass

    return elapsed, records / max(elapsed, 1e-9)


def bench_dataset_load(records: int) -> dict[str, float]:
    """Cold parse of stored payloads vs a memoized reload at the same revision."""
    store = _make_store(records)
    clear_cache()

    start = time.perf_counter()
    load_dataset(store)
    cold = time.perf_counter() - start

    start = time.perf_counter()
    load_dataset(store)
    warm = time.perf_counter() - start

    return {"cold": cold, "warm": warm, "speedup": cold / max(warm, 1e-9)}


def bench_engines(records: int, repeats: int) -> dict[str, float]:
    details = load_dataset(_make_store(records)).details
    engines = {
        "finance_metrics": lambda: build_finance_metrics(details),
        "mtd_report": lambda: build_mtd_report(details, reference=REFERENCE),
        "mtd_comparison": lambda: build_mtd_comparison(
            details, reference=REFERENCE, dimension="salesman"
        ),
        "burden_heat_table": lambda: build_burden_heat_table(details),
        "smart_alerts": lambda: build_smart_alerts(details, reference=REFERENCE),
    }
    timings: dict[str, float] = {}
    for name, run in engines.items():
        start = time.perf_counter()
        for _ in range(repeats):
            run()
        timings[name] = (time.perf_counter() - start) / max(repeats, 1) * 1000
    return timings


def bench_report_tool(records: int, repeats: int) -> tuple[float, float]:
    set_store(_make_store(records))
    # Warmup
    get_mtd_report_impl(reference_date=REFERENCE.isoformat())

    start = time.perf_counter()
    for _ in range(repeats):
        get_mtd_report_impl(reference_date=REFERENCE.isoformat(), group="Group A")
    elapsed = time.perf_counter() - start
    set_store(None)
    return elapsed, (elapsed / max(repeats, 1)) * 1000


# ── Main ──────────────────────────────────────────────────────────────


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark DealerDash hot paths.")
    parser.add_argument("--records", type=int, default=50_000)
    parser.add_argument("--repeats", type=int, default=20)
    args = parser.parse_args()

    print("dealerdash_hot_path_benchmark")
    print(f"records={args.records}")
    print(f"repeats={args.repeats}")
    print()

    # 1. Disk replace
    disk_elapsed, disk_rps = bench_disk_replace(args.records)
    print(f"disk_replace_seconds={disk_elapsed:.6f}")
    print(f"disk_replace_rows_per_sec={disk_rps:.0f}")
    print()

    # 2. Dataset load: cold parse vs revision-memoized
    load = bench_dataset_load(args.records)
    print(f"dataset_load_cold_seconds={load['cold']:.6f}")
    print(f"dataset_load_warm_seconds={load['warm']:.6f}")
    print(f"dataset_load_speedup={load['speedup']:.0f}x")
    print()

    # 3. Engines over typed records
    for name, avg_ms in bench_engines(args.records, args.repeats).items():
        print(f"engine_{name}_avg_ms={avg_ms:.4f}")
    print()

    # 4. Report tool end to end (load + filter + engine + JSON)
    tool_elapsed, tool_avg_ms = bench_report_tool(args.records, args.repeats)
    print(f"tool_mtd_report_total_seconds={tool_elapsed:.6f}")
    print(f"tool_mtd_report_avg_ms={tool_avg_ms:.4f}")


if __name__ == "__main__":
    main()
