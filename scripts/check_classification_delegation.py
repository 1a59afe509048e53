#!/usr/bin/env python3
"""CI enforcement: warn on status or threshold logic outside classification.py.

Detects patterns like ``avg > WATCH_BURDEN_LIMIT``, ``rate > 0.12`` or
``"terkirim" in status.lower()`` in analytics modules.  Those belong behind
the predicates in ``dealer_mcp/analytics/classification.py``.

Exit 0 (warning only).  Pass ``--strict`` to fail the build instead.
"""

from __future__ import annotations

import argparse
import ast
import sys
from pathlib import Path

ANALYTICS_DIR = Path(__file__).resolve().parent.parent / "dealer_mcp" / "analytics"
ALLOWED_FILES = {"classification.py"}

THRESHOLD_NAMES = {"HIGH_RISK_DISCOUNT_RATE", "EFFICIENT_BURDEN_LIMIT", "WATCH_BURDEN_LIMIT"}
THRESHOLD_VALUES = {0.12, 300_000, 500_000}
STATUS_KEYWORDS = {"deal", "spk", "terkirim", "sudah jadi", "kredit"}

_ORDERING = (ast.Gt, ast.GtE, ast.Lt, ast.LtE)


def _threshold(node: ast.expr) -> str | None:
    if isinstance(node, ast.Name) and node.id in THRESHOLD_NAMES:
        return node.id
    if isinstance(node, ast.Attribute) and node.attr in THRESHOLD_NAMES:
        return node.attr
    if (
        isinstance(node, ast.Constant)
        and isinstance(node.value, (int, float))
        and not isinstance(node.value, bool)
        and node.value in THRESHOLD_VALUES
    ):
        return repr(node.value)
    return None


def check_source(source: str, filename: str) -> list[str]:
    violations: list[str] = []
    tree = ast.parse(source, filename=filename)
    for node in ast.walk(tree):
        if not isinstance(node, ast.Compare):
            continue
        operands = [node.left, *node.comparators]
        for index, op in enumerate(node.ops):
            left, right = operands[index], operands[index + 1]
            if isinstance(op, _ORDERING):
                hit = _threshold(left) or _threshold(right)
                if hit:
                    violations.append(
                        f"{filename}:{node.lineno}: manual threshold comparison ({hit})"
                    )
            elif isinstance(op, (ast.In, ast.NotIn)):
                if (
                    isinstance(left, ast.Constant)
                    and isinstance(left.value, str)
                    and left.value.strip().lower() in STATUS_KEYWORDS
                ):
                    violations.append(
                        f"{filename}:{node.lineno}: manual status match ({left.value!r})"
                    )
    return violations


def check(directory: Path = ANALYTICS_DIR) -> list[str]:
    violations: list[str] = []
    for path in sorted(directory.glob("*.py")):
        if path.name in ALLOWED_FILES:
            continue
        try:
            violations.extend(check_source(path.read_text(encoding="utf-8"), path.name))
        except SyntaxError as exc:
            print(f"ERROR: cannot parse {path}: {exc}", file=sys.stderr)
    return violations


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--strict", action="store_true", help="exit 1 on violations")
    args = parser.parse_args()

    violations = check()
    if violations:
        print("WARNING: status/threshold logic found outside classification.py:")
        for v in violations:
            print(f"  {v}")
        print("\nThese should call the predicates in dealer_mcp.analytics.classification.")
        sys.exit(1 if args.strict else 0)
    else:
        print("OK: analytics modules delegate to classification.py")


if __name__ == "__main__":
    main()
