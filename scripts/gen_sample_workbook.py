#!/usr/bin/env python3
"""Synthetic shipment workbook generator.

Generates .xlsx files in the layout the dashboard reads:
- Row 1: Title row
- Row 2: Header row
- Row 3+: Data rows (A category, B location, C identifier, D created date,
  F arrival, G status flag, I warehouse arrival, K..P milestones)

Milestones are written as Excel date serials, the form they take in real
exports. `--variant secondary` drops the status column G, the way the
secondary source ships it.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

EXCEL_EPOCH_OFFSET_DAYS = 25569

HEADERS = [
    "Category",  # A
    "POE",  # B
    "Identifier",  # C
    "Created",  # D
    "Carrier",  # E
    "ATA Date",  # F
    "Status",  # G
    "Remarks",  # H
    "Arrived at Warehouse",  # I
    "Pieces",  # J
    "Release Date",  # K
    "Milestone L",  # L
    "Milestone M",  # M
    "Custom Final Release Date",  # N
    "Consigned to Final Mile Carrier",  # O
    "Handover Time",  # P
]
STATUS_COLUMN = 6
LOCATIONS = ["ORD", "LAX", "JFK", "DFW", "MIA", "SFO", "ATL"]
CATEGORIES = ["T01", "T86"]


def _serial(ts: pd.Timestamp) -> float:
    return (ts - pd.Timestamp("1970-01-01")) / pd.Timedelta(days=1) + EXCEL_EPOCH_OFFSET_DAYS


def generate_rows(rows: int, seed: int = 42, gap_rate: float = 0.05) -> list[list[Any]]:
    """Generate data rows in the primary layout.

    Args:
        rows: number of data rows
        seed: random seed for reproducible data
        gap_rate: probability that any single milestone cell is left empty
    """
    rng = np.random.default_rng(seed)
    base = pd.Timestamp("2025-06-20")
    data: list[list[Any]] = []
    for j in range(rows):
        created = base + pd.Timedelta(hours=float(rng.uniform(0, 24 * 60)))
        arrival = created + pd.Timedelta(hours=float(rng.uniform(0, 48)))
        # 一部は負の差分 (データ品質シグナル) になるよう -6h から開始
        warehouse = arrival + pd.Timedelta(hours=float(rng.uniform(-6, 96)))
        release = arrival + pd.Timedelta(hours=float(rng.uniform(0, 80)))
        milestone_l = release + pd.Timedelta(hours=float(rng.uniform(0, 6)))
        milestone_m = milestone_l + pd.Timedelta(hours=float(rng.uniform(0, 6)))
        final_release = milestone_m + pd.Timedelta(hours=float(rng.uniform(0, 12)))
        consigned = final_release + pd.Timedelta(hours=float(rng.uniform(-2, 90)))
        handover = consigned + pd.Timedelta(hours=float(rng.uniform(0, 24)))

        def maybe(ts: pd.Timestamp) -> Any:
            return None if rng.random() < gap_rate else round(_serial(ts), 6)

        data.append(
            [
                str(rng.choice(CATEGORIES)),
                str(rng.choice(LOCATIONS)),
                f"SHP{j + 1:07d}",
                round(_serial(created), 6),
                "CARRIER",
                maybe(arrival),
                "N" if rng.random() < 0.03 else "Y",
                "",
                maybe(warehouse),
                int(rng.integers(1, 50)),
                maybe(release),
                maybe(milestone_l),
                maybe(milestone_m),
                maybe(final_release),
                maybe(consigned),
                maybe(handover),
            ]
        )
    return data


def create_workbook(
    output_path: Path,
    rows: int,
    *,
    variant: str = "primary",
    title: str = "Shipment Milestone Report",
    seed: int = 42,
) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    headers = list(HEADERS)
    data = generate_rows(rows, seed)
    if variant == "secondary":
        del headers[STATUS_COLUMN]
        for row in data:
            del row[STATUS_COLUMN]

    sheet_data: list[list[Any]] = [[title] + [""] * (len(headers) - 1), headers, *data]
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        pd.DataFrame(sheet_data).to_excel(writer, sheet_name="Sheet1", header=False, index=False)

    print(f"Created workbook: {output_path}")
    print(f"  Variant: {variant}")
    print(f"  Rows: {rows} (+ 2 header rows)")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic shipment milestone workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sample.xlsx --rows 500
  %(prog)s sample_temu.xlsx --rows 500 --variant secondary
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=1_000, help="Number of data rows (default: 1,000)")
    parser.add_argument("--variant", choices=["primary", "secondary"], default="primary")
    parser.add_argument("--title", default="Shipment Milestone Report")
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1

    create_workbook(args.output, args.rows, variant=args.variant, title=args.title, seed=args.seed)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
