#!/usr/bin/env python
"""
Capture official tier prices for a product line and print them.

Usage:
    python scripts/capture_snapshot.py ER
    python scripts/capture_snapshot.py ER --show   # print last capture only
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from tour_pricing.config.settings import configure_logging
from tour_pricing.engine.models import ProductLine
from tour_pricing.services.snapshots import TotalsSnapshotStore
from tour_pricing.storage.repository import PriceRepository


def main():
    parser = argparse.ArgumentParser(description="Capture totals snapshot")
    parser.add_argument("product_line", choices=[p.value for p in ProductLine])
    parser.add_argument("--show", action="store_true", help="Print the last capture without recalculating")
    args = parser.parse_args()

    configure_logging()
    store = TotalsSnapshotStore(PriceRepository())

    if not args.show:
        capture = asyncio.run(store.capture(args.product_line))
        print(f"Captured {args.product_line} at {capture.captured_at}")
        for warning in capture.warnings:
            print(f"  ⚠️ {warning}")

    frame = store.to_frame(args.product_line)
    if frame.empty:
        print(f"No captured prices for {args.product_line}")
        sys.exit(1)
    print(frame.to_string(index=False))


if __name__ == "__main__":
    main()
