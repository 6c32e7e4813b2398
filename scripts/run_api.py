#!/usr/bin/env python
"""
Serve the operator API for price configuration, propagation and snapshots.

Remote store, cache file and log level come from the TOUR_PRICING_*
environment variables; see tour_pricing.config.settings.

Usage:
    python scripts/run_api.py
    python scripts/run_api.py --port 8080 --reload
"""
import argparse
import sys
from pathlib import Path

import uvicorn

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from tour_pricing.config.settings import get_settings


def main():
    parser = argparse.ArgumentParser(description="Run the tour pricing API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Restart on source changes")
    args = parser.parse_args()

    settings = get_settings()
    print(f"Prices for {settings.price_year}, remote store at {settings.remote_base_url}")
    print(f"Cache: {settings.cache_path or 'in memory'}")

    uvicorn.run(
        "tour_pricing.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        reload_dirs=[str(src_path)] if args.reload else None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
