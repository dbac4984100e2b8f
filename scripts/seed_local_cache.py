"""Seed the local cache from the mobile service or a JSON fixture.

Pulls every table into the local SQLite cache, then prints the row counts
and the operation timings.

Usage:
    python scripts/seed_local_cache.py --url https://contoso.azurewebsites.net
    python scripts/seed_local_cache.py --fixture fixtures/catalog.json --store demo.db
"""

import asyncio
import json
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import SyncClientConfig
from core.observability.logging import get_logger
from data_client import DataClient

logger = get_logger("scripts.seed_local_cache")


async def seed(config: SyncClientConfig, show_metrics: bool = False) -> int:
    """Seed the cache and print a summary.

    Returns:
        Process exit code
    """
    async with DataClient.from_config(config) as client:
        await client.seed_local_data()

        if not client.local_db_exists:
            print(f"Local cache could not be initialized at {config.store_path}")
            return 1

        print("\n=== LOCAL CACHE ===")
        print(f"Store: {config.store_path}")
        print(f"{'Table':<20} {'Rows':>8}")
        print("-" * 30)
        for table_name in client.store.defined_tables:
            print(f"{table_name:<20} {client.store.count(table_name):>8}")
        print("===================\n")

        summary = client.telemetry.get_summary()
        if summary:
            failed = summary["operations"]["failed"]
            errors = summary["errors"]["total"]
            print(f"Operations failed: {failed}, errors reported: {errors}")
            if show_metrics:
                print(json.dumps(summary, indent=2, default=str))
            if errors:
                return 1

    return 0


def main():
    """Entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Seed the local CRM cache")
    parser.add_argument("--store", help="Local cache file (default: CRM_SYNC_STORE_PATH)")
    parser.add_argument("--url", help="Mobile service base URL")
    parser.add_argument("--fixture", help="JSON fixture to seed from instead of the service")
    parser.add_argument("--env-file", help=".env file to load")
    parser.add_argument("--metrics", action="store_true", help="Print the full telemetry summary")
    args = parser.parse_args()

    config = SyncClientConfig.from_env(args.env_file)
    if args.store:
        config.store_path = args.store
    if args.fixture:
        config.connector_type = "memory"
        config.fixture_path = args.fixture
    elif args.url:
        config.connector_type = "mobile_service"
        config.remote_url = args.url

    if config.connector_type == "mobile_service" and not config.remote_url:
        print("No remote URL: pass --url, --fixture or set CRM_SYNC_REMOTE_URL")
        return 2

    logger.info(f"Seeding local cache at {config.store_path}")
    return asyncio.run(seed(config, show_metrics=args.metrics))


if __name__ == "__main__":
    sys.exit(main())
