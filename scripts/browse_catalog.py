"""Browse the cached product catalog.

Reads from the local cache only; run seed_local_cache.py first.

Usage:
    python scripts/browse_catalog.py                 # category tree
    python scripts/browse_catalog.py --products <top-level category id>
    python scripts/browse_catalog.py --search widget
"""

import asyncio
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from core.config import SyncClientConfig
from data_client import CatalogConsistencyError, DataClient


async def print_tree(client: DataClient, parent_id=None, indent: int = 0, max_depth: int = 32):
    """Print categories under a parent, depth first."""
    if indent > max_depth:
        print("  " * indent + "...")
        return
    for category in await client.get_categories(parent_id):
        marker = "+" if category.has_sub_categories else "-"
        print(f"{'  ' * indent}{marker} {category.name} ({category.id})")
        if category.has_sub_categories:
            await print_tree(client, category.id, indent + 1, max_depth)


def print_products(products):
    if not products:
        print("No products found.")
        return
    print(f"{'Name':<40} {'Price':>10}  Category")
    print("-" * 70)
    for product in products:
        price = f"{product.price:,.2f}" if product.price is not None else "-"
        print(f"{(product.name or '-'):<40} {price:>10}  {product.category_id}")
    print(f"\nTotal: {len(products)} product(s)")


async def browse(config: SyncClientConfig, products_of: str = None, term: str = None) -> int:
    async with DataClient.from_config(config) as client:
        try:
            if products_of:
                print_products(await client.get_all_child_products(products_of))
            elif term is not None:
                print_products(await client.search(term))
            else:
                await print_tree(client, max_depth=config.max_category_depth)
        except CatalogConsistencyError as e:
            print(f"Catalog data is inconsistent: {e}")
            return 1
    return 0


def main():
    """Entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Browse the cached product catalog")
    parser.add_argument("--store", help="Local cache file (default: CRM_SYNC_STORE_PATH)")
    parser.add_argument("--products", metavar="CATEGORY_ID", help="All products under a top-level category")
    parser.add_argument("--search", metavar="TERM", help="Search products by name or description")
    parser.add_argument("--env-file", help=".env file to load")
    args = parser.parse_args()

    config = SyncClientConfig.from_env(args.env_file)
    if args.store:
        config.store_path = args.store
    # Browsing never pulls, so an offline connector is enough
    config.connector_type = "memory"
    config.fixture_path = None

    try:
        return asyncio.run(browse(config, products_of=args.products, term=args.search))
    except ValueError as e:
        print(f"Invalid argument: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
