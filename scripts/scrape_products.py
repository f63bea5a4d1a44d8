#!/usr/bin/env python3
"""
Scrape product URLs and store the results.

Usage: python scripts/scrape_products.py URL [URL ...]
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from product_scraper.db.repository import ProductStore
from product_scraper.db.session import init_db
from product_scraper.ingest.proxy_manager import proxy_pool
from product_scraper.ingest.scrape_engine import ScrapeEngine
from product_scraper.logging_config import setup_logging


async def scrape_products(urls: list[str]) -> int:
    """Scrape URLs and print a summary. Returns the process exit code."""
    setup_logging()
    await init_db()
    await proxy_pool.refresh()

    engine = ScrapeEngine()
    try:
        results = await engine.scrape_many(urls)
    finally:
        await engine.close()

    success_count = sum(results.values())
    print("\nScraping completed!")
    for url, success in results.items():
        print(f"  {'OK  ' if success else 'FAIL'} {url}")
    print(f"\n  Successful: {success_count}")
    print(f"  Failed:     {len(results) - success_count}")
    print(f"  Total:      {len(results)}")

    stats = await ProductStore().get_statistics()
    print(f"\nStored products: {stats['total_products']} {stats['products_by_source']}")

    return 0 if success_count > 0 else 1


if __name__ == "__main__":
    urls = [arg.strip() for arg in sys.argv[1:] if arg.strip()]
    if not urls:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(scrape_products(urls)))
