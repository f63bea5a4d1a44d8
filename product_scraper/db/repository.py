"""Product upsert store keyed by source URL."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from product_scraper.config import settings
from product_scraper.db.models import Product
from product_scraper.ingest.base import ExtractedFields
from product_scraper.normalize.processor import quantize_price, truncate_description

logger = logging.getLogger(__name__)


class IncompleteProductError(ValueError):
    """Raised when asked to store fields that fail the acceptance gate."""

    pass


class ProductStore:
    """
    Create-or-update store for scraped products.

    At most one row exists per URL: the url column is unique, and an
    insert that loses a race with a concurrent writer is retried as an
    update.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            from product_scraper.db.session import AsyncSessionLocal

            self._session_factory = AsyncSessionLocal
        return self._session_factory

    @staticmethod
    def _build_values(fields: ExtractedFields) -> dict[str, Any]:
        if not fields.is_complete:
            raise IncompleteProductError("Products need a title and a price")

        return {
            "title": fields.title,
            "price": quantize_price(fields.normalized_price),
            "image_url": fields.image_url,
            "source": fields.source_name.value,
            "description": truncate_description(
                fields.description, settings.description_max_length
            ),
            "scraped_at": datetime.utcnow(),
        }

    @staticmethod
    async def _get(db: AsyncSession, url: str) -> Optional[Product]:
        result = await db.execute(select(Product).where(Product.url == url))
        return result.scalar_one_or_none()

    async def upsert_by_url(self, url: str, fields: ExtractedFields) -> tuple[Product, bool]:
        """
        Create or update the product stored for a URL.

        Optional fields that are absent on this scrape keep their stored
        value.

        Returns:
            Tuple of (product, created)
        """
        values = self._build_values(fields)

        async with self.session_factory() as db:
            for attempt in range(2):
                product = await self._get(db, url)
                created = product is None

                if created:
                    product = Product(url=url, **values)
                    db.add(product)
                else:
                    for key, value in values.items():
                        if value is None and key in ("image_url", "description"):
                            continue
                        setattr(product, key, value)

                try:
                    await db.commit()
                except IntegrityError:
                    await db.rollback()
                    if not created or attempt > 0:
                        raise
                    logger.debug(f"Concurrent insert for {url}, retrying as update")
                    continue

                if created:
                    logger.info(f"Product scraped and stored successfully: {url}")
                else:
                    logger.info(f"Product updated successfully: {url}")
                return product, created

        raise RuntimeError(f"Upsert for {url} did not complete")  # pragma: no cover

    async def get_by_url(self, url: str) -> Optional[Product]:
        """Get the product stored for a URL."""
        async with self.session_factory() as db:
            return await self._get(db, url)

    async def count(self) -> int:
        """Total number of stored products."""
        async with self.session_factory() as db:
            result = await db.execute(select(func.count(Product.id)))
            return result.scalar_one()

    async def get_statistics(self) -> dict[str, Any]:
        """Summary of stored products by source and recency."""
        since = datetime.utcnow() - timedelta(days=1)

        async with self.session_factory() as db:
            total = (await db.execute(select(func.count(Product.id)))).scalar_one()

            by_source_rows = await db.execute(
                select(Product.source, func.count(Product.id)).group_by(Product.source)
            )
            recent = (
                await db.execute(
                    select(func.count(Product.id)).where(Product.scraped_at >= since)
                )
            ).scalar_one()

        return {
            "total_products": total,
            "products_by_source": {source: count for source, count in by_source_rows.all()},
            "recent_scrapes": recent,
            "last_updated": datetime.utcnow().isoformat(),
        }
