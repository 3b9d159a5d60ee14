"""
PostgreSQL product storage.
"""
import json
from decimal import Decimal
from typing import Dict, Any, Optional, List

import asyncpg

from catalog.config import config
from catalog.errors import PersistenceError
from catalog.logger import logger
from catalog.models.entities import Product, ProductImage, ProductPrice, ProductRanking
from catalog.storage.repository import BaseProductRepository, Child

SCHEMA = """
CREATE TABLE IF NOT EXISTS products (
    id SERIAL PRIMARY KEY,
    asin VARCHAR(20) NOT NULL UNIQUE,
    title VARCHAR(500) NOT NULL,
    slug VARCHAR(255) UNIQUE,
    brand VARCHAR(255) NOT NULL,
    manufacturer VARCHAR(255),
    amazon_url VARCHAR(1000) NOT NULL,
    features JSONB NOT NULL DEFAULT '[]',
    source_data JSONB,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE TABLE IF NOT EXISTS product_images (
    id SERIAL PRIMARY KEY,
    product_id INTEGER NOT NULL REFERENCES products(id) ON DELETE CASCADE,
    url VARCHAR(500) NOT NULL,
    width INTEGER NOT NULL,
    height INTEGER NOT NULL,
    type VARCHAR(50) NOT NULL,
    is_primary BOOLEAN NOT NULL DEFAULT FALSE,
    order_position INTEGER DEFAULT 0,
    alt_text VARCHAR(255),
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE TABLE IF NOT EXISTS product_prices (
    id SERIAL PRIMARY KEY,
    product_id INTEGER NOT NULL REFERENCES products(id) ON DELETE CASCADE,
    listing_id VARCHAR(255) NOT NULL,
    amount NUMERIC(10, 2) NOT NULL,
    currency VARCHAR(3) NOT NULL,
    display_amount VARCHAR(50) NOT NULL,
    savings_amount NUMERIC(10, 2),
    savings_display VARCHAR(50),
    savings_percentage INTEGER,
    is_free_shipping BOOLEAN NOT NULL DEFAULT FALSE,
    violates_map BOOLEAN NOT NULL DEFAULT FALSE,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE TABLE IF NOT EXISTS product_rankings (
    id SERIAL PRIMARY KEY,
    product_id INTEGER NOT NULL REFERENCES products(id) ON DELETE CASCADE,
    category_id VARCHAR(50) NOT NULL,
    category_name VARCHAR(255) NOT NULL,
    context_free_name VARCHAR(255),
    sales_rank INTEGER NOT NULL,
    is_root BOOLEAN NOT NULL DEFAULT FALSE,
    ranking_date DATE NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

PRODUCT_COLUMNS = (
    "id, asin, title, slug, brand, manufacturer, amazon_url, features, "
    "source_data, is_active, created_at, updated_at"
)

CHILD_TABLES = {
    ProductImage: "product_images",
    ProductPrice: "product_prices",
    ProductRanking: "product_rankings",
}


def _load_json(value: Any) -> Any:
    # asyncpg returns json/jsonb columns as text unless a codec is set
    return json.loads(value) if isinstance(value, str) else value


class PostgresProductRepository(BaseProductRepository):
    """asyncpg-backed storage. flush() writes the staged unit of work in one transaction."""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or config.DATABASE_URL
        self.pool = None
        self.is_available = False
        self._pending: Dict[str, Product] = {}
        self._removed: List[Child] = []

    async def initialize(self):
        try:
            self.pool = await asyncpg.create_pool(self.database_url)
            async with self.pool.acquire() as conn:
                await conn.execute(SCHEMA)
            self.is_available = True
            logger.info("Product storage initialized")
        except (asyncpg.PostgresError, OSError) as e:
            raise PersistenceError(f"Failed to initialize product storage: {e}") from e

    async def close(self):
        if self.pool:
            await self.pool.close()

    async def find_by_asin(self, asin: str) -> Optional[Product]:
        if asin in self._pending:
            return self._pending[asin]

        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {PRODUCT_COLUMNS} FROM products WHERE asin=$1", asin
                )
                if not row:
                    return None
                return await self._hydrate(conn, row)
        except asyncpg.PostgresError as e:
            raise PersistenceError(f"Failed to load product {asin}: {e}") from e

    async def find_all(self, only_active: bool = False) -> List[Product]:
        query = f"SELECT {PRODUCT_COLUMNS} FROM products"
        if only_active:
            query += " WHERE is_active = TRUE"
        query += " ORDER BY id ASC"

        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(query)
                return [await self._hydrate(conn, row) for row in rows]
        except asyncpg.PostgresError as e:
            raise PersistenceError(f"Failed to load products: {e}") from e

    def persist(self, product: Product):
        self._pending[product.asin] = product

    def remove(self, child: Child):
        self._removed.append(child)

    async def flush(self):
        if not self._pending and not self._removed:
            return

        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    for child in self._removed:
                        if child.id is not None:
                            await conn.execute(
                                f"DELETE FROM {CHILD_TABLES[type(child)]} WHERE id=$1", child.id
                            )
                    for product in self._pending.values():
                        await self._write_product(conn, product)
        except asyncpg.PostgresError as e:
            raise PersistenceError(f"Failed to flush products: {e}") from e

        logger.info("Products flushed", extra={"context": {"products": len(self._pending)}})
        self._pending.clear()
        self._removed.clear()

    async def _write_product(self, conn, product: Product):
        product.id = await conn.fetchval(
            """
            INSERT INTO products (asin, title, slug, brand, manufacturer, amazon_url,
                                  features, source_data, is_active, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
            ON CONFLICT (asin) DO UPDATE SET
                title=$2, slug=$3, brand=$4, manufacturer=$5, amazon_url=$6,
                features=$7, source_data=$8, is_active=$9, updated_at=$11
            RETURNING id
            """,
            product.asin, product.title, product.slug, product.brand, product.manufacturer,
            product.amazon_url, json.dumps(product.features, ensure_ascii=False),
            None if product.source_data is None else json.dumps(product.source_data, ensure_ascii=False),
            product.is_active, product.created_at, product.updated_at
        )

        # Children are replaced, never diffed
        for table in CHILD_TABLES.values():
            await conn.execute(f"DELETE FROM {table} WHERE product_id=$1", product.id)

        for image in product.images:
            image.id = await conn.fetchval(
                "INSERT INTO product_images (product_id, url, width, height, type, is_primary, "
                "order_position, alt_text, is_active, created_at, updated_at) "
                "VALUES ($1,$2,$3,$4,$5,$6,$7,$8,$9,$10,$11) RETURNING id",
                product.id, image.url, image.width, image.height, image.type, image.is_primary,
                image.order_position, image.alt_text, image.is_active, image.created_at, image.updated_at
            )

        for price in product.prices:
            price.id = await conn.fetchval(
                "INSERT INTO product_prices (product_id, listing_id, amount, currency, display_amount, "
                "savings_amount, savings_display, savings_percentage, is_free_shipping, violates_map, "
                "is_active, created_at, updated_at) "
                "VALUES ($1,$2,$3,$4,$5,$6,$7,$8,$9,$10,$11,$12,$13) RETURNING id",
                product.id, price.listing_id, price.amount, price.currency, price.display_amount,
                price.savings_amount, price.savings_display, price.savings_percentage,
                price.is_free_shipping, price.violates_map, price.is_active,
                price.created_at, price.updated_at
            )

        for ranking in product.rankings:
            ranking.id = await conn.fetchval(
                "INSERT INTO product_rankings (product_id, category_id, category_name, context_free_name, "
                "sales_rank, is_root, ranking_date, is_active, created_at, updated_at) "
                "VALUES ($1,$2,$3,$4,$5,$6,$7,$8,$9,$10) RETURNING id",
                product.id, ranking.category_id, ranking.category_name, ranking.context_free_name,
                ranking.sales_rank, ranking.is_root, ranking.ranking_date, ranking.is_active,
                ranking.created_at, ranking.updated_at
            )

    async def _hydrate(self, conn, row) -> Product:
        product = Product(
            id=row["id"],
            asin=row["asin"],
            title=row["title"],
            slug=row["slug"],
            brand=row["brand"],
            manufacturer=row["manufacturer"],
            amazon_url=row["amazon_url"],
            features=_load_json(row["features"]) or [],
            source_data=_load_json(row["source_data"]),
            is_active=row["is_active"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

        image_rows = await conn.fetch(
            "SELECT * FROM product_images WHERE product_id=$1 ORDER BY order_position, id", product.id
        )
        product.images = [
            ProductImage(
                id=r["id"], url=r["url"], width=r["width"], height=r["height"], type=r["type"],
                is_primary=r["is_primary"], order_position=r["order_position"] or 0,
                alt_text=r["alt_text"], is_active=r["is_active"],
                created_at=r["created_at"], updated_at=r["updated_at"]
            )
            for r in image_rows
        ]

        price_rows = await conn.fetch(
            "SELECT * FROM product_prices WHERE product_id=$1 ORDER BY id", product.id
        )
        product.prices = [
            ProductPrice(
                id=r["id"], listing_id=r["listing_id"], amount=Decimal(r["amount"]),
                currency=r["currency"], display_amount=r["display_amount"],
                savings_amount=None if r["savings_amount"] is None else Decimal(r["savings_amount"]),
                savings_display=r["savings_display"], savings_percentage=r["savings_percentage"],
                is_free_shipping=r["is_free_shipping"], violates_map=r["violates_map"],
                is_active=r["is_active"], created_at=r["created_at"], updated_at=r["updated_at"]
            )
            for r in price_rows
        ]

        ranking_rows = await conn.fetch(
            "SELECT * FROM product_rankings WHERE product_id=$1 ORDER BY sales_rank, id", product.id
        )
        product.rankings = [
            ProductRanking(
                id=r["id"], category_id=r["category_id"], category_name=r["category_name"],
                context_free_name=r["context_free_name"], sales_rank=r["sales_rank"],
                is_root=r["is_root"], ranking_date=r["ranking_date"], is_active=r["is_active"],
                created_at=r["created_at"], updated_at=r["updated_at"]
            )
            for r in ranking_rows
        ]

        return product
