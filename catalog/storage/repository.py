"""
Product storage interface and in-memory implementation.

Writes are staged with persist()/remove() and only become durable on
flush(), one unit of work per import or edit.
"""
import itertools
from typing import Dict, List, Optional, Union

from catalog.models.entities import Product, ProductImage, ProductPrice, ProductRanking

Child = Union[ProductImage, ProductPrice, ProductRanking]


class BaseProductRepository:
    """Base interface for product storage."""

    async def find_by_asin(self, asin: str) -> Optional[Product]:
        raise NotImplementedError

    async def find_all(self, only_active: bool = False) -> List[Product]:
        raise NotImplementedError

    def persist(self, product: Product):
        raise NotImplementedError

    def remove(self, child: Child):
        raise NotImplementedError

    async def flush(self):
        raise NotImplementedError


class InMemoryProductRepository(BaseProductRepository):
    """Dictionary-backed storage keyed by ASIN."""

    def __init__(self, products: Optional[List[Product]] = None):
        self._ids = itertools.count(1)
        self._products: Dict[str, Product] = {}
        self._pending: Dict[str, Product] = {}
        self._removed: List[Child] = []
        self.deleted: List[Child] = []
        self.flush_count = 0

        for product in products or []:
            self._assign_ids(product)
            self._products[product.asin] = product

    async def find_by_asin(self, asin: str) -> Optional[Product]:
        return self._pending.get(asin) or self._products.get(asin)

    async def find_all(self, only_active: bool = False) -> List[Product]:
        products = sorted(self._products.values(), key=lambda p: p.id)
        if only_active:
            products = [p for p in products if p.is_active]
        return products

    def persist(self, product: Product):
        self._pending[product.asin] = product

    def remove(self, child: Child):
        self._removed.append(child)

    async def flush(self):
        for product in self._pending.values():
            self._assign_ids(product)
            self._products[product.asin] = product

        self.deleted.extend(self._removed)
        self._pending.clear()
        self._removed.clear()
        self.flush_count += 1

    def _assign_ids(self, product: Product):
        if product.id is None:
            product.id = next(self._ids)
        for child in itertools.chain(product.images, product.prices, product.rankings):
            if child.id is None:
                child.id = next(self._ids)
