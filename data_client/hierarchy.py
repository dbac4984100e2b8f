"""Catalog hierarchy resolver.

Collects every product under a top-level category. The catalog is a tree
with a single root; products belong to leaf categories, so the resolver
walks down from the top-level category to its leaves and concatenates
their products.

The walk assumes the tree is acyclic. It is bounded by max_depth so that
a cycle in the cached data surfaces as CategoryDepthExceededError rather
than unbounded recursion.
"""

from typing import List

from core.models.entities import Category, Product
from core.observability.logging import get_logger, with_correlation
from data_client.errors import (
    CategoryDepthExceededError,
    CategoryNotFoundError,
    NotTopLevelCategoryError,
)
from data_client.fault_boundary import FaultBoundary
from data_client.queries import QueryFacade

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 32


class CatalogHierarchyResolver:
    """Resolves leaf categories and their products under a category."""

    def __init__(self, queries: QueryFacade, boundary: FaultBoundary, max_depth: int = DEFAULT_MAX_DEPTH):
        self.queries = queries
        self.boundary = boundary
        self.max_depth = max_depth

    async def get_all_child_products(self, top_level_category_id: str) -> List[Product]:
        """Products of every leaf category under a top-level category.

        Products appear grouped by leaf, leaves in depth-first order by
        sequence. No de-duplication is done.

        Each leaf is read through get_products(), which is its own
        fail-soft operation: a leaf whose read fails is reported to
        telemetry and contributes no products, and the rest are still
        returned.

        Raises:
            ValueError: The id is blank (checked before any table access)
            CategoryNotFoundError: No category has the id
            NotTopLevelCategoryError: The category's parent is not the root
            CategoryDepthExceededError: The walk went deeper than max_depth
        """
        if top_level_category_id is None or top_level_category_id.strip() == "":
            raise ValueError("top_level_category_id must not be blank")

        async def work():
            await self.queries.cache.ensure_initialized()
            root = await self.queries.find_root_category()

            category = await self.queries.find_category(top_level_category_id)
            if category is None:
                raise CategoryNotFoundError(top_level_category_id)
            if category.parent_category_id != root.id:
                raise NotTopLevelCategoryError(category.id, category.parent_category_id)

            leaves = await self._collect_leaves(category, 0)
            logger.debug(f"Found {len(leaves)} leaf categories under {category.id}")

            products: List[Product] = []
            for leaf in leaves:
                products.extend(await self.queries.get_products(leaf.id))
            return products

        with with_correlation(entity_id=top_level_category_id):
            return await self.boundary.execute("TimeToGetAllChildProducts", work, [])

    async def leaf_categories_under(self, category_id: str) -> List[Category]:
        """Leaf categories under a category (the category itself if a leaf).

        Raises:
            CategoryNotFoundError: No category has the id
            CategoryDepthExceededError: The walk went deeper than max_depth
        """
        category = await self.queries.find_category(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)
        return await self._collect_leaves(category, 0)

    async def _collect_leaves(self, category: Category, depth: int) -> List[Category]:
        if not category.has_sub_categories:
            return [category]
        if depth >= self.max_depth:
            raise CategoryDepthExceededError(category.id, self.max_depth)

        leaves: List[Category] = []
        for child in await self.queries.child_categories(category.id):
            leaves.extend(await self._collect_leaves(child, depth + 1))
        return leaves
