"""Catalog consistency errors.

These signal that the cached catalog data violates the hierarchy rules
(a single root, top-level categories directly under it, finite depth).
Unlike transient remote/local failures they are not masked by a default
result unless the client is configured to do so.
"""

from typing import Optional


class CatalogConsistencyError(Exception):
    """Cached catalog data violates a hierarchy rule."""
    pass


class NoRootCategoryError(CatalogConsistencyError):
    def __init__(self):
        super().__init__("No root category found")


class MultipleRootCategoriesError(CatalogConsistencyError):
    def __init__(self, count: int):
        super().__init__(f"Expected exactly one root category, found {count}")
        self.count = count


class CategoryNotFoundError(CatalogConsistencyError):
    def __init__(self, category_id: str):
        super().__init__(f"Category {category_id} not found")
        self.category_id = category_id


class NotTopLevelCategoryError(CatalogConsistencyError):
    """The category is not a direct child of the root category."""

    def __init__(self, category_id: str, parent_category_id: Optional[str]):
        super().__init__(
            f"Category {category_id} is not a top-level category "
            f"(parent: {parent_category_id})"
        )
        self.category_id = category_id
        self.parent_category_id = parent_category_id


class AmbiguousProductNameError(CatalogConsistencyError):
    def __init__(self, name: str, count: int):
        super().__init__(f"Found {count} products named {name!r}")
        self.name = name
        self.count = count


class CategoryDepthExceededError(CatalogConsistencyError):
    """Leaf discovery went deeper than allowed (cycle or runaway tree)."""

    def __init__(self, category_id: str, max_depth: int):
        super().__init__(
            f"Category hierarchy under {category_id} exceeds maximum depth {max_depth}"
        )
        self.category_id = category_id
        self.max_depth = max_depth
