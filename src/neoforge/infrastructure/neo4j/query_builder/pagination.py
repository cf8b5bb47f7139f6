"""Pagination mixin for the Cypher query builder.

This module provides a separate mixin for page-based pagination to keep the
core query builder focused on clause lowering.
"""

from typing import Protocol, Self


class SupportsSkipLimit(Protocol):
    def skip(self, count: int | str) -> Self: ...

    def limit(self, count: int | str) -> Self: ...


class PaginationMixin:
    """Adds ``paginate`` on top of a builder's ``skip`` and ``limit``."""

    def paginate(self: SupportsSkipLimit, page: int, page_size: int) -> SupportsSkipLimit:
        """Add SKIP and LIMIT for a 1-based page number.

        Args:
            page: Page number (1-based)
            page_size: Number of items per page

        Returns:
            Self for method chaining

        Raises:
            ValueError: If page or page_size is smaller than 1
        """
        if page < 1:
            raise ValueError("Page number must be greater than or equal to 1")

        if page_size < 1:
            raise ValueError("Page size must be greater than or equal to 1")

        return self.skip((page - 1) * page_size).limit(page_size)
