"""
Domain: Product categories.

Categories group the catalog for browsing; a product references at most one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Category:
    category_id: int
    name: str
    description: Optional[str] = None
    active: bool = True

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Category name is required")
