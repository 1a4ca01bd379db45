"""Catalog records: platforms, listing templates and the product on sale."""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class Platform:
    """A marketplace a listing can be posted to."""
    id: str
    display_name: str
    base_url: str
    description: str
    is_active: bool = True


@dataclass(frozen=True)
class ListingTemplate:
    """Base listing copy for one platform."""
    platform_id: str
    title: str
    description: str
    price: float
    tags: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProductProfile:
    """The item being sold and the terms it is sold under."""
    name: str
    summary: str
    specifications: List[str]
    target_audience: str
    location: str
    retail_price: str
    asking_price: str
    notes: List[str] = field(default_factory=list)
