"""
Price Quoter Data Models
Dataclasses for the search result passed between the verification client,
the search session and the quotation renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Tuple


class Region(Enum):
    """Regional markets a price list can be requested for"""
    NAYARIT = 'Nayarit'
    SINALOA = 'Sinaloa'
    JALISCO = 'Jalisco'

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: str) -> "Region":
        """Resolve a region from its label (case-insensitive); no free text accepted"""
        wanted = (label or "").strip().lower()
        for region in cls:
            if region.value.lower() == wanted:
                return region
        valid = ", ".join(r.value for r in cls)
        raise ValueError(f"Unknown region '{label}'. Expected one of: {valid}")


@dataclass(frozen=True)
class ProductPriceLine:
    """One priced offering for the searched product."""
    product_name: str
    presentation: str = ""     # e.g. "Lata 355ml"
    pack_type: str = ""        # e.g. "Charola 24"
    estimated_price: float = 0.0
    currency: str = ""
    notes: str = ""


@dataclass(frozen=True)
class Citation:
    """A web source the verification service grounded its answer on."""
    title: str
    uri: str


@dataclass(frozen=True)
class SearchResult:
    """Products and reference sources returned for one search."""
    products: Tuple[ProductPriceLine, ...] = field(default_factory=tuple)
    grounding_urls: Tuple[Citation, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ReportMeta:
    """Session metadata printed on the quotation."""
    region: Region
    query: str
    generated_at: datetime
