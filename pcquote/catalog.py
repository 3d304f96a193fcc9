"""
Catalog Index — read-only view over the parts and services catalogs.

Catalog loading is done by the caller; this only looks things up and filters.
Nothing here mutates the collections it is given.
"""

from typing import Iterable, Optional, Union

from .config import settings
from .errors import NotFoundError
from .models import Part, Service

CatalogEntry = Union[Part, Service]


class CatalogIndex:
    """Lookup, active filtering and search over parts and services."""

    def __init__(self, parts: Iterable[Part] = (), services: Iterable[Service] = ()):
        self.parts: tuple[Part, ...] = tuple(parts)
        self.services: tuple[Service, ...] = tuple(services)
        self._by_id: dict[str, CatalogEntry] = {}
        for entry in (*self.parts, *self.services):
            self._by_id.setdefault(entry.id, entry)

    def find_by_id(self, entry_id: str) -> CatalogEntry:
        """Return the part or service with this id, or raise NotFoundError."""
        entry = self._by_id.get(entry_id)
        if entry is None:
            raise NotFoundError(f"No catalog entry with id '{entry_id}'", id=entry_id)
        return entry

    def find_part(self, part_id: str) -> Part:
        entry = self.find_by_id(part_id)
        if not isinstance(entry, Part):
            raise NotFoundError(f"'{part_id}' is not a part", id=part_id)
        return entry

    def find_service(self, service_id: str) -> Service:
        entry = self.find_by_id(service_id)
        if not isinstance(entry, Service):
            raise NotFoundError(f"'{service_id}' is not a service", id=service_id)
        return entry

    @staticmethod
    def filter_active(collection: Iterable[CatalogEntry]) -> list:
        return [entry for entry in collection if entry.is_active]

    @staticmethod
    def search(collection: Iterable[CatalogEntry], term: Optional[str]) -> list:
        """
        Case-insensitive substring match on name, SKU, category and part_id.
        Blank term matches everything. Services match on name and unit.
        """
        needle = (term or "").strip().lower()
        if not needle:
            return list(collection)

        results = []
        for entry in collection:
            haystack = [
                entry.name,
                getattr(entry, "sku", None),
                getattr(entry, "category", None),
                getattr(entry, "part_id", None),
                getattr(entry, "unit", None),
            ]
            if any(needle in value.lower() for value in haystack if value):
                results.append(entry)
        return results

    def active_parts(self) -> list[Part]:
        return self.filter_active(self.parts)

    def active_services(self) -> list[Service]:
        return self.filter_active(self.services)

    @staticmethod
    def by_category(parts: Iterable[Part]) -> dict[str, list[Part]]:
        """Group parts by category, keeping catalog order inside each group."""
        grouped: dict[str, list[Part]] = {}
        for part in parts:
            grouped.setdefault(part.category, []).append(part)
        return grouped

    def low_stock(self, reorder_level: Optional[int] = None) -> list[Part]:
        """Parts at or below their reorder level (per-part level wins over the argument)."""
        fallback = reorder_level if reorder_level is not None else settings.DEFAULT_REORDER_LEVEL
        return [
            p for p in self.parts
            if p.stock_qty <= (p.reorder_level if p.reorder_level is not None else fallback)
        ]

    def out_of_stock(self) -> list[Part]:
        return [p for p in self.parts if p.stock_qty <= 0]
