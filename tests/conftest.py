"""
Shared test fixtures — sample catalog, combination rules, fixed clock, lifecycle.
"""

from datetime import datetime, timedelta, timezone

import pytest

from pcquote.catalog import CatalogIndex
from pcquote.compatibility import CompatibilityResolver
from pcquote.lifecycle import EstimateLifecycle
from pcquote.model_library import ModelLibrary
from pcquote.models import CombinationRule, LineItem, Part, Service, ServiceLine


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def _sample_parts():
    return [
        Part(id="cpu-1", name="Intel Core i5-12400", sku="BX8071512400", category="Processor",
             unit_price=15500, mrp=18000, tax_rate=18, stock_qty=12, part_id="I5-12400"),
        Part(id="cpu-2", name="AMD Ryzen 5 5600X", sku="100-100000065", category="Processor",
             unit_price=14200, mrp=16500, tax_rate=18, stock_qty=3),
        Part(id="mb-1", name="ASUS Prime B660M-A", sku="B660M-A", category="Motherboard",
             unit_price=11800, mrp=13500, tax_rate=18, stock_qty=6),
        Part(id="mb-2", name="MSI B550M Pro-VDH", sku="B550M-PRO", category="Motherboard",
             unit_price=9800, mrp=11000, tax_rate=18, stock_qty=0),
        Part(id="GPU-1", name="NVIDIA RTX 3060 12GB", sku="RTX3060-12G", category="Graphics Card",
             unit_price=28500, mrp=32000, tax_rate=18, stock_qty=4),
        Part(id="ram-1", name="Corsair Vengeance 16GB DDR4", sku="CMK16GX4M2B3200C16",
             category="Memory", unit_price=3900, mrp=4500, tax_rate=18, stock_qty=20),
        Part(id="ram-2", name="Kingston Fury 16GB DDR5", sku="KF552C40BB-16", category="Memory",
             unit_price=5200, mrp=6100, tax_rate=18, stock_qty=8),
        Part(id="psu-old", name="Generic 400W PSU", sku="GEN-400", category="Power Supply",
             unit_price=1200, mrp=1500, tax_rate=18, stock_qty=2, is_active=False),
        Part(id="case-1", name="Ant Esports ICE-112", sku="ICE-112", category="Cabinet",
             unit_price=3100, mrp=3999, tax_rate=18, stock_qty=9),
    ]


def _sample_services():
    return [
        Service(id="svc-assembly", name="PC Assembly", unit="Per Build", unit_price=500, tax_rate=18),
        Service(id="svc-os", name="OS Installation", unit="Per Install", unit_price=300, tax_rate=18),
        Service(id="svc-visit", name="Home Visit", unit_price=250, tax_rate=18, is_active=False),
    ]


def _sample_rules():
    return [
        CombinationRule(id="combo-intel", name="Intel 12th Gen Budget Build",
                        parts=("cpu-1", "mb-1", "ram-1")),
        CombinationRule(id="combo-amd", name="AMD AM4 Build",
                        parts=("cpu-2", "mb-2", "ram-1")),
    ]


@pytest.fixture
def parts():
    return _sample_parts()


@pytest.fixture
def services():
    return _sample_services()


@pytest.fixture
def catalog(parts, services):
    return CatalogIndex(parts, services)


@pytest.fixture
def rules():
    return _sample_rules()


@pytest.fixture
def resolver(catalog, rules):
    return CompatibilityResolver(catalog, rules)


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def lifecycle(resolver, clock):
    return EstimateLifecycle(resolver=resolver, clock=clock)


@pytest.fixture
def library(clock):
    return ModelLibrary(clock=clock)


@pytest.fixture
def gpu_line():
    """The worked example part: 1000 × 2, 10% off, 18% GST."""
    return LineItem(item_id="GPU-1", name="NVIDIA RTX 3060 12GB", category="Graphics Card",
                    unit_price=1000, qty=2, tax_rate=18, discount=10)


@pytest.fixture
def assembly_line():
    """The worked example service: 500 × 1, 18% GST."""
    return ServiceLine(addon_id="svc-assembly", name="PC Assembly", unit="Per Build",
                       unit_price=500, qty=1, tax_rate=18)


@pytest.fixture
def customer_fields():
    return {
        "customer": "Ravi Kumar",
        "mobile": "9876543210",
        "email": "ravi@example.com",
        "address": "12 MG Road, Bengaluru",
        "notes": "Gaming build, wants white cabinet if possible",
    }
