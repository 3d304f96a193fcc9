from datetime import date, datetime
from typing import Optional, Tuple
import enum
import uuid

from pydantic import BaseModel, Field

from .config import settings


# --- Enums ---

class EstimateStatus(str, enum.Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    ACCEPTED = "Accepted"
    CONVERTED = "Converted"
    EXPIRED = "Expired"


class RuleKind(str, enum.Enum):
    INCLUDE = "include"
    # exclusions only subtract parts no matched include rule offers
    EXCLUDE = "exclude"


def new_line_id() -> str:
    return uuid.uuid4().hex


# --- Catalog records (owned by the catalog, read-only here) ---

class Part(BaseModel):
    """A catalog hardware component."""
    id: str
    name: str
    sku: str = ""
    category: str = ""
    unit_price: float = 0.0  # selling price
    mrp: Optional[float] = None
    tax_rate: Optional[float] = None  # percent; None falls back to DEFAULT_TAX_RATE
    stock_qty: int = 0
    reorder_level: Optional[int] = None
    part_id: Optional[str] = None  # secondary identifier printed on the box
    is_active: bool = True

    class Config:
        frozen = True


class Service(BaseModel):
    """A labor/service addon billed per unit."""
    id: str
    name: str
    unit: str = Field(default_factory=lambda: settings.DEFAULT_SERVICE_UNIT)
    unit_price: float = 0.0
    tax_rate: Optional[float] = None
    description: Optional[str] = None
    is_active: bool = True

    class Config:
        frozen = True


class CombinationRule(BaseModel):
    """
    Compatibility rule. Members are part ids and whole categories.
    A rule applies to a selection when any selected part is a member.
    """
    id: str
    name: str = ""
    description: Optional[str] = None
    kind: RuleKind = RuleKind.INCLUDE
    parts: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    is_active: bool = True

    class Config:
        frozen = True


# --- Estimate snapshots ---

class LineItem(BaseModel):
    """Priced snapshot of a Part inside an estimate or saved model."""
    id: str = Field(default_factory=new_line_id)
    item_id: str
    name: str
    sku: str = ""
    category: str = ""
    unit_price: float = 0.0
    qty: int = 1
    tax_rate: float = Field(default_factory=lambda: settings.DEFAULT_TAX_RATE)
    discount: float = 0.0  # percent

    class Config:
        frozen = True


class ServiceLine(BaseModel):
    """Priced snapshot of a Service inside an estimate."""
    id: str = Field(default_factory=new_line_id)
    addon_id: str
    name: str
    unit: str = Field(default_factory=lambda: settings.DEFAULT_SERVICE_UNIT)
    unit_price: float = 0.0
    qty: int = 1
    tax_rate: float = Field(default_factory=lambda: settings.DEFAULT_TAX_RATE)

    class Config:
        frozen = True


class PriceSummary(BaseModel):
    parts_subtotal: float = 0.0
    parts_tax: float = 0.0
    services_subtotal: float = 0.0
    services_tax: float = 0.0
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0

    class Config:
        frozen = True


class AuditEntry(BaseModel):
    timestamp: datetime
    action: str
    actor: str
    details: str = ""

    class Config:
        frozen = True


class Estimate(BaseModel):
    """
    Versioned quotation. Financial fields always mirror PricingEngine output
    for the current line_items/service_lines. Only EstimateLifecycle sets them.
    """
    id: str
    customer: str = ""
    mobile: str = ""
    email: str = ""
    address: str = ""
    issued_on: date
    validity_days: int = Field(default_factory=lambda: settings.DEFAULT_VALIDITY_DAYS)
    notes: str = ""
    status: EstimateStatus = EstimateStatus.DRAFT
    line_items: Tuple[LineItem, ...] = ()
    service_lines: Tuple[ServiceLine, ...] = ()

    # Totals
    parts_subtotal: float = 0.0
    parts_tax: float = 0.0
    services_subtotal: float = 0.0
    services_tax: float = 0.0
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0

    version: int = 1
    audit_trail: Tuple[AuditEntry, ...] = ()
    order_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        frozen = True

    @property
    def selected_part_ids(self) -> list[str]:
        return [li.item_id for li in self.line_items]


class SavedModel(BaseModel):
    """Named reusable bundle of line items."""
    id: str
    name: str
    items: Tuple[LineItem, ...]
    created_at: datetime

    class Config:
        frozen = True


class Order(BaseModel):
    """Order request handed to order management by convert_to_order."""
    id: str
    estimate_id: str
    customer: str = ""
    mobile: str = ""
    email: str = ""
    address: str = ""
    order_date: date
    items: Tuple[LineItem, ...] = ()
    service_lines: Tuple[ServiceLine, ...] = ()
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    status: str = "Pending"
    payment_status: str = "Pending"
    created_at: datetime

    class Config:
        frozen = True
