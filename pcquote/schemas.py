from pydantic import BaseModel
from typing import Optional, List

from .models import LineItem, ServiceLine


class EstimateFields(BaseModel):
    """Customer and document fields captured when an estimate is created."""
    customer: str = ""
    mobile: str = ""
    email: str = ""
    address: str = ""
    validity_days: Optional[int] = None
    notes: str = ""


class EstimatePatch(BaseModel):
    """
    Partial edit of an estimate. Unset fields are left alone.
    Status, version, audit trail and totals are not patchable.
    """
    customer: Optional[str] = None
    mobile: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    validity_days: Optional[int] = None
    notes: Optional[str] = None
    line_items: Optional[List[LineItem]] = None
    service_lines: Optional[List[ServiceLine]] = None

    class Config:
        extra = "forbid"
