"""
Line item helpers — build snapshots from catalog entries and edit line tuples.

Snapshots copy price, GST and naming at the moment a part/service is added,
so later catalog price changes never alter an existing estimate.
All helpers return new tuples; inputs are never modified.
"""

from typing import Iterable, Tuple

from .config import settings
from .errors import NotFoundError, ValidationError
from .models import LineItem, Part, Service, ServiceLine, new_line_id


def line_from_part(part: Part, qty: int = 1) -> LineItem:
    return LineItem(
        item_id=part.id,
        name=part.name,
        sku=part.sku,
        category=part.category,
        unit_price=part.unit_price,
        qty=qty,
        tax_rate=part.tax_rate if part.tax_rate is not None else settings.DEFAULT_TAX_RATE,
        discount=0.0,
    )


def line_from_service(service: Service, qty: int = 1) -> ServiceLine:
    return ServiceLine(
        addon_id=service.id,
        name=service.name,
        unit=service.unit,
        unit_price=service.unit_price,
        qty=qty,
        tax_rate=service.tax_rate if service.tax_rate is not None else settings.DEFAULT_TAX_RATE,
    )


def add_part(lines: Iterable[LineItem], part: Part) -> Tuple[LineItem, ...]:
    """Append a snapshot of `part`, or bump qty if the part is already on the estimate."""
    lines = tuple(lines)
    for idx, li in enumerate(lines):
        if li.item_id == part.id:
            bumped = li.model_copy(update={"qty": li.qty + 1})
            return lines[:idx] + (bumped,) + lines[idx + 1:]
    return lines + (line_from_part(part),)


def add_service(lines: Iterable[ServiceLine], service: Service) -> Tuple[ServiceLine, ...]:
    """Append a snapshot of `service`, or bump qty if it is already on the estimate."""
    lines = tuple(lines)
    for idx, sl in enumerate(lines):
        if sl.addon_id == service.id:
            bumped = sl.model_copy(update={"qty": sl.qty + 1})
            return lines[:idx] + (bumped,) + lines[idx + 1:]
    return lines + (line_from_service(service),)


def remove_line(lines: Iterable, line_id: str) -> tuple:
    lines = tuple(lines)
    kept = tuple(line for line in lines if line.id != line_id)
    if len(kept) == len(lines):
        raise NotFoundError(f"No line with id '{line_id}'", id=line_id)
    return kept


def update_line(lines: Iterable, line_id: str, **changes) -> tuple:
    """Replace fields on one line. The line id itself can't be changed."""
    if "id" in changes:
        raise ValidationError("Line id cannot be changed", line_id=line_id)
    lines = tuple(lines)
    for idx, line in enumerate(lines):
        if line.id == line_id:
            unknown = set(changes) - set(type(line).model_fields)
            if unknown:
                raise ValidationError(
                    f"Unknown line fields: {sorted(unknown)}", line_id=line_id,
                )
            updated = type(line).model_validate({**line.model_dump(), **changes})
            return lines[:idx] + (updated,) + lines[idx + 1:]
    raise NotFoundError(f"No line with id '{line_id}'", id=line_id)


def copy_lines(lines: Iterable[LineItem]) -> Tuple[LineItem, ...]:
    """Copies of `lines`, each with a fresh id."""
    return tuple(li.model_copy(update={"id": new_line_id()}) for li in lines)
