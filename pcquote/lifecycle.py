"""
Estimate Lifecycle — status machine, versioning and audit trail for estimates.

    Draft → Sent → Accepted → Converted
             │         │
             └─────────┴──→ Expired   (time-based, see expire_due)

Every stored edit bumps `version` and appends one AuditEntry. Totals are
re-derived from the line collections through PricingEngine on every edit, so
they can never drift from the lines. Estimates are immutable values: each
operation stores and returns a new Estimate.

Readiness gating (customer name, mobile, at least one part before leaving
Draft) is the caller's job, see check_ready(). transition() trusts the caller.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .compatibility import CompatibilityResolver
from .config import settings
from .errors import InvalidTransitionError, NotFoundError, ValidationError
from .line_items import add_part as append_part, add_service as append_service
from .model_library import ModelLibrary
from .models import (
    AuditEntry, Estimate, EstimateStatus, LineItem, Order, Part, Service, ServiceLine,
)
from .pricing_engine import PricingEngine
from .schemas import EstimateFields, EstimatePatch

logger = logging.getLogger(__name__)

S = EstimateStatus

# Edges allowed through transition(). Converted is also reachable from Sent,
# but only through convert_to_order(), which creates the order.
ALLOWED_TRANSITIONS: dict[EstimateStatus, frozenset] = {
    S.DRAFT: frozenset({S.SENT}),
    S.SENT: frozenset({S.ACCEPTED, S.EXPIRED}),
    S.ACCEPTED: frozenset({S.CONVERTED, S.EXPIRED}),
    S.CONVERTED: frozenset(),
    S.EXPIRED: frozenset(),
}
CONVERTIBLE_STATUSES = frozenset({S.SENT, S.ACCEPTED})
EXPIRABLE_STATUSES = frozenset({S.SENT, S.ACCEPTED})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def expires_on(estimate: Estimate) -> date:
    return estimate.issued_on + timedelta(days=estimate.validity_days)


def is_expired(estimate: Estimate, today: date) -> bool:
    """True once `today` is past the validity window. Status is not consulted."""
    return today > expires_on(estimate)


def check_ready(estimate: Estimate) -> None:
    """
    Minimum fields to move an estimate out of Draft.
    Raises ValidationError listing what is missing.
    """
    missing = []
    if not estimate.customer.strip():
        missing.append("customer name")
    if not estimate.mobile.strip():
        missing.append("mobile number")
    if not estimate.line_items:
        missing.append("at least one line item")
    if missing:
        raise ValidationError(
            f"Estimate {estimate.id} is missing: {', '.join(missing)}",
            estimate_id=estimate.id, missing=missing,
        )


def _next_number(existing_ids: Iterable[str], prefix: str, year: int) -> str:
    """PREFIX-YYYY-NNN, one past the highest number used this year."""
    stem = f"{prefix}-{year}-"
    highest = 0
    for existing in existing_ids:
        if existing.startswith(stem):
            try:
                highest = max(highest, int(existing[len(stem):]))
            except ValueError:
                continue
    return f"{stem}{str(highest + 1).zfill(3)}"


class EstimateLifecycle:
    """
    Owns the in-memory estimate store and every mutation of it.

    Collaborators are injected: a PricingEngine for totals, a
    CompatibilityResolver for add-more-parts offers, and a clock.
    """

    def __init__(self, pricing: Optional[PricingEngine] = None,
                 resolver: Optional[CompatibilityResolver] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 actor: Optional[str] = None):
        self.pricing = pricing or PricingEngine()
        self.resolver = resolver
        self._clock = clock or _utcnow
        self.actor = actor or settings.AUDIT_ACTOR
        self._estimates: dict[str, Estimate] = {}
        # every estimate id ever issued; deleted ids are never reused
        self._issued_ids: set[str] = set()
        self.orders: dict[str, Order] = {}

    # --- Queries ---

    def get(self, estimate_id: str) -> Estimate:
        try:
            return self._estimates[estimate_id]
        except KeyError:
            raise NotFoundError(f"Estimate '{estimate_id}' not found", id=estimate_id) from None

    def list_estimates(self, term: Optional[str] = None,
                       status: Optional[Union[EstimateStatus, str]] = None) -> list[Estimate]:
        """Search customer, id and mobile; optionally filter by status."""
        needle = (term or "").strip().lower()
        wanted = EstimateStatus(status) if status else None
        results = []
        for est in self._estimates.values():
            if wanted is not None and est.status != wanted:
                continue
            if needle and not (
                needle in est.customer.lower()
                or needle in est.id.lower()
                or needle in est.mobile
            ):
                continue
            results.append(est)
        return results

    def stats(self) -> dict:
        by_status = {s.value: 0 for s in EstimateStatus}
        for est in self._estimates.values():
            by_status[est.status.value] += 1
        return {
            "total_estimates": len(self._estimates),
            "by_status": by_status,
            "total_value": round(sum(e.total for e in self._estimates.values()), 2),
        }

    # --- Mutations ---

    def create(self, fields: Union[EstimateFields, dict, None] = None,
               lines: Iterable[LineItem] = (),
               services: Iterable[ServiceLine] = ()) -> Estimate:
        """New Draft estimate, version 1, priced, with a single 'Created' audit entry."""
        fields = self._coerce(EstimateFields, fields or {})
        line_items = tuple(lines)
        service_lines = tuple(services)
        summary = self.pricing.price_lines(line_items, service_lines)

        validity_days = fields.validity_days
        if validity_days is None:
            validity_days = settings.DEFAULT_VALIDITY_DAYS
        self._check_validity_days(validity_days)

        now = self._clock()
        estimate = Estimate(
            id=_next_number(self._issued_ids, settings.ESTIMATE_ID_PREFIX, now.year),
            customer=fields.customer,
            mobile=fields.mobile,
            email=fields.email,
            address=fields.address,
            issued_on=now.date(),
            validity_days=validity_days,
            notes=fields.notes,
            status=S.DRAFT,
            line_items=line_items,
            service_lines=service_lines,
            version=1,
            audit_trail=(self._audit(now, "Created", f"Estimate created for {fields.customer}"),),
            created_at=now,
            updated_at=now,
            **summary.model_dump(),
        )
        self._estimates[estimate.id] = estimate
        self._issued_ids.add(estimate.id)
        logger.info("Created estimate %s for %r (total %.2f)", estimate.id, estimate.customer, estimate.total)
        return estimate

    def update(self, estimate_id: str, patch: Union[EstimatePatch, dict],
               audit_label: str = "Updated") -> Estimate:
        """Apply a patch, re-price, bump version, append an audit entry."""
        current = self.get(estimate_id)
        patch = self._coerce(EstimatePatch, patch)

        changes = {name: getattr(patch, name) for name in patch.model_fields_set}
        changes = {k: v for k, v in changes.items() if v is not None}
        line_keys = {"line_items", "service_lines"} & set(changes)
        if line_keys and current.status == S.CONVERTED:
            logger.warning(
                "Estimate %s is linked to order %s; line edit refused", estimate_id, current.order_id,
            )
            raise ValidationError(
                f"Estimate {estimate_id} is converted to order {current.order_id}; its lines are locked",
                estimate_id=estimate_id, order_id=current.order_id, field=sorted(line_keys)[0],
            )
        for key in line_keys:
            changes[key] = tuple(changes[key])
        if "validity_days" in changes:
            self._check_validity_days(changes["validity_days"])

        return self._commit(current, changes, audit_label)

    def transition(self, estimate_id: str, new_status: Union[EstimateStatus, str]) -> Estimate:
        """
        Move along one allowed edge. Anything else raises InvalidTransitionError
        and the stored estimate is left untouched.
        """
        current = self.get(estimate_id)
        try:
            target = EstimateStatus(new_status)
        except ValueError:
            logger.warning("Estimate %s: unknown status %r requested", estimate_id, new_status)
            raise InvalidTransitionError(current.status, new_status) from None

        if target not in ALLOWED_TRANSITIONS[current.status]:
            logger.warning(
                "Estimate %s: rejected transition %s -> %s",
                estimate_id, current.status.value, target.value,
            )
            raise InvalidTransitionError(current.status, target)

        return self._commit(current, {"status": target}, f"Status changed to {target.value}")

    def convert_to_order(self, estimate_id: str) -> tuple[Order, Estimate]:
        """
        Create the order for a Sent/Accepted estimate and mark it Converted.
        Confirmation happens at the caller; once invoked this always converts.
        """
        current = self.get(estimate_id)
        if current.status not in CONVERTIBLE_STATUSES:
            logger.warning(
                "Estimate %s: cannot convert from %s", estimate_id, current.status.value,
            )
            raise InvalidTransitionError(current.status, S.CONVERTED)

        now = self._clock()
        order = Order(
            id=_next_number(self.orders, settings.ORDER_ID_PREFIX, now.year),
            estimate_id=current.id,
            customer=current.customer,
            mobile=current.mobile,
            email=current.email,
            address=current.address,
            order_date=now.date(),
            items=current.line_items,
            service_lines=current.service_lines,
            subtotal=current.subtotal,
            tax=current.tax,
            total=current.total,
            created_at=now,
        )
        self.orders[order.id] = order
        updated = self._commit(
            current, {"status": S.CONVERTED, "order_id": order.id}, "Converted to Order",
        )
        logger.info("Estimate %s converted to order %s", estimate_id, order.id)
        return order, updated

    def delete(self, estimate_id: str) -> None:
        """Remove an estimate. The caller has already confirmed."""
        current = self.get(estimate_id)
        if current.status == S.CONVERTED and not settings.ALLOW_DELETE_CONVERTED:
            logger.warning(
                "Estimate %s is linked to order %s; delete refused", estimate_id, current.order_id,
            )
            raise InvalidTransitionError(current.status, "Deleted")
        del self._estimates[estimate_id]
        logger.info("Deleted estimate %s", estimate_id)

    def expire_due(self, today: Optional[date] = None) -> list[Estimate]:
        """Expire every Sent/Accepted estimate whose validity window has passed."""
        today = today or self._clock().date()
        expired = []
        for est in list(self._estimates.values()):
            if est.status in EXPIRABLE_STATUSES and is_expired(est, today):
                expired.append(self.transition(est.id, S.EXPIRED))
        return expired

    # --- Editing conveniences ---

    def add_part(self, estimate_id: str, part: Part) -> Estimate:
        current = self.get(estimate_id)
        lines = append_part(current.line_items, part)
        return self.update(estimate_id, EstimatePatch(line_items=list(lines)), f"Added {part.name}")

    def add_service(self, estimate_id: str, service: Service) -> Estimate:
        current = self.get(estimate_id)
        lines = append_service(current.service_lines, service)
        return self.update(estimate_id, EstimatePatch(service_lines=list(lines)), f"Added {service.name}")

    def load_model(self, estimate_id: str, model_id: str, library: ModelLibrary) -> Estimate:
        """Append copies of a saved model's lines."""
        current = self.get(estimate_id)
        model = library.get(model_id)
        lines = list(current.line_items) + library.load(model_id)
        return self.update(estimate_id, EstimatePatch(line_items=lines), f"Loaded model {model.name}")

    def offer_parts(self, estimate_id: str, strict: bool = True) -> list[Part]:
        """Parts that can still be added, given what is already on the estimate."""
        if self.resolver is None:
            raise RuntimeError("EstimateLifecycle has no CompatibilityResolver configured")
        return self.resolver.compatible_parts(self.get(estimate_id).selected_part_ids, strict=strict)

    # --- Internals ---

    def _commit(self, current: Estimate, changes: dict, action: str) -> Estimate:
        line_items = changes.get("line_items", current.line_items)
        service_lines = changes.get("service_lines", current.service_lines)
        summary = self.pricing.price_lines(line_items, service_lines)

        now = self._clock()
        updated = current.model_copy(update={
            **changes,
            **summary.model_dump(),
            "version": current.version + 1,
            "updated_at": now,
            "audit_trail": current.audit_trail + (
                self._audit(now, action, f"Estimate {action.lower()}"),
            ),
        })
        self._estimates[updated.id] = updated
        logger.info("Estimate %s v%d: %s", updated.id, updated.version, action)
        return updated

    def _audit(self, when: datetime, action: str, details: str) -> AuditEntry:
        return AuditEntry(timestamp=when, action=action, actor=self.actor, details=details)

    @staticmethod
    def _check_validity_days(days: int) -> None:
        if days < 1:
            raise ValidationError(f"Validity must be at least 1 day, got {days}", field="validity_days")

    @staticmethod
    def _coerce(model_cls, data):
        if isinstance(data, model_cls):
            return data
        try:
            return model_cls.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(str(exc)) from exc
