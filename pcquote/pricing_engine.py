"""
Pricing Engine — parts and service lines to subtotal, GST and grand total.

Pure math. Quantity × price, minus line discount, plus line GST.

Input: LineItem snapshots + ServiceLine snapshots
Output: PriceSummary

Rounding: per-line values stay unrounded; each group sum is taken with
math.fsum (exact, so line order never matters) and rounded to 2 places.
Combined fields are sums of the rounded group figures, rounded again.
"""

import math
from typing import Iterable

from .errors import InputRangeError, ValidationError
from .models import LineItem, PriceSummary, ServiceLine


class PricingEngine:
    """
    Prices an estimate's line collections.
    Bad inputs raise; nothing is clamped.
    """

    MONEY_PLACES = 2
    MAX_DISCOUNT = 100.0

    def price_lines(self, line_items: Iterable[LineItem],
                    service_lines: Iterable[ServiceLine] = ()) -> PriceSummary:
        """
        Returns:
            PriceSummary {
                parts_subtotal, parts_tax,
                services_subtotal, services_tax,
                subtotal, tax, total,
            }
        """
        parts = list(line_items)
        services = list(service_lines)

        parts_subtotal = self._money(math.fsum(self.line_total(li) for li in parts))
        parts_tax = self._money(math.fsum(self.line_tax(li) for li in parts))
        services_subtotal = self._money(math.fsum(self.service_total(sl) for sl in services))
        services_tax = self._money(math.fsum(self.service_tax(sl) for sl in services))

        subtotal = self._money(parts_subtotal + services_subtotal)
        tax = self._money(parts_tax + services_tax)

        return PriceSummary(
            parts_subtotal=parts_subtotal,
            parts_tax=parts_tax,
            services_subtotal=services_subtotal,
            services_tax=services_tax,
            subtotal=subtotal,
            tax=tax,
            total=self._money(subtotal + tax),
        )

    # --- Per-line ---

    def line_total(self, item: LineItem) -> float:
        """unit_price × qty, less discount percent."""
        self._check_line(item)
        base = item.unit_price * item.qty
        return base - (item.discount / 100.0) * base

    def line_tax(self, item: LineItem) -> float:
        return (item.tax_rate / 100.0) * self.line_total(item)

    def service_total(self, line: ServiceLine) -> float:
        """unit_price × qty. Services carry no discount."""
        self._check_service(line)
        return line.unit_price * line.qty

    def service_tax(self, line: ServiceLine) -> float:
        return (line.tax_rate / 100.0) * self.service_total(line)

    # --- Validation ---

    def _check_line(self, item: LineItem) -> None:
        self._check_common(item.id, item.name, item.qty, item.unit_price, item.tax_rate)
        if item.discount < 0 or item.discount > self.MAX_DISCOUNT:
            raise InputRangeError(
                f"Discount for '{item.name}' must be between 0 and 100, got {item.discount}",
                line_id=item.id, field="discount",
            )

    def _check_service(self, line: ServiceLine) -> None:
        self._check_common(line.id, line.name, line.qty, line.unit_price, line.tax_rate)

    @staticmethod
    def _check_common(line_id: str, name: str, qty: int, unit_price: float, tax_rate: float) -> None:
        if qty < 1:
            raise ValidationError(
                f"Quantity for '{name}' must be at least 1, got {qty}",
                line_id=line_id, field="qty",
            )
        if unit_price < 0:
            raise InputRangeError(
                f"Unit price for '{name}' cannot be negative, got {unit_price}",
                line_id=line_id, field="unit_price",
            )
        if tax_rate < 0:
            raise InputRangeError(
                f"GST rate for '{name}' cannot be negative, got {tax_rate}",
                line_id=line_id, field="tax_rate",
            )

    def _money(self, value: float) -> float:
        return round(value, self.MONEY_PLACES)
