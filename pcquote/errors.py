"""
Error kinds raised by the estimate core.

Every error carries a stable `code` so presentation code can tell them apart
without string-matching messages.
"""


class PcQuoteError(Exception):
    """Base class for all core errors."""

    code = "error"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(PcQuoteError, LookupError):
    """Identifier lookup miss (catalog, estimate store, model library)."""

    code = "not_found"


class InvalidTransitionError(PcQuoteError):
    """Requested status edge is not allowed. The estimate is left unchanged."""

    code = "invalid_transition"

    def __init__(self, current, requested):
        current_value = getattr(current, "value", current)
        requested_value = getattr(requested, "value", requested)
        super().__init__(
            f"Cannot move estimate from {current_value} to {requested_value}",
            current=current_value,
            requested=requested_value,
        )
        self.current = current
        self.requested = requested


class ValidationError(PcQuoteError, ValueError):
    """Empty name, empty line collection, quantity below 1, missing required fields."""

    code = "validation_error"


class InputRangeError(PcQuoteError, ValueError):
    """Negative tax rate or price, discount outside 0-100."""

    code = "input_range_error"
