"""Estimate core for a PC-hardware point of sale: compatibility, pricing, lifecycle."""

from .catalog import CatalogIndex
from .compatibility import CompatibilityResolver, validate_rule
from .errors import (
    InputRangeError, InvalidTransitionError, NotFoundError, PcQuoteError, ValidationError,
)
from .lifecycle import EstimateLifecycle, check_ready, is_expired
from .model_library import ModelLibrary
from .models import (
    CombinationRule, Estimate, EstimateStatus, LineItem, Order, Part, PriceSummary,
    RuleKind, SavedModel, Service, ServiceLine,
)
from .pricing_engine import PricingEngine

__version__ = "1.0.0"
