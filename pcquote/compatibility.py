"""
Compatibility Resolver — decides which catalog parts can be offered next.

Given the parts already in a build and the active combination rules, returns
the subset of the active catalog that is compatible with the selection.

A part no active rule mentions is always offered.
Inactive rules and inactive parts never influence the result.
"""

import logging
from typing import Iterable, Optional

from .catalog import CatalogIndex
from .errors import ValidationError
from .models import CombinationRule, Part, RuleKind

logger = logging.getLogger(__name__)


def validate_rule(rule: CombinationRule) -> CombinationRule:
    """A rule needs a name and at least two members (parts + categories)."""
    if not rule.name.strip():
        raise ValidationError("Combination name is required", rule_id=rule.id)
    members = len(set(rule.parts)) + len(set(rule.categories))
    if members < 2:
        raise ValidationError(
            f"Combination '{rule.name}' needs at least 2 parts, got {members}",
            rule_id=rule.id,
        )
    return rule


class CompatibilityResolver:
    """Filters the active catalog down to parts compatible with a selection."""

    def __init__(self, catalog: CatalogIndex, rules: Iterable[CombinationRule] = ()):
        self.catalog = catalog
        self.rules: tuple[CombinationRule, ...] = tuple(rules)
        self._parts_by_id: dict[str, Part] = {p.id: p for p in catalog.parts}

    def active_rules(self) -> list[CombinationRule]:
        return [r for r in self.rules if r.is_active]

    def has_active_rules(self) -> bool:
        return any(r.is_active for r in self.rules)

    def compatible_parts(self, selected_part_ids: Optional[Iterable[str]] = None,
                         strict: bool = True) -> list[Part]:
        """
        Active parts compatible with the selection, in catalog order.

        Args:
            selected_part_ids: ids of parts already in the build (duplicates ok)
            strict: False turns filtering off ("show all parts" toggle)
        """
        active = self.catalog.active_parts()
        selected = set(selected_part_ids or ())
        rules = self.active_rules()

        if not strict or not selected or not rules:
            return active

        selected_categories = {
            self._parts_by_id[pid].category
            for pid in selected if pid in self._parts_by_id
        }
        matched = [r for r in rules if self._references(r, selected, selected_categories)]
        if not matched:
            return active

        includes: set[str] = set()
        excludes: set[str] = set()
        for rule in matched:
            if rule.kind == RuleKind.EXCLUDE:
                excludes |= self._members(rule)
            else:
                includes |= self._members(rule)

        # Inclusion wins over exclusion; the selection itself is never hidden
        excludes -= includes | selected

        if includes:
            # only inclusion rules narrow the choice; exclusions act when matched
            mentioned: set[str] = set()
            for rule in rules:
                if rule.kind == RuleKind.INCLUDE:
                    mentioned |= self._members(rule)
            unmentioned = {p.id for p in active if p.id not in mentioned}
            allowed = includes | selected | unmentioned
        else:
            allowed = {p.id for p in active}
        allowed -= excludes

        result = [p for p in active if p.id in allowed]
        logger.debug(
            "Resolved %d of %d active parts for selection %s (%d rules matched)",
            len(result), len(active), sorted(selected), len(matched),
        )
        return result

    def _members(self, rule: CombinationRule) -> set[str]:
        """Part ids a rule covers: explicit parts plus every part in its categories."""
        members = set(rule.parts)
        if rule.categories:
            categories = set(rule.categories)
            members.update(p.id for p in self.catalog.parts if p.category in categories)
        return members

    @staticmethod
    def _references(rule: CombinationRule, selected: set[str],
                    selected_categories: set[str]) -> bool:
        return bool(selected.intersection(rule.parts)) or bool(
            selected_categories.intersection(rule.categories)
        )
