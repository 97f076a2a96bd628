"""Rate rule catalog with built-in fallback."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Protocol

from staffing_engine.calculators.types import PayRateRule, RateModel
from staffing_engine.catalog.defaults import BuiltinRuleProvider
from staffing_engine.catalog.positions import normalize_role

if TYPE_CHECKING:
    from staffing_engine.models import StaffPayRate
    from staffing_engine.stores.base import RateRuleStore

logger = logging.getLogger(__name__)


class DefaultRuleProvider(Protocol):
    def rules(self) -> list[PayRateRule]: ...


class RuleBook:
    """Immutable snapshot of pay rules keyed by position."""

    def __init__(self, rules: Iterable[PayRateRule], source: str):
        self._rules = {
            normalize_role(rule.position_key) or rule.position_key: rule for rule in rules
        }
        self.source = source

    def get_rule(self, position_key: str | None) -> PayRateRule | None:
        """Rule for a position key or label; None if none is configured."""
        role_id = normalize_role(position_key)
        if role_id is None:
            return None
        return self._rules.get(role_id)

    def __iter__(self) -> Iterator[PayRateRule]:
        return iter(sorted(self._rules.values(), key=lambda r: r.position_key))

    def __len__(self) -> int:
        return len(self._rules)


def rule_from_row(row: StaffPayRate) -> PayRateRule:
    """Convert a stored rate row; raises ValueError on an unknown rate type."""
    return PayRateRule(
        position_key=row.position_key,
        position_label=row.position_label,
        rate_model=RateModel(row.rate_type),
        parameters=dict(row.config) if isinstance(row.config, dict) else {},
        notes=row.notes or None,
        id=row.id,
    )


class RateRuleCatalog:
    """Loads pay rules from the store, falling back to defaults.

    Compensation must be computable before an administrator configures any
    rates, so an empty or failing store yields the default rule set, and
    standard positions missing from the store are filled from the defaults.
    """

    def __init__(
        self,
        store: RateRuleStore,
        defaults: DefaultRuleProvider | None = None,
    ):
        self.store = store
        self.defaults = defaults or BuiltinRuleProvider()

    async def load(self) -> RuleBook:
        """Load a rule snapshot."""
        try:
            async with self.store.savepoint():
                rows = await self.store.list_rules()
        except Exception:
            logger.warning("Failed to load pay rates, using defaults", exc_info=True)
            return RuleBook(self.defaults.rules(), source="defaults")

        stored: list[PayRateRule] = []
        for row in rows:
            try:
                stored.append(rule_from_row(row))
            except ValueError:
                logger.warning(
                    "Ignoring pay rate for %s with unknown rate type %r",
                    row.position_key,
                    row.rate_type,
                )

        if not stored:
            logger.warning("No pay rates configured, using defaults")
            return RuleBook(self.defaults.rules(), source="defaults")

        configured = {normalize_role(rule.position_key) for rule in stored}
        fill = [
            rule
            for rule in self.defaults.rules()
            if normalize_role(rule.position_key) not in configured
        ]
        return RuleBook([*fill, *stored], source="store")
