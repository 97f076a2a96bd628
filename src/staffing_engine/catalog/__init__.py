"""Positions and pay rule catalog."""

from staffing_engine.catalog.defaults import BuiltinRuleProvider
from staffing_engine.catalog.positions import (
    POSITIONS,
    Position,
    RoleId,
    get_position,
    normalize_role,
    role_label,
)
from staffing_engine.catalog.rate_catalog import RateRuleCatalog, RuleBook

__all__ = [
    "BuiltinRuleProvider",
    "POSITIONS",
    "Position",
    "RoleId",
    "get_position",
    "normalize_role",
    "role_label",
    "RateRuleCatalog",
    "RuleBook",
]
