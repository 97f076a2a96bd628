"""Built-in pay rules used until an administrator configures custom rates."""

from __future__ import annotations

from staffing_engine.calculators.types import PayRateRule, RateModel
from staffing_engine.catalog.positions import POSITION_GROUPS, get_position

KITCHEN_MIX_KEYS = [key for key, _ in POSITION_GROUPS["Kitchen"]]
OPERATOR_KEYS = [key for key, _ in POSITION_GROUPS["Event Operators"]]


def _label(key: str) -> str:
    position = get_position(key)
    return position.label if position else key.replace("_", " ")


class BuiltinRuleProvider:
    """Supplies the default rule set.

    Injected into :class:`~staffing_engine.catalog.rate_catalog.RateRuleCatalog`
    so tests and deployments can swap in their own defaults.
    """

    def rules(self) -> list[PayRateRule]:
        rules = [
            PayRateRule(
                position_key="sales_logistics_1",
                position_label=_label("sales_logistics_1"),
                rate_model=RateModel.PERCENT_REVENUE,
                parameters={"percentage": 6, "revenue_basis": "pre_tax"},
                notes="6% of accepted quote pre-tax revenue",
            ),
        ]
        for key in ("driver_a", "driver_b"):
            rules.append(
                PayRateRule(
                    position_key=key,
                    position_label=_label(key),
                    rate_model=RateModel.PER_DIRECTION,
                    parameters={"amount_per_direction": 125, "default_directions": 2},
                    notes="MX$125 per direction (depart + return)",
                )
            )
        for key in OPERATOR_KEYS:
            rules.append(
                PayRateRule(
                    position_key=key,
                    position_label=_label(key),
                    rate_model=RateModel.TIERED_HOURS,
                    parameters={
                        "base_hours": 6,
                        "base_amount": 600,
                        "overtime_rate": 50,
                        "default_hours": 6,
                    },
                    notes="MX$600 first 6 hours, MX$50 per additional hour",
                )
            )
        rules.append(
            PayRateRule(
                position_key="box_prep",
                position_label=_label("box_prep"),
                rate_model=RateModel.FLAT,
                parameters={"amount": 200},
                notes="MX$200 per event",
            )
        )
        rules.append(
            PayRateRule(
                position_key="cleaning",
                position_label=_label("cleaning"),
                rate_model=RateModel.FLAT,
                parameters={"amount": 350},
                notes="MX$350 per event",
            )
        )
        for key in KITCHEN_MIX_KEYS:
            rules.append(
                PayRateRule(
                    position_key=key,
                    position_label=_label(key),
                    rate_model=RateModel.TIERED_QUANTITY,
                    parameters={
                        "base_quantity": 2,
                        "base_amount": 600,
                        "extra_rate": 100,
                        "unit_label": "kg",
                    },
                    notes="First 2kg = MX$600, +MX$100 per extra kg",
                )
            )
        return rules
