"""Staffing positions and role normalization.

Assignments store roles as human labels ("Driver A") while the positions grid
addresses them by key ("driver_a"). Both representations collapse to one
``RoleId`` through :func:`normalize_role`; nothing else should compare roles.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NewType

RoleId = NewType("RoleId", str)


@dataclass(frozen=True)
class Position:
    """A staffing position offered on the positions grid."""

    key: RoleId
    label: str
    category: str


POSITION_GROUPS: dict[str, list[tuple[str, str]]] = {
    "Drivers": [
        ("driver_a", "Driver A"),
        ("driver_b", "Driver B"),
    ],
    "Event Operators": [
        (f"operator_{n}", f"Operator {n}") for n in range(1, 7)
    ],
    "Warehouse": [
        ("box_prep", "Box Prep"),
        ("cleaning", "Cleaning"),
    ],
    "Kitchen": [
        ("churro_dough", "Churro Dough"),
        ("pancakes_mix", "Pancakes Mix"),
        ("waffles_mix", "Waffles Mix"),
        ("rollz_mix", "Rollz Mix"),
        ("donut_mix", "Donut Mix"),
        ("crepe_mix", "Crepe Mix"),
    ],
    "Sales & Logistics": [
        ("sales_logistics_1", "Sales & Logistics"),
    ],
}

POSITIONS: list[Position] = [
    Position(key=RoleId(key), label=label, category=category)
    for category, entries in POSITION_GROUPS.items()
    for key, label in entries
]

_BY_KEY: dict[str, Position] = {p.key: p for p in POSITIONS}
_BY_LABEL: dict[str, Position] = {p.label.lower(): p for p in POSITIONS}

_NON_WORD = re.compile(r"[^a-z0-9]+")


def get_position(role: RoleId | str | None) -> Position | None:
    """Return the catalog position for a key or label, if it is a known one."""
    role_id = normalize_role(role)
    if role_id is None:
        return None
    return _BY_KEY.get(role_id)


def normalize_role(value: str | None) -> RoleId | None:
    """Collapse a position key or label to its canonical RoleId.

    Known keys and labels (case-insensitive) map to the catalog key. Anything
    else is slugged, so "Custom Helper" and "custom_helper" are the same role.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if text in _BY_KEY:
        return RoleId(text)
    position = _BY_LABEL.get(text.lower())
    if position is not None:
        return position.key
    slug = _NON_WORD.sub("_", text.lower()).strip("_")
    if slug in _BY_KEY:
        return RoleId(slug)
    return RoleId(slug) if slug else None


def role_label(role_id: RoleId) -> str:
    """Human label stored on assignment rows for a RoleId."""
    position = _BY_KEY.get(role_id)
    if position is not None:
        return position.label
    return " ".join(word.capitalize() for word in role_id.split("_") if word)


def is_known_role(role_id: RoleId) -> bool:
    return role_id in _BY_KEY
