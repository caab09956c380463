"""Environmental action categories and the keyword taxonomy used to verify them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Mapping


class ActionCategory(str, Enum):
    RECYCLE = "recycle"
    PLANT_TREE = "plant_tree"
    CLEAN_UP = "clean_up"
    REDUCE_ENERGY = "reduce_energy"
    CONSERVE_WATER = "conserve_water"

    @property
    def profile(self) -> "ActionProfile":
        return ACTION_PROFILES[self]

    @property
    def credit_value(self) -> int:
        return self.profile.credit_value

    @property
    def display_name(self) -> str:
        return self.profile.display_name

    @property
    def keywords(self) -> FrozenSet[str]:
        return self.profile.keywords


@dataclass(frozen=True)
class ActionProfile:
    display_name: str
    credit_value: int
    keywords: FrozenSet[str]
    description: str = ""
    example_action: str = ""


ACTION_PROFILES: Mapping[ActionCategory, ActionProfile] = {
    ActionCategory.RECYCLE: ActionProfile(
        display_name="Recycle",
        credit_value=5,
        keywords=frozenset(
            ["bottle", "container", "plastic", "paper", "cardboard", "can", "glass", "recycling"]
        ),
        description="Properly sort and recycle materials",
        example_action="Recycle a plastic bottle",
    ),
    ActionCategory.PLANT_TREE: ActionProfile(
        display_name="Plant a Tree",
        credit_value=10,
        keywords=frozenset(["tree", "plant", "garden", "soil", "sapling", "seedling", "nature"]),
        description="Contribute to local reforestation efforts",
        example_action="Plant a sapling in your garden",
    ),
    ActionCategory.CLEAN_UP: ActionProfile(
        display_name="Clean Up",
        credit_value=8,
        keywords=frozenset(["trash", "garbage", "waste", "litter", "cleaning", "beach", "park"]),
        description="Participate in community clean-up events",
        example_action="Pick up litter in your neighborhood",
    ),
    ActionCategory.REDUCE_ENERGY: ActionProfile(
        display_name="Reduce Energy",
        credit_value=6,
        keywords=frozenset(["light", "bulb", "led", "thermostat", "switch", "appliance"]),
        description="Implement energy-saving practices at home",
        example_action="Switch to LED bulbs",
    ),
    ActionCategory.CONSERVE_WATER: ActionProfile(
        display_name="Conserve Water",
        credit_value=7,
        keywords=frozenset(["water", "tap", "faucet", "shower", "irrigation", "garden"]),
        description="Adopt water-saving habits",
        example_action="Fix a leaky faucet",
    ),
}


def _validate_profiles(profiles: Mapping[ActionCategory, ActionProfile]) -> None:
    """Fail at import time if any category lacks a complete profile."""
    missing = [category.name for category in ActionCategory if category not in profiles]
    if missing:
        raise RuntimeError(f"Action categories without a profile: {', '.join(missing)}")

    for category, profile in profiles.items():
        if profile.credit_value <= 0:
            raise RuntimeError(f"{category.name} must award a positive credit value.")
        if not profile.keywords:
            raise RuntimeError(f"{category.name} has an empty keyword set.")
        if any(keyword != keyword.strip().lower() or not keyword for keyword in profile.keywords):
            raise RuntimeError(f"{category.name} keywords must be trimmed lowercase strings.")


_validate_profiles(ACTION_PROFILES)

_NAME_LOOKUP: Dict[str, ActionCategory] = {}
for _category in ActionCategory:
    _NAME_LOOKUP[_category.name.lower()] = _category
    _NAME_LOOKUP[_category.value.replace("_", "")] = _category
    _NAME_LOOKUP[_category.display_name.lower()] = _category
del _category


def keywords_for(category: ActionCategory) -> FrozenSet[str]:
    """Return the expected vocabulary for an action category."""
    return ACTION_PROFILES[category].keywords


def category_from_name(name: str) -> ActionCategory:
    """Resolve a category from its enum name, value or display name.

    Matching is case-insensitive, so ``"PlantTree"``, ``"plant_tree"`` and
    ``"Plant a Tree"`` all resolve to ``ActionCategory.PLANT_TREE``.
    """
    key = name.strip().lower()
    if key in _NAME_LOOKUP:
        return _NAME_LOOKUP[key]
    raise ValueError(f"Unknown action category: {name!r}")
