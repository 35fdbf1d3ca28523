"""Component registry and factory."""

from __future__ import annotations

from collections.abc import Callable

from .base import IComponent
from .bouncing_ball import BouncingBall
from .dahlquist import Dahlquist
from .stair import Stair


ComponentFactory = Callable[[dict], IComponent]


_REGISTRY: dict[str, ComponentFactory] = {
    "bouncing_ball": lambda params: BouncingBall(params=params),
    "bouncingball": lambda params: BouncingBall(params=params),
    "dahlquist": lambda params: Dahlquist(params=params),
    "stair": lambda params: Stair(params=params),
}


def register_component(name: str, factory: ComponentFactory) -> None:
    _REGISTRY[name.lower()] = factory


def available_components() -> list[str]:
    return sorted(_REGISTRY)


def create_component(name: str, params: dict | None = None) -> IComponent:
    key = name.lower()
    if key not in _REGISTRY:
        raise ValueError(f"unknown component {name}")
    return _REGISTRY[key](params or {})
