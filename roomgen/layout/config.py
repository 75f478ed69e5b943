"""Layout generation configuration.

Values resolve in three layers: dataclass defaults, then ``ROOMGEN_*``
environment variables, then ``ROOMGEN_*`` keys on the active Flask app config
(highest precedence, only when an app context exists).
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Tuple
import os

from flask import current_app, has_app_context

SHAPE_CATEGORIES = ('dead-end', 'straight', 'turn', 't-junction', 'crossroad')
TIERS = ('early', 'mid', 'late', 'locked')

LOCKED_FRACTION_MIN = 0.2
LOCKED_FRACTION_MAX = 0.5


class LayoutConfigError(ValueError):
    """Raised for caller-supplied configuration that cannot be generated."""


@dataclass(frozen=True)
class TierRule:
    chance: float
    min_count: int
    max_count: int


DEFAULT_TIER_RULES: Dict[str, TierRule] = {
    'early': TierRule(0.2, 1, 1),
    'mid': TierRule(0.4, 1, 2),
    'late': TierRule(0.6, 1, 2),
    'locked': TierRule(1.0, 2, 3),
}


def _default_pools() -> Dict[str, List[str]]:
    return {cat: [f"{cat}-a"] for cat in SHAPE_CATEGORIES}


@dataclass
class LayoutConfig:
    seed: Optional[int] = None
    cell_size: float = 1000.0
    cell_count: int = 15
    extra_door_chance: float = 0.3
    locked_fraction: float = 0.3
    enemy_budget: int = 3
    treasure_budget: int = 2
    enemies_per_room: float = 0.3
    min_dead_end_depth: int = 3
    forced_corridor: bool = True
    grid_bounds: Optional[Tuple[int, int, int, int]] = None
    extra_doors_before_carving: bool = True
    tier_rules: Dict[str, TierRule] = field(default_factory=lambda: dict(DEFAULT_TIER_RULES))
    tier_order: Tuple[str, ...] = TIERS
    loot_fraction: float = 0.3
    shape_pools: Dict[str, List[str]] = field(default_factory=_default_pools)
    role_variants: Dict[str, Optional[str]] = field(
        default_factory=lambda: {'safe': 'safe-room', 'key': 'key-room', 'exit': 'ladder-room'}
    )
    key_class: Optional[str] = 'key'
    locked_door_class: Optional[str] = 'locked-door'
    treasure_class: Optional[str] = 'treasure'
    enemy_class: Optional[str] = 'enemy'
    spawn_height: float = 100.0
    enable_metrics: bool = True

    def __post_init__(self):
        self.locked_fraction = min(LOCKED_FRACTION_MAX, max(LOCKED_FRACTION_MIN, float(self.locked_fraction)))
        self.validate()

    def validate(self) -> None:
        if self.cell_count < 1:
            raise LayoutConfigError(f"cell_count must be >= 1, got {self.cell_count}")
        if self.cell_size <= 0:
            raise LayoutConfigError(f"cell_size must be positive, got {self.cell_size}")
        for name in ('extra_door_chance', 'enemies_per_room', 'loot_fraction'):
            val = getattr(self, name)
            if not 0.0 <= val <= 1.0:
                raise LayoutConfigError(f"{name} must be within [0, 1], got {val}")
        if self.enemy_budget < 0 or self.treasure_budget < 0:
            raise LayoutConfigError("spawn budgets must be non-negative")
        if self.min_dead_end_depth < 0:
            raise LayoutConfigError("min_dead_end_depth must be non-negative")
        for tier in self.tier_order:
            if tier not in TIERS:
                raise LayoutConfigError(f"unknown tier {tier!r}")
        for tier, rule in self.tier_rules.items():
            if tier not in TIERS:
                raise LayoutConfigError(f"unknown tier {tier!r}")
            if not 0.0 <= rule.chance <= 1.0 or rule.min_count < 0 or rule.max_count < rule.min_count:
                raise LayoutConfigError(f"invalid rule for tier {tier!r}: {rule}")
        if self.grid_bounds is not None:
            min_x, min_y, max_x, max_y = self.grid_bounds
            if not (min_x <= 0 <= max_x and min_y <= 0 <= max_y):
                raise LayoutConfigError("grid_bounds must contain the origin")


# Scalar fields that may be overridden from the environment / app config.
_SCALAR_TYPES = {
    'seed': int,
    'cell_size': float,
    'cell_count': int,
    'extra_door_chance': float,
    'locked_fraction': float,
    'enemy_budget': int,
    'treasure_budget': int,
    'enemies_per_room': float,
    'min_dead_end_depth': int,
    'forced_corridor': bool,
    'extra_doors_before_carving': bool,
    'loot_fraction': float,
    'spawn_height': float,
    'enable_metrics': bool,
}


def _coerce(kind, raw: Any):
    if kind is bool:
        if isinstance(raw, str):
            return raw.strip().lower() not in {'0', 'false', 'no', ''}
        return bool(raw)
    return kind(raw)


def _collect_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for name, kind in _SCALAR_TYPES.items():
        env_key = f"ROOMGEN_{name.upper()}"
        if env_key in os.environ:
            try:
                overrides[name] = _coerce(kind, os.environ[env_key])
            except ValueError as exc:
                raise LayoutConfigError(f"{env_key}: {exc}") from exc
    if has_app_context():
        cfg = current_app.config
        for name, kind in _SCALAR_TYPES.items():
            key = f"ROOMGEN_{name.upper()}"
            if cfg.get(key) is not None:
                overrides[name] = _coerce(kind, cfg[key])
    return overrides


def resolve_config(base: Optional[LayoutConfig] = None, **explicit: Any) -> LayoutConfig:
    """Return a new config: base (or defaults) + env/app overrides + explicit kwargs."""
    cfg = base if base is not None else LayoutConfig()
    merged = _collect_overrides()
    merged.update(explicit)
    known = {f.name for f in fields(LayoutConfig)}
    unknown = set(merged) - known
    if unknown:
        raise LayoutConfigError(f"unknown config keys: {sorted(unknown)}")
    return replace(cfg, **merged) if merged else replace(cfg)


__all__ = [
    "LayoutConfig",
    "LayoutConfigError",
    "TierRule",
    "DEFAULT_TIER_RULES",
    "SHAPE_CATEGORIES",
    "TIERS",
    "resolve_config",
]
