"""Depth-paced enemy and loot placement.

Rooms are bucketed into pacing tiers by normalised door depth (locked rooms
form their own tier). Tiers roll in ``tier_order`` until the enemy budget is
spent. Loot goes to a shuffled slice of the farthest ordinary rooms.
"""
from __future__ import annotations
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Set
import math
import random

from .cells import COMPASS, ORIGIN, Cell
from .config import DEFAULT_TIER_RULES, TIERS, TierRule

EARLY_LIMIT = 0.3
MID_LIMIT = 0.6


class EncounterOutputs(NamedTuple):
    tiers: Dict[Cell, str]
    enemies: Dict[Cell, int]
    treasure: Dict[Cell, int]


def tier_for(norm_depth: float, locked: bool) -> str:
    if locked:
        return 'locked'
    if norm_depth < EARLY_LIMIT:
        return 'early'
    if norm_depth < MID_LIMIT:
        return 'mid'
    return 'late'


class EncounterPacer:
    def __init__(self, rng: random.Random, depths: Dict[Cell, int], locked: Iterable[Cell], *,
                 rules: Optional[Dict[str, TierRule]] = None, tier_order: Sequence[str] = TIERS,
                 enemy_budget: int = 3, treasure_budget: int = 2, loot_fraction: float = 0.3):
        self.rng = rng
        self.depths = depths
        self.locked: Set[Cell] = set(locked)
        self.rules = dict(DEFAULT_TIER_RULES)
        self.rules.update(rules or {})
        self.tier_order = tuple(tier_order)
        self.enemy_budget = enemy_budget
        self.treasure_budget = treasure_budget
        self.loot_fraction = loot_fraction

    def bucket(self, cells: Iterable[Cell], special: Set[Cell]) -> Dict[str, List[Cell]]:
        near_origin = {ORIGIN.neighbor(d) for d in COMPASS}
        max_depth = max(self.depths.values(), default=0) or 1
        buckets: Dict[str, List[Cell]] = {t: [] for t in TIERS}
        for cell in cells:
            if cell == ORIGIN or cell in special or cell in near_origin:
                continue
            depth = self.depths.get(cell)
            if depth is None:
                continue
            buckets[tier_for(depth / max_depth, cell in self.locked)].append(cell)
        for members in buckets.values():
            members.sort(key=lambda c: self.depths[c])  # stable: insertion order breaks ties
        return buckets

    def place_enemies(self, buckets: Dict[str, List[Cell]]) -> Dict[Cell, int]:
        counts: Dict[Cell, int] = {}
        placed = 0
        for tier in self.tier_order:
            rule = self.rules[tier]
            for cell in buckets.get(tier, []):
                if placed >= self.enemy_budget:
                    return counts
                if self.rng.random() >= rule.chance:
                    continue
                n = min(self.rng.randint(rule.min_count, rule.max_count), self.enemy_budget - placed)
                if n > 0:
                    counts[cell] = n
                    placed += n
        return counts

    def place_treasure(self, cells: Iterable[Cell], special: Set[Cell]) -> Dict[Cell, int]:
        ordinary = [c for c in cells if c != ORIGIN and c not in special and c in self.depths]
        if not ordinary or self.treasure_budget <= 0:
            return {}
        ordinary.sort(key=lambda c: -self.depths[c])
        far = ordinary[:max(1, math.ceil(round(len(ordinary) * self.loot_fraction, 9)))]
        self.rng.shuffle(far)
        return {c: 1 for c in far[:self.treasure_budget]}

    def run(self, cells: Sequence[Cell], special: Set[Cell], *, enemies: bool = True,
            treasure: bool = True) -> EncounterOutputs:
        buckets = self.bucket(cells, special)
        tiers = {c: t for t, members in buckets.items() for c in members}
        return EncounterOutputs(
            tiers,
            self.place_enemies(buckets) if enemies else {},
            self.place_treasure(cells, special) if treasure else {},
        )


__all__ = ["EncounterPacer", "EncounterOutputs", "tier_for"]
