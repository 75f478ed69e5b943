"""Special room selection (safe / key / exit).

Depth is door hops from the origin, not grid distance. A candidate must be
a dead end (exactly one door), away from the origin and at least
``min_depth`` hops deep. The key goes in the deepest candidate reachable
before the gate, the exit in the deepest candidate behind it.
"""
from __future__ import annotations
from typing import Dict, Iterable, NamedTuple, Optional

from .cells import ORIGIN, Cell
from .connectivity import ConnectionGraph

SAFE = 'safe'
KEY = 'key'
EXIT = 'exit'


class RoleOutputs(NamedTuple):
    safe: Optional[Cell]
    key: Optional[Cell]
    exit: Optional[Cell]
    fallbacks: int

    def as_map(self) -> Dict[Cell, str]:
        out = {}
        for role, cell in ((SAFE, self.safe), (KEY, self.key), (EXIT, self.exit)):
            if cell is not None:
                out[cell] = role
        return out


class RoleAssigner:
    def __init__(self, graph: ConnectionGraph, depths: Dict[Cell, int], min_depth: int = 3):
        self.graph = graph
        self.depths = depths
        self.min_depth = min_depth

    def _deepest(self, cells: Iterable[Cell], taken) -> Optional[Cell]:
        best, best_depth = None, -1
        for c in cells:
            d = self.depths.get(c)
            if d is None or c in taken or d < self.min_depth:
                continue
            if d > best_depth:  # strict: earliest cell keeps ties
                best, best_depth = c, d
        return best

    def pick(self, region: Iterable[Cell], taken) -> tuple:
        members = set(region)
        region = [c for c in self.graph.cells if c in members and c != ORIGIN]
        dead_ends = [c for c in region if self.graph.degree(c) == 1]
        choice = self._deepest(dead_ends, taken)
        if choice is not None:
            return choice, False
        return self._deepest(region, taken), True

    def assign(self, accessible: Iterable[Cell], locked: Iterable[Cell]) -> RoleOutputs:
        safe = ORIGIN if ORIGIN in self.graph.cells else None
        taken = {safe}
        fallbacks = 0
        key, fell_back = self.pick(accessible, taken)
        if key is not None:
            taken.add(key); fallbacks += fell_back
        exit_cell, fell_back = self.pick(locked, taken)
        if exit_cell is not None:
            fallbacks += fell_back
        return RoleOutputs(safe, key, exit_cell, fallbacks)


__all__ = ["RoleAssigner", "RoleOutputs", "SAFE", "KEY", "EXIT"]
