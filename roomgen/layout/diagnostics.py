"""Structural checks over a finished layout.

Used by ``run.py diagnose`` to sweep seeds and by tests. Every check works
from the public ``LayoutResult`` only, so it also validates serialised output
that was rebuilt elsewhere.
"""
from __future__ import annotations
from collections import deque
from typing import Any, Dict, List, Set

from .cells import COMPASS, ORIGIN, Cell, connection_key
from .result import LayoutResult


def _reach(cells: Set[Cell], doors: Set[tuple], locked: Set[Cell]) -> Set[Cell]:
    if ORIGIN not in cells:
        return set()
    seen = {ORIGIN}
    q = deque([ORIGIN])
    while q:
        cur = q.popleft()
        for d in COMPASS:
            n = cur.neighbor(d)
            if n in seen or n not in cells or n in locked:
                continue
            if connection_key(cur, n) in doors:
                seen.add(n)
                q.append(n)
    return seen


def analyze(result: LayoutResult, enemy_budget: int | None = None) -> Dict[str, Any]:
    """Return issue lists keyed by check name; every list is empty for a healthy layout."""
    # skipped rooms still carry doors, so endpoints count as cells too
    cells = {r.cell for r in result.rooms}
    cells.update(Cell(*c.a) for c in result.connections)
    cells.update(Cell(*c.b) for c in result.connections)
    locked = set(result.locked)
    doors = {connection_key(Cell(*c.a), Cell(*c.b)) for c in result.connections}
    reach = _reach(cells, doors, locked)

    crossing = [k for k in doors if (k[0] in locked) != (k[1] in locked)]
    roles: List[Cell] = [c for c in (result.safe_room, result.key_room, result.exit_room) if c is not None]
    issues: Dict[str, Any] = {
        "stranded_unlocked": sorted(c for c in cells - locked if c not in reach),
        "gating_mismatch": [] if len(crossing) == (1 if locked else 0) else [len(crossing)],
        "accessible_locked": sorted(set(result.accessible) & locked),
        "role_collisions": sorted(c for c in set(roles) if roles.count(c) > 1),
        "locked_origin": [ORIGIN] if ORIGIN in locked else [],
    }
    if enemy_budget is not None:
        total = sum(r.enemies for r in result.rooms)
        issues["budget_exceeded"] = [total] if total > enemy_budget else []
    return issues


def is_healthy(issues: Dict[str, Any]) -> bool:
    return all(not v for v in issues.values())


__all__ = ["analyze", "is_healthy"]
