"""Door graph construction: BFS spanning tree plus probabilistic loop doors.

Also hosts the graph container and the BFS helpers the later phases share.
"""
from __future__ import annotations
from collections import deque
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set
import random

from .cells import COMPASS, ORIGIN, Cell, ConnectionKey, Direction, connection_key


class ConnectionGraph:
    """Occupied cells plus an insertion-ordered set of symmetric connections."""

    def __init__(self, cells: Iterable[Cell]):
        self.cells: Dict[Cell, None] = dict.fromkeys(cells)
        self.connections: Dict[ConnectionKey, None] = {}

    def __contains__(self, cell: Cell) -> bool:
        return cell in self.cells

    def connect(self, a: Cell, b: Cell) -> bool:
        key = connection_key(a, b)
        if key in self.connections:
            return False
        self.connections[key] = None
        return True

    def disconnect(self, a: Cell, b: Cell) -> bool:
        key = connection_key(a, b)
        if key not in self.connections:
            return False
        del self.connections[key]
        return True

    def connected(self, a: Cell, b: Cell) -> bool:
        return connection_key(a, b) in self.connections

    def open_directions(self, cell: Cell) -> List[Direction]:
        return [d for d in COMPASS if self.connected(cell, cell.neighbor(d))]

    def degree(self, cell: Cell) -> int:
        return len(self.open_directions(cell))

    def adjacent_pairs(self) -> Iterator[ConnectionKey]:
        """Every unordered pair of 4-adjacent occupied cells, each once."""
        for cell in self.cells:
            for d in (Direction.EAST, Direction.SOUTH):
                n = cell.neighbor(d)
                if n in self.cells:
                    yield connection_key(cell, n)

    def copy(self) -> "ConnectionGraph":
        dup = ConnectionGraph(self.cells)
        dup.connections = dict(self.connections)
        return dup


EdgeFilter = Callable[[Cell, Cell], bool]


def bfs(graph: ConnectionGraph, start: Cell = ORIGIN, allow: Optional[EdgeFilter] = None) -> Dict[Cell, int]:
    """Hop distances from ``start`` over connections accepted by ``allow``."""
    if start not in graph.cells:
        return {}
    dist = {start: 0}
    q = deque([start])
    while q:
        cur = q.popleft()
        for d in COMPASS:
            n = cur.neighbor(d)
            if n in dist or n not in graph.cells or not graph.connected(cur, n):
                continue
            if allow is not None and not allow(cur, n):
                continue
            dist[n] = dist[cur] + 1
            q.append(n)
    return dist


class ConnectivityGraphBuilder:
    def __init__(self, rng: random.Random, extra_door_chance: float = 0.3):
        self.rng = rng
        self.extra_door_chance = extra_door_chance

    def build_spanning_tree(self, cells: Iterable[Cell]) -> ConnectionGraph:
        graph = ConnectionGraph(cells)
        if ORIGIN not in graph.cells:
            return graph
        visited = {ORIGIN}
        q = deque([ORIGIN])
        while q:
            cur = q.popleft()
            for d in COMPASS:
                n = cur.neighbor(d)
                if n in graph.cells and n not in visited:
                    visited.add(n); q.append(n)
                    graph.connect(cur, n)
        return graph

    def add_extra_doors(self, graph: ConnectionGraph, *, special: Iterable[Cell] = (),
                        locked: Optional[Set[Cell]] = None) -> int:
        """Add loop doors; pairs touching a special room or crossing the locked boundary are protected."""
        special = set(special)
        locked = locked or set()
        added = 0
        for a, b in list(graph.adjacent_pairs()):
            if graph.connected(a, b):
                continue
            if a in special or b in special:
                continue
            if (a in locked) != (b in locked):
                continue
            if self.rng.random() < self.extra_door_chance:
                graph.connect(a, b); added += 1
        return added


__all__ = ["ConnectionGraph", "ConnectivityGraphBuilder", "bfs"]
