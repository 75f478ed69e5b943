"""Layout description handed to collaborators (renderers, spawners, nav builders)."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import json

from .cells import Cell

Vec3 = Tuple[float, float, float]


@dataclass
class Room:
    cell: Cell
    category: str
    orientation: str
    yaw: float
    variant: Optional[str]
    role: Optional[str]
    locked: bool
    accessible: bool
    depth: Optional[int]
    tier: Optional[str]
    position: Vec3
    pivot: Tuple[float, float]
    sides: Dict[str, str]
    enemies: int = 0
    treasure: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'x': self.cell.x, 'y': self.cell.y,
            'category': self.category, 'orientation': self.orientation, 'yaw': self.yaw,
            'variant': self.variant, 'role': self.role,
            'locked': self.locked, 'accessible': self.accessible,
            'depth': self.depth, 'tier': self.tier,
            'position': list(self.position), 'pivot': list(self.pivot),
            'sides': self.sides, 'enemies': self.enemies, 'treasure': self.treasure,
        }


@dataclass
class Connection:
    a: Cell
    b: Cell
    kind: str  # 'unlocked' | 'locked' | 'gating'

    def to_dict(self) -> Dict[str, Any]:
        return {'a': list(self.a), 'b': list(self.b), 'kind': self.kind}


@dataclass
class GateInfo:
    locked: Cell
    unlocked: Cell
    facing: str
    yaw: float
    position: Vec3

    def to_dict(self) -> Dict[str, Any]:
        return {'locked': list(self.locked), 'unlocked': list(self.unlocked), 'facing': self.facing,
                'yaw': self.yaw, 'position': list(self.position)}


@dataclass
class Spawn:
    kind: str
    asset: str
    cell: Cell
    position: Vec3
    yaw: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'asset': self.asset, 'cell': list(self.cell),
                'position': list(self.position), 'yaw': self.yaw}


@dataclass
class LayoutResult:
    seed: int
    cell_size: float
    rooms: List[Room] = field(default_factory=list)
    connections: List[Connection] = field(default_factory=list)
    locked: List[Cell] = field(default_factory=list)
    accessible: List[Cell] = field(default_factory=list)
    gate: Optional[GateInfo] = None
    safe_room: Optional[Cell] = None
    key_room: Optional[Cell] = None
    exit_room: Optional[Cell] = None
    spawns: List[Spawn] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    def room_at(self, cell) -> Optional[Room]:
        cell = Cell(*cell)
        return next((r for r in self.rooms if r.cell == cell), None)

    @property
    def enemy_counts(self) -> Dict[Cell, int]:
        return {r.cell: r.enemies for r in self.rooms if r.enemies}

    @property
    def treasure_counts(self) -> Dict[Cell, int]:
        return {r.cell: r.treasure for r in self.rooms if r.treasure}

    def to_dict(self, include_metrics: bool = True) -> Dict[str, Any]:
        cell = lambda c: list(c) if c is not None else None  # noqa: E731
        out = {
            'seed': self.seed,
            'cell_size': self.cell_size,
            'rooms': [r.to_dict() for r in self.rooms],
            'connections': [c.to_dict() for c in self.connections],
            'locked': [list(c) for c in self.locked],
            'accessible': [list(c) for c in self.accessible],
            'gate': self.gate.to_dict() if self.gate else None,
            'safe_room': cell(self.safe_room),
            'key_room': cell(self.key_room),
            'exit_room': cell(self.exit_room),
            'spawns': [s.to_dict() for s in self.spawns],
            'warnings': list(self.warnings),
            'errors': list(self.errors),
        }
        if include_metrics:
            out['metrics'] = self.metrics
        return out

    def to_json(self) -> str:
        """Canonical JSON without timing metrics; identical for identical seed + config."""
        return json.dumps(self.to_dict(include_metrics=False), sort_keys=True, separators=(',', ':'))


__all__ = ["LayoutResult", "Room", "Connection", "GateInfo", "Spawn"]
