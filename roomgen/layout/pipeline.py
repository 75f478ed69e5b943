"""Pipeline orchestration for layout generation.

``LayoutGenerator`` owns every piece of working state for one level and is
passed by reference to whoever needs it; there is no module-level instance.
Each ``generate`` call clears the previous level (listeners are told to
destroy what they built) and runs the phases in order:

    grow -> spanning tree -> extra doors -> carve -> accessibility
         -> depths -> roles -> shapes -> encounters -> spawns

When ``extra_doors_before_carving`` is off, loop doors are added after the
roles are known so special rooms and the locked boundary stay protected.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
import random
import time

from ..logging_utils import get_logger
from .accessibility import accessible_cells, compute_depths
from .cells import DIRECTIONS, ORIGIN, Cell, cell_center, connection_key, pivot_offset
from .config import LayoutConfig, resolve_config
from .connectivity import ConnectionGraph, ConnectivityGraphBuilder
from .encounters import EncounterPacer
from .grid import GridLayoutEngine
from .locked import CarveOutputs, LockedAreaCarver
from .metrics import init_metrics
from .result import Connection, GateInfo, LayoutResult, Room, Spawn
from .roles import RoleAssigner, RoleOutputs
from .shapes import ISOLATED, RoomShapeClassifier, dedicated_shape

CELLS_PER_LEVEL = 3

log = get_logger("layout")


class LayoutGenerator:
    def __init__(self, config: Optional[LayoutConfig] = None, listeners: Iterable[Any] = ()):
        self.config = config if config is not None else resolve_config()
        self.listeners: List[Any] = list(listeners)
        self._reset_state()

    def _reset_state(self) -> None:
        self.rng: Optional[random.Random] = None
        self.seed: Optional[int] = None
        self.cells: List[Cell] = []
        self.graph: Optional[ConnectionGraph] = None
        self.carve: Optional[CarveOutputs] = None
        self.accessible: Set[Cell] = set()
        self.depths: Dict[Cell, int] = {}
        self.roles: Optional[RoleOutputs] = None
        self.result: Optional[LayoutResult] = None
        self.metrics: Dict[str, Any] = {}
        self.warnings: List[str] = []
        self.errors: List[str] = []

    def _notify(self, hook: str, *args) -> None:
        for listener in self.listeners:
            fn = getattr(listener, hook, None)
            if fn is None:
                continue
            try:
                fn(*args)
            except Exception as exc:
                log.error(event="listener_failed", hook=hook, listener=type(listener).__name__, error=repr(exc))

    def clear(self) -> None:
        """Tell collaborators to drop emitted entities, then forget the current level."""
        self._notify("on_clear")
        self._reset_state()

    # ------------------------------------------------------------------ phases

    def _grow(self) -> None:
        cfg = self.config
        engine = GridLayoutEngine(self.rng, forced_corridor=cfg.forced_corridor, bounds=cfg.grid_bounds)
        outputs = engine.grow(cfg.cell_count)
        self.cells = outputs.cells
        if outputs.warning:
            self.warnings.append(outputs.warning)
            log.warn(event="frontier_exhausted", seed=self.seed, requested=cfg.cell_count, placed=len(self.cells))
        if cfg.enable_metrics:
            self.metrics['cells_requested'] = cfg.cell_count
            self.metrics['cells_placed'] = len(self.cells)

    def _spanning_tree(self, builder: ConnectivityGraphBuilder) -> None:
        self.graph = builder.build_spanning_tree(self.cells)
        if self.config.enable_metrics:
            self.metrics['connections_tree'] = len(self.graph.connections)

    def _extra_doors(self, builder: ConnectivityGraphBuilder, special: Iterable[Cell]) -> None:
        locked = set(self.carve.locked) if self.carve else None
        added = builder.add_extra_doors(self.graph, special=special, locked=locked)
        if self.config.enable_metrics:
            self.metrics['connections_extra'] = added

    def _carve(self) -> None:
        self.carve = LockedAreaCarver(self.graph, self.rng, self.config.locked_fraction).carve()
        if self.config.enable_metrics:
            self.metrics['locked_rooms'] = len(self.carve.locked)
            self.metrics['lock_candidates_rejected'] = self.carve.rejected
            self.metrics['boundary_connections_removed'] = self.carve.removed
            self.metrics['locked_connections_sealed'] = self.carve.sealed

    def _analyze(self) -> None:
        self.accessible = accessible_cells(self.graph, self.carve.gate)
        self.depths = compute_depths(self.graph)

    def _assign_roles(self) -> None:
        assigner = RoleAssigner(self.graph, self.depths, self.config.min_dead_end_depth)
        self.roles = assigner.assign(self.accessible, self.carve.locked)
        if self.roles.key is None and self.carve.gate is not None:
            log.warn(event="role_unassigned", role="key", seed=self.seed)
        if self.roles.exit is None and self.carve.locked:
            log.warn(event="role_unassigned", role="exit", seed=self.seed)

    def _build_rooms(self) -> List[Room]:
        cfg = self.config
        classifier = RoomShapeClassifier(self.graph, self.rng, cfg.shape_pools)
        locked = set(self.carve.locked)
        role_map = self.roles.as_map()
        rooms = []
        for cell in self.cells:
            role = role_map.get(cell)
            if role is not None:
                shape = dedicated_shape(self.graph.open_directions(cell))
                variant = cfg.role_variants.get(role)
            else:
                shape = classifier.shape_of(cell)
                variant = None
                if shape.category != ISOLATED:
                    variant = classifier.pick_variant(shape.category)
                    if variant is None:
                        msg = f"no {shape.category} variant available for room ({cell.x}, {cell.y})"
                        self.errors.append(msg)
                        log.error(event="room_skipped", seed=self.seed, x=cell.x, y=cell.y, category=shape.category)
                        if cfg.enable_metrics:
                            self.metrics['rooms_skipped'] += 1
                        continue
            rooms.append(Room(
                cell=cell, category=shape.category, orientation=shape.orientation, yaw=shape.yaw,
                variant=variant, role=role, locked=cell in locked, accessible=cell in self.accessible,
                depth=self.depths.get(cell), tier=None,
                position=cell_center(cell, cfg.cell_size),
                pivot=pivot_offset(shape.yaw, cfg.cell_size),
                sides=classifier.sides(cell),
            ))
        return rooms

    def _pace(self, rooms: List[Room]) -> None:
        cfg = self.config
        pacer = EncounterPacer(
            self.rng, self.depths, self.carve.locked,
            rules=cfg.tier_rules, tier_order=cfg.tier_order,
            enemy_budget=cfg.enemy_budget, treasure_budget=cfg.treasure_budget, loot_fraction=cfg.loot_fraction,
        )
        special = set(self.roles.as_map())
        outputs = pacer.run([r.cell for r in rooms], special,
                            enemies=cfg.enemy_class is not None, treasure=cfg.treasure_class is not None)
        for room in rooms:
            room.tier = outputs.tiers.get(room.cell)
            room.enemies = outputs.enemies.get(room.cell, 0)
            room.treasure = outputs.treasure.get(room.cell, 0)
        if cfg.enable_metrics:
            self.metrics['enemies_placed'] = sum(outputs.enemies.values())
            self.metrics['treasure_placed'] = sum(outputs.treasure.values())

    def _gate_info(self) -> Optional[GateInfo]:
        gate = self.carve.gate
        if gate is None:
            return None
        size = self.config.cell_size
        ax, ay, _ = cell_center(gate.locked, size)
        bx, by, _ = cell_center(gate.unlocked, size)
        return GateInfo(gate.locked, gate.unlocked, gate.facing.value, DIRECTIONS[gate.facing].yaw,
                        ((ax + bx) / 2.0, (ay + by) / 2.0, 0.0))

    def _spawns(self, rooms: List[Room], gate: Optional[GateInfo]) -> List[Spawn]:
        cfg = self.config
        spawns: List[Spawn] = []
        if cfg.locked_door_class and gate is not None:
            spawns.append(Spawn('locked_door', cfg.locked_door_class, gate.locked, gate.position, gate.yaw))
        key_room = self.roles.key
        if cfg.key_class and key_room is not None and any(r.cell == key_room for r in rooms):
            spawns.append(Spawn('key', cfg.key_class, key_room, cell_center(key_room, cfg.cell_size)))
        for room in rooms:
            if cfg.enemy_class:
                spawns.extend(Spawn('enemy', cfg.enemy_class, room.cell, room.position) for _ in range(room.enemies))
            if cfg.treasure_class and room.treasure:
                spawns.append(Spawn('treasure', cfg.treasure_class, room.cell, room.position))
        return spawns

    def _connections(self) -> List[Connection]:
        locked = set(self.carve.locked)
        gate = self.carve.gate
        gate_key = connection_key(gate.locked, gate.unlocked) if gate else None
        out = []
        for a, b in self.graph.connections:
            if (a, b) == gate_key:
                kind = 'gating'
            elif a in locked or b in locked:
                kind = 'locked'
            else:
                kind = 'unlocked'
            out.append(Connection(a, b, kind))
        return out

    # --------------------------------------------------------------- public API

    def generate(self, config: Optional[LayoutConfig] = None) -> LayoutResult:
        """Clear the previous level and build a new layout description."""
        if config is not None:
            self.config = config
        self.clear()
        cfg = self.config
        # 0 is a valid deterministic seed; None picks one
        self.seed = cfg.seed if cfg.seed is not None else random.randint(1, 1_000_000)
        self.rng = random.Random(self.seed)
        self.metrics = init_metrics() if cfg.enable_metrics else {}
        start = time.perf_counter()
        phase_times: Dict[str, int] = {}

        def _phase(label, fn, *a, **k):
            ps = time.perf_counter(); r = fn(*a, **k); pe = time.perf_counter()
            phase_times[label] = int((pe - ps) * 1000)
            return r

        builder = ConnectivityGraphBuilder(self.rng, cfg.extra_door_chance)
        _phase('grow', self._grow)
        _phase('spanning_tree', self._spanning_tree, builder)
        if cfg.extra_doors_before_carving:
            _phase('extra_doors', self._extra_doors, builder, [ORIGIN])
            _phase('carve', self._carve)
            _phase('accessibility', self._analyze)
            _phase('roles', self._assign_roles)
        else:
            _phase('carve', self._carve)
            _phase('accessibility', self._analyze)
            _phase('roles', self._assign_roles)
            _phase('extra_doors', self._extra_doors, builder, self.roles.as_map())
            _phase('accessibility_post_doors', self._analyze)
        rooms = _phase('shapes', self._build_rooms)
        _phase('encounters', self._pace, rooms)
        gate = self._gate_info()
        spawns = self._spawns(rooms, gate)

        if cfg.enable_metrics:
            self.metrics['runtime_ms'] = int((time.perf_counter() - start) * 1000)
            self.metrics['phase_ms'] = phase_times
        order = {c: i for i, c in enumerate(self.cells)}
        self.result = LayoutResult(
            seed=self.seed,
            cell_size=cfg.cell_size,
            rooms=rooms,
            connections=self._connections(),
            locked=list(self.carve.locked),
            accessible=sorted(self.accessible, key=order.__getitem__),
            gate=gate,
            safe_room=self.roles.safe,
            key_room=self.roles.key,
            exit_room=self.roles.exit,
            spawns=spawns,
            warnings=list(self.warnings),
            errors=list(self.errors),
            metrics=self.metrics,
        )
        log.info(event="layout_generated", seed=self.seed, cells=len(self.cells), rooms=len(rooms),
                 connections=len(self.graph.connections), locked=len(self.carve.locked),
                 warnings=len(self.warnings), errors=len(self.errors))
        self._notify("on_generated", self.result)
        return self.result

    def next_level(self, delta: int = 1) -> Tuple[LayoutResult, Optional[Tuple[float, float, float]]]:
        """Grow the level by ``delta`` steps, regenerate, and return the safe room's spawn point."""
        cfg = self.config
        cell_count, enemy_budget = cfg.cell_count, cfg.enemy_budget
        for _ in range(max(0, delta)):
            cell_count += CELLS_PER_LEVEL
            enemy_budget = int(cell_count * cfg.enemies_per_room)
        seed = cfg.seed + delta if cfg.seed is not None else None
        result = self.generate(replace(cfg, cell_count=cell_count, enemy_budget=enemy_budget, seed=seed))
        return result, self.safe_position()

    def safe_position(self) -> Optional[Tuple[float, float, float]]:
        if self.result is None or self.result.safe_room is None:
            return None
        return cell_center(self.result.safe_room, self.config.cell_size, self.config.spawn_height)


__all__ = ["LayoutGenerator", "CELLS_PER_LEVEL"]
