import random

from roomgen.layout import ORIGIN, Cell, connection_key
from roomgen.layout.connectivity import ConnectionGraph, ConnectivityGraphBuilder, bfs
from roomgen.layout.grid import GridLayoutEngine

SQUARE = [Cell(0, 0), Cell(1, 0), Cell(0, 1), Cell(1, 1)]


def test_connection_key_is_order_independent():
    a, b = Cell(2, 3), Cell(2, 4)
    assert connection_key(a, b) == connection_key(b, a)
    g = ConnectionGraph([a, b])
    assert g.connect(b, a) is True
    assert g.connect(a, b) is False, "duplicate connect should be a no-op"
    assert g.connected(a, b) and g.connected(b, a)
    assert g.disconnect(a, b) is True
    assert g.disconnect(a, b) is False
    assert not g.connections


def test_spanning_tree_reaches_every_cell_with_minimal_doors():
    for seed in range(1, 16):
        rng = random.Random(seed)
        cells = GridLayoutEngine(rng).grow(30).cells
        graph = ConnectivityGraphBuilder(rng, 0.3).build_spanning_tree(cells)
        assert len(graph.connections) == len(cells) - 1, f"seed {seed}: tree has wrong edge count"
        reach = bfs(graph, ORIGIN)
        assert set(reach) == set(cells), f"seed {seed}: tree does not reach every cell"


def test_spanning_tree_order_follows_compass_from_origin():
    graph = ConnectivityGraphBuilder(random.Random(1), 0.0).build_spanning_tree(SQUARE)
    assert list(graph.connections) == [
        connection_key(Cell(0, 0), Cell(1, 0)),
        connection_key(Cell(0, 0), Cell(0, 1)),
        connection_key(Cell(1, 0), Cell(1, 1)),
    ]


def test_zero_chance_adds_no_extra_doors():
    rng = random.Random(5)
    cells = GridLayoutEngine(rng).grow(25).cells
    builder = ConnectivityGraphBuilder(rng, 0.0)
    graph = builder.build_spanning_tree(cells)
    assert builder.add_extra_doors(graph) == 0
    assert len(graph.connections) == len(cells) - 1


def test_full_chance_opens_every_unprotected_pair():
    rng = random.Random(8)
    cells = GridLayoutEngine(rng, forced_corridor=False).grow(25).cells
    builder = ConnectivityGraphBuilder(rng, 1.0)
    graph = builder.build_spanning_tree(cells)
    builder.add_extra_doors(graph)
    for a, b in graph.adjacent_pairs():
        assert graph.connected(a, b), f"pair {a}-{b} left closed at chance 1.0"


def test_special_rooms_keep_their_door_count():
    rng = random.Random(12)
    cells = GridLayoutEngine(rng, forced_corridor=False).grow(30).cells
    builder = ConnectivityGraphBuilder(rng, 1.0)
    graph = builder.build_spanning_tree(cells)
    before = graph.degree(ORIGIN)
    builder.add_extra_doors(graph, special=[ORIGIN])
    assert graph.degree(ORIGIN) == before


def test_locked_boundary_pairs_are_never_opened():
    builder = ConnectivityGraphBuilder(random.Random(2), 1.0)
    graph = builder.build_spanning_tree(SQUARE)
    added = builder.add_extra_doors(graph, locked={Cell(1, 1)})
    assert added == 0
    assert not graph.connected(Cell(0, 1), Cell(1, 1))


def test_bfs_filter_blocks_edges():
    graph = ConnectivityGraphBuilder(random.Random(2), 0.0).build_spanning_tree(SQUARE)
    reach = bfs(graph, ORIGIN, allow=lambda a, b: Cell(1, 0) not in (a, b))
    assert set(reach) == {Cell(0, 0), Cell(0, 1)}
    assert bfs(graph, Cell(9, 9)) == {}
