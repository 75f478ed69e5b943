from collections import deque

from roomgen.layout import COMPASS, ORIGIN, Cell, connection_key


def grid_reachable(cells, start=ORIGIN):
    """Cells reachable from start over raw 4-adjacency (doors ignored)."""
    cells = set(cells)
    vis = {start}
    q = deque([start])
    while q:
        cur = q.popleft()
        for d in COMPASS:
            n = cur.neighbor(d)
            if n in cells and n not in vis:
                vis.add(n)
                q.append(n)
    return vis


def door_reachable(cells, connections, start=ORIGIN, allow=None):
    """Cells reachable from start through the given connection keys."""
    cells = set(cells)
    keys = set(connections)
    vis = {start}
    q = deque([start])
    while q:
        cur = q.popleft()
        for d in COMPASS:
            n = cur.neighbor(d)
            if n not in cells or n in vis or connection_key(cur, n) not in keys:
                continue
            if allow is not None and not allow(cur, n):
                continue
            vis.add(n)
            q.append(n)
    return vis


def result_connection_keys(result):
    return [connection_key(Cell(*c.a), Cell(*c.b)) for c in result.connections]


def chain_graph(length):
    """Straight east-running corridor of `length` cells starting at the origin, fully connected."""
    from roomgen.layout.connectivity import ConnectionGraph

    cells = [Cell(i, 0) for i in range(length)]
    g = ConnectionGraph(cells)
    for a, b in zip(cells, cells[1:]):
        g.connect(a, b)
    return g
