from typing import Dict


def init_metrics() -> Dict[str, int | float | dict]:
    return {
        'cells_requested': 0,
        'cells_placed': 0,
        'connections_tree': 0,
        'connections_extra': 0,
        'locked_rooms': 0,
        'lock_candidates_rejected': 0,
        'boundary_connections_removed': 0,
        'locked_connections_sealed': 0,
        'enemies_placed': 0,
        'treasure_placed': 0,
        'rooms_skipped': 0,
        'runtime_ms': 0.0,
        'phase_ms': {},
    }
