"""
project: roomgen
module: layout_api.py
License: MIT

Layout preview API routes.

Development surface over the in-process generator: renders a layout for a
seed as JSON and exposes the metrics of the last preview. Each app owns one
generator, created with its lock by ``create_app`` on ``app.extensions``;
requests are serialised with that lock because a generator must not be
re-entered.
"""

import hashlib
import random
import threading

from flask import Blueprint, current_app, jsonify, request

from roomgen.layout import LayoutConfig, LayoutConfigError, LayoutGenerator, resolve_config
from roomgen.logging_utils import get_logger

bp_layout = Blueprint("layout", __name__)

log = get_logger("layout_api")

SEED_MODULUS = 2**31 - 1


def _coerce_seed(payload_seed):
    """Convert a provided seed (int or str) into a bounded non-negative int."""
    if payload_seed is None:
        return random.randint(1, 1_000_000)
    if isinstance(payload_seed, int):
        return payload_seed % SEED_MODULUS
    s = str(payload_seed).strip()
    if not s:
        return random.randint(1, 1_000_000)
    # int() accepts exactly the isdecimal() characters; "²" is a digit but not decimal
    if s.isdecimal():
        return int(s) % SEED_MODULUS
    h = hashlib.sha256(s.encode("utf-8")).digest()
    return int.from_bytes(h[:8], "big") % SEED_MODULUS


def init_layout_state(app):
    """Attach the per-app generator and its lock; called once from create_app."""
    app.extensions["roomgen"] = {"lock": threading.Lock(), "generator": LayoutGenerator(LayoutConfig())}


def _state():
    return current_app.extensions["roomgen"]


@bp_layout.route("/api/layout/preview")
def layout_preview():
    """Generate and return a layout.

    Query (all optional): seed=<int|str>, cells=<int>.
    Response: LayoutResult.to_dict() JSON.
    """
    seed = _coerce_seed(request.args.get("seed"))
    overrides = {"seed": seed}
    raw_cells = request.args.get("cells")
    if raw_cells is not None:
        try:
            cells = int(raw_cells)
        except ValueError:
            return jsonify({"error": "cells must be an integer"}), 400
        limit = current_app.config.get("ROOMGEN_PREVIEW_MAX_CELLS", 200)
        if not 1 <= cells <= limit:
            return jsonify({"error": f"cells must be within 1..{limit}"}), 400
        overrides["cell_count"] = cells
    try:
        cfg = resolve_config(**overrides)
    except LayoutConfigError as exc:
        return jsonify({"error": str(exc)}), 400
    state = _state()
    with state["lock"]:
        result = state["generator"].generate(cfg)
    log.debug(event="preview", seed=seed, rooms=len(result.rooms))
    return jsonify(result.to_dict())


@bp_layout.route("/api/layout/metrics")
def layout_metrics():
    """Metrics of the most recent preview: { 'seed': int, 'metrics': {...} }."""
    state = _state()
    with state["lock"]:
        result = state["generator"].result
    if result is None:
        return jsonify({"error": "no layout generated"}), 404
    return jsonify({"seed": result.seed, "metrics": result.metrics})
