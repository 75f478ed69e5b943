"""roomgen CLI entry point.

Subcommands run the layout preview server, print a generated layout as JSON,
or sweep seeds for structural problems. Configuration comes from flags and
``ROOMGEN_*`` environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import json
import os
import sys
from textwrap import dedent

from dotenv import load_dotenv

__version__ = "0.1.0"

DEFAULT_DIAGNOSE_SEEDS = [1, 2, 3, 292372, 730727]


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    roomgen level layout generator

    Generate room-graph layouts from a seed, serve the JSON preview API, or
    check a batch of seeds for structural problems. CLI flags take precedence
    over ROOMGEN_* environment variables.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                   Bind address for the preview server (default: 127.0.0.1)
          PORT                   Port for the preview server (default: 5000)
          ROOMGEN_CELL_COUNT     Rooms per layout (default: 15)
          ROOMGEN_LOG_LEVEL      debug | info | warn | error (default: info)

        Examples:
          # Print one layout
          python run.py generate --seed 42 --cells 20

          # Walk three levels forward from seed 7
          python run.py generate --seed 7 --levels 3

          # Check seeds for stranded rooms or gate problems
          python run.py diagnose 11 12 13

          # Run the preview API
          python run.py server --port 8080
        """
    )

    parser = argparse.ArgumentParser(
        prog="roomgen",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"roomgen {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    server_parser = subparsers.add_parser(
        "server",
        help="Run the layout preview web server",
        description="Serve /api/layout/preview and /api/layout/metrics",
    )
    server_parser.add_argument("--host", default=None, help="Host interface (default: env HOST or 127.0.0.1)")
    server_parser.add_argument("--port", type=int, default=None, help="Port (default: env PORT or 5000)")
    server_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    gen_parser = subparsers.add_parser(
        "generate",
        help="Print a generated layout as JSON",
        description="Generate a layout and print LayoutResult JSON to stdout.",
    )
    gen_parser.add_argument("--seed", type=int, default=None, help="Seed (default: random)")
    gen_parser.add_argument("--cells", type=int, default=None, help="Requested room count")
    gen_parser.add_argument(
        "--levels",
        type=int,
        default=0,
        help="Advance this many levels after the first layout; prints the last one",
    )
    gen_parser.add_argument("--no-metrics", action="store_true", help="Omit the metrics block")

    diag_parser = subparsers.add_parser(
        "diagnose",
        help="Check seeds for structural problems",
        description="Exit with status 1 if any seed yields an unhealthy layout.",
    )
    diag_parser.add_argument("seeds", nargs="*", type=int, help="Seeds to check")
    diag_parser.add_argument("--cells", type=int, default=None, help="Requested room count")

    if not argv:
        argv = ["generate"]
    return parser.parse_args(argv)


def _config(args):
    from roomgen.layout import resolve_config

    overrides = {}
    if getattr(args, "seed", None) is not None:
        overrides["seed"] = args.seed
    if getattr(args, "cells", None) is not None:
        overrides["cell_count"] = args.cells
    return resolve_config(**overrides)


def cmd_generate(args) -> int:
    from roomgen.layout import LayoutGenerator

    gen = LayoutGenerator(_config(args))
    result = gen.generate()
    for _ in range(max(0, args.levels)):
        result, _spawn = gen.next_level()
    print(json.dumps(result.to_dict(include_metrics=not args.no_metrics), indent=2))
    return 1 if result.errors else 0


def cmd_diagnose(args) -> int:
    from roomgen.layout import LayoutGenerator
    from roomgen.layout.diagnostics import analyze, is_healthy

    seeds = args.seeds or DEFAULT_DIAGNOSE_SEEDS
    results = []
    for seed in seeds:
        args.seed = seed
        cfg = _config(args)
        result = LayoutGenerator(cfg).generate()
        issues = analyze(result, enemy_budget=cfg.enemy_budget)
        results.append({
            "seed": seed,
            "issues": {k: len(v) for k, v in issues.items()},
            "warnings": result.warnings,
            "errors": result.errors,
            "ok": is_healthy(issues) and not result.errors,
        })
    print(json.dumps({"results": results}, indent=2))
    return 0 if all(r["ok"] for r in results) else 1


def cmd_server(args) -> int:
    from roomgen import create_app
    from roomgen.logging_utils import log

    host = args.host or os.getenv("HOST", "127.0.0.1")
    port = int(args.port or os.getenv("PORT", "5000"))
    app = create_app()
    divider = "=" * 40
    print("\n".join([
        divider,
        "  roomgen preview server",
        divider,
        f"  {'Host:':12} {host}",
        f"  {'Port:':12} {port}",
        f"  {'Max cells:':12} {app.config['ROOMGEN_PREVIEW_MAX_CELLS']}",
        divider,
        "",
    ]))
    log.info(event="startup", host=host, port=port)
    app.run(host=host, port=port, debug=args.debug)
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        load_dotenv()

    handlers = {"server": cmd_server, "generate": cmd_generate, "diagnose": cmd_diagnose}
    return handlers[args.command or "generate"](args)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
