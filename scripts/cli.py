#!/usr/bin/env python3
"""Command-line interface for the Material Cost Engine.

Usage examples:
    python scripts/cli.py run
    python scripts/cli.py run --input 直接材料費原価計算表.xlsx --output 結果.xlsx
    python scripts/cli.py run --continue-on-error
    python scripts/cli.py serve --port 8000
    python scripts/cli.py costs
    python scripts/cli.py history --product-code P001
"""

import argparse
import json
import logging
import sys
from typing import Callable

import httpx

from material_cost_engine import pipeline
from material_cost_engine.config import PathsSettings, Settings
from material_cost_engine.domain.exceptions import MaterialCostEngineError
from material_cost_engine.logging_config import configure_logging, correlation_scope

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 120.0

logger = logging.getLogger("material_cost_engine.cli")


def format_output(data: object) -> None:
    """Pretty-print a JSON-serialisable object."""
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def handle_response(response: httpx.Response) -> dict:
    """Return the JSON body or exit with an error message."""
    try:
        body = response.json()
    except ValueError:
        body = {"detail": response.text}

    if response.status_code >= 400:
        print(
            f"Error {response.status_code}: {body.get('detail', 'Unknown error')}",
            file=sys.stderr,
        )
        sys.exit(1)

    return body


def resolve_settings(args: argparse.Namespace) -> Settings:
    """Apply command-line overrides on top of the configured settings."""
    base = Settings()
    paths = PathsSettings(
        input_file=args.input or base.paths.input_file,
        output_file=args.output or base.paths.output_file,
    )
    stop_on_error = base.stop_on_error and not args.continue_on_error
    return base.model_copy(update={"paths": paths, "stop_on_error": stop_on_error})


def cmd_run(args: argparse.Namespace, base_url: str) -> None:
    """Run the full calculation locally and write the output workbook."""
    settings = resolve_settings(args)
    configure_logging(log_level=settings.log_level)

    with correlation_scope() as run_id:
        logger.info("Run %s started", run_id)
        try:
            summary = pipeline.run(settings)
        except MaterialCostEngineError as e:
            logger.error("Run %s failed: %s", run_id, e)
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    format_output(
        {
            "output_file": str(summary.output_file),
            "batches_processed": summary.batches_processed,
            "batches_failed": summary.batches_failed,
            "history_records": summary.history_records,
        }
    )


def cmd_serve(args: argparse.Namespace, base_url: str) -> None:
    """Start the API server."""
    import uvicorn

    settings = Settings()
    uvicorn.run(
        "material_cost_engine.main:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=settings.api_reload,
    )


def cmd_costs(args: argparse.Namespace, base_url: str) -> None:
    """Fetch batch cost breakdowns from a running API."""
    params: dict[str, object] = {}
    if args.continue_on_error:
        params["stop_on_error"] = "false"
    resp = httpx.get(
        f"{base_url}/api/material-costs/", params=params, timeout=DEFAULT_TIMEOUT
    )
    format_output(handle_response(resp))


def cmd_history(args: argparse.Namespace, base_url: str) -> None:
    """Fetch the inventory ledger from a running API."""
    params: dict[str, object] = {}
    if args.product_code:
        params["product_code"] = args.product_code
    resp = httpx.get(
        f"{base_url}/api/inventory-history/", params=params, timeout=DEFAULT_TIMEOUT
    )
    format_output(handle_response(resp))


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cli.py",
        description="Material Cost Engine CLI",
    )
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"API base URL for remote commands (default: {DEFAULT_BASE_URL})",
    )

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    # --- run ---
    p_run = sub.add_parser("run", help="Calculate costs and ledger, write the output workbook")
    p_run.add_argument("--input", help="Input workbook (default: paths.input_file)")
    p_run.add_argument("--output", help="Output workbook (default: paths.output_file)")
    p_run.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Skip failing batches instead of aborting the run",
    )

    # --- serve ---
    p_serve = sub.add_parser("serve", help="Start the API server")
    p_serve.add_argument("--host", help="Bind address (default: api_host)")
    p_serve.add_argument("--port", type=int, help="Port (default: api_port)")

    # --- costs ---
    p_costs = sub.add_parser("costs", help="Get batch cost breakdowns from the API")
    p_costs.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Report failing batches instead of failing the request",
    )

    # --- history ---
    p_history = sub.add_parser("history", help="Get the inventory ledger from the API")
    p_history.add_argument("--product-code", help="Only show one product")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    base_url: str = args.base_url

    dispatch: dict[str, Callable[[argparse.Namespace, str], None]] = {
        "run": cmd_run,
        "serve": cmd_serve,
        "costs": cmd_costs,
        "history": cmd_history,
    }

    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    handler(args, base_url)


if __name__ == "__main__":
    main()
