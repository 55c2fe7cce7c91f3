"""
Orchestrator - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for the decision relay workflow.

- Provides argparse-based CLI
- Serves the trigger endpoints or fires one trigger directly
- Loads configuration from a config file and the environment
- Entry point for the application

============================================================
USAGE
============================================================
python -m orchestrator.cli --mode serve
python -m orchestrator.cli --mode cron --single-cycle
python -m orchestrator.cli --mode request --payload-file request.json

============================================================
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from core.exceptions import ConfigurationError
from .api import serve
from .core import WorkflowOrchestrator, create_orchestrator, setup_logging
from .models import WorkflowConfig


MODES = ("serve", "cron", "request")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="llm-decision-relay",
        description="Trigger-driven LLM decision relay",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  serve    - Run the trigger server (POST /trigger, POST /cron, GET /health)
  cron     - Run the heartbeat loop (or one tick with --single-cycle)
  request  - Run the request path once for --payload-file and print the output

Examples:
  %(prog)s --mode serve --port 8080
  %(prog)s --mode request --payload-file request.json --config config.json
        """
    )

    parser.add_argument(
        "--mode", "-m",
        type=str,
        choices=MODES,
        default="serve",
        help="Run mode (default: serve)",
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        metavar="PATH",
        help="Workflow config file (JSON); environment fills absent keys",
    )

    # --------------------------------------------------------
    # Execution Options
    # --------------------------------------------------------
    execution_group = parser.add_argument_group("Execution Options")

    execution_group.add_argument(
        "--payload-file",
        type=str,
        metavar="PATH",
        help="Request payload for --mode request",
    )

    execution_group.add_argument(
        "--single-cycle",
        action="store_true",
        help="Fire one heartbeat and exit (cron mode)",
    )

    execution_group.add_argument(
        "--host",
        type=str,
        help="Trigger server host (default: TRIGGER_HOST or 127.0.0.1)",
    )

    execution_group.add_argument(
        "--port",
        type=int,
        help="Trigger server port (default: TRIGGER_PORT or 8080)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        help="Logging format (default: LOG_FORMAT or text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 0.1.0",
    )

    return parser


# ============================================================
# CLI VALIDATION
# ============================================================

def validate_args(args: argparse.Namespace) -> List[str]:
    """
    Validate CLI arguments.

    Returns:
        List of validation errors
    """
    errors = []

    if args.mode == "request":
        if not args.payload_file:
            errors.append("--payload-file is required for request mode")
        elif not Path(args.payload_file).is_file():
            errors.append(f"Payload file not found: {args.payload_file}")

    if args.single_cycle and args.mode != "cron":
        errors.append("--single-cycle only applies to cron mode")

    if args.config and not Path(args.config).is_file():
        errors.append(f"Config file not found: {args.config}")

    return errors


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> WorkflowConfig:
    """
    Build workflow configuration from file, environment and CLI.

    CLI flags win over the file, which wins over the environment.
    """
    config = WorkflowConfig.from_file(args.config) if args.config else WorkflowConfig.from_env()

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format

    return replace(config, **overrides) if overrides else config


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def run_serve(orchestrator: WorkflowOrchestrator) -> int:
    """Serve triggers until cancelled."""
    runner = await serve(orchestrator)
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
    return 0


async def run_request(orchestrator: WorkflowOrchestrator, payload_file: str) -> int:
    """Run the request path once and print its output."""
    payload = Path(payload_file).read_bytes()
    output = await orchestrator.handle_http(payload)
    print(output)
    return 0


async def async_main(args: argparse.Namespace, config: WorkflowConfig) -> int:
    """
    Async main entry point.

    Returns:
        Exit code
    """
    orchestrator = create_orchestrator(config)

    try:
        if args.mode == "request":
            return await run_request(orchestrator, args.payload_file)

        if args.mode == "cron":
            if args.single_cycle:
                await orchestrator.run_single_cycle()
            else:
                await orchestrator.run_forever()
            return 0

        return await run_serve(orchestrator)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 130
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        orchestrator.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    try:
        config = build_config(args)
    except (ConfigurationError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    problems = config.validate()
    if args.mode == "cron":
        # Heartbeat makes no outbound calls
        problems = [p for p in problems if not p.startswith("openrouter_api_key")]
    if problems:
        for problem in problems:
            print(f"Config error: {problem}", file=sys.stderr)
        return 1

    setup_logging(config.log_level, config.log_format)
    logging.getLogger("workflow").info(f"Configuration loaded: {config.to_log_dict()}")

    try:
        return asyncio.run(async_main(args, config))
    except KeyboardInterrupt:
        return 130


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
