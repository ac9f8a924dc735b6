"""
sealrotate CLI entry point.

This module provides the command-line interface and is the only place
that decides the process exit code.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Callable, Mapping

from sealrotate import __version__
from sealrotate.config import RotationConfig, load_config_from_env
from sealrotate.errors import ConfigError
from sealrotate.models import RotationOutcome
from sealrotate.observability import configure_logging, get_logger
from sealrotate.rotation import RotationContext, RotationController, build_context

logger = get_logger("cli")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 2

ContextFactory = Callable[[RotationConfig], RotationContext]


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="sealrotate",
        description="Back up and rotate the Sealed Secrets controller key",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Configuration is read from environment variables "
            "(see SEALROTATE_CONFIG_FILE, KUBESEAL_*, AWS_*, SLACK_*)."
        ),
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override LOG_LEVEL",
    )
    parser.add_argument(
        "--log-format",
        choices=["human", "json"],
        help="Override LOG_FORMAT",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    rotate_parser = subparsers.add_parser(
        "rotate",
        help="Back up the active key, demote old keys and restart the controller",
    )
    rotate_parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Print the run outcome as text or JSON (default: text)",
    )

    backup_parser = subparsers.add_parser(
        "backup",
        help="Back up the active key only",
    )
    backup_parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Print the run outcome as text or JSON (default: text)",
    )

    subparsers.add_parser("show-config", help="Print the resolved configuration")
    subparsers.add_parser("version", help="Show version information")

    return parser


def _print_outcome(outcome: RotationOutcome, output: str) -> None:
    if output == "json":
        print(json.dumps(outcome.to_dict(), indent=2))
        return

    if outcome.success:
        if outcome.artifact:
            print(f"New file: {outcome.artifact.key} has been uploaded to {outcome.artifact.location}")
        if outcome.latest_key:
            print(f"Latest key: {outcome.latest_key}")
        if outcome.demoted:
            print(f"Demoted {outcome.demoted_count} key(s): {', '.join(outcome.demoted)}")
        for name, error in sorted(outcome.demotion_failures.items()):
            print(f"Warning: failed to demote {name}: {error}")
    else:
        step = outcome.failed_step.value if outcome.failed_step else "unknown"
        print(f"Failed during {step}: {outcome.error}", file=sys.stderr)


def cmd_run(
    args: argparse.Namespace,
    config: RotationConfig,
    context_factory: ContextFactory = build_context,
) -> int:
    """Run a rotation or a backup."""
    context = context_factory(config)
    controller = RotationController(context)

    if args.command == "backup":
        outcome = controller.run_backup_only()
    else:
        outcome = controller.run()

    # The controller logs failures with their step and resource
    if outcome.success:
        location = outcome.artifact.location if outcome.artifact else ""
        logger.info("Run completed", artifact=location, demoted=outcome.demoted_count)

    _print_outcome(outcome, getattr(args, "output", "text"))
    return EXIT_OK if outcome.success else EXIT_FAILED


def cmd_show_config(args: argparse.Namespace, config: RotationConfig) -> int:
    """Print the resolved configuration with credentials redacted."""
    print(json.dumps(config.to_dict(redact=True), indent=2))
    return EXIT_OK


def main(
    argv: list[str] | None = None,
    environ: Mapping[str, str] | None = None,
    context_factory: ContextFactory = build_context,
) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        print(f"sealrotate version {__version__}")
        return EXIT_OK

    if args.command is None:
        args.command = "rotate"
        args.output = "text"

    if environ is None:
        environ = os.environ

    try:
        config = load_config_from_env(environ)
    except ConfigError as e:
        configure_logging(
            level=args.log_level or "INFO",
            format=args.log_format or "human",
        )
        logger.error(str(e), step="config")
        return EXIT_CONFIG_ERROR

    configure_logging(
        level=args.log_level or config.log_level,
        format=args.log_format or config.log_format,
    )

    if args.command == "show-config":
        return cmd_show_config(args, config)

    try:
        return cmd_run(args, config, context_factory)
    except ConfigError as e:
        logger.error(str(e), step="config")
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130
    except Exception as e:
        logger.error(
            f"Unexpected {type(e).__name__}: {e}",
            exc_info=True,
            step=args.command,
            error=str(e),
        )
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
