"""Application entry point for Prompt Shelf.

Updates:
  v0.2.0 - 2026-09-28 - Add purge-invalid command and explicit exit codes per failure stage.
  v0.1.0 - 2026-08-27 - Wire settings, logging, services, and CLI commands.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from cli.commands import COMMAND_SPECS
from cli.parser import build_parser
from cli.runtime import setup_logging
from cli.settings_summary import print_settings_summary
from config import PromptShelfSettings, SettingsError, load_settings
from core import PromptShelfError, ServiceContainer, build_services

EXIT_UNKNOWN_COMMAND = 1
EXIT_SETTINGS_ERROR = 2
EXIT_INIT_ERROR = 3
EXIT_OPERATION_FAILED = 4


def _initialise_services(
    settings: PromptShelfSettings,
    logger: logging.Logger,
) -> ServiceContainer | None:
    try:
        return build_services(settings)
    except (PromptShelfError, OSError) as exc:
        logger.error("Failed to initialise services: %s", exc)
        return None


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, services, and CLI commands."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("prompt_shelf.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        logger.error("Failed to load settings: %s", exc)
        return EXIT_SETTINGS_ERROR

    if args.print_settings:
        print_settings_summary(settings)
        return 0

    command = getattr(args, "command", None)
    spec = COMMAND_SPECS.get(command) if command else None
    if spec is None:
        parser.print_help()
        return EXIT_UNKNOWN_COMMAND

    services = _initialise_services(settings, logger)
    if services is None:
        return EXIT_INIT_ERROR

    try:
        return spec.handler(services, args, logger)
    except PromptShelfError as exc:
        logger.error("Command %s failed: %s", command, exc)
        return EXIT_OPERATION_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
