"""Command-line entry point for the Pushover relay."""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from pushover_relay.config.environment import EnvironmentConfig
from pushover_relay.config.exceptions import ConfigurationError
from pushover_relay.config.loader import load_config
from pushover_relay.config.models import AppConfig
from pushover_relay.events.reader import EventSourceError, read_events
from pushover_relay.logging import get_logger
from pushover_relay.logging.config import configure_logging
from pushover_relay.pipeline.agent import PushoverAgent
from pushover_relay.pipeline.status import StatusFileError, load_status, save_status

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Path, log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > environment > config.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pushover-relay",
        description="Render incoming events into Pushover notifications and send them",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument(
        "--events",
        default="-",
        help="JSON or JSON Lines file of events, '-' for stdin (default: -)",
    )
    parser.add_argument(
        "--state-file",
        type=Path,
        default=None,
        help="JSON file holding liveness state (overrides state_file in config)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build every notification but do not send anything",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Report whether the agent is working according to the state file and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code: 0 when every event was handled (or the agent is healthy
        under --check), 1 otherwise.
    """
    load_dotenv()
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        state_file = args.state_file or (
            Path(app_config.state_file) if app_config.state_file else None
        )
        status = load_status(state_file) if state_file else None

        if args.check:
            if status is None:
                raise ConfigurationError(
                    "--check needs a state file",
                    suggestions=["Pass --state-file or set state_file in the config"],
                )
            agent = PushoverAgent.from_config(app_config, status=status)
            working = agent.working()
            logger.info(
                f"Agent is {'working' if working else 'not working'}",
                extra={
                    "event": "agent.check",
                    "working": working,
                    "last_receive_at": status.last_receive_at,
                    "last_error_at": status.last_error_at,
                },
            )
            return 0 if working else 1

        events = read_events(args.events)
        logger.info(
            f"Read {len(events)} event(s)",
            extra={"event": "service.events_loaded", "dry_run": args.dry_run},
        )

        agent = PushoverAgent.from_config(app_config, status=status, dry_run=args.dry_run)
        result = agent.receive(events)

        if state_file and not args.dry_run:
            save_status(agent.status, state_file)

        logger.info(
            "Pushover relay finished",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
                "had_errors": result.had_errors,
            },
        )
        return 1 if result.had_errors else 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except (EventSourceError, StatusFileError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(str(e), extra={"event": "service.input_error", "error_type": type(e).__name__})
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
