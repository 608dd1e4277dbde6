"""Command line entry point for the helper matching service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from helpmatch.config.environment import EnvironmentConfig
from helpmatch.config.exceptions import ConfigurationError
from helpmatch.config.loader import load_config
from helpmatch.config.models import AppConfig, LogFormat, LogLevel
from helpmatch.jobs import JobService
from helpmatch.logging import get_logger
from helpmatch.logging.config import configure_logging
from helpmatch.matching import MatchingEngine, MatchingError, MatchingPipeline
from helpmatch.persistence import (
    DatabaseJobStore,
    DatabaseUserDirectory,
    DataIntegrityError,
    close_database,
    init_database,
)
from helpmatch.seed import SeedFileError, load_seed_file, seed_database

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_NOT_FOUND_OR_INVALID = 2


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and prepare runtime configuration.

    Args:
        config_path: Path to configuration file (None to use the default lookup)
        log_level_override: Log level from CLI (takes precedence)

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with the effective log level set

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    # Log level priority: CLI > Environment > Config
    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    else:
        env_config.log_level = app_config.logging.level

    env_config.log_level = LogLevel(env_config.log_level).value
    return app_config, env_config


def build_job_service(app_config: AppConfig) -> JobService:
    """Wire the database-backed store and directory into the matching engine."""
    job_store = DatabaseJobStore()
    user_directory = DatabaseUserDirectory()
    pipeline = MatchingPipeline.from_config(app_config.matching)
    engine = MatchingEngine(job_store, user_directory, pipeline)
    return JobService(job_store, user_directory, engine)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="helpmatch",
        description="Helper matching service - match posted jobs to available helpers",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    seed = commands.add_parser("seed", help="Load users and jobs from a YAML file")
    seed.add_argument("fixture", type=Path, help="YAML file with 'users' and 'jobs'")

    find = commands.add_parser("find-helpers", help="Print helpers matching a job")
    find.add_argument("job_id", type=int)

    assign = commands.add_parser("assign-helper", help="Assign a helper to a job")
    assign.add_argument("job_id", type=int)
    assign.add_argument("email")

    close = commands.add_parser("close-job", help="Close a job")
    close.add_argument("job_id", type=int)

    return parser


def run_command(args: argparse.Namespace, service: JobService) -> None:
    """Execute one subcommand, printing its result to stdout."""
    if args.command == "seed":
        users, jobs = load_seed_file(args.fixture)
        stored = seed_database(users, jobs, service.user_directory, service.job_store)
        print(f"Seeded {len(users)} users and {len(stored)} jobs")
        for job in stored:
            print(f"  job {job.id}: {job.title}")

    elif args.command == "find-helpers":
        for helper in service.get_potential_helpers(args.job_id):
            print(helper.email)

    elif args.command == "assign-helper":
        job = service.add_helper_for_job(args.job_id, args.email)
        print(f"Job {job.id} assigned to {job.matched_helper} ({job.status.value})")

    elif args.command == "close-job":
        job = service.close_job(args.job_id)
        print(f"Job {job.id} is {job.status.value}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the helper matching CLI.

    Returns:
        Exit code: 0 on success, 1 for configuration or fatal errors,
        2 when a job or user is not found or data is invalid.
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=LogFormat(app_config.logging.format).value,
            environment=env_config.environment,
        )
        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "command": args.command,
                "criteria": app_config.matching.criteria,
                "parallel": app_config.matching.parallel,
                "log_level": env_config.log_level,
            },
        )

        init_database(env_config.database_url)
        try:
            run_command(args, build_job_service(app_config))
        finally:
            close_database()

        logger.info(
            f"Command {args.command} completed",
            extra={
                "event": "cli.command.completed",
                "command": args.command,
                "duration_seconds": round(time.time() - start_time, 3),
            },
        )
        return EXIT_OK

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e.message}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return EXIT_FATAL
    except (MatchingError, SeedFileError, DataIntegrityError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.warning(
            f"Command {args.command} failed: {e}",
            extra={
                "event": "cli.command.failed",
                "command": args.command,
                "error_type": type(e).__name__,
            },
        )
        return EXIT_NOT_FOUND_OR_INVALID
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_FATAL
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "cli.fatal",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
