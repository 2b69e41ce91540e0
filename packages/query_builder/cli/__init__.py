"""CLI builder for the `list`/`run`/`help` job command line."""
from __future__ import annotations

import argparse
import importlib.util
import logging
import os
import sys
from typing import Dict, Iterable, List, Optional

from dotenv import load_dotenv

from ..jobs import JobDefinition, discover_package_jobs

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _load_package_env(package_name: str) -> None:
    """Load a package-level .env file into os.environ if present.

    Existing environment variables win over values in the file.
    """
    try:
        spec = importlib.util.find_spec(package_name)
        if not spec or not spec.submodule_search_locations:
            return
        pkg_dir = list(spec.submodule_search_locations)[0]
        env_path = os.path.join(pkg_dir, ".env")
        if not os.path.exists(env_path):
            return

        logger.info("Loading package .env from %s", env_path)
        load_dotenv(env_path, override=False)
    except Exception:
        logger.debug("Failed to load package .env for %s", package_name, exc_info=True)


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Install a root handler when none is configured.

    LOG_LEVEL picks the level; LOG_FORMAT=json emits JSON lines.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    handler = logging.StreamHandler()
    if (fmt or os.getenv("LOG_FORMAT", "text")).lower() == "json":
        from pythonjsonlogger.json import JsonFormatter

        handler.setFormatter(JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))


def make_job_cli(prog: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog)
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List available jobs")

    run_parser = subparsers.add_parser("run", help="Run a named job")
    run_parser.add_argument("job_name", help="Job to run")
    run_parser.add_argument("job_args", nargs=argparse.REMAINDER)

    help_parser = subparsers.add_parser("help", help="Show job-specific help")
    help_parser.add_argument("job_name", help="Job to show help for")

    return parser


def run_job_by_name(registry: Dict[str, JobDefinition], name: str, argv: Iterable[str]) -> int:
    job = registry.get(name)
    if job is None:
        available = ", ".join(sorted(registry.keys()))
        print(f"Unknown job '{name}'. Available jobs: {available}", file=sys.stderr)
        return 1
    return job.entrypoint(list(argv))


def main_for_package(prog: str, package_name: str, argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint for a package that exposes jobs.

    Args:
        prog: Program name used in the argparse help (e.g. 'query-builder').
        package_name: Top-level package to discover jobs for (e.g. 'query_builder').
        argv: Arguments to parse; defaults to sys.argv[1:].

    Returns:
        Exit code integer.
    """
    _load_package_env(package_name)
    configure_logging()

    parser = make_job_cli(prog)
    args = parser.parse_args(argv)

    registry = discover_package_jobs(package_name)

    if args.command == "list":
        for name in sorted(registry.keys()):
            print(f"{name}\t{registry[name].description}")
        return 0

    if args.command == "run":
        job_args = args.job_args
        if job_args and job_args[0] == "--":
            job_args = job_args[1:]
        return run_job_by_name(registry, args.job_name, job_args)

    if args.command == "help":
        return run_job_by_name(registry, args.job_name, ["--help"])

    parser.print_usage()
    return 2
