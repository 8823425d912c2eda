"""
Command-Line Interface (CLI) setup for the worker.

Flags given here override the values loaded from the YAML file and the
environment.
"""
import argparse
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config.common import DELIVERY_POLICIES
from .config.settings import Settings


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the worker.

    Returns:
        argparse.Namespace: The parsed arguments. Options that were not given
                            are None so they do not override other settings.
    """
    parser = argparse.ArgumentParser(
        description="Compose an image or video with an audio track for each queued job."
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Path to a YAML settings file."
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level."
    )
    parser.add_argument(
        "--max-workers", type=int, default=None, help="Number of jobs processed at the same time."
    )
    parser.add_argument(
        "--max-pending", type=int, default=None,
        help="Number of accepted jobs allowed to wait for a free worker."
    )
    parser.add_argument(
        "--delivery", type=str, default=None, choices=DELIVERY_POLICIES,
        help="When queue messages are acknowledged relative to processing."
    )
    parser.add_argument(
        "--work-dir", type=Path, default=None,
        help="Directory for per-job workspaces. Useful for pointing to a RAM disk."
    )
    return parser.parse_args(argv)


def apply_args(settings: Settings, args: argparse.Namespace) -> Settings:
    """Returns `settings` with every explicitly given flag applied."""
    worker_changes = {
        name: value
        for name, value in (
            ("max_workers", args.max_workers),
            ("max_pending", args.max_pending),
            ("delivery", args.delivery),
            ("work_dir", args.work_dir.resolve() if args.work_dir else None),
        )
        if value is not None
    }
    if worker_changes:
        settings = replace(settings, worker=replace(settings.worker, **worker_changes))
    if args.log_level:
        settings = replace(settings, logging=replace(settings.logging, level=args.log_level))
    return settings
