"""objlock command-line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import subprocess
import sys

from objlock.cli.parser import parse_arguments
from objlock.core.config import LockConfiguration, StoreConfig
from objlock.core.constants import EXIT_INTERRUPTED, EXIT_LOCK_HELD
from objlock.core.exceptions import ObjLockError
from objlock.core.locks.provider import ObjectStoreLockProvider
from objlock.core.locks.tasks import run_locked
from objlock.core.logging import flush_logging_handlers, setup_logging
from objlock.stores.factory import create_object_store


def _build_provider(args: argparse.Namespace, logger: logging.Logger) -> ObjectStoreLockProvider:
    config = StoreConfig.from_args(args, StoreConfig.from_env(logger=logger))
    store = create_object_store(config, logger=logger)
    return ObjectStoreLockProvider(store, released_suffix=config.released_suffix, logger=logger)


def _run(args: argparse.Namespace, provider: ObjectStoreLockProvider) -> int:
    configuration = LockConfiguration.of_seconds(args.name, args.lock_for, args.lock_at_least)
    result = run_locked(provider, configuration, lambda: subprocess.run(args.task, check=False).returncode)
    if not result.executed:
        print(f"Lock '{args.name}' is held elsewhere; not running", file=sys.stderr)
        return EXIT_LOCK_HELD
    return result.value


def _status(args: argparse.Namespace, provider: ObjectStoreLockProvider) -> int:
    locked = provider.is_locked(args.name)
    record = provider.read_record(args.name) if locked else None
    released = provider.read_released_record(args.name)

    if args.json:
        print(
            json.dumps(
                {
                    "name": args.name,
                    "locked": locked,
                    "record": record.to_dict() if record else None,
                    "last_released": released.to_dict() if released else None,
                },
                indent=2,
            )
        )
        return 0

    if not locked:
        print(f"{args.name}: unlocked")
    elif record is None:
        print(f"{args.name}: locked (record unreadable)")
    else:
        print(f"{args.name}: locked by {record.locked_by} at {record.locked_at} until {record.lock_until}")
    if released is not None:
        print(f"  last released record: locked by {released.locked_by} at {released.locked_at}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the script"""
    args = parse_arguments(argv)
    logger = setup_logging(args.log_level, args.log_format)

    try:
        provider = _build_provider(args, logger)
        if args.command == "run":
            return _run(args, provider)
        return _status(args, provider)
    except ObjLockError as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        # The task command could not be started
        logger.error("Could not run %s: %s", args.task, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    finally:
        flush_logging_handlers()


if __name__ == "__main__":
    sys.exit(main())
