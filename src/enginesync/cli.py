# src/enginesync/cli.py

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from enginesync import log_utils
from enginesync.backends import list_backends
from enginesync.config import load_config
from enginesync.constants import MSG_PRESS_ENTER
from enginesync.exceptions import EngineSyncError
from enginesync.orchestrator import COMMANDS, SyncOrchestrator, SyncResult
from enginesync.progress import create_reporter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="enginesync",
        description="Synchronize an engine binary tree with object storage",
    )
    # Not restricted with choices: unknown commands are reported, not rejected
    parser.add_argument(
        "command",
        nargs="?",
        metavar="COMMAND",
        help=f"Operation to run ({', '.join(COMMANDS)})",
    )
    parser.add_argument(
        "--backend",
        "-b",
        help=f"Transfer backend ({', '.join(list_backends())}); defaults to the configured client",
    )
    parser.add_argument(
        "--path",
        "-p",
        help="Engine directory (defaults to three levels above the program)",
    )
    parser.add_argument(
        "--no-window",
        dest="windowed",
        action="store_false",
        help="Do not open the status window; report progress in the console only",
    )
    parser.add_argument("--config", "-c", help="Path to the configuration file")
    parser.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="Download even when the local version is already current",
    )
    parser.add_argument(
        "--log-level",
        help="Console log level (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("--log-dir", help="Also write a rotating log file here")
    return parser


def _wait_for_acknowledgement() -> None:
    """
    Block until the operator presses Enter, when an interactive console exists.
    """
    if sys.stdin is None or not sys.stdin.isatty():
        return
    try:
        input(MSG_PRESS_ENTER)
    except EOFError:
        pass


def _handle_failure(error: BaseException) -> None:
    if isinstance(error, EngineSyncError):
        log_utils.logger.error(f"Sync failed: {error}")
    else:
        log_utils.logger.exception(f"Unexpected error: {error}")
    _wait_for_acknowledgement()


def run(
    command: Optional[str],
    backend: Optional[str] = None,
    path: Optional[str] = None,
    windowed: bool = True,
    config_path: Optional[str] = None,
    force: bool = False,
    log_level: Optional[str] = None,
) -> Optional[SyncResult]:
    """
    Load configuration and execute one command inside a progress reporter.

    Errors propagate to the caller with the console already revealed.
    """
    reporter = create_reporter(windowed)
    reporter.start()
    try:
        config = load_config(config_path)
        level = log_level or config.log_level
        if level:
            log_utils.set_log_level(level)
        orchestrator = SyncOrchestrator(config, reporter=reporter, force=force)
        return orchestrator.run(command or "", backend_name=backend, path=path)
    except BaseException:
        reporter.reveal_console()
        raise
    finally:
        reporter.close()


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the enginesync command-line interface.

    Failures are logged, the console is made visible and the process waits for
    the operator before exiting with status 1.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        log_utils.set_log_level(args.log_level)
    if args.log_dir:
        log_utils.add_file_logging(Path(args.log_dir), args.log_level or "INFO")

    if not args.command:
        parser.print_help()
        return

    try:
        run(
            args.command,
            backend=args.backend,
            path=args.path,
            windowed=args.windowed,
            config_path=args.config,
            force=args.force,
            log_level=args.log_level,
        )
    except KeyboardInterrupt:
        log_utils.logger.warning("Interrupted")
        sys.exit(130)
    except Exception as error:
        _handle_failure(error)
        sys.exit(1)


if __name__ == "__main__":
    main()
