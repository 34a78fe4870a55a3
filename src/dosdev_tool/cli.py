# src/dosdev_tool/cli.py

import argparse
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, List, Optional

from .backend.base import AbstractHost
from .classifier import probe_driver
from .constants import PATTERN_WILDCARD, RC_ERROR, RC_FAIL, RC_OK
from .errors import DosDeviceError
from .models import CheckResult
from .report import format_info, format_mountlist, format_scan_line, format_status, highlight
from .services import DeviceChecker, default_driver, suppress_requesters

_TRUTHY_VALUES = {"1", "true", "yes", "on"}


class Console:
    """Status output that honours --quiet. Reports bypass it."""

    def __init__(self, quiet: bool = False, stream: Optional[IO[str]] = None):
        self.quiet = quiet
        self.stream = stream if stream is not None else sys.stdout

    def say(self, line: str) -> None:
        if not self.quiet:
            print(line, file=self.stream)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str):
        # Scripts test for the four return codes, so usage errors are ERROR, not 2.
        self.print_usage(sys.stderr)
        self.exit(RC_ERROR, f"{self.prog}: error: {message}\n")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY_VALUES


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug or _env_flag("DOSDEV_TOOL_DEBUG") else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )


def _error_log_path() -> Path:
    override = os.getenv("DOSDEV_TOOL_ERROR_LOG", "").strip()
    if override:
        return Path(override)

    for var in ("TEMP", "TMP"):
        value = os.getenv(var, "").strip()
        if value:
            return Path(value) / "checkdosdevice_error.log"
    return Path.cwd() / "checkdosdevice_error.log"


def _write_error_log(exc: BaseException) -> Optional[str]:
    path = _error_log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass

    try:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        tb_text = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        with path.open("a", encoding="utf-8", newline="\n") as fh:
            fh.write(f"\n[{timestamp}] checkdosdevice error\n")
            fh.write(tb_text)
        return str(path)
    except OSError:
        return None


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="checkdosdevice",
        description="Check whether a DOS device exists and has a volume mounted.",
        add_help=False,
    )
    parser.add_argument("-h", "--help", action="store_true")
    parser.add_argument("device", nargs="?", metavar="DEVICE")
    parser.add_argument("-q", "--quiet", action="store_true")
    parser.add_argument("-d", "--driver", type=str, metavar="DRIVER")
    report = parser.add_mutually_exclusive_group()
    report.add_argument("--info", action="store_true")
    report.add_argument("--config", action="store_true")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--snapshot", type=Path, metavar="FILE")
    source.add_argument("--dump", type=Path, metavar="FILE")
    parser.add_argument("--debug", action="store_true")
    return parser


def _open_host(args: argparse.Namespace) -> Optional[AbstractHost]:
    from .backend.image import ImageHost

    if args.snapshot is not None:
        return ImageHost.from_snapshot(args.snapshot)
    if args.dump is not None:
        return ImageHost.from_dump(args.dump)
    return None


def _print_report(checker: DeviceChecker, result: CheckResult, args: argparse.Namespace) -> None:
    report = checker.describe(result.resolution)
    if args.info:
        print(format_info(report, result.outcome))
    else:
        print(highlight(format_mountlist(report), sys.stdout))


def _handle_pattern(
    checker: DeviceChecker, pattern: str, args: argparse.Namespace, console: Console
) -> int:
    console.say(f'Devices matching pattern "{pattern}":')
    found_any = False
    for resolution, outcome in checker.scan(pattern):
        found_any = True
        if args.info or args.config:
            _print_report(checker, CheckResult(outcome, resolution, args.driver), args)
        else:
            console.say(format_scan_line(resolution, outcome))
    if not found_any:
        console.say(f'No devices found matching pattern "{pattern}"')
        return RC_ERROR
    return RC_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.help:
        from .help_text import print_help

        print_help()
        return RC_OK

    if not args.device:
        parser.error("the following arguments are required: DEVICE")

    _setup_logging(args.debug)
    console = Console(quiet=args.quiet)
    args.driver = args.driver or default_driver()

    try:
        checker = DeviceChecker(_open_host(args))
    except (DosDeviceError, OSError) as e:
        print(f"Cannot read the device list: {e}", file=sys.stderr)
        return RC_ERROR

    if args.device.endswith(PATTERN_WILDCARD):
        with suppress_requesters(checker.host):
            if not probe_driver(checker.host, args.driver):
                console.say(f"Device driver {args.driver} not available")
                return RC_FAIL
            return _handle_pattern(checker, args.device, args, console)

    result = checker.check(args.device, args.driver)

    # A resolved device in report mode is OK whatever its media state.
    if (args.info or args.config) and result.resolution.found:
        _print_report(checker, result, args)
        return RC_OK

    for line in format_status(result):
        console.say(line)
    return result.exit_code


def run() -> None:
    exit_code = RC_OK
    try:
        exit_code = main()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        exit_code = 130
    except SystemExit as e:
        if isinstance(e.code, int):
            exit_code = e.code
        else:
            exit_code = RC_OK if e.code is None else RC_ERROR
    except Exception as e:
        log_path = _write_error_log(e)
        print(f"\nAn unexpected error occurred: {e}", file=sys.stderr)
        if log_path:
            print(f"Full traceback saved to: {log_path}", file=sys.stderr)
        traceback.print_exc()
        exit_code = RC_FAIL
    sys.exit(exit_code)


if __name__ == "__main__":
    run()
