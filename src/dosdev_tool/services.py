# src/dosdev_tool/services.py

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from .backend.base import AbstractHost
from .classifier import DRIVER_UNAVAILABLE, NOT_FOUND, StatusClassifier, probe_driver
from .constants import DEFAULT_DRIVER, WINDOW_PTR_SUPPRESS
from .directory import DeviceDirectory
from .errors import HostError
from .models import CheckResult, DeviceReport, ResolutionResult, StatusOutcome
from .utils import is_number, strip_device_name

logger = logging.getLogger(__name__)


def default_driver() -> str:
    return os.getenv("DOSDEV_DRIVER", "").strip() or DEFAULT_DRIVER


@contextmanager
def suppress_requesters(host: AbstractHost) -> Iterator[None]:
    """Keep system requesters off screen; the previous window pointer always comes back."""
    previous = host.window_ptr
    host.window_ptr = WINDOW_PTR_SUPPRESS
    try:
        yield
    finally:
        host.window_ptr = previous


class DeviceChecker:
    def __init__(self, host: Optional[AbstractHost] = None):
        if host is None:
            self.host = self._get_default_host()
        else:
            self.host = host
        self.directory = DeviceDirectory(self.host)
        self.classifier = StatusClassifier(self.directory)

    def _get_default_host(self) -> AbstractHost:
        from .backend.image import ImageHost

        snapshot = os.getenv("DOSDEV_SNAPSHOT", "").strip()
        if snapshot:
            return ImageHost.from_snapshot(snapshot)
        dump = os.getenv("DOSDEV_DUMP", "").strip()
        if dump:
            return ImageHost.from_dump(dump)
        raise HostError(
            "No device directory source; pass --snapshot/--dump "
            "or set DOSDEV_SNAPSHOT/DOSDEV_DUMP"
        )

    def check(self, identifier: str, driver_name: Optional[str] = None) -> CheckResult:
        """Classify a device given by name or, for a bare number, by unit of ``driver_name``."""
        driver_name = driver_name or default_driver()
        with suppress_requesters(self.host):
            if not probe_driver(self.host, driver_name):
                logger.debug("driver %s is not available", driver_name)
                return CheckResult(
                    DRIVER_UNAVAILABLE,
                    ResolutionResult(None, strip_device_name(identifier)),
                    driver_name,
                )

            if is_number(identifier):
                unit = int(identifier)
                resolution = self.directory.resolve_by_driver_and_unit(driver_name, unit)
                if not resolution.found:
                    return CheckResult(NOT_FOUND, resolution, driver_name, unit)
                outcome = self.classifier.classify(resolution.clean_name)
                return CheckResult(outcome, resolution, driver_name, unit)

            resolution = self.directory.resolve_by_name(identifier)
            outcome = self.classifier.classify_resolution(resolution)
            return CheckResult(outcome, resolution, driver_name)

    def scan(self, pattern: str) -> Iterator[Tuple[ResolutionResult, StatusOutcome]]:
        with suppress_requesters(self.host):
            yield from self.classifier.scan(pattern)

    def describe(self, resolution: ResolutionResult) -> Optional[DeviceReport]:
        if resolution.record is None:
            return None
        return self.classifier.describe(resolution.record)


def check_device(
    identifier: str,
    driver_name: Optional[str] = None,
    host: Optional[AbstractHost] = None,
) -> CheckResult:
    return DeviceChecker(host).check(identifier, driver_name)
