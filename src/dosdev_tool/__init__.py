# src/dosdev_tool/__init__.py
from importlib import import_module
from typing import Any

from .models import Classification, StatusOutcome
from .services import DeviceChecker, check_device


def __getattr__(name: str) -> Any:
    if name == "ImageHost":
        return import_module(".backend.image", __name__).ImageHost
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "DeviceChecker",
    "check_device",
    "Classification",
    "StatusOutcome",
    "ImageHost",
]
