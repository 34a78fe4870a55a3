# src/dosdev_tool/backend/base.py

import ctypes as ct
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Type, TypeVar

from ..structs import InfoData

S = TypeVar("S", bound=ct.Structure)


class AbstractHost(ABC):
    """OS interop boundary for the device directory.

    Every call is attempted once. Failures to acquire something are
    reported as ``None``, not raised.
    """

    @abstractmethod
    def read(self, address: int, size: int) -> bytes:
        """Read ``size`` bytes of OS memory at ``address``."""
        pass

    @abstractmethod
    def forbid(self) -> None:
        """Enter the non-preemptible section. Calls nest."""
        pass

    @abstractmethod
    def permit(self) -> None:
        pass

    @abstractmethod
    def dos_list_head(self) -> int:
        """BPTR of the first device directory entry."""
        pass

    @abstractmethod
    def lock(self, path: str) -> Optional[Any]:
        """Obtain a shared read lock on ``path``; ``None`` when it cannot be had."""
        pass

    @abstractmethod
    def unlock(self, handle: Any) -> None:
        pass

    @abstractmethod
    def info(self, handle: Any) -> Optional[InfoData]:
        pass

    @abstractmethod
    def open_device(self, driver_name: str, unit: int) -> Optional[Any]:
        pass

    @abstractmethod
    def close_device(self, request: Any) -> None:
        pass

    @property
    @abstractmethod
    def window_ptr(self) -> int:
        """The process requester window; -1 keeps system requesters away."""
        pass

    @window_ptr.setter
    @abstractmethod
    def window_ptr(self, value: int) -> None:
        pass

    def baddr(self, bptr: int) -> int:
        # BCPL pointers count longwords. A flat-address host overrides this
        # with the identity.
        return bptr << 2

    def read_long(self, address: int, signed: bool = False) -> int:
        return int.from_bytes(self.read(address, 4), "big", signed=signed)

    def read_struct(self, struct_type: Type[S], address: int) -> S:
        return struct_type.from_buffer_copy(self.read(address, ct.sizeof(struct_type)))

    @contextmanager
    def forbidden(self) -> Iterator[None]:
        self.forbid()
        try:
            yield
        finally:
            self.permit()
