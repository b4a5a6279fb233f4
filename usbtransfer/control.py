"""SETUP packets for requests on a USB control endpoint."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

SETUP_PACKET_SIZE = 8

_SETUP_FORMAT = "<BBHHH"


class Direction(IntEnum):
    """Transfer direction."""

    OUT = 0
    """Host to device."""
    IN = 1
    """Device to host."""


class ControlType(IntEnum):
    """Specification defining the request."""

    STANDARD = 0
    """Request defined by the USB standard."""
    CLASS = 1
    """Request defined by the standard USB class specification."""
    VENDOR = 2
    """Non-standard request."""


class Recipient(IntEnum):
    """Entity targeted by the request."""

    DEVICE = 0
    INTERFACE = 1
    ENDPOINT = 2
    OTHER = 3


def _check_range(name: str, value: int, maximum: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an integer, not {type(value).__name__}")
    if not 0 <= value <= maximum:
        raise ValueError(f"{name} must be between 0 and {maximum}, got {value}")
    return value


def request_type(
    direction: Direction, control_type: ControlType, recipient: Recipient
) -> int:
    """Build the ``bmRequestType`` byte."""
    return (
        (Direction(direction) << 7)
        | (ControlType(control_type) << 5)
        | Recipient(recipient)
    )


def pack_setup(
    direction: Direction,
    control_type: ControlType,
    recipient: Recipient,
    request: int,
    value: int,
    index: int,
    length: int,
) -> bytes:
    """Pack the eight bytes of a SETUP packet (little-endian fields)."""
    return struct.pack(
        _SETUP_FORMAT,
        request_type(direction, control_type, recipient),
        _check_range("request", request, 0xFF),
        _check_range("value", value, 0xFFFF),
        _check_range("index", index, 0xFFFF),
        _check_range("length", length, 0xFFFF),
    )


@dataclass
class Control:
    """SETUP packet without direction or buffers.

    ``index`` is the interface number for :attr:`Recipient.INTERFACE` and the
    endpoint number for :attr:`Recipient.ENDPOINT`.
    """

    control_type: ControlType
    recipient: Recipient
    request: int
    value: int
    index: int

    def __post_init__(self) -> None:
        self.control_type = ControlType(self.control_type)
        self.recipient = Recipient(self.recipient)
        _check_range("request", self.request, 0xFF)
        _check_range("value", self.value, 0xFFFF)
        _check_range("index", self.index, 0xFFFF)

    def request_type(self, direction: Direction) -> int:
        """The ``bmRequestType`` byte for a request in ``direction``."""
        return request_type(direction, self.control_type, self.recipient)


@dataclass
class ControlOut(Control):
    """SETUP packet and data for an OUT request on a control endpoint."""

    data: bytes = b""

    def setup_packet(self) -> bytes:
        """Pack the SETUP packet; raises ValueError if the data is too long."""
        if len(self.data) > 0xFFFF:
            raise ValueError(
                f"control data of {len(self.data)} bytes does not fit in wLength"
            )
        return pack_setup(
            Direction.OUT,
            self.control_type,
            self.recipient,
            self.request,
            self.value,
            self.index,
            len(self.data),
        )

    def request_type(self) -> int:  # type: ignore[override]
        """The ``bmRequestType`` byte of this OUT request."""
        return request_type(Direction.OUT, self.control_type, self.recipient)


@dataclass
class ControlIn(Control):
    """SETUP packet for an IN request on a control endpoint."""

    length: int = 0

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_range("length", self.length, 0xFFFF)

    def setup_packet(self) -> bytes:
        """Pack the SETUP packet."""
        return pack_setup(
            Direction.IN,
            self.control_type,
            self.recipient,
            self.request,
            self.value,
            self.index,
            self.length,
        )

    def request_type(self) -> int:  # type: ignore[override]
        """The ``bmRequestType`` byte of this IN request."""
        return request_type(Direction.IN, self.control_type, self.recipient)