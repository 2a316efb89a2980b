"""Packet framing for the GVM BLE light protocol.

Packet layout::

    +-------------+--------+----------+----------+----------+
    | Header      | Opcode | Constant | Argument | Checksum |
    | 7 bytes     | 1 byte | 1 byte   | 1 byte   | 2 bytes  |
    +-------------+--------+----------+----------+----------+

- Header: ``4C 54 09 00 30 57 00`` for commands, ``4C 54 09 00 00 53 00``
  for the one-off session-start packet
- Constant: always 0x01 in observed traffic
- Checksum: CRC-16/XMODEM over the ten preceding bytes, big-endian

Packets are fixed-size; there is no length prefix or padding.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..utils.crc import crc16

COMMAND_HEADER = bytes([0x4C, 0x54, 0x09, 0x00, 0x30, 0x57, 0x00])
SESSION_HEADER = bytes([0x4C, 0x54, 0x09, 0x00, 0x00, 0x53, 0x00])
HEADER_SIZE = 7
COMMAND_CONSTANT = 0x01
CHECKSUM_SIZE = 2
PACKET_SIZE = HEADER_SIZE + 3 + CHECKSUM_SIZE  # 12

SESSION_OPCODE = 0x00
SESSION_ARGUMENT = 0x00


@dataclass(frozen=True)
class Packet:
    """An immutable, fully framed packet ready to hand to a transport."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) != PACKET_SIZE:
            raise ValueError(
                f"Packet must be {PACKET_SIZE} bytes, got {len(self.data)}"
            )
        if not verify_frame(self.data):
            raise ValueError(f"Packet checksum mismatch: {self.data.hex(' ')}")

    @property
    def header(self) -> bytes:
        return self.data[:HEADER_SIZE]

    @property
    def opcode(self) -> int:
        return self.data[HEADER_SIZE]

    @property
    def constant(self) -> int:
        return self.data[HEADER_SIZE + 1]

    @property
    def argument(self) -> int:
        return self.data[HEADER_SIZE + 2]

    @property
    def checksum(self) -> int:
        return int.from_bytes(self.data[-CHECKSUM_SIZE:], "big")

    @property
    def is_session_start(self) -> bool:
        return self.header == SESSION_HEADER

    def hex(self, sep: str = "") -> str:
        return self.data.hex(sep) if sep else self.data.hex()

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return (
            f"Packet(opcode=0x{self.opcode:02X}, "
            f"argument=0x{self.argument:02X}, "
            f"raw={self.data.hex(' ')})"
        )


def build_frame(
    opcode: int,
    argument: int,
    header: bytes = COMMAND_HEADER,
    constant: int = COMMAND_CONSTANT,
) -> Packet:
    """Frame an opcode and argument byte into a checksummed packet.

    Args:
        opcode: Single-byte command opcode.
        argument: Raw argument byte (already validated by the caller).
        header: 7-byte header, the command header unless starting a session.
        constant: Byte between opcode and argument.
    """
    if len(header) != HEADER_SIZE:
        raise ValueError(f"Header must be {HEADER_SIZE} bytes, got {len(header)}")
    body = header + bytes([opcode, constant, argument])
    return Packet(body + crc16(body).to_bytes(CHECKSUM_SIZE, "big"))


def build_session_start() -> Packet:
    """Build the fixed packet that opens a control session."""
    return build_frame(SESSION_OPCODE, SESSION_ARGUMENT, header=SESSION_HEADER)


def verify_frame(data: bytes) -> bool:
    """Check that ``data`` is a 12-byte packet whose trailer matches its CRC."""
    if len(data) != PACKET_SIZE:
        return False
    body = data[:-CHECKSUM_SIZE]
    return crc16(body) == int.from_bytes(data[-CHECKSUM_SIZE:], "big")
