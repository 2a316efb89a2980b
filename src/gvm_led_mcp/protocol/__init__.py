"""Protocol layer: CRC framing, command catalog and packet builders."""

from .catalog import Command, Mode, Scene, lookup
from .commands import build
from .errors import ArgumentOutOfDomain, ModeMismatch, ProtocolError, UnknownCommand
from .framing import Packet, build_session_start
