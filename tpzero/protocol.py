"""Wire format shared by the client and the server.

Every frame is ``op_code`` (4-byte int), ``size`` (4-byte int) and ``size``
bytes of payload. A package payload is a run of ``length`` (4-byte int)
followed by ``length`` bytes. All integers are little-endian and signed.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

_INT = struct.Struct("<i")
INT_SIZE = _INT.size


class OpCode(IntEnum):
    """Operation codes understood by the server."""

    MESSAGE = 0
    PACKAGE = 1


class ProtocolError(ValueError):
    """Raised when bytes on the wire do not follow the protocol."""


def encode_int(value: int) -> bytes:
    """Encode a signed 32-bit integer."""
    try:
        return _INT.pack(value)
    except struct.error as exc:
        raise ProtocolError(f"cannot encode {value!r} as a 32-bit integer") from exc


def decode_int(data: bytes) -> int:
    """Decode exactly four bytes as a signed 32-bit integer."""
    if len(data) != INT_SIZE:
        raise ProtocolError(f"expected {INT_SIZE} bytes, got {len(data)}")
    return _INT.unpack(data)[0]


def _as_c_string(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8") + b"\0"
    return bytes(value)


def _frame(op_code: OpCode, payload: bytes) -> bytes:
    return encode_int(op_code) + encode_int(len(payload)) + payload


@dataclass
class Packet:
    """A package of length-prefixed values waiting to be sent."""

    op_code: OpCode = OpCode.PACKAGE
    buffer: bytearray = field(default_factory=bytearray)

    def add(self, value: str | bytes) -> None:
        """Append a value; text is sent NUL-terminated, bytes as they are."""
        data = _as_c_string(value)
        self.buffer += encode_int(len(data))
        self.buffer += data

    def serialize(self) -> bytes:
        """Return the full frame: op code, payload size and payload."""
        return _frame(self.op_code, bytes(self.buffer))


def encode_message(message: str) -> bytes:
    """Frame a single NUL-terminated text message."""
    return _frame(OpCode.MESSAGE, _as_c_string(message))


def _c_string_to_text(data: bytes) -> str:
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def decode_values(stream: bytes) -> list[str]:
    """Split a package payload into its values, read as C strings."""
    values: list[str] = []
    offset = 0
    end = len(stream)
    while offset < end:
        if offset + INT_SIZE > end:
            raise ProtocolError("truncated length prefix")
        length = decode_int(stream[offset:offset + INT_SIZE])
        offset += INT_SIZE
        if length < 0:
            raise ProtocolError(f"negative value length {length}")
        if offset + length > end:
            raise ProtocolError("value runs past the end of the payload")
        values.append(_c_string_to_text(stream[offset:offset + length]))
        offset += length
    return values