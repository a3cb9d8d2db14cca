"""Automato message payloads and their packed little-endian wire format."""

import struct
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import ClassVar

from automato.result import AutomatoError, ResultCode, result_string

MAX_MESSAGE_LEN = 251
MAX_WRITEMEM = MAX_MESSAGE_LEN - 4
MAX_READMEM = MAX_MESSAGE_LEN - 2
FIELD_NAME_LEN = 25
PROTO_VERSION = 0.1


class PayloadType(IntEnum):
    ACK = 0
    FAIL = 1
    PINMODE = 2
    READPIN = 3
    READPINREPLY = 4
    WRITEPIN = 5
    READMEM = 6
    READMEMREPLY = 7
    WRITEMEM = 8
    READINFO = 9
    READINFOREPLY = 10
    READHUMIDITY = 11
    READHUMIDITYREPLY = 12
    READTEMPERATURE = 13
    READTEMPERATUREREPLY = 14
    READANALOG = 15
    READANALOGREPLY = 16
    READFIELD = 17
    READFIELDREPLY = 18


class FieldFormat(IntEnum):
    CHAR = 0
    FLOAT = 1
    UINT8 = 2
    UINT16 = 3
    UINT32 = 4
    INT8 = 5
    INT16 = 6
    INT32 = 7
    OTHER = 8


@dataclass(frozen=True)
class MapField:
    """Describes one field of a node's remotely readable data area."""

    name: str
    offset: int
    length: int
    format: FieldFormat


_REPLY_TYPES = frozenset(
    {
        PayloadType.ACK,
        PayloadType.FAIL,
        PayloadType.READPINREPLY,
        PayloadType.READMEMREPLY,
        PayloadType.READINFOREPLY,
        PayloadType.READHUMIDITYREPLY,
        PayloadType.READTEMPERATUREREPLY,
        PayloadType.READANALOGREPLY,
        PayloadType.READFIELDREPLY,
    }
)

_REGISTRY = {}


def _as_enum(enum_type, value):
    try:
        return enum_type(value)
    except ValueError:
        return value


class _Payload:
    """Common behaviour of every payload type."""

    TYPE: ClassVar[PayloadType]
    _FORMAT: ClassVar[str] = "<"

    def __init_subclass__(cls, *, payload_type, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.TYPE = payload_type
        _REGISTRY[payload_type] = cls

    def _pack(self):
        return struct.pack(self._FORMAT, *(getattr(self, f.name) for f in fields(self)))

    @classmethod
    def _unpack(cls, body):
        return cls(*struct.unpack_from(cls._FORMAT, body))

    def _details(self):
        return []


@dataclass(frozen=True)
class Ack(_Payload, payload_type=PayloadType.ACK):
    pass


@dataclass(frozen=True)
class Fail(_Payload, payload_type=PayloadType.FAIL):
    code: ResultCode
    _FORMAT = "<B"

    @classmethod
    def _unpack(cls, body):
        (code,) = struct.unpack_from(cls._FORMAT, body)
        return cls(_as_enum(ResultCode, code))

    def _details(self):
        return [f"code: {int(self.code)}", result_string(self.code)]


@dataclass(frozen=True)
class PinMode(_Payload, payload_type=PayloadType.PINMODE):
    pin: int
    mode: int
    _FORMAT = "<BB"

    def _details(self):
        return [f"pin: {self.pin}", f"mode: {self.mode}"]


@dataclass(frozen=True)
class ReadPin(_Payload, payload_type=PayloadType.READPIN):
    pin: int
    _FORMAT = "<B"

    def _details(self):
        return [f"pin: {self.pin}"]


@dataclass(frozen=True)
class ReadPinReply(_Payload, payload_type=PayloadType.READPINREPLY):
    pin: int
    state: int
    _FORMAT = "<BB"

    def _details(self):
        return [f"pin: {self.pin}", f"state: {self.state}"]


@dataclass(frozen=True)
class WritePin(_Payload, payload_type=PayloadType.WRITEPIN):
    pin: int
    state: int
    _FORMAT = "<BB"

    def _details(self):
        return [f"pin: {self.pin}", f"state: {self.state}"]


@dataclass(frozen=True)
class ReadAnalog(_Payload, payload_type=PayloadType.READANALOG):
    pin: int
    _FORMAT = "<B"

    def _details(self):
        return [f"pin: {self.pin}"]


@dataclass(frozen=True)
class ReadAnalogReply(_Payload, payload_type=PayloadType.READANALOGREPLY):
    pin: int
    state: int
    _FORMAT = "<BH"

    def _details(self):
        return [f"pin: {self.pin}", f"state: {self.state}"]


@dataclass(frozen=True)
class ReadMem(_Payload, payload_type=PayloadType.READMEM):
    address: int
    length: int
    _FORMAT = "<HB"

    def _details(self):
        return [f"address: {self.address}", f"length: {self.length}"]


def _hex(data):
    return "".join(f"{b:X}" for b in data)


@dataclass(frozen=True)
class ReadMemReply(_Payload, payload_type=PayloadType.READMEMREPLY):
    data: bytes

    def __post_init__(self):
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) > MAX_READMEM:
            raise AutomatoError(ResultCode.INVALID_MEM_LENGTH)

    def _pack(self):
        return bytes([len(self.data)]) + self.data

    @classmethod
    def _unpack(cls, body):
        if not body:
            raise ValueError("truncated readmemreply payload")
        length = body[0]
        data = bytes(body[1 : 1 + length])
        if len(data) < length:
            raise ValueError("truncated readmemreply payload")
        return cls(data)

    def _details(self):
        return [f"length: {len(self.data)}", f"mem: {_hex(self.data)}"]


@dataclass(frozen=True)
class WriteMem(_Payload, payload_type=PayloadType.WRITEMEM):
    address: int
    data: bytes

    def __post_init__(self):
        object.__setattr__(self, "data", bytes(self.data))
        if len(self.data) > MAX_WRITEMEM:
            raise AutomatoError(ResultCode.INVALID_MEM_LENGTH)

    def _pack(self):
        return struct.pack("<HB", self.address, len(self.data)) + self.data

    @classmethod
    def _unpack(cls, body):
        address, length = struct.unpack_from("<HB", body)
        data = bytes(body[3 : 3 + length])
        if len(data) < length:
            raise ValueError("truncated writemem payload")
        return cls(address, data)

    def _details(self):
        return [
            f"address: {self.address}",
            f"length: {len(self.data)}",
            f"mem: {_hex(self.data)}",
        ]


@dataclass(frozen=True)
class ReadInfo(_Payload, payload_type=PayloadType.READINFO):
    pass


@dataclass(frozen=True)
class ReadInfoReply(_Payload, payload_type=PayloadType.READINFOREPLY):
    protoversion: float
    mac_address: int
    datalen: int
    fieldcount: int
    _FORMAT = "<fQHH"

    def _details(self):
        return [
            f"protoversion: {self.protoversion:.2f}",
            f"macAddress: {self.mac_address}",
            f"datalen: {self.datalen}",
            f"fieldcount: {self.fieldcount}",
        ]


@dataclass(frozen=True)
class ReadHumidity(_Payload, payload_type=PayloadType.READHUMIDITY):
    pass


@dataclass(frozen=True)
class ReadHumidityReply(_Payload, payload_type=PayloadType.READHUMIDITYREPLY):
    humidity: float
    _FORMAT = "<f"

    def _details(self):
        return [f"humidity: {self.humidity:.2f}"]


@dataclass(frozen=True)
class ReadTemperature(_Payload, payload_type=PayloadType.READTEMPERATURE):
    pass


@dataclass(frozen=True)
class ReadTemperatureReply(_Payload, payload_type=PayloadType.READTEMPERATUREREPLY):
    temperature: float
    _FORMAT = "<f"

    def _details(self):
        return [f"temperature: {self.temperature:.2f}"]


@dataclass(frozen=True)
class ReadField(_Payload, payload_type=PayloadType.READFIELD):
    fieldindex: int
    _FORMAT = "<H"

    def _details(self):
        return [f"fieldindex: {self.fieldindex}"]


@dataclass(frozen=True)
class ReadFieldReply(_Payload, payload_type=PayloadType.READFIELDREPLY):
    fieldindex: int
    offset: int
    length: int
    format: FieldFormat
    name: str
    _FORMAT = "<HHBB25s"

    @classmethod
    def from_map_field(cls, fieldindex, field):
        """Build the reply describing one memory map field."""
        return cls(fieldindex, field.offset, field.length & 0xFF, field.format, field.name)

    def _pack(self):
        name = self.name.encode("utf-8")[: FIELD_NAME_LEN - 1]
        packed = struct.pack(
            self._FORMAT, self.fieldindex, self.offset, self.length, self.format, name
        )
        # The advertised size is one byte longer than the packed structure.
        return packed + b"\0"

    @classmethod
    def _unpack(cls, body):
        fieldindex, offset, length, fmt, raw = struct.unpack_from(cls._FORMAT, body)
        name = raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        return cls(fieldindex, offset, length, _as_enum(FieldFormat, fmt), name)

    def _details(self):
        return [
            f"fieldindex: {self.fieldindex}",
            f"offset: {self.offset}",
            f"length: {self.length}",
            f"format: {int(self.format)}",
            f"name: {self.name}",
        ]


def encode(payload):
    """Return the wire bytes of a payload."""
    return bytes([payload.TYPE]) + payload._pack()


def decode(data):
    """Parse wire bytes into a payload; trailing bytes are ignored."""
    data = bytes(data)
    if not data:
        raise ValueError("empty message")
    try:
        payload_type = PayloadType(data[0])
    except ValueError:
        raise AutomatoError(ResultCode.INVALID_MESSAGE_TYPE) from None
    try:
        return _REGISTRY[payload_type]._unpack(data[1:])
    except struct.error as exc:
        raise ValueError(f"truncated {payload_type.name.lower()} payload") from exc


def payload_size(payload):
    """Number of bytes the payload occupies on the wire."""
    return len(encode(payload))


def is_reply(payload_type):
    """True if messages of this type answer a request."""
    try:
        return PayloadType(payload_type) in _REPLY_TYPES
    except ValueError:
        return False


def check_reply(payload):
    """Return the payload if it is a successful reply; raise AutomatoError otherwise."""
    if isinstance(payload, Fail):
        if payload.code != ResultCode.OK:
            raise AutomatoError(payload.code)
        return payload
    if not is_reply(payload.TYPE):
        raise AutomatoError(ResultCode.INVALID_REPLY_MESSAGE)
    return payload


def succeeded(payload):
    """True unless the payload reports a failure."""
    return not isinstance(payload, Fail)


def describe(payload):
    """Multi-line human-readable description of a payload."""
    lines = [
        "message payload",
        f"type: {int(payload.TYPE)} pt_{payload.TYPE.name.lower()}",
    ]
    lines.extend(payload._details())
    return "\n".join(lines)