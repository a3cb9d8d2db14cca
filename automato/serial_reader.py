"""Framing of Automato messages carried over a serial line."""

from dataclasses import dataclass
from enum import Enum, auto

from automato.messages import decode, encode

MESSAGE_MARKER = ord("m")


class SerialState(Enum):
    """Where the reader is within the current frame."""

    READY = auto()
    TO_ID = auto()
    LENGTH = auto()
    MSG = auto()


@dataclass(frozen=True)
class SerialFrame:
    """One message read from the serial line: its target node and payload bytes."""

    to_id: int
    data: bytes

    @property
    def payload(self):
        """The decoded payload of the frame."""
        return decode(self.data)


def _wire(payload):
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    return encode(payload)


def encode_serial_message(from_id, payload):
    """Frame a payload for the serial line: 'm', node id, length, payload bytes."""
    wire = _wire(payload)
    if len(wire) > 0xFF:
        raise ValueError("payload too long for a serial frame")
    return bytes([MESSAGE_MARKER, from_id & 0xFF, len(wire)]) + wire


class SerialReader:
    """Incremental parser for frames arriving on the serial line.

    A frame is 'm', the target node id, the payload length and the payload.
    A non-empty frame is completed by the byte that follows its payload,
    which is consumed and discarded.
    """

    def __init__(self):
        self.state = SerialState.READY
        self.to_id = 0
        self.length = 0
        self._buffer = bytearray()

    def feed(self, data):
        """Consume bytes and return the list of frames they complete."""
        frames = []
        for byte in bytes(data):
            frame = self._step(byte)
            if frame is not None:
                frames.append(frame)
        return frames

    def _step(self, byte):
        if self.state is SerialState.READY:
            if byte == MESSAGE_MARKER:
                self.state = SerialState.TO_ID
                self._buffer.clear()
        elif self.state is SerialState.TO_ID:
            self.to_id = byte
            self.state = SerialState.LENGTH
        elif self.state is SerialState.LENGTH:
            self.length = byte
            if self.length == 0:
                self.state = SerialState.READY
                return SerialFrame(self.to_id, b"")
            self.state = SerialState.MSG
        elif len(self._buffer) < self.length:
            self._buffer.append(byte)
        else:
            self.state = SerialState.READY
            return SerialFrame(self.to_id, bytes(self._buffer))
        return None