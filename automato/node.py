"""An Automato node: serves remote requests and issues requests to other nodes."""

from abc import ABC, abstractmethod
from enum import IntEnum

from automato.messages import (
    PROTO_VERSION,
    Ack,
    Fail,
    PinMode,
    ReadAnalog,
    ReadAnalogReply,
    ReadField,
    ReadFieldReply,
    ReadHumidity,
    ReadHumidityReply,
    ReadInfo,
    ReadInfoReply,
    ReadMem,
    ReadMemReply,
    ReadPin,
    ReadPinReply,
    ReadTemperature,
    ReadTemperatureReply,
    WriteMem,
    WritePin,
    check_reply,
    decode,
    encode,
    is_reply,
)
from automato.result import AutomatoError, ResultCode
from automato.serial_reader import SerialReader, encode_serial_message

PIN_COUNT = 40
RECEIVE_TIMEOUT = 1.0


class RouterError(IntEnum):
    """Status codes reported by the mesh router."""

    NONE = 0
    INVALID_LENGTH = 1
    NO_ROUTE = 2
    TIMEOUT = 3
    NO_REPLY = 4
    UNABLE_TO_DELIVER = 5


_ROUTER_RESULTS = {
    RouterError.NONE: ResultCode.OK,
    RouterError.INVALID_LENGTH: ResultCode.RH_ROUTER_ERROR_INVALID_LENGTH,
    RouterError.NO_ROUTE: ResultCode.RH_ROUTER_ERROR_NO_ROUTE,
    RouterError.TIMEOUT: ResultCode.RH_ROUTER_ERROR_TIMEOUT,
    RouterError.NO_REPLY: ResultCode.RH_ROUTER_ERROR_NO_REPLY,
    RouterError.UNABLE_TO_DELIVER: ResultCode.RH_ROUTER_ERROR_UNABLE_TO_DELIVER,
}


def result_from_router_code(code):
    """Map a mesh router status code to a ResultCode."""
    try:
        return _ROUTER_RESULTS[RouterError(code)]
    except (ValueError, TypeError):
        return ResultCode.INVALID_RH_ROUTER_ERROR


class Transport(ABC):
    """A mesh network link that delivers payload bytes between node ids."""

    @abstractmethod
    def send(self, data, address):
        """Send bytes to a node and wait for the hop ack; return a RouterError code."""

    @abstractmethod
    def receive(self, timeout):
        """Wait up to timeout seconds; return (from_id, bytes) or None."""


class Board(ABC):
    """The local hardware a node controls."""

    @abstractmethod
    def pin_mode(self, pin, mode):
        """Configure a pin."""

    @abstractmethod
    def digital_read(self, pin):
        """Return the digital level of a pin."""

    @abstractmethod
    def digital_write(self, pin, value):
        """Drive a pin low (0) or high (1)."""

    @abstractmethod
    def analog_read(self, pin):
        """Return the analog reading of a pin."""

    @abstractmethod
    def read_temperature_humidity(self):
        """Return (temperature in degrees F, relative humidity in percent)."""

    @abstractmethod
    def mac_address(self):
        """Return the board's MAC address as an integer."""


def _wire(payload):
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    return encode(payload)


def _valid_pin(pin):
    return 0 <= pin < PIN_COUNT


class Automato:
    """A node on the mesh, with an optional remotely accessible data area."""

    def __init__(
        self,
        network_id,
        transport,
        board,
        data=None,
        fields=(),
        allow_remote_pin_outputs=False,
    ):
        self.network_id = network_id
        self.transport = transport
        self.board = board
        self.data = data if isinstance(data, bytearray) else bytearray(data or b"")
        self.fields = tuple(fields)
        self.allow_remote_pin_outputs = allow_remote_pin_outputs
        self._serial_reader = SerialReader()

    # Requests to remote nodes.

    def remote_pin_mode(self, network_id, pin, mode):
        """Set the mode of a pin on a remote node."""
        self.send_request(network_id, PinMode(pin, mode))

    def remote_digital_write(self, network_id, pin, value):
        """Drive a pin on a remote node low (0) or high (1)."""
        self.send_request(network_id, WritePin(pin, value))

    def remote_digital_read(self, network_id, pin):
        """Return the digital level of a pin on a remote node."""
        return self._expect(self.send_request(network_id, ReadPin(pin)), ReadPinReply).state

    def remote_analog_read(self, network_id, pin):
        """Return the analog reading of a pin on a remote node."""
        reply = self.send_request(network_id, ReadAnalog(pin))
        return self._expect(reply, ReadAnalogReply).state

    def remote_mem_write(self, network_id, address, data):
        """Write bytes into a remote node's data area."""
        self.send_request(network_id, WriteMem(address, data))

    def remote_mem_read(self, network_id, address, length):
        """Read bytes from a remote node's data area."""
        reply = self.send_request(network_id, ReadMem(address, length))
        return self._expect(reply, ReadMemReply).data[:length]

    def remote_temperature(self, network_id):
        """Return a remote node's temperature in degrees F."""
        reply = self.send_request(network_id, ReadTemperature())
        return self._expect(reply, ReadTemperatureReply).temperature

    def remote_humidity(self, network_id):
        """Return a remote node's relative humidity in percent."""
        reply = self.send_request(network_id, ReadHumidity())
        return self._expect(reply, ReadHumidityReply).humidity

    def remote_info(self, network_id):
        """Return the ReadInfoReply describing a remote node."""
        return self._expect(self.send_request(network_id, ReadInfo()), ReadInfoReply)

    @staticmethod
    def _expect(reply, reply_type):
        if not isinstance(reply, reply_type):
            raise AutomatoError(ResultCode.INVALID_REPLY_MESSAGE)
        return reply

    # Message exchange.

    def send_request(self, network_id, payload):
        """Send a request and wait for the final destination's reply.

        Requests that arrive meanwhile are served. Raises AutomatoError on a
        router failure, a failure reply or a timeout.
        """
        code = self.transport.send(_wire(payload), network_id)
        if code != RouterError.NONE:
            raise AutomatoError(result_from_router_code(code))
        while (received := self.receive_message()) is not None:
            from_id, data = received
            try:
                reply = decode(data)
            except (AutomatoError, ValueError):
                self.handle_lora_message(from_id, data)
                continue
            if is_reply(reply.TYPE):
                return check_reply(reply)
            self.handle_lora_message(from_id, reply)
        raise AutomatoError(ResultCode.REPLY_TIMEOUT)

    def send_reply(self, network_id, payload):
        """Send a reply; raise AutomatoError if the router fails."""
        code = self.transport.send(_wire(payload), network_id)
        if code != RouterError.NONE:
            raise AutomatoError(result_from_router_code(code))

    def receive_message(self):
        """Wait for a message; return (from_id, bytes) or None on timeout."""
        return self.transport.receive(RECEIVE_TIMEOUT)

    def handle_lora_message(self, from_id, payload):
        """Serve a request from the mesh, send the reply back and return it."""
        reply = self.handle_message(payload)
        self.send_reply(from_id, reply)
        return reply

    def handle_serial_message(self, to_id, payload):
        """Serve a request from the serial line locally or forward it; return the reply."""
        if to_id == self.network_id:
            return self.handle_message(payload)
        try:
            return self.send_request(to_id, payload)
        except AutomatoError as exc:
            return Fail(exc.code)

    def handle_message(self, payload):
        """Serve one request (a payload or its wire bytes) and return the reply payload."""
        if isinstance(payload, (bytes, bytearray, memoryview)):
            try:
                payload = decode(payload)
            except AutomatoError as exc:
                return Fail(exc.code)
            except ValueError:
                return Fail(ResultCode.INVALID_MESSAGE_TYPE)

        match payload:
            case ReadPin(pin=pin):
                if not _valid_pin(pin):
                    return Fail(ResultCode.INVALID_PIN_NUMBER)
                return ReadPinReply(pin, int(bool(self.board.digital_read(pin))))
            case PinMode(pin=pin, mode=mode):
                if not self.allow_remote_pin_outputs:
                    return Fail(ResultCode.OPERATION_FORBIDDEN)
                if not _valid_pin(pin):
                    return Fail(ResultCode.INVALID_PIN_NUMBER)
                self.board.pin_mode(pin, mode)
                return Ack()
            case WritePin(pin=pin, state=state):
                if not self.allow_remote_pin_outputs:
                    return Fail(ResultCode.OPERATION_FORBIDDEN)
                if not _valid_pin(pin):
                    return Fail(ResultCode.INVALID_PIN_NUMBER)
                if state in (0, 1):
                    self.board.digital_write(pin, state)
                    return Ack()
                # Any other state is answered with an analog reading of the pin.
                return self._analog_reply(pin)
            case ReadAnalog(pin=pin):
                return self._analog_reply(pin)
            case ReadMem(address=address, length=length):
                if address >= len(self.data):
                    return Fail(ResultCode.INVALID_MEM_ADDRESS)
                if address + length > len(self.data):
                    return Fail(ResultCode.INVALID_MEM_LENGTH)
                try:
                    return ReadMemReply(self.data[address : address + length])
                except AutomatoError as exc:
                    return Fail(exc.code)
            case WriteMem(address=address, data=data):
                if address >= len(self.data):
                    return Fail(ResultCode.INVALID_MEM_ADDRESS)
                if address + len(data) >= len(self.data):
                    return Fail(ResultCode.INVALID_MEM_LENGTH)
                self.data[address : address + len(data)] = data
                return Ack()
            case ReadInfo():
                return ReadInfoReply(
                    PROTO_VERSION,
                    self.board.mac_address(),
                    len(self.data) & 0xFFFF,
                    len(self.fields) & 0xFFFF,
                )
            case ReadHumidity():
                _, humidity = self.board.read_temperature_humidity()
                return ReadHumidityReply(humidity)
            case ReadTemperature():
                temperature, _ = self.board.read_temperature_humidity()
                return ReadTemperatureReply(temperature)
            case ReadField(fieldindex=index):
                if index < len(self.fields):
                    return ReadFieldReply.from_map_field(index, self.fields[index])
                return Fail(ResultCode.INVALID_MAPFIELD_INDEX)
            case _:
                return Fail(ResultCode.INVALID_MESSAGE_TYPE)

    def _analog_reply(self, pin):
        if not _valid_pin(pin):
            return Fail(ResultCode.INVALID_PIN_NUMBER)
        return ReadAnalogReply(pin, self.board.analog_read(pin) & 0xFFFF)

    # Polling.

    def do_remote_control(self):
        """Serve one request from the mesh; return the reply sent, or None if none came."""
        received = self.receive_message()
        if received is None:
            return None
        return self.handle_lora_message(*received)

    def do_serial(self, data):
        """Serve the frames completed by serial input; return the bytes to write back."""
        out = bytearray()
        for frame in self._serial_reader.feed(data):
            reply = self.handle_serial_message(frame.to_id, frame.data)
            out += encode_serial_message(frame.to_id, reply)
        return bytes(out)