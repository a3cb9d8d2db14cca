from collections import deque

import pytest

from automato.messages import (
    PROTO_VERSION,
    Ack,
    Fail,
    FieldFormat,
    MapField,
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
    decode,
    encode,
    MAX_WRITEMEM,
)
from automato.node import (
    Automato,
    Board,
    RouterError,
    Transport,
    result_from_router_code,
)
from automato.result import AutomatoError, ResultCode
from automato.serial_reader import encode_serial_message


class FakeTransport(Transport):
    def __init__(self, incoming=(), send_code=RouterError.NONE):
        self.incoming = deque(incoming)
        self.sent = []
        self.send_code = send_code

    def send(self, data, address):
        self.sent.append((bytes(data), address))
        return self.send_code

    def receive(self, timeout):
        return self.incoming.popleft() if self.incoming else None


class FakeBoard(Board):
    def __init__(self):
        self.levels = {}
        self.modes = {}
        self.analog = {}
        self.temperature = 72.5
        self.humidity = 40.25
        self.mac = 0x0123456789

    def pin_mode(self, pin, mode):
        self.modes[pin] = mode

    def digital_read(self, pin):
        return self.levels.get(pin, 0)

    def digital_write(self, pin, value):
        self.levels[pin] = value

    def analog_read(self, pin):
        return self.analog.get(pin, 0)

    def read_temperature_humidity(self):
        return self.temperature, self.humidity

    def mac_address(self):
        return self.mac


FIELD = MapField("wat", 77, 20, FieldFormat.UINT32)


def make_node(incoming=(), allow=True, send_code=RouterError.NONE):
    transport = FakeTransport(incoming, send_code)
    board = FakeBoard()
    node = Automato(1, transport, board, bytearray(b"abcdef"), [FIELD], allow)
    return node, transport, board


@pytest.mark.parametrize(
    "code, expected",
    [
        (RouterError.NONE, ResultCode.OK),
        (RouterError.INVALID_LENGTH, ResultCode.RH_ROUTER_ERROR_INVALID_LENGTH),
        (RouterError.NO_ROUTE, ResultCode.RH_ROUTER_ERROR_NO_ROUTE),
        (RouterError.TIMEOUT, ResultCode.RH_ROUTER_ERROR_TIMEOUT),
        (RouterError.NO_REPLY, ResultCode.RH_ROUTER_ERROR_NO_REPLY),
        (RouterError.UNABLE_TO_DELIVER, ResultCode.RH_ROUTER_ERROR_UNABLE_TO_DELIVER),
        (99, ResultCode.INVALID_RH_ROUTER_ERROR),
    ],
)
def test_result_from_router_code(code, expected):
    assert result_from_router_code(code) == expected


def test_read_pin():
    node, _, board = make_node()
    board.levels[4] = 1
    assert node.handle_message(ReadPin(4)) == ReadPinReply(4, 1)
    assert node.handle_message(ReadPin(40)) == Fail(ResultCode.INVALID_PIN_NUMBER)


def test_pin_mode_forbidden_without_permission():
    node, _, board = make_node(allow=False)
    assert node.handle_message(PinMode(3, 1)) == Fail(ResultCode.OPERATION_FORBIDDEN)
    assert node.handle_message(WritePin(3, 1)) == Fail(ResultCode.OPERATION_FORBIDDEN)
    assert board.modes == {}
    assert board.levels == {}


def test_pin_mode_allowed():
    node, _, board = make_node()
    assert node.handle_message(PinMode(26, 2)) == Ack()
    assert board.modes == {26: 2}
    assert node.handle_message(PinMode(45, 2)) == Fail(ResultCode.INVALID_PIN_NUMBER)


def test_write_pin():
    node, _, board = make_node()
    assert node.handle_message(WritePin(15, 1)) == Ack()
    assert board.levels[15] == 1
    assert node.handle_message(WritePin(15, 0)) == Ack()
    assert board.levels[15] == 0
    assert node.handle_message(WritePin(40, 1)) == Fail(ResultCode.INVALID_PIN_NUMBER)


def test_write_pin_other_state_reads_analog():
    node, _, board = make_node()
    board.analog[5] = 500
    assert node.handle_message(WritePin(5, 2)) == ReadAnalogReply(5, 500)
    assert 5 not in board.levels


def test_read_analog():
    node, _, board = make_node()
    board.analog[6] = 500
    assert node.handle_message(ReadAnalog(6)) == ReadAnalogReply(6, 500)
    assert node.handle_message(ReadAnalog(40)) == Fail(ResultCode.INVALID_PIN_NUMBER)


def test_read_mem_bounds():
    node, _, _ = make_node()
    assert node.handle_message(ReadMem(2, 3)) == ReadMemReply(b"cde")
    assert node.handle_message(ReadMem(4, 2)) == ReadMemReply(b"ef")
    assert node.handle_message(ReadMem(6, 1)) == Fail(ResultCode.INVALID_MEM_ADDRESS)
    assert node.handle_message(ReadMem(4, 3)) == Fail(ResultCode.INVALID_MEM_LENGTH)


def test_write_mem_bounds():
    node, _, _ = make_node()
    assert node.handle_message(WriteMem(1, b"XY")) == Ack()
    assert node.data == bytearray(b"aXYdef")
    assert node.handle_message(WriteMem(6, b"a")) == Fail(ResultCode.INVALID_MEM_ADDRESS)
    assert node.handle_message(WriteMem(4, b"zz")) == Fail(ResultCode.INVALID_MEM_LENGTH)
    assert node.data == bytearray(b"aXYdef")


def test_read_info():
    node, _, board = make_node()
    reply = node.handle_message(ReadInfo())
    assert reply == ReadInfoReply(PROTO_VERSION, board.mac, 6, 1)


def test_read_sensors():
    node, _, board = make_node()
    assert node.handle_message(ReadTemperature()) == ReadTemperatureReply(board.temperature)
    assert node.handle_message(ReadHumidity()) == ReadHumidityReply(board.humidity)


def test_read_field():
    node, _, _ = make_node()
    assert node.handle_message(ReadField(0)) == ReadFieldReply(
        0, 77, 20, FieldFormat.UINT32, "wat"
    )
    assert node.handle_message(ReadField(1)) == Fail(ResultCode.INVALID_MAPFIELD_INDEX)


@pytest.mark.parametrize(
    "payload",
    [Ack(), ReadTemperatureReply(1.0), ReadMemReply(b"ab"), ReadPinReply(1, 1)],
)
def test_replies_are_not_served(payload):
    node, _, _ = make_node()
    assert node.handle_message(payload) == Fail(ResultCode.INVALID_MESSAGE_TYPE)


def test_unknown_wire_type_fails():
    node, _, _ = make_node()
    assert node.handle_message(bytes([200])) == Fail(ResultCode.INVALID_MESSAGE_TYPE)
    assert node.handle_message(encode(ReadPin(4))) == ReadPinReply(4, 0)


def test_remote_digital_read():
    node, transport, _ = make_node([(2, encode(ReadPinReply(4, 1)))])
    assert node.remote_digital_read(2, 4) == 1
    assert transport.sent == [(encode(ReadPin(4)), 2)]


def test_remote_router_error():
    node, _, _ = make_node(send_code=RouterError.NO_ROUTE)
    with pytest.raises(AutomatoError) as info:
        node.remote_pin_mode(2, 4, 1)
    assert info.value.code == ResultCode.RH_ROUTER_ERROR_NO_ROUTE


def test_remote_timeout():
    node, _, _ = make_node()
    with pytest.raises(AutomatoError) as info:
        node.remote_digital_write(2, 4, 1)
    assert info.value.code == ResultCode.REPLY_TIMEOUT


def test_remote_fail_reply():
    node, _, _ = make_node([(2, encode(Fail(ResultCode.OPERATION_FORBIDDEN)))])
    with pytest.raises(AutomatoError) as info:
        node.remote_digital_write(2, 4, 1)
    assert info.value.code == ResultCode.OPERATION_FORBIDDEN


def test_remote_wrong_reply_type():
    node, _, _ = make_node([(2, encode(Ack()))])
    with pytest.raises(AutomatoError) as info:
        node.remote_analog_read(2, 4)
    assert info.value.code == ResultCode.INVALID_REPLY_MESSAGE


def test_requests_served_while_waiting():
    incoming = [(3, encode(ReadPin(7))), (2, encode(ReadTemperatureReply(98.5)))]
    node, transport, board = make_node(incoming)
    board.levels[7] = 1
    assert node.remote_temperature(2) == 98.5
    assert (encode(ReadPinReply(7, 1)), 3) in transport.sent


def test_remote_humidity_and_info():
    info = ReadInfoReply(1.5, 5678, 5000, 5)
    node, _, _ = make_node([(2, encode(ReadHumidityReply(45.5))), (2, encode(info))])
    assert node.remote_humidity(2) == 45.5
    assert node.remote_info(2) == info


def test_remote_mem_read_and_write():
    incoming = [(2, encode(ReadMemReply(b"\x01\x02\x03"))), (2, encode(Ack()))]
    node, transport, _ = make_node(incoming)
    assert node.remote_mem_read(2, 10, 3) == b"\x01\x02\x03"
    node.remote_mem_write(2, 10, b"\x09")
    assert transport.sent[-1] == (encode(WriteMem(10, b"\x09")), 2)


def test_remote_mem_write_too_long():
    node, transport, _ = make_node()
    with pytest.raises(AutomatoError) as info:
        node.remote_mem_write(2, 0, bytes(MAX_WRITEMEM + 1))
    assert info.value.code == ResultCode.INVALID_MEM_LENGTH
    assert transport.sent == []


def test_do_remote_control():
    node, transport, board = make_node()
    assert node.do_remote_control() is None
    board.levels[9] = 1
    transport.incoming.append((5, encode(ReadPin(9))))
    assert node.do_remote_control() == ReadPinReply(9, 1)
    assert transport.sent == [(encode(ReadPinReply(9, 1)), 5)]


def test_do_serial_local():
    node, transport, board = make_node()
    board.levels[3] = 1
    out = node.do_serial(encode_serial_message(1, ReadPin(3)) + b"\0")
    assert out == encode_serial_message(1, ReadPinReply(3, 1))
    assert transport.sent == []


def test_do_serial_forwards():
    node, transport, _ = make_node([(2, encode(ReadPinReply(3, 1)))])
    out = node.do_serial(encode_serial_message(2, ReadPin(3)) + b"\0")
    assert out == encode_serial_message(2, ReadPinReply(3, 1))
    assert transport.sent == [(encode(ReadPin(3)), 2)]


def test_do_serial_forward_failure_reported():
    node, _, _ = make_node()
    out = node.do_serial(encode_serial_message(2, ReadPin(3)) + b"\0")
    assert decode(out[3:]) == Fail(ResultCode.REPLY_TIMEOUT)


def test_do_serial_incomplete_returns_nothing():
    node, _, _ = make_node()
    assert node.do_serial(encode_serial_message(1, ReadPin(3))) == b""