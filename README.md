# automato

This package implements the Automato sensor-board protocol in Python. It covers three things:

- the binary message payloads that boards exchange;
- the framing used on the serial link;
- the node logic that answers remote-control requests and sends requests to other boards.

It has no dependencies outside the standard library.

## Modules

### `automato.result`

- `ResultCode` is an `IntEnum` of operation outcomes. `ResultCode.OK` is the only success.
- `result_string(code)` returns a readable description of a code. For anything that is not a known code it returns `"unknown error code"`.
- `AutomatoError(code)` is the exception raised whenever an operation fails.
  - It carries `code` and `message`.
  - Building it with `ResultCode.OK` raises `ValueError`.

### `automato.messages`

There is one frozen dataclass for each payload type:

| Class | Fields |
| --- | --- |
| `Ack` | none |
| `Fail` | `code` |
| `PinMode` | `pin`, `mode` |
| `ReadPin` | `pin` |
| `ReadPinReply` | `pin`, `state` |
| `WritePin` | `pin`, `state` |
| `ReadAnalog` | `pin` |
| `ReadAnalogReply` | `pin`, `state` |
| `ReadMem` | `address`, `length` |
| `ReadMemReply` | `data` |
| `WriteMem` | `address`, `data` |
| `ReadInfo` | none |
| `ReadInfoReply` | `protoversion`, `mac_address`, `datalen`, `fieldcount` |
| `ReadHumidity` | none |
| `ReadHumidityReply` | `humidity` |
| `ReadTemperature` | none |
| `ReadTemperatureReply` | `temperature` |
| `ReadField` | `fieldindex` |
| `ReadFieldReply` | `fieldindex`, `offset`, `length`, `format`, `name` |

Each class has a `TYPE` attribute that holds its `PayloadType`.

Two of these classes check their size:

- `ReadMemReply` raises `AutomatoError(ResultCode.INVALID_MEM_LENGTH)` when its data is longer than `MAX_READMEM` (249 bytes).
- `WriteMem` raises the same error when its data is longer than `MAX_WRITEMEM` (247 bytes).

`ReadFieldReply.from_map_field(index, field)` builds the reply that describes one `MapField`. A `MapField` has `name`, `offset`, `length` and `format`, where `format` is a `FieldFormat`.

Functions:

- `encode(payload)` returns the wire bytes: the type byte, then the packed little-endian body.
- `decode(data)` parses wire bytes back into a payload.
  - An unknown type raises `AutomatoError(ResultCode.INVALID_MESSAGE_TYPE)`.
  - Empty or truncated input raises `ValueError`.
  - Trailing bytes are ignored.
- `payload_size(payload)` returns the number of bytes the payload takes on the wire.
- `is_reply(payload_type)` returns true for the types that answer a request.
- `succeeded(payload)` returns true unless the payload is a `Fail`.
- `check_reply(payload)` returns the payload if it is a successful reply. Otherwise it raises `AutomatoError`:
  - for a `Fail`, with the code the `Fail` carries;
  - for a non-reply, with `INVALID_REPLY_MESSAGE`.
- `describe(payload)` returns a multi-line, human-readable dump of a payload.

`PROTO_VERSION` is the protocol version that a node reports in `ReadInfoReply`.

### `automato.serial_reader`

- A serial frame has four parts, in this order:
  1. the byte `'m'`;
  2. a node id;
  3. a length byte;
  4. that many payload bytes.
- `encode_serial_message(from_id, payload)` builds a frame. The payload may be a payload object or raw bytes.
- `SerialReader.feed(data)` consumes bytes and returns a list of the `SerialFrame` objects they complete.
  - A frame with a length of zero completes at once.
  - Any other frame is completed by the byte that follows its payload. That byte is consumed and discarded.
  - `SerialFrame` has `to_id` and `data`. Its `payload` property decodes `data`.
  - The reader's current position is exposed as `state`, which holds a `SerialState`.

### `automato.node`

`Automato(network_id, transport, board, data=None, fields=(), allow_remote_pin_outputs=False)` is a node on the mesh. It has a data area, which is a `bytearray`, and an optional tuple of `MapField` entries that describes that data area.

The radio mesh and the local hardware are supplied as implementations of two abstract classes:

- `Transport`:
  - `send(data, address)` returns a `RouterError` code.
  - `receive(timeout)` returns `(from_id, bytes)` or `None`.
- `Board` has six methods:
  - `pin_mode`
  - `digital_read`
  - `digital_write`
  - `analog_read`
  - `read_temperature_humidity`, which returns `(degrees F, percent)`
  - `mac_address`

#### Serving requests

- `handle_message(payload)` serves one request and returns the reply payload. The request may be a payload object or its wire bytes.
- Pins are numbered 0 to 39.
- `PinMode` and `WritePin` are refused with `OPERATION_FORBIDDEN` unless `allow_remote_pin_outputs` is set.
- `ReadMem` and `WriteMem` are range-checked against the data area. A write that would reach the last byte of the area is refused with `INVALID_MEM_LENGTH`.
- `handle_lora_message(from_id, payload)` serves a request and sends the reply back over the transport.
- `handle_serial_message(to_id, payload)` serves the request locally when `to_id` is this node. Otherwise it forwards the request and returns the reply, or a `Fail`.
- `do_remote_control()` serves one request received from the mesh. It returns the reply it sent, or `None` if no message arrived.
- `do_serial(data)` feeds serial input to the node's reader and serves every frame it completes. It returns the framed replies as bytes to write back.

#### Making requests of other nodes

Each of these methods returns the value asked for, or raises `AutomatoError`:

- `remote_pin_mode`
- `remote_digital_write`
- `remote_digital_read`
- `remote_analog_read`
- `remote_mem_write`
- `remote_mem_read`
- `remote_temperature`
- `remote_humidity`
- `remote_info`

They are built on `send_request(network_id, payload)`, which behaves as follows:

- It waits for the destination's reply.
- It serves any requests that arrive in the meantime.
- It raises `REPLY_TIMEOUT` if the transport stops delivering messages.

`result_from_router_code(code)` maps a mesh router status to a `ResultCode`.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from automato.messages import ReadPin, decode, encode, payload_size

data = encode(ReadPin(22))
assert len(data) == payload_size(ReadPin(22))
assert decode(data) == ReadPin(22)
```

A node serving a request, with a stand-in board:

```python
from automato.messages import ReadMem, ReadMemReply
from automato.node import Automato, Board

class FakeBoard(Board):
    def pin_mode(self, pin, mode): pass
    def digital_read(self, pin): return 1
    def digital_write(self, pin, value): pass
    def analog_read(self, pin): return 512
    def read_temperature_humidity(self): return (70.0, 40.0)
    def mac_address(self): return 0x1234

node = Automato(1, transport=None, board=FakeBoard(), data=b"hello world")
assert node.handle_message(ReadMem(0, 5)) == ReadMemReply(b"hello")
```

Requests to other nodes raise `AutomatoError` when they fail:

```python
from automato.result import AutomatoError

try:
    node.remote_mem_read(3, 0, 8)
except AutomatoError as err:
    print(err.code, err.message)
```

## What this package does not do

The package contains no hardware or radio drivers. It does not:

- talk to a LoRa radio or run a mesh router;
- drive pins, an LCD screen or a temperature and humidity sensor;
- send or receive over ESP-NOW.

All of that has to be supplied through your own `Transport` and `Board` implementations.

The package provides no command-line program.