# tpzero

A small TCP client and server pair. They exchange a handshake, then the
client sends one text message and one package of strings over a simple
length-prefixed binary protocol. The server logs what it receives.

## Installation

```
pip install .
```

## Running the server

```
tpzero-server [--port PORT] [--host HOST] [--log FILE]
```

- `--port` defaults to 4444.
- `--host` defaults to all IPv4 interfaces.
- `--log` defaults to `server.log`. Log lines go to this file and to standard error.

The server waits for one client. It answers the client's handshake: if the
client sent `1`, the answer is `0` (accepted), and otherwise it is `-1`. It
then handles operations in a loop:

- a message: the text is logged;
- a package: each of its values is logged on its own line;
- any other operation code: a warning is logged.

When the client disconnects, the server logs an error and exits with
status 1.

## Running the client

```
tpzero-client [--config FILE] [--log FILE]
```

- `--config` defaults to `cliente.config` in the current directory.
- `--log` defaults to `cliente.log`. Log lines go to this file and to standard error.

The configuration file holds `KEY=VALUE` lines. Blank lines and lines
starting with `#` are skipped. The keys `CLAVE`, `IP` and `PUERTO` are
required:

```
CLAVE=hello
IP=127.0.0.1
PUERTO=4444
```

If the file cannot be read, has a line without `=`, or lacks a required key,
the client logs the error and exits with status 1. Otherwise it does the
following:

1. It logs the three configured values.
2. It reads lines at a `> ` prompt and logs each one. Reading stops at an
   empty line or at end of input.
3. It connects to `IP`:`PUERTO` and performs the handshake. It logs whether
   the handshake was accepted. The client continues in either case.
4. It sends the value of `CLAVE` as a message.
5. It reads more lines in the same way and sends them together as one package.

## Using the library

The wire format is in `tpzero.protocol`. Each frame is a signed 32-bit
little-endian operation code (`OpCode.MESSAGE` = 0, `OpCode.PACKAGE` = 1),
then the payload size, then the payload. A package payload is a sequence of
values, each one a 4-byte length followed by that many bytes.

```python
from tpzero.protocol import Packet, encode_message, decode_values

packet = Packet()
packet.add("first")        # text is stored NUL-terminated
packet.add(b"raw bytes")   # bytes are stored unchanged
frame = packet.serialize()

message_frame = encode_message("hello")

values = decode_values(bytes(packet.buffer))  # ["first", "raw bytes"]
```

- `encode_int` and `decode_int` convert signed 32-bit integers.
- Malformed data raises `ProtocolError`. This covers a truncated length
  prefix, a negative length, a value that runs past the payload, and an
  integer out of range.

`tpzero.config` provides `parse_config(text)` and `load_config(path)`. Both
return a dict of strings and raise `ConfigError` on failure.

`tpzero.server` and `tpzero.client` expose the building blocks behind the
commands:

- server side: `start_server`, `wait_for_client`, `handshake_server`,
  `receive_operation`, `receive_buffer`, `receive_message`,
  `receive_package` and `serve_client`;
- client side: `create_connection`, `handshake_client`, `send_message`,
  `send_packet`, `read_lines`, `log_console` and `build_packet`.

## What it does not do

- The server handles a single client and stops when that client disconnects.
  It does not accept further connections.
- Traffic is neither encrypted nor authenticated.
- The client does not retry a failed connection.

## Running the tests

```
pip install .[test]
pytest
```