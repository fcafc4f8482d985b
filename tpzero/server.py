"""Single-client server that receives messages and packages."""

from __future__ import annotations

import argparse
import logging
import socket
import sys

from tpzero.protocol import (
    INT_SIZE,
    OpCode,
    ProtocolError,
    decode_int,
    decode_values,
    encode_int,
)

DEFAULT_PORT = 4444
EXIT_SUCCESS = 0
EXIT_FAILURE = 1

HANDSHAKE_REQUEST = 1
HANDSHAKE_OK = 0
HANDSHAKE_ERROR = -1

logger = logging.getLogger("tpzero.server")


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = sock.recv(size - len(data))
        if not chunk:
            raise ConnectionError(
                f"peer closed the connection after {len(data)} of {size} bytes"
            )
        data += chunk
    return bytes(data)


def start_server(port: int | str = DEFAULT_PORT, host: str | None = None) -> socket.socket:
    """Create a listening IPv4 TCP socket bound to *host* and *port*."""
    infos = socket.getaddrinfo(
        host, port, socket.AF_INET, socket.SOCK_STREAM, 0, socket.AI_PASSIVE
    )
    family, socktype, proto, _, address = infos[0]
    server = socket.socket(family, socktype, proto)
    try:
        if hasattr(socket, "SO_REUSEPORT"):
            server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        server.bind(address)
        server.listen(socket.SOMAXCONN)
    except OSError:
        server.close()
        raise
    logger.debug("Ready to listen to my client")
    return server


def wait_for_client(server: socket.socket) -> socket.socket:
    """Accept one client connection and return its socket."""
    client, _ = server.accept()
    logger.info("A client connected!")
    return client


def receive_operation(sock: socket.socket) -> int | None:
    """Read the next operation code, or close *sock* and return None on disconnect."""
    try:
        return decode_int(_recv_exact(sock, INT_SIZE))
    except (ConnectionError, OSError):
        sock.close()
        return None


def receive_buffer(sock: socket.socket) -> bytes:
    """Read a size-prefixed payload."""
    size = decode_int(_recv_exact(sock, INT_SIZE))
    if size < 0:
        raise ProtocolError(f"negative payload size {size}")
    return _recv_exact(sock, size)


def receive_message(sock: socket.socket) -> str:
    """Read a text message payload and log it."""
    payload = receive_buffer(sock)
    message = payload.split(b"\0", 1)[0].decode("utf-8", errors="replace")
    logger.info("Received the message: %s", message)
    return message


def receive_package(sock: socket.socket) -> list[str]:
    """Read a package payload and return its values."""
    return decode_values(receive_buffer(sock))


def handshake_server(sock: socket.socket) -> bool:
    """Answer the client's handshake; return True if it was accepted."""
    request = _recv_exact(sock, INT_SIZE)
    logger.info("bytes received %d", len(request))
    accepted = decode_int(request) == HANDSHAKE_REQUEST
    reply = encode_int(HANDSHAKE_OK if accepted else HANDSHAKE_ERROR)
    sock.sendall(reply)
    logger.info("bytes sent %d", len(reply))
    return accepted


def serve_client(sock: socket.socket) -> int:
    """Process operations until the client disconnects; return the exit status."""
    while True:
        op_code = receive_operation(sock)
        if op_code is None:
            logger.error("the client disconnected. Shutting down server")
            return EXIT_FAILURE
        if op_code == OpCode.MESSAGE:
            receive_message(sock)
        elif op_code == OpCode.PACKAGE:
            values = receive_package(sock)
            logger.info("Received the following values:")
            for value in values:
                logger.info("%s", value)
        else:
            logger.warning("Unknown operation %d", op_code)


def _attach_handlers(log_path: str) -> list[logging.Handler]:
    formatter = logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    handlers: list[logging.Handler] = [
        logging.FileHandler(log_path, encoding="utf-8"),
        logging.StreamHandler(sys.stderr),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    return handlers


def main(argv: list[str] | None = None) -> int:
    """Serve one client and return the process exit status."""
    parser = argparse.ArgumentParser(description="Receive messages and packages from one client.")
    parser.add_argument("--port", default=DEFAULT_PORT, type=int)
    parser.add_argument("--host", default=None)
    parser.add_argument("--log", default="server.log")
    args = parser.parse_args(argv)

    handlers = _attach_handlers(args.log)
    try:
        with start_server(args.port, args.host) as server:
            logger.info("Server ready to receive the client")
            client = wait_for_client(server)
        with client:
            handshake_server(client)
            return serve_client(client)
    finally:
        for handler in handlers:
            logger.removeHandler(handler)
            handler.close()


if __name__ == "__main__":
    sys.exit(main())