"""Client that logs console input and sends it to the server."""

from __future__ import annotations

import argparse
import logging
import socket
import sys
from collections.abc import Callable, Iterable, Iterator

from tpzero.config import ConfigError, load_config
from tpzero.protocol import INT_SIZE, Packet, decode_int, encode_int, encode_message
from tpzero.server import HANDSHAKE_OK, HANDSHAKE_REQUEST

PROMPT = "> "
DEFAULT_CONFIG = "cliente.config"

Reader = Callable[[str], "str | None"]

logger = logging.getLogger("tpzero.client")


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


def create_connection(ip: str, port: int | str) -> socket.socket:
    """Open an IPv4 TCP connection to *ip* and *port*."""
    infos = socket.getaddrinfo(ip, port, socket.AF_INET, socket.SOCK_STREAM)
    family, socktype, proto, _, address = infos[0]
    sock = socket.socket(family, socktype, proto)
    try:
        sock.connect(address)
    except OSError:
        sock.close()
        raise
    return sock


def send_message(message: str, sock: socket.socket) -> None:
    """Send *message* as a single text frame."""
    sock.sendall(encode_message(message))


def send_packet(packet: Packet, sock: socket.socket) -> None:
    """Send the serialized *packet*."""
    sock.sendall(packet.serialize())


def handshake_client(sock: socket.socket) -> bool:
    """Perform the handshake; return True if the server accepted it."""
    request = encode_int(HANDSHAKE_REQUEST)
    sock.sendall(request)
    logger.info("bytes sent %d", len(request))
    reply = _recv_exact(sock, INT_SIZE)
    logger.info("bytes received %d", len(reply))
    if decode_int(reply) == HANDSHAKE_OK:
        logger.info("Handshake OK")
        return True
    logger.info("Handshake ERROR")
    return False


def read_lines(reader: Reader | None = None) -> Iterator[str]:
    """Yield lines from *reader* until an empty line or end of input."""
    read = input if reader is None else reader
    while True:
        try:
            line = read(PROMPT)
        except EOFError:
            return
        if not line:
            return
        yield line


def log_console(reader: Reader | None = None) -> list[str]:
    """Log every line read until an empty one; return the lines."""
    lines = []
    for line in read_lines(reader):
        logger.info("%s", line)
        lines.append(line)
    return lines


def build_packet(lines: Iterable[str]) -> Packet:
    """Build a package holding each of *lines*."""
    packet = Packet()
    for line in lines:
        packet.add(line)
    return packet


def _attach_handlers(log_path: str) -> list[logging.Handler]:
    formatter = logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    handlers: list[logging.Handler] = [
        logging.FileHandler(log_path, encoding="utf-8"),
        logging.StreamHandler(sys.stderr),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    return handlers


def main(argv: list[str] | None = None) -> int:
    """Run the client and return the process exit status."""
    parser = argparse.ArgumentParser(description="Send console input to the server.")
    parser.add_argument("--config", default=DEFAULT_CONFIG)
    parser.add_argument("--log", default="cliente.log")
    args = parser.parse_args(argv)

    handlers = _attach_handlers(args.log)
    try:
        logger.info("I am a log")
        try:
            config = load_config(args.config)
            value, ip, port = (config[key] for key in ("CLAVE", "IP", "PUERTO"))
        except ConfigError as exc:
            logger.error("%s", exc)
            return 1
        except KeyError as exc:
            logger.error("missing config key %s", exc)
            return 1

        for item in (value, ip, port):
            logger.info("%s", item)

        log_console()

        with create_connection(ip, port) as sock:
            handshake_client(sock)
            send_message(value, sock)
            send_packet(build_packet(read_lines()), sock)
        return 0
    finally:
        for handler in handlers:
            logger.removeHandler(handler)
            handler.close()


if __name__ == "__main__":
    sys.exit(main())