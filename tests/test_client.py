import logging
import socket
import threading

import pytest

from tpzero import client, server
from tpzero.protocol import OpCode, decode_values, encode_int, encode_message


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


def _reader(items):
    prompts = []
    iterator = iter(items)

    def read(prompt):
        prompts.append(prompt)
        item = next(iterator)
        if isinstance(item, BaseException):
            raise item
        return item

    read.prompts = prompts
    return read


def _recv_all(sock, size):
    data = b""
    while len(data) < size:
        data += sock.recv(size - len(data))
    return data


def test_read_lines_stops_at_empty_line():
    reader = _reader(["a", "b", "", "never"])
    assert list(client.read_lines(reader)) == ["a", "b"]
    assert reader.prompts == [client.PROMPT] * 3


def test_read_lines_stops_at_none_and_eof():
    assert list(client.read_lines(_reader(["x", None]))) == ["x"]
    assert list(client.read_lines(_reader(["y", EOFError()]))) == ["y"]


def test_log_console_logs_each_line(caplog):
    caplog.set_level(logging.INFO, logger="tpzero.client")
    lines = client.log_console(_reader(["one", "two", ""]))
    assert lines == ["one", "two"]
    assert [record.getMessage() for record in caplog.records] == ["one", "two"]


def test_build_packet_round_trip():
    packet = client.build_packet(["uno", "dos"])
    assert packet.op_code == OpCode.PACKAGE
    assert decode_values(bytes(packet.buffer)) == ["uno", "dos"]


def test_build_packet_empty():
    packet = client.build_packet([])
    assert decode_values(bytes(packet.buffer)) == []


def test_send_message_writes_frame(pair):
    sock, peer = pair
    client.send_message("hola", sock)
    expected = encode_message("hola")
    assert _recv_all(peer, len(expected)) == expected


def test_send_packet_is_read_by_server(pair):
    sock, peer = pair
    client.send_packet(client.build_packet(["a", "bc"]), sock)
    assert server.receive_operation(peer) == OpCode.PACKAGE
    assert server.receive_package(peer) == ["a", "bc"]


def test_handshake_client_ok(pair):
    sock, peer = pair
    peer.sendall(encode_int(server.HANDSHAKE_OK))
    assert client.handshake_client(sock) is True
    assert _recv_all(peer, 4) == encode_int(server.HANDSHAKE_REQUEST)


def test_handshake_client_error(pair):
    sock, peer = pair
    peer.sendall(encode_int(server.HANDSHAKE_ERROR))
    assert client.handshake_client(sock) is False


def test_handshake_client_with_server(pair):
    sock, peer = pair
    thread = threading.Thread(target=server.handshake_server, args=(peer,))
    thread.start()
    assert client.handshake_client(sock) is True
    thread.join(timeout=5)


def test_handshake_client_disconnect(pair):
    sock, peer = pair
    peer.close()
    with pytest.raises(ConnectionError):
        client.handshake_client(sock)


def test_create_connection_reaches_listener():
    with server.start_server(0, "127.0.0.1") as listener:
        port = listener.getsockname()[1]
        with client.create_connection("127.0.0.1", str(port)) as sock:
            accepted = server.wait_for_client(listener)
            with accepted:
                assert accepted.getpeername() == sock.getsockname()


def test_main_sends_message_and_package(tmp_path, monkeypatch):
    listener = server.start_server(0, "127.0.0.1")
    port = listener.getsockname()[1]
    config_path = tmp_path / "cliente.config"
    config_path.write_text(f"CLAVE=hello\nIP=127.0.0.1\nPUERTO={port}\n", encoding="utf-8")

    received = {}

    def serve():
        with listener:
            conn = server.wait_for_client(listener)
        with conn:
            received["handshake"] = server.handshake_server(conn)
            received["op1"] = server.receive_operation(conn)
            received["message"] = server.receive_message(conn)
            received["op2"] = server.receive_operation(conn)
            received["package"] = server.receive_package(conn)

    thread = threading.Thread(target=serve)
    thread.start()
    monkeypatch.setattr("builtins.input", _reader(["console line", "", "a", "b", ""]))
    log_path = tmp_path / "cliente.log"
    code = client.main(["--config", str(config_path), "--log", str(log_path)])
    thread.join(timeout=5)

    assert code == 0
    assert received == {
        "handshake": True,
        "op1": OpCode.MESSAGE,
        "message": "hello",
        "op2": OpCode.PACKAGE,
        "package": ["a", "b"],
    }
    log_text = log_path.read_text(encoding="utf-8")
    assert "console line" in log_text
    assert "Handshake OK" in log_text


def test_main_missing_config(tmp_path):
    code = client.main(
        ["--config", str(tmp_path / "absent.config"), "--log", str(tmp_path / "c.log")]
    )
    assert code == 1


def test_main_missing_key(tmp_path):
    config_path = tmp_path / "cliente.config"
    config_path.write_text("CLAVE=hello\nIP=127.0.0.1\n", encoding="utf-8")
    log_path = tmp_path / "c.log"
    code = client.main(["--config", str(config_path), "--log", str(log_path)])
    assert code == 1
    assert "PUERTO" in log_path.read_text(encoding="utf-8")