import socket

import pytest

from zeki.sse_server import SseServer

HOST = "127.0.0.1"


def exchange(port, raw):
    with socket.create_connection((HOST, port), timeout=5) as conn:
        conn.sendall(raw)
        chunks = []
        while True:
            data = conn.recv(4096)
            if not data:
                break
            chunks.append(data)
    return b"".join(chunks)


def read_until(conn, marker, buf=b""):
    while marker not in buf:
        data = conn.recv(4096)
        if not data:
            raise AssertionError(f"connection closed before {marker!r}")
        buf += data
    return buf


def post(port, body, header="Content-Length"):
    payload = body.encode("utf-8")
    raw = (
        f"POST /messages?sessionId=x HTTP/1.1\r\nHost: localhost\r\n"
        f"{header}: {len(payload)}\r\n\r\n"
    ).encode("latin-1") + payload
    return exchange(port, raw)


@pytest.fixture
def received():
    return []


@pytest.fixture
def server(received):
    def handler(body, send_event):
        received.append(body)
        send_event("message", body)

    srv = SseServer(0, handler, HOST)
    srv.start()
    yield srv
    srv.stop()


def test_health_endpoint(server):
    reply = exchange(server.port, b"GET /health HTTP/1.1\r\nHost: localhost\r\n\r\n")
    assert reply.startswith(b"HTTP/1.1 200 OK\r\n")
    assert b"Content-Type: application/json\r\n" in reply
    assert reply.endswith(b'{"status":"ok","server":"zeki-mcp"}')


def test_unknown_path_is_404(server):
    reply = exchange(server.port, b"GET /nowhere HTTP/1.1\r\n\r\n")
    assert reply.startswith(b"HTTP/1.1 404 Not Found\r\n")
    assert reply.endswith(b"\r\n\r\nNot Found")


def test_options_returns_cors_headers(server):
    reply = exchange(server.port, b"OPTIONS /messages HTTP/1.1\r\n\r\n")
    assert reply.startswith(b"HTTP/1.1 204 No Content\r\n")
    assert b"Access-Control-Allow-Methods: GET, POST, OPTIONS\r\n" in reply
    assert b"Content-Length: 0\r\n" in reply


def test_post_calls_handler(server, received):
    body = '{"jsonrpc":"2.0","id":1,"method":"ping"}'
    reply = post(server.port, body)
    assert reply.startswith(b"HTTP/1.1 202 Accepted\r\n")
    assert reply.endswith(b"Accepted")
    assert received == [body]


def test_post_with_lowercase_content_length(server, received):
    reply = post(server.port, "[1,2]", header="content-length")
    assert reply.startswith(b"HTTP/1.1 202 Accepted\r\n")
    assert received == ["[1,2]"]


def test_post_without_body_skips_handler(server, received):
    reply = exchange(server.port, b"POST /messages HTTP/1.1\r\n\r\n")
    assert reply.startswith(b"HTTP/1.1 202 Accepted\r\n")
    assert received == []


def test_post_without_handler_is_accepted():
    with SseServer(0, None, HOST) as srv:
        reply = post(srv.port, "{}")
    assert reply.startswith(b"HTTP/1.1 202 Accepted\r\n")


def test_malformed_request_line_gets_no_reply(server):
    assert exchange(server.port, b"GET\r\n\r\n") == b""


def test_sse_stream_announces_endpoint(server):
    with socket.create_connection((HOST, server.port), timeout=5) as conn:
        conn.sendall(b"GET /sse HTTP/1.1\r\n\r\n")
        buf = read_until(conn, b"\n\n", read_until(conn, b"event: endpoint\n"))
    assert buf.startswith(b"HTTP/1.1 200 OK\r\nContent-Type: text/event-stream\r\n")
    expected = f"data: /messages?sessionId={server.session_id}\n\n".encode()
    assert buf.endswith(expected)
    assert server.session_id.startswith("sse-")


def test_handler_events_reach_stream(server):
    with socket.create_connection((HOST, server.port), timeout=5) as conn:
        conn.sendall(b"GET /sse HTTP/1.1\r\n\r\n")
        buf = read_until(conn, b"\n\n", read_until(conn, b"event: endpoint\n"))
        post(server.port, '{"id":7}')
        buf = read_until(conn, b'event: message\ndata: {"id":7}\n\n', buf)
    assert buf.count(b"event: ") == 2


def test_send_event_wire_format(server):
    with socket.create_connection((HOST, server.port), timeout=5) as conn:
        conn.sendall(b"GET /sse HTTP/1.1\r\n\r\n")
        buf = read_until(conn, b"\n\n", read_until(conn, b"event: endpoint\n"))
        server.send_event("note", "hello")
        buf = read_until(conn, b"event: note\n", buf)
        buf = read_until(conn, b"data: hello\n\n", buf)
    assert buf.endswith(b"event: note\ndata: hello\n\n")


def test_new_stream_replaces_old(server):
    with socket.create_connection((HOST, server.port), timeout=5) as first:
        first.sendall(b"GET /sse HTTP/1.1\r\n\r\n")
        read_until(first, b"\n\n", read_until(first, b"event: endpoint\n"))
        with socket.create_connection((HOST, server.port), timeout=5) as second:
            second.sendall(b"GET /sse HTTP/1.1\r\n\r\n")
            read_until(second, b"\n\n", read_until(second, b"event: endpoint\n"))
            tail = b""
            while True:
                data = first.recv(4096)
                if not data:
                    break
                tail += data
            server.send_event("note", "second")
            got = read_until(second, b"data: second\n\n")
    assert b"second" not in tail
    assert got.endswith(b"event: note\ndata: second\n\n")


def test_start_twice_raises(server):
    with pytest.raises(RuntimeError):
        server.start()


def test_busy_port_raises():
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind((HOST, 0))
    blocker.listen(1)
    try:
        srv = SseServer(blocker.getsockname()[1], None, HOST)
        with pytest.raises(OSError):
            srv.start()
        assert srv.running is False
    finally:
        blocker.close()


def test_stop_refuses_new_connections():
    srv = SseServer(0, None, HOST)
    srv.start()
    port = srv.port
    assert srv.running is True
    srv.stop()
    assert srv.running is False
    with pytest.raises(OSError):
        socket.create_connection((HOST, port), timeout=2)