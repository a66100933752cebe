"""HTTP server that carries JSON-RPC messages over server-sent events.

Clients open ``GET /sse`` to receive events and ``POST /messages`` to send
requests. Each posted body is passed to a handler together with a function
that pushes events to the connected event stream. Only one event stream is
live at a time; a new one replaces the old.
"""

from __future__ import annotations

import re
import select
import socket
import sys
import threading

__all__ = ["SseServer"]

_REQUEST_LIMIT = 65535
_HEADER_END = b"\r\n\r\n"
_CONTENT_LENGTH = re.compile(rb"Content-Length: |content-length: ")
_LEADING_INT = re.compile(rb"\s*([+-]?\d+)")

_HEALTH_BODY = '{"status":"ok","server":"zeki-mcp"}'

_SSE_HEADERS = (
    b"HTTP/1.1 200 OK\r\n"
    b"Content-Type: text/event-stream\r\n"
    b"Cache-Control: no-cache\r\n"
    b"Connection: keep-alive\r\n"
    b"Access-Control-Allow-Origin: *\r\n"
    b"\r\n"
)


def _drop(sock):
    """Shut down and close a socket, ignoring errors from one already gone."""
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        pass
    try:
        sock.close()
    except OSError:
        pass


def _response(status, status_text, content_type, body):
    payload = body.encode("utf-8")
    head = (
        f"HTTP/1.1 {status} {status_text}\r\n"
        f"Content-Type: {content_type}\r\n"
        f"Content-Length: {len(payload)}\r\n"
        "Access-Control-Allow-Origin: *\r\n"
        "Access-Control-Allow-Methods: GET, POST, OPTIONS\r\n"
        "Access-Control-Allow-Headers: Content-Type\r\n"
        "\r\n"
    )
    return head.encode("latin-1") + payload


def _read_request(sock):
    """Read one request; return ``(head, body)`` or ``None`` if it is incomplete."""
    buf = b""
    while len(buf) < _REQUEST_LIMIT:
        chunk = sock.recv(_REQUEST_LIMIT - len(buf))
        if not chunk:
            return None
        buf += chunk
        if _HEADER_END in buf:
            break
    end = buf.find(_HEADER_END)
    if end < 0:
        return None
    header_len = end + len(_HEADER_END)
    head = buf[:header_len]

    found = _CONTENT_LENGTH.search(head)
    if found is None:
        return head, None
    number = _LEADING_INT.match(head, found.end())
    content_len = int(number.group(1)) if number else 0
    while len(buf) - header_len < content_len and len(buf) < _REQUEST_LIMIT:
        chunk = sock.recv(_REQUEST_LIMIT - len(buf))
        if not chunk:
            return None
        buf += chunk
    body = buf[header_len : header_len + max(content_len, 0)]
    return head, body


class SseServer:
    """Threaded HTTP server exposing ``/sse``, ``/messages`` and ``/health``."""

    KEEPALIVE_INTERVAL = 30.0
    KEEPALIVE_LIMIT = 20
    _POLL = 1.0

    def __init__(self, port, handler=None, host=""):
        self.port = int(port)
        self.handler = handler
        self.host = host
        self.session_id = ""
        self._listen_sock: socket.socket | None = None
        self._accept_thread: threading.Thread | None = None
        self._running = False
        self._sse_lock = threading.Lock()
        self._sse_sock: socket.socket | None = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    @property
    def running(self):
        """Whether the server is accepting connections."""
        return self._running

    def start(self):
        """Bind, listen and start accepting connections in the background."""
        if self._running:
            raise RuntimeError("server is already running")
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(socket.SOMAXCONN)
        except OSError:
            sock.close()
            raise
        self.port = sock.getsockname()[1]
        self._listen_sock = sock
        self._running = True
        self._accept_thread = threading.Thread(target=self._accept_loop, daemon=True)
        self._accept_thread.start()

        print(f"MCP SSE server listening on port {self.port}", file=sys.stderr)
        print(f"  SSE endpoint:  http://localhost:{self.port}/sse", file=sys.stderr)
        print(f"  Message POST:  http://localhost:{self.port}/messages", file=sys.stderr)
        sys.stderr.flush()

    def stop(self):
        """Stop accepting connections and close the event stream."""
        if not self._running and self._listen_sock is None:
            return
        self._running = False
        if self._listen_sock is not None:
            self._listen_sock.close()
            self._listen_sock = None
        with self._sse_lock:
            if self._sse_sock is not None:
                _drop(self._sse_sock)
                self._sse_sock = None
        if self._accept_thread is not None:
            self._accept_thread.join()
            self._accept_thread = None
        print("MCP SSE server stopped", file=sys.stderr)

    def send_event(self, event_name, data):
        """Push one event to the connected event stream, if there is one."""
        message = f"event: {event_name}\ndata: {data}\n\n".encode("utf-8")
        with self._sse_lock:
            if self._sse_sock is None:
                return
            try:
                self._sse_sock.sendall(message)
            except OSError:
                pass

    def _accept_loop(self):
        while self._running:
            listener = self._listen_sock
            if listener is None:
                break
            try:
                ready, _, _ = select.select([listener], [], [], self._POLL)
            except (OSError, ValueError):
                break
            if not ready:
                continue
            try:
                client, _ = listener.accept()
            except OSError:
                continue
            threading.Thread(target=self._serve, args=(client,), daemon=True).start()

    def _serve(self, client):
        try:
            request = _read_request(client)
        except OSError:
            request = None
        if request is None:
            client.close()
            return
        head, body = request
        words = head.decode("latin-1").split(None, 2)
        if len(words) < 2:
            client.close()
            return
        method, path = words[0][:15], words[1][:1023]

        try:
            if method == "OPTIONS":
                client.sendall(_response(204, "No Content", "text/plain", ""))
            elif method == "GET" and path.startswith("/sse"):
                self._stream(client)
                return
            elif method == "POST" and path.startswith("/messages"):
                self._post(client, body)
            elif method == "GET" and path == "/health":
                client.sendall(_response(200, "OK", "application/json", _HEALTH_BODY))
            else:
                client.sendall(_response(404, "Not Found", "text/plain", "Not Found"))
        except OSError:
            pass
        client.close()

    def _post(self, client, body):
        if body and self.handler is not None:
            self.handler(body.decode("utf-8", errors="replace"), self.send_event)
        client.sendall(_response(202, "Accepted", "text/plain", "Accepted"))

    def _stream(self, sock):
        try:
            sock.sendall(_SSE_HEADERS)
        except OSError:
            sock.close()
            return

        with self._sse_lock:
            if self._sse_sock is not None:
                _drop(self._sse_sock)
            self._sse_sock = sock
            self.session_id = f"sse-{threading.get_ident()}"
            session = self.session_id
        self.send_event("endpoint", f"/messages?sessionId={session}")

        idle = 0.0
        pings = 0
        while self._running:
            try:
                ready, _, _ = select.select([sock], [], [], self._POLL)
            except (OSError, ValueError):
                break
            if not ready:
                idle += self._POLL
                if idle >= self.KEEPALIVE_INTERVAL:
                    idle = 0.0
                    self.send_event("keepalive", "ping")
                    pings += 1
                    if pings > self.KEEPALIVE_LIMIT:
                        break
                continue
            try:
                data = sock.recv(256)
            except OSError:
                break
            if not data:
                break

        with self._sse_lock:
            if self._sse_sock is sock:
                self._sse_sock = None
        _drop(sock)