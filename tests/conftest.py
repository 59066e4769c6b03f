import base64
import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

import pytest

from contract_runner.core.config import configure


USERS = {
    "user": ("password", False),
    "admin": ("password", True),
}

SEED_BOOKS = [
    {"id": 1, "name": "Design Patterns", "author": "Erich Gamma", "price": 45.5},
    {"id": 2, "name": "Refactoring", "author": "Martin Fowler", "price": 39.99},
    {"id": 3, "name": "The Pragmatic Programmer", "author": "Andrew Hunt", "price": 52.0},
]


class BooksServer(ThreadingHTTPServer):
    """In-memory books API used as the service under test."""

    def __init__(self):
        super().__init__(("127.0.0.1", 0), BooksHandler)
        self.books: Dict[int, Dict[str, Any]] = {b["id"]: dict(b) for b in SEED_BOOKS}
        self.next_id = max(self.books) + 1
        self.lock = threading.Lock()
        self.requests: List[Dict[str, Any]] = []

    @property
    def base_url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"


class BooksHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"
    server: BooksServer

    def log_message(self, format, *args):
        pass

    def _send_json(self, status: int, payload: Any, content_type: str = "application/json") -> None:
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_body(self) -> str:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length).decode("utf-8") if length else ""

    def _role(self) -> Optional[bool]:
        """True for a writer, False for a reader, None when not authenticated"""
        header = self.headers.get("Authorization", "")
        if not header.startswith("Basic "):
            return None
        user, _, password = base64.b64decode(header[6:]).decode("utf-8").partition(":")
        expected = USERS.get(user)
        if expected is None or expected[0] != password:
            return None
        return expected[1]

    def _handle(self, method: str) -> None:
        url = urlsplit(self.path)
        query = {k: v[-1] for k, v in parse_qs(url.query).items()}
        body = self._read_body()
        self.server.requests.append({
            "method": method,
            "path": url.path,
            "query": query,
            "headers": dict(self.headers),
            "body": body,
        })

        if url.path == "/echo":
            self._send_json(200, {"method": method, "path": url.path, "query": query,
                                  "headers": dict(self.headers), "body": body})
            return
        if url.path == "/text":
            self._send_json(200, b"plain text, not json", content_type="text/plain")
            return
        if url.path == "/deep":
            depth = int(query.get("depth", "100000"))
            self._send_json(200, ("[" * depth + "]" * depth).encode("ascii"))
            return
        if url.path == "/slow":
            time.sleep(float(query.get("delay", "1")))
            self._send_json(200, {"ok": True})
            return

        parts = [p for p in url.path.split("/") if p]
        if not parts or parts[0] != "books" or len(parts) > 2:
            self._send_json(404, {"error": "not found"})
            return

        role = self._role()
        if role is None:
            self.send_response(401)
            self.send_header("WWW-Authenticate", 'Basic realm="books"')
            self.send_header("Content-Length", "0")
            self.end_headers()
            return
        if method in ("POST", "PUT") and not role:
            self._send_json(403, {"error": "forbidden"})
            return

        book_id = parts[1] if len(parts) == 2 else None
        if method == "GET" and book_id is None:
            self._list_books(query)
        elif method == "GET":
            self._get_book(book_id)
        elif method == "POST" and book_id is None:
            self._create_book(body)
        elif method == "PUT" and book_id is not None:
            self._update_book(book_id, body)
        else:
            self._send_json(405, {"error": "method not allowed"})

    def _list_books(self, query: Dict[str, str]) -> None:
        with self.server.lock:
            books = [dict(b) for b in self.server.books.values()]
        if "author" in query:
            books = [b for b in books if b["author"] == query["author"]]
        if "minPrice" in query:
            books = [b for b in books if b["price"] >= float(query["minPrice"])]
        if "maxPrice" in query:
            books = [b for b in books if b["price"] <= float(query["maxPrice"])]
        if "sort" in query:
            books.sort(key=lambda b: b[query["sort"]], reverse=query.get("order") == "desc")
        if "limit" in query:
            limit = int(query["limit"])
            page = int(query.get("page", "1"))
            books = books[(page - 1) * limit:page * limit]
        self._send_json(200, {"books": books})

    def _get_book(self, book_id: str) -> None:
        with self.server.lock:
            book = self.server.books.get(int(book_id)) if book_id.isdigit() else None
        if book is None:
            self._send_json(404, {"error": f"book {book_id} not found"})
        else:
            self._send_json(200, book)

    def _validate(self, body: str) -> Optional[Dict[str, Any]]:
        try:
            data = json.loads(body)
        except ValueError:
            self._send_json(400, {"error": "malformed JSON"})
            return None
        if not data.get("name"):
            self._send_json(400, {"error": "name is required"})
            return None
        if not isinstance(data.get("price"), (int, float)) or data["price"] < 0:
            self._send_json(400, {"error": "price must be a non-negative number"})
            return None
        return data

    def _create_book(self, body: str) -> None:
        data = self._validate(body)
        if data is None:
            return
        with self.server.lock:
            book = {"id": self.server.next_id, "name": data["name"],
                    "author": data.get("author"), "price": data["price"]}
            self.server.books[book["id"]] = book
            self.server.next_id += 1
        self._send_json(201, book)

    def _update_book(self, book_id: str, body: str) -> None:
        with self.server.lock:
            exists = book_id.isdigit() and int(book_id) in self.server.books
        if not exists:
            self._send_json(404, {"error": f"book {book_id} not found"})
            return
        data = self._validate(body)
        if data is None:
            return
        book = {"id": int(book_id), "name": data["name"], "author": data.get("author"), "price": data["price"]}
        with self.server.lock:
            self.server.books[book["id"]] = book
        self._send_json(200, book)

    def do_GET(self):
        self._handle("GET")

    def do_POST(self):
        self._handle("POST")

    def do_PUT(self):
        self._handle("PUT")

    def do_DELETE(self):
        self._handle("DELETE")


@pytest.fixture()
def books_server():
    server = BooksServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@pytest.fixture()
def config(books_server):
    return configure(books_server.base_url, default_timeout=5)


@pytest.fixture()
def closed_port_url() -> str:
    """Base URL of a port nothing listens on"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}"
