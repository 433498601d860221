"""Flask application factory for the heap simulator's JSON API.

The ``create_app`` function builds one allocator from a ``HeapConfig``
and returns a Flask app exposing it.  Clients refer to blocks by handle
id; the app keeps the live ``Handle`` objects server-side, exactly as the
shell does.  Every route that touches the allocator holds one shared
lock, so concurrent requests on the threaded server run one at a time.

Allocator errors map to HTTP statuses:

- ``InvalidRequestError`` / ``InvalidHandleError`` → 400.
- ``OutOfSpaceError`` → 409 (the request was fine, the heap is full).
"""

from __future__ import annotations

import os
import threading
from typing import Any

from flask import Flask, Response, jsonify, request

from py_heap.config import HeapConfig, create_allocator
from py_heap.logging import Logger
from py_heap.memory.allocator import LayoutRange
from py_heap.memory.errors import InvalidHandleError, InvalidRequestError, OutOfSpaceError
from py_heap.memory.fragmentation import measure
from py_heap.memory.handle import Handle

_HTTP_BAD_REQUEST = 400
_HTTP_CONFLICT = 409


def _range_json(r: LayoutRange) -> dict[str, Any]:
    return {
        "start": r.start,
        "last": r.last,
        "length": r.length,
        "status": str(r.status),
        "handle": r.handle_id,
    }


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status


def create_app(config: HeapConfig | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Heap settings.  Defaults to ``HeapConfig()``.

    Returns:
        A configured Flask application ready to serve.

    """
    config = config or HeapConfig()
    allocator = create_allocator(config, logger=Logger())
    handles: dict[int, Handle] = {}
    # Held around every allocator call; the dev server is threaded.
    lock = threading.Lock()

    app = Flask(__name__)
    app.extensions["py_heap"] = {"allocator": allocator, "lock": lock}

    def _json_body() -> dict[str, Any] | None:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else None

    @app.route("/api/layout")
    def layout() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the free/allocated ranges in address order."""
        with lock:
            ranges = [_range_json(r) for r in allocator.describe_layout()]
        return jsonify({"capacity": allocator.capacity, "ranges": ranges})

    @app.route("/api/stats")
    def stats() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return usage and fragmentation figures."""
        with lock:
            report = measure(allocator)
        return jsonify(
            {
                "policy": allocator.policy.name,
                "compacting": allocator.compacting,
                "capacity": report.capacity,
                "free": report.total_free,
                "largest_gap": report.largest_gap,
                "gap_count": report.gap_count,
                "external_fragmentation": report.external_fragmentation,
                "utilisation": report.utilisation,
            }
        )

    @app.route("/api/log")
    def log() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the event log, oldest first."""
        with lock:
            logger = allocator.logger
            entries = logger.entries if logger is not None else []
        return jsonify([str(entry) for entry in entries])

    @app.route("/api/allocate", methods=["POST"])
    def allocate() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Allocate a block.

        Expects JSON body: ``{"size": n}``

        Returns:
            JSON with ``handle``, ``address`` and ``size`` fields.

        """
        data = _json_body()
        if data is None or "size" not in data:
            return _error("Missing 'size' field", _HTTP_BAD_REQUEST)
        with lock:
            try:
                handle = allocator.allocate(data["size"])
            except InvalidRequestError as e:
                return _error(str(e), _HTTP_BAD_REQUEST)
            except OutOfSpaceError as e:
                return _error(str(e), _HTTP_CONFLICT)
            handles[handle.handle_id] = handle
            body = {"handle": handle.handle_id, "address": handle.address, "size": handle.size}
        return jsonify(body)

    @app.route("/api/release", methods=["POST"])
    def release() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Release a block.

        Expects JSON body: ``{"handle": id}`` where ``id`` is an integer.
        A released id is forgotten; releasing it again is an unknown handle.

        """
        data = _json_body()
        if data is None or "handle" not in data:
            return _error("Missing 'handle' field", _HTTP_BAD_REQUEST)
        handle_id = data["handle"]
        if not isinstance(handle_id, int) or isinstance(handle_id, bool):
            return _error(f"Handle id must be an integer, got {handle_id!r}", _HTTP_BAD_REQUEST)
        with lock:
            handle = handles.get(handle_id)
            if handle is None:
                return _error(f"Unknown handle {handle_id}", _HTTP_BAD_REQUEST)
            try:
                allocator.release(handle)
            except InvalidHandleError as e:
                return _error(str(e), _HTTP_BAD_REQUEST)
            del handles[handle_id]
        return jsonify({"released": handle_id})

    @app.route("/api/compact", methods=["POST"])
    def compact() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Compact the heap and report how many cells moved."""
        with lock:
            moved = allocator.compact()
        return jsonify({"moved": moved})

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``py-heap-web`` console entry point.
    """
    app = create_app(HeapConfig.from_env(os.environ))
    app.run(debug=True, port=8080)
