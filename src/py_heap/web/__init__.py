"""Browser-facing JSON API for the heap simulator.

This package provides a Flask application that exposes one allocator
over HTTP.  It is an **optional** extra — install with::

    pip install py-heap[web]

The ``create_app`` factory in ``app.py`` builds an allocator and serves:

- ``GET /api/layout`` — the free/allocated ranges.
- ``GET /api/stats`` — usage and fragmentation figures.
- ``GET /api/log`` — the allocator's event log.
- ``POST /api/allocate`` — allocate a block, returning its handle id.
- ``POST /api/release`` — release a block by handle id.
- ``POST /api/compact`` — compact the heap.
"""
