"""
HealthFinder API — Middleware Package
=======================================

Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [CORS] → [Request ID] → [Readiness Gate] → [Logging] → [GZip] → Route

    1. CORS outermost, so preflights and gate 503s carry CORS headers
    2. Request ID ahead of the gate, so a 503 still carries X-Request-ID
    3. Readiness gate rejects everything while the store is disconnected
    4. Logging records method, path, status and duration
"""
