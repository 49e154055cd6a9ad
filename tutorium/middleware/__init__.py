"""
Tutorium Backend — Middleware Package
=======================================

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate limit first: abusive clients are rejected before any work
    2. Request ID: correlation id for every log line of the request
    3. Logging: method, path, status and duration with that id
    4. GZip / CORS: Starlette's own middleware

Responses travel back through the chain in reverse order, so the request
id header and the access log line see the final status code.
"""
