"""
EchoNote Backend: Middleware Package
=====================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Rate Limit] → [Access Log] → [CORS] → Route Handler

    - Request ID runs first so 429 responses and access log lines carry it
    - Rate limiting rejects before the request is logged or routed
    - The access log measures everything below it, handlers included
"""
