# Middleware package init
"""
SpeakerHub Backend — Middleware Package
=========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Request ID] → [Access Log] → [Auth Rate Limit] → [CORS] → Route Handler

    - Request ID first, so the access log line and any 429 body carry it
    - Auth rate limit only inspects /api/auth/* paths
    - CORS answers preflight requests
"""
