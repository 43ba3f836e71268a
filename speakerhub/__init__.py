"""
SpeakerHub Backend — Application Package
==========================================

Conference speaker booking service: attendees book one-hour sessions with
speakers and receive QR tickets, admins check them in, speakers publish
availability and follow their bookings.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes + access control (HTTP)    │  ← status codes, identities
    ├─────────────────────────────────────┤
    │     Services (business rules)       │  ← booking transaction, check-in
    ├─────────────────────────────────────┤
    │  Models (SQLAlchemy) / Schemas      │
    ├─────────────────────────────────────┤
    │   Database (async sessions)         │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
