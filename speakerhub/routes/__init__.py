# Routes package init
"""
SpeakerHub Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:      POST /api/auth/signup | verify-otp | login,
                    GET  /api/auth/google, /api/auth/google/callback
    - speakers.py:  GET  /api/speakers, PUT /api/speakers/me,
                    GET  /api/speakers/slots/{speaker_id}, POST /api/speakers/slots
    - bookings.py:  POST /api/bookings, GET /api/bookings/my | speaker | speaker/income,
                    GET  /api/bookings/{id}/qr
    - admin.py:     POST /api/admin/checkin, GET /api/admin/stats
    - health.py:    GET  /health

Routes stay thin: read the request, resolve the identity, call a service.
"""
