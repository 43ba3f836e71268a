# Services package init
"""
SpeakerHub Backend — Services Layer
=====================================

Business rules, independent of HTTP. Each service is a stateless singleton
that receives the request's AsyncSession per call.

Service Inventory:
    - AuthService:      signup, one-time-code verification, login
    - SpeakerService:   speaker directory, profile updates, slots
    - BookingService:   the booking transaction, booking reads, income summary
    - AdminService:     QR check-in, statistics
    - TicketService:    QR payload and PNG rendering
    - SmsService, EmailService, CalendarService, GoogleOAuthService:
      outbound providers
      (HttpIntegration subclasses; simulated when unconfigured)
    - post_booking:     calendar + e-mail follow-up after a booking commits
"""
