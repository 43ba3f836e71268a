# Importing every model registers it on Base.metadata (Alembic, create_all)
from speakerhub.models.profile import Profile, Role, SpeakerProfile
from speakerhub.models.slot import SessionSlot
from speakerhub.models.booking import Booking

__all__ = ["Booking", "Profile", "Role", "SessionSlot", "SpeakerProfile"]
