"""EventNest Database Models."""

from eventnest.models.user import User, UserAuth
from eventnest.models.event import AccessLevel, Event, EventAccess
from eventnest.models.photo import Photo

__all__ = [
    "User",
    "UserAuth",
    "AccessLevel",
    "Event",
    "EventAccess",
    "Photo",
]
