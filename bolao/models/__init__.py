from .base import Base

# import models so autoloaders can discover mappers
from .profile import Profile  # noqa: F401
from .pool import Pool, Game  # noqa: F401
from .round import Round, Participant, Prediction, PARTICIPANT_STATUSES  # noqa: F401

__all__ = [
    "Base",
    "Profile",
    "Pool",
    "Game",
    "Round",
    "Participant",
    "Prediction",
    "PARTICIPANT_STATUSES",
]
