from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .id_type import ID_TYPE

if TYPE_CHECKING:
    from .round import Participant


class Profile(Base):
    """Public profile of a bolão user.

    The login email lives in the external auth service; the profile only keeps
    the auth ``user_id`` so the email can be resolved from the username.
    """

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    public_id: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    participations: Mapped[list["Participant"]] = relationship(back_populates="profile")

    @validates("public_id")
    def _normalize_public_id(self, _key: str, value: str) -> str:
        return value.strip().lower()

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, public_id='{self.public_id}')>"

    @classmethod
    def get_by_public_id(cls, session: Session, public_id: str) -> Optional["Profile"]:
        """Get a profile by username; the lookup is case-insensitive."""
        return session.scalar(select(cls).where(cls.public_id == public_id.strip().lower()))
