"""Admin user model backing the session collaborator."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tokengate.models.base import BaseModel

ADMIN_ROLE = "admin"


class AdminUser(BaseModel):
    """Administrator allowed to manage API tokens.

    Rows are provisioned by the surrounding application. The
    session_version field invalidates every outstanding session token
    when incremented.
    """

    __tablename__ = "admin_users"

    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=ADMIN_ROLE)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Increment to invalidate all existing session tokens
    session_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    @property
    def tenant(self) -> str:
        """Isolation boundary derived from the email domain."""
        _, _, domain = self.email.partition("@")
        return domain.lower() or "default"

    def __repr__(self) -> str:
        return f"<AdminUser {self.email} role={self.role}>"
