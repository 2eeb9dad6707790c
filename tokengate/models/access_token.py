"""AccessToken model - metadata for issued API bearer tokens.

The plaintext token is never stored; only its SHA-256 digest.
"""

from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tokengate.core.database import Base
from tokengate.models.base import JSONType, UTCDateTime, utcnow

STATUS_ACTIVE = "active"
STATUS_REVOKED = "revoked"

TokenStatus = Enum(
    STATUS_ACTIVE,
    STATUS_REVOKED,
    name="access_token_status",
    create_constraint=True,
)


class AccessToken(Base):
    """One row per issued token, keyed by its jti claim.

    Rows are never deleted. The only mutations are the one-way status
    transition to revoked and last_used_at touches.
    """

    __tablename__ = "access_tokens"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    owner_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("admin_users.id"),
        nullable=False,
    )
    tenant: Mapped[str] = mapped_column(String(255), nullable=False)
    scopes: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    role: Mapped[str] = mapped_column(String(32), nullable=False)

    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    status: Mapped[str] = mapped_column(TokenStatus, nullable=False, default=STATUS_ACTIVE)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False
    )
    last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    revoked_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        Index("ix_access_tokens_owner_tenant_created", "owner_id", "tenant", "created_at"),
        Index("ix_access_tokens_jti_status", "jti", "status"),
    )

    @property
    def lifetime(self) -> timedelta:
        """Span between creation and expiry, reapplied on rotation."""
        return self.expires_at - self.created_at

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or utcnow())

    def __repr__(self) -> str:
        return f"<AccessToken {self.jti} {self.status} tenant={self.tenant}>"

    def to_dict(self, now: datetime | None = None) -> dict[str, Any]:
        """Listing representation (never includes the hash)."""
        return {
            "jti": self.jti,
            "name": self.name,
            "scopes": list(self.scopes or []),
            "role": self.role,
            "tenant": self.tenant,
            "status": self.status,
            "expires_at": self.expires_at,
            "created_at": self.created_at,
            "last_used_at": self.last_used_at,
            "revoked_at": self.revoked_at,
            "expired": self.is_expired(now),
        }
