"""TokenAuditLog model - append-only lifecycle events for API tokens."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Enum, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from tokengate.core.database import Base
from tokengate.models.base import JSONType, UTCDateTime, utcnow

AuditActionType = Enum(
    "created",
    "rotated",
    "revoked",
    "used",
    name="token_audit_action",
    create_constraint=True,
)


class TokenAuditLog(Base):
    """A single token lifecycle event.

    Entries are never updated or deleted; they are kept for forensic
    reconstruction of a credential's history across rotations.
    """

    __tablename__ = "token_audit_log"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    token_jti: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    actor_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    action: Mapped[str] = mapped_column(AuditActionType, nullable=False)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (Index("ix_token_audit_log_jti_created", "token_jti", "created_at"),)

    def __repr__(self) -> str:
        return f"<TokenAuditLog {self.action} {self.token_jti}>"
