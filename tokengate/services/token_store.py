"""Persistence for access token rows."""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tokengate.models.access_token import STATUS_ACTIVE, STATUS_REVOKED, AccessToken
from tokengate.services.errors import PersistenceError

logger = logging.getLogger(__name__)

ORDERABLE_COLUMNS = {
    "created_at": AccessToken.created_at,
    "expires_at": AccessToken.expires_at,
    "last_used_at": AccessToken.last_used_at,
    "name": AccessToken.name,
}


class AccessTokenStore:
    """Reads and writes ``access_tokens`` rows.

    Writes only flush; callers decide when to commit so several writes
    can share one transaction. Any driver error rolls the session back
    and surfaces as PersistenceError.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _fail(self, action: str, error: SQLAlchemyError) -> PersistenceError:
        logger.error(f"Token store failed to {action}: {error}")
        await self.session.rollback()
        return PersistenceError()

    async def insert(self, token: AccessToken) -> AccessToken:
        """Add a new row. A duplicate jti or token hash is rejected."""
        self.session.add(token)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            raise await self._fail("insert token", e) from e
        return token

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            raise await self._fail("commit", e) from e

    async def rollback(self) -> None:
        await self.session.rollback()

    async def get_active(self, jti: str, token_hash: str) -> AccessToken | None:
        """Active row matching both the jti and the content hash."""
        result = await self.session.execute(
            select(AccessToken).where(
                AccessToken.jti == jti,
                AccessToken.token_hash == token_hash,
                AccessToken.status == STATUS_ACTIVE,
            )
        )
        return result.scalar_one_or_none()

    async def get_owned(
        self,
        jti: str,
        owner_id: UUID,
        tenant: str,
        *,
        for_update: bool = False,
    ) -> AccessToken | None:
        """Row owned by ``owner_id`` within ``tenant``, in any status."""
        stmt = select(AccessToken).where(
            AccessToken.jti == jti,
            AccessToken.owner_id == owner_id,
            AccessToken.tenant == tenant,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_revoked(self, jti: str, actor_id: UUID, revoked_at: datetime) -> bool:
        """Transition an active row to revoked.

        The update is conditional on the row still being active, so of two
        concurrent callers only one sees True.
        """
        try:
            result: CursorResult[Any] = await self.session.execute(  # type: ignore[assignment]
                update(AccessToken)
                .where(AccessToken.jti == jti, AccessToken.status == STATUS_ACTIVE)
                .values(
                    status=STATUS_REVOKED,
                    revoked_at=revoked_at,
                    revoked_by=actor_id,
                    updated_at=revoked_at,
                )
                .execution_options(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            raise await self._fail("revoke token", e) from e
        return result.rowcount == 1

    async def touch_last_used(self, jti: str, used_at: datetime) -> None:
        await self.session.execute(
            update(AccessToken)
            .where(AccessToken.jti == jti)
            .values(last_used_at=used_at)
            .execution_options(synchronize_session=False)
        )

    async def list_for_owner(
        self,
        owner_id: UUID,
        tenant: str,
        *,
        page: int = 1,
        per_page: int = 20,
        search: str | None = None,
        status: str | None = None,
        order_by: str = "created_at",
        descending: bool = True,
    ) -> tuple[list[AccessToken], int]:
        """Page of rows owned by ``owner_id`` in ``tenant`` plus the total count."""
        filters = [AccessToken.owner_id == owner_id, AccessToken.tenant == tenant]
        if search:
            filters.append(AccessToken.name.ilike(f"%{search}%"))
        if status in (STATUS_ACTIVE, STATUS_REVOKED):
            filters.append(AccessToken.status == status)

        total_result = await self.session.execute(
            select(func.count()).select_from(AccessToken).where(*filters)
        )
        total = total_result.scalar() or 0

        column = ORDERABLE_COLUMNS.get(order_by, AccessToken.created_at)
        ordering = column.desc() if descending else column.asc()
        result = await self.session.execute(
            select(AccessToken)
            .where(*filters)
            .order_by(ordering, AccessToken.jti)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        return list(result.scalars().all()), total
