from sqlalchemy import insert, select

from app.application.interfaces.notification_repo import NotificationRepo
from app.domain.entities.notification import Notification
from app.infrastructure.db.engine import as_utc, session_scope
from app.infrastructure.db.tables import notifications


class NotificationRepoSQL(NotificationRepo):
    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def create(self, notification: Notification) -> None:
        async with session_scope(self._session_maker) as session:
            await session.execute(
                insert(notifications).values(
                    id=notification.id,
                    user_id=notification.user_id,
                    title=notification.title,
                    message=notification.message,
                    category=notification.category,
                    read=notification.read,
                    created_at=notification.created_at,
                )
            )

    async def list_by_user(self, user_id: str) -> list[Notification]:
        stmt = (
            select(notifications)
            .where(notifications.c.user_id == user_id)
            .order_by(notifications.c.created_at.desc())
        )
        async with session_scope(self._session_maker) as session:
            result = await session.execute(stmt)
            rows = result.all()
        return [
            Notification(
                id=row.id,
                user_id=row.user_id,
                title=row.title,
                message=row.message,
                category=row.category,
                read=row.read,
                created_at=as_utc(row.created_at),
            )
            for row in rows
        ]
