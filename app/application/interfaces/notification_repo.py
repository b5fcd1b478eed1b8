from app.domain.entities.notification import Notification


class NotificationRepo:
    async def create(self, notification: Notification) -> None:
        raise NotImplementedError

    async def list_by_user(self, user_id: str) -> list[Notification]:
        raise NotImplementedError
