from sqlalchemy import select

from app.application.interfaces.user_directory import UserContact, UserDirectory
from app.infrastructure.db.engine import session_scope
from app.infrastructure.db.tables import users


class UserDirectorySQL(UserDirectory):
    def __init__(self, session_maker) -> None:
        self._session_maker = session_maker

    async def get_contact(self, user_id: str) -> UserContact | None:
        stmt = select(users.c.id, users.c.email, users.c.first_name).where(users.c.id == user_id)
        async with session_scope(self._session_maker) as session:
            result = await session.execute(stmt)
            row = result.first()
        if not row:
            return None
        return UserContact(user_id=row.id, email=row.email, first_name=row.first_name)
