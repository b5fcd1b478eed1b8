from dataclasses import dataclass


@dataclass
class UserContact:
    user_id: str
    email: str | None = None
    first_name: str | None = None


class UserDirectory:
    """Read-only lookup of user contact data owned by the user service."""

    async def get_contact(self, user_id: str) -> UserContact | None:
        raise NotImplementedError
