from app.application.interfaces.user_directory import UserContact, UserDirectory


class InMemoryUserDirectory(UserDirectory):
    """Contacts registered up front; unknown ids still resolve to an email-less contact."""

    def __init__(self, contacts: dict[str, UserContact] | None = None) -> None:
        self.contacts: dict[str, UserContact] = dict(contacts or {})

    def add(self, user_id: str, email: str | None = None, first_name: str | None = None) -> UserContact:
        contact = UserContact(user_id=user_id, email=email, first_name=first_name)
        self.contacts[user_id] = contact
        return contact

    async def get_contact(self, user_id: str) -> UserContact | None:
        return self.contacts.get(user_id) or UserContact(user_id=user_id)
