"""Domain errors raised by the chat core."""


class ChatError(Exception):
    """Base class for recoverable, caller-local failures."""

    code = "chat_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InvalidChat(ChatError):
    code = "invalid_chat"


class UnknownChat(ChatError):
    code = "unknown_chat"

    def __init__(self, chat_id: str) -> None:
        super().__init__(f"Chat {chat_id!r} not found")
        self.chat_id = chat_id


class UnknownUser(ChatError):
    code = "unknown_user"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id!r} not found")
        self.user_id = user_id
