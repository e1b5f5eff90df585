"""Event names exchanged over the WebSocket connection."""

# Client -> server
USER_ONLINE = "user-online"
SEND_MESSAGE = "send-message"
CREATE_CHAT = "create-chat"
JOIN_CHAT = "join-chat"
LEAVE_CHAT = "leave-chat"
SEARCH_USERS = "search-users"
GET_MESSAGES = "get-messages"
MARK_AS_READ = "mark-as-read"
TYPING = "typing"

# Server -> client
USERS_ONLINE = "users-online"
USER_OFFLINE = "user-offline"
NEW_MESSAGE = "new-message"
CHAT_CREATED = "chat-created"
USER_JOINED_CHAT = "user-joined-chat"
USER_LEFT_CHAT = "user-left-chat"
MESSAGE_READ = "message-read"
USER_TYPING = "user-typing"
ACK = "ack"
ERROR = "error"
