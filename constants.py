import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]

# Max frames queued for a single connection before new frames are dropped
OUTBOX_MAX_SIZE = int(os.getenv("OUTBOX_MAX_SIZE", 256))

PEER_NAME_PREFIX = "Peer "

# Inbound websocket events
EVENT_GET_ROOM_LIST = "get-room-list"
EVENT_JOIN_ROOM = "join-room"
EVENT_SEND_MESSAGE = "send-message"

# Outbound websocket events
EVENT_ROOM_LIST = "room-list"
EVENT_JOINED = "joined"
EVENT_PARTICIPANTS = "participants"
EVENT_USER_CONNECTED = "user-connected"
EVENT_USER_DISCONNECTED = "user-disconnected"
EVENT_NEW_MESSAGE = "new-message"

# Text generation for the support chatbot and assessment replies
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", None)
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", 30))
