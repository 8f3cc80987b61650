import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Playback
    SKIP_SECONDS = int(os.environ.get("SKIP_SECONDS", "10"))
    SKIP_VOTE_EXPIRY_SEC = float(os.environ.get("SKIP_VOTE_EXPIRY_SEC", "2"))
    PLAY_AFTER_CHANGE = os.environ.get("PLAY_AFTER_CHANGE", "1") == "1"

    # Rooms
    ROOM_LIST_PAGE_SIZE = int(os.environ.get("ROOM_LIST_PAGE_SIZE", "10"))
    CHAT_MAX_LENGTH = int(os.environ.get("CHAT_MAX_LENGTH", "10"))
    RECOMMEND_QUEUE_LIMIT = int(os.environ.get("RECOMMEND_QUEUE_LIMIT", "50"))
