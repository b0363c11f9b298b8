from enum import Enum


class SessionState(str, Enum):
    NO_SESSION = "NoSession"
    LOADED = "Loaded"
    VERIFIED = "Verified"
    EXPIRED = "Expired"
    BLOCKED = "Blocked"
    FAILED = "Failed"
