# engine_py/src/party_engine/errors.py

class GameError(Exception):
    """Base exception for rejected player actions."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")

# Specific error codes
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
NAME_REQUIRED = "NAME_REQUIRED"
NAME_TAKEN = "NAME_TAKEN"
GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
NOT_IN_ROOM = "NOT_IN_ROOM"
GAME_NOT_STARTED = "GAME_NOT_STARTED"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
INVALID_CARD = "INVALID_CARD"
ILLEGAL_CARD = "ILLEGAL_CARD"
DRAW_PENDING = "DRAW_PENDING"
NOT_JUDGE = "NOT_JUDGE"
ALREADY_SUBMITTED = "ALREADY_SUBMITTED"
BLANK_TEXT_REQUIRED = "BLANK_TEXT_REQUIRED"
UNKNOWN_TARGET = "UNKNOWN_TARGET"
ACTION_NOT_ALLOWED = "ACTION_NOT_ALLOWED"
INVALID_EVENT = "INVALID_EVENT"
INTERNAL_ERROR = "INTERNAL_ERROR"
