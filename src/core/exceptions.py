"""
Custom exceptions.

Everything raised on purpose by the domain or service layers derives from GameError,
so the transport layer only needs one `except` clause to turn a failed request into a rejection message.
"""


class GameError(Exception):
    """Base class: a request could not be honoured. Never fatal for the process."""


# --- RULES / DOMAIN LAYER ---
class InvalidFENError(GameError):
    """FEN string could not be parsed."""


class GameStateError(GameError):
    """Operation does not fit the current state of the game (e.g. moving in a finished game)."""


class IllegalMoveError(GameError):
    """Move breaks the rules of chess."""


class NotYourTurnError(GameError):
    """A player tried to move while the opponent is to move."""


# --- BOUNDARY ---
class InvalidRequestError(GameError, ValueError):
    """Inbound request carries data that cannot be interpreted.

    NOTE: Also a ValueError so pydantic validators can raise it directly.
    """


class RepositoryError(GameError):
    """Persisting or fetching a record failed."""


# --- SESSION COORDINATION ---
class NotInLobbyError(GameError):
    """The connection has not joined the lobby yet."""


class UnknownGameError(GameError):
    """No live session with this id."""


class NotAParticipantError(GameError):
    """Requester is not one of the two players bound to the session."""


class SeatUnavailableError(GameError):
    """Game is full, or the requester is already bound to it."""


class DrawOfferError(GameError):
    """Draw offer protocol violated: duplicate offer, no offer pending, or responding to your own offer."""
