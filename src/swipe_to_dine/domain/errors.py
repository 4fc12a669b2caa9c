"""Errors raised by party operations."""


class PartyError(Exception):
    """Base class for party state errors."""


class PartyNotFoundError(PartyError):
    """No party is stored under the given invite id."""

    def __init__(self, invite_id: str) -> None:
        super().__init__(f"Party {invite_id!r} not found")
        self.invite_id = invite_id


class InvalidVoterError(PartyError):
    """A vote referenced a diner who is not on the roster."""

    def __init__(self, diner_id: str) -> None:
        super().__init__(f"Diner {diner_id!r} is not in this party")
        self.diner_id = diner_id


class DoubleResolutionError(PartyError):
    """A match was resolved for a party that already has one."""


class EmptyRandomPickError(PartyError, ValueError):
    """A random pick was requested from an empty candidate list."""


class HandoffViolationError(PartyError):
    """A vote arrived while the device is waiting to be handed over."""


class DinerModeLockedError(PartyError):
    """Attendance mode was changed after voting started."""


class EliminationError(PartyError):
    """An elimination step was not valid for the current snapshot."""


class PartyClosedError(PartyError):
    """The party already has a match and no longer accepts changes."""


class TurnOrderError(PartyError):
    """A turn event arrived in a phase that does not accept it."""
