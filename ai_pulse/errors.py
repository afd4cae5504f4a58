class VoteServiceError(Exception):
    """Base class for errors raised by the voting core."""


class ValidationError(VoteServiceError):
    """Bad item reference or vote type. Raised before anything is written."""


class PersistenceError(VoteServiceError):
    """The vote log could not be read or written."""

    def __init__(self, message: str, *, write: bool = False):
        super().__init__(message)
        self.write = write


class GeoResolutionFailure(VoteServiceError):
    """
    The geolocation lookup did not produce a country.

    ``reached`` tells whether the service answered at all. It never leaves
    the resolver: callers only ever see ``None`` or ``"Unknown"``.
    """

    def __init__(self, message: str, *, reached: bool):
        super().__init__(message)
        self.reached = reached
