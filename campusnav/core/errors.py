# campusnav/core/errors.py


class CampusNavError(Exception):
    """
    Base class for every domain error raised by the route planning core.
    """


class RouteUnavailable(CampusNavError):
    """
    The directions provider could not produce any route for a query
    (network error, timeout, error status, malformed body or zero results).
    """


class NavigationRejected(CampusNavError):
    """
    A navigation transition was refused because a precondition does not hold.

    The message is meant to be shown to the user as-is.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CandidateNotFound(CampusNavError):
    """No route candidate or bookmark with the requested identifier."""


class SessionNotFound(CampusNavError):
    """No map session with the requested identifier."""


class TrackingInactive(CampusNavError):
    """A position fix was pushed while live tracking is stopped."""
