"""
Service-level errors.
Raised by the generators and guards, translated to HTTP responses by the routes.
"""


class TournamentValidationError(Exception):
    """Raised when a caller precondition is violated (bad roster, bad slot count, played poule...)"""

    pass


class NotFoundError(Exception):
    """Raised when a requested poule, match, team or bracket does not exist"""

    pass
