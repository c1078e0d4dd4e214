"""Errors raised by the connection services.

Routes translate them to HTTP responses; nothing here knows about HTTP.
"""


class FriendshipError(Exception):
    """Base error for the connection services"""


class InvalidSelfReference(FriendshipError, ValueError):
    """An account tried to befriend itself"""


class NotFound(FriendshipError, LookupError):
    """Unknown request, account or notification"""


class NotFriends(NotFound):
    """The two accounts are not friends"""


class Unauthorized(FriendshipError, PermissionError):
    """The acting account is not allowed on this request"""


class Conflict(FriendshipError):
    """A concurrent writer already holds the live request for this pair"""


class PartialFailure(FriendshipError):
    """Some, but not all, of the writes of a two-sided operation were committed.

    The state is recoverable with a targeted repair of the pair, never by
    re-issuing the whole operation.
    """

    def __init__(self, operation: str, account_ids: tuple[str, str]):
        self.operation = operation
        self.account_ids = account_ids
        super().__init__(
            f"{operation} between {account_ids[0]} and {account_ids[1]} "
            "was only partially applied"
        )
