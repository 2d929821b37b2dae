class NotFoundError(LookupError):
    pass


class WorkerNotFound(NotFoundError):
    pass


class EntryNotFound(NotFoundError):
    pass


class ProofNotFound(NotFoundError):
    pass


class EditNotAllowed(ValueError):
    """Raised when an entry is outside its editable lifetime."""


class InvalidTransition(ValueError):
    """Raised when a status change is not permitted from the current status."""


def http_status_for(exc: Exception, conflict: bool = False) -> int:
    """
    NotFoundError -> 404, EditNotAllowed/InvalidTransition -> 409,
    other ValueErrors -> 409 when the caller reports a state conflict, else 400.
    """
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (EditNotAllowed, InvalidTransition)):
        return 409
    return 409 if conflict else 400
