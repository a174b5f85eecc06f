"""
Typed failures raised by the slot swap core.

Each kind maps to a distinct caller-facing outcome; the web layer translates
them to HTTP status codes via ``status_code``.
"""


class SlotSwapError(Exception):
    """Base class for all core errors."""
    status_code = 500


class NotFoundError(SlotSwapError):
    """A referenced record id does not exist."""
    status_code = 404


class ForbiddenError(SlotSwapError):
    """The caller lacks rights over the record."""
    status_code = 403


class InvalidStateError(SlotSwapError):
    """A slot or swap state-machine guard was violated."""
    status_code = 409


class InvalidRequestError(SlotSwapError):
    """Malformed input, such as swapping a slot with itself."""
    status_code = 400


class ConsistencyError(SlotSwapError):
    """Stored data violates an invariant the protocol cannot have caused."""
    status_code = 500


class DuplicateIdError(ConsistencyError):
    """A freshly generated id collided with an existing record."""


class StoreUnavailableError(SlotSwapError):
    """The persistence layer failed; the transaction was rolled back."""
    status_code = 503
