# trustcircle/core/errors.py
from typing import Any, Optional


class MembershipError(Exception):
    """Base class for failures the HTTP layer turns into an error response."""

    status_code = 500
    code = "internal_error"

    def __init__(self, detail: str, meta: Optional[Any] = None):
        super().__init__(detail)
        self.detail = detail
        self.meta = meta


class InvalidInputError(MembershipError):
    status_code = 400
    code = "invalid_input"


class StoreUnavailableError(MembershipError):
    """Transport, timeout or query failure against the backing store. Never retried."""

    status_code = 503
    code = "store_unavailable"


class NotFoundError(MembershipError):
    status_code = 404
    code = "not_found"


class MemberNotFoundError(NotFoundError):
    """A circle's member list references a user id with no user row."""

    def __init__(self, circle_id: int, user_id: int):
        super().__init__(
            f"Member {user_id} of circle {circle_id} has no user record",
            meta={"circle_of_trust_id": circle_id, "user_id": user_id},
        )
        self.circle_id = circle_id
        self.user_id = user_id


class CodecError(MembershipError):
    status_code = 500
    code = "decode_error"


class MembershipConflictError(MembershipError):
    """Another writer changed the member list between our read and our write."""

    status_code = 409
    code = "conflict"
