# trustcircle/services/membership.py
"""Membership orchestration: read-through cache in front of the store.

Reads consult the cache, fall back to the store and populate the cache only
after every store call succeeded. Writes go to the store first and invalidate
the affected keys only once the write is confirmed. Store calls are never made
while the cache lock is held; the cache methods take and release it themselves.
"""
import logging
from typing import List, Optional, Tuple

from prometheus_client import Counter

from trustcircle.core import codec
from trustcircle.core.cache import TTLCache, circle_key, membership_cache, membership_key
from trustcircle.core.errors import MemberNotFoundError, MembershipError
from trustcircle.schemas import Circle, User
from trustcircle.services.store import MembershipStore

logger = logging.getLogger(__name__)

CACHE_REQUESTS = Counter(
    "membership_cache_requests_total", "Membership cache lookups", ["key_kind", "result"]
)
OPERATION_ERRORS = Counter(
    "membership_operation_errors_total", "Failed membership operations", ["operation", "code"]
)


class MembershipService:
    def __init__(self, store: MembershipStore, cache: TTLCache):
        self.store = store
        self.cache = cache

    async def create_user(self, name: str) -> User:
        db_user = await self.store.create_user(name)
        logger.info(f"Created user {db_user.user_id}")
        return User(id=db_user.user_id, name=db_user.user_name or "")

    async def create_circle(self, owner_id: int, name: str) -> Circle:
        db_circle = await self.store.create_circle(owner_id, name)
        logger.info(f"Created circle {db_circle.circle_of_trust_id} owned by {owner_id}")
        return Circle(
            id=db_circle.circle_of_trust_id,
            owner_id=db_circle.owner_id,
            name=db_circle.circle_of_trust_name or "",
        )

    async def add_member(self, circle_id: int, user_id: int) -> None:
        write_issued = False
        try:
            blob, version = await self.store.load_members(circle_id)
            # Duplicates are kept: a user added twice appears twice
            updated = codec.append_member(blob, user_id)
            write_issued = True
            await self.store.save_members(circle_id, updated, version)
        except MembershipError as e:
            self._record_failure("add_member", e, circle_id, user_id, write_issued)
            raise
        self._invalidate(circle_id, user_id)
        logger.info(f"Added user {user_id} to circle {circle_id}")

    async def remove_member(self, circle_id: int, user_id: int) -> None:
        write_issued = False
        try:
            blob, version = await self.store.load_members(circle_id)
            member_ids = codec.decode(blob)
            remaining = [member_id for member_id in member_ids if member_id != user_id]
            if len(remaining) != len(member_ids):
                encoded = codec.encode(remaining)
                write_issued = True
                if remaining:
                    await self.store.save_members(circle_id, encoded, version)
                else:
                    await self.store.delete_members(circle_id, version)
            else:
                logger.debug(f"User {user_id} was not a member of circle {circle_id}")
        except MembershipError as e:
            self._record_failure("remove_member", e, circle_id, user_id, write_issued)
            raise
        self._invalidate(circle_id, user_id)
        logger.info(f"Removed user {user_id} from circle {circle_id}")

    async def check_membership(self, circle_id: int, user_id: int) -> bool:
        key = membership_key(circle_id, user_id)
        cached, generation = self._cached(key, "membership")
        if cached is not None:
            return len(cached) > 0

        try:
            blob, _ = await self.store.load_members(circle_id)
            count = codec.decode(blob).count(user_id)
        except MembershipError as e:
            self._record_failure("check_membership", e)
            raise

        result = (User(id=user_id),) if count > 0 else ()
        self.cache.set(key, result, generation)
        return count > 0

    async def list_members(self, circle_id: int) -> List[User]:
        key = circle_key(circle_id)
        cached, generation = self._cached(key, "circle")
        if cached is not None:
            return list(cached)

        try:
            blob, _ = await self.store.load_members(circle_id)
            users = []
            # One lookup per id keeps the stored order; any miss aborts the whole list
            for member_id in codec.decode(blob):
                name = await self.store.get_user_name(member_id)
                if name is None:
                    raise MemberNotFoundError(circle_id, member_id)
                users.append(User(id=member_id, name=name))
        except MembershipError as e:
            self._record_failure("list_members", e)
            raise

        # A write that finished while we were reading has bumped the generation
        self.cache.set(key, tuple(users), generation)
        return users

    def _cached(self, key: str, key_kind: str) -> Tuple[Optional[tuple], int]:
        value, found, generation = self.cache.lookup(key)
        CACHE_REQUESTS.labels(key_kind=key_kind, result="hit" if found else "miss").inc()
        if not found:
            logger.debug(f"Cache miss for key {key}")
            return None, generation
        return value, generation

    def _invalidate(self, circle_id: int, user_id: int) -> None:
        self.cache.invalidate(circle_key(circle_id))
        self.cache.invalidate(membership_key(circle_id, user_id))

    def _record_failure(self, operation: str, error: MembershipError,
                        circle_id: Optional[int] = None, user_id: Optional[int] = None,
                        write_issued: bool = False) -> None:
        OPERATION_ERRORS.labels(operation=operation, code=error.code).inc()
        logger.warning(f"{operation} failed ({error.code}): {error.detail}")
        if write_issued:
            # The store may have applied the write before failing; drop what we cached
            self._invalidate(circle_id, user_id)


def get_membership_service() -> MembershipService:
    """FastAPI dependency; tests override it with an isolated store and cache."""
    return _default_service


_default_service = MembershipService(MembershipStore(), membership_cache)
