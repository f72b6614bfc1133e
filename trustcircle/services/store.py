# trustcircle/services/store.py
"""Async facade over the SQLAlchemy store.

Every call opens its own session, runs in a worker thread and is bounded by
``store_timeout_seconds``. The worker cannot be interrupted once the caller
stops waiting, so each session refuses to commit past the same deadline: a
call reported as timed out never lands later. Nothing here touches the
membership cache.
"""
import asyncio
import logging
import time
from typing import Callable, Optional, Tuple, TypeVar

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from trustcircle.core.errors import (
    MembershipConflictError,
    MembershipError,
    NotFoundError,
    StoreUnavailableError,
)
from trustcircle.core.settings import settings
from trustcircle.database import crud
from trustcircle.database.db import SessionLocal
from trustcircle.database.models import Circle, User

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreDeadlineExceeded(Exception):
    """Raised inside the worker when a commit is attempted after the call's deadline."""


class MembershipStore:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal,
                 timeout_seconds: Optional[float] = None):
        self.session_factory = session_factory
        self.timeout_seconds = settings.store_timeout_seconds if timeout_seconds is None else timeout_seconds

    def _in_session(self, deadline: float, fn: Callable[..., T], *args) -> T:
        db = self.session_factory()

        def refuse_late_commit(session):
            if time.monotonic() > deadline:
                raise StoreDeadlineExceeded("commit attempted after the store deadline")

        event.listen(db, "before_commit", refuse_late_commit)
        try:
            return fn(db, *args)
        finally:
            # close() rolls back whatever was not committed
            db.close()

    async def _call(self, operation: str, fn: Callable[..., T], *args,
                    on_integrity_error: Optional[Callable[[], MembershipError]] = None) -> T:
        deadline = time.monotonic() + self.timeout_seconds
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._in_session, deadline, fn, *args),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, StoreDeadlineExceeded) as e:
            logger.error(f"Store call {operation} timed out after {self.timeout_seconds}s")
            raise StoreUnavailableError(f"Store timed out during {operation}") from e
        except IntegrityError as e:
            logger.warning(f"Store call {operation} hit a constraint: {e.orig}")
            if on_integrity_error is not None:
                raise on_integrity_error() from e
            raise MembershipConflictError(f"Store rejected {operation}") from e
        except SQLAlchemyError as e:
            logger.error(f"Store call {operation} failed: {e}")
            raise StoreUnavailableError(f"Store failure during {operation}") from e

    async def create_user(self, name: str) -> User:
        return await self._call("create_user", crud.create_user, name)

    async def create_circle(self, owner_id: int, name: str) -> Circle:
        return await self._call("create_circle", crud.create_circle, owner_id, name)

    async def get_user_name(self, user_id: int) -> Optional[str]:
        return await self._call("get_user_name", crud.get_user_name, user_id)

    async def load_members(self, circle_id: int) -> Tuple[bytes, Optional[int]]:
        """Returns (blob, version); a circle with no record gives (b"", None)."""
        record = await self._call("load_members", crud.get_membership_record, circle_id)
        if record is None:
            return b"", None
        return record

    async def save_members(self, circle_id: int, blob: bytes, expected_version: Optional[int]) -> int:
        """Upsert guarded by version: insert when there was no record, else compare-and-swap."""
        if expected_version is None:
            # crud reports a lost insert race as None, so what still fails is the circle key
            version = await self._call(
                "insert_members", crud.insert_membership, circle_id, blob,
                on_integrity_error=lambda: NotFoundError(
                    f"Circle {circle_id} does not exist",
                    meta={"circle_of_trust_id": circle_id},
                ),
            )
            if version is None:
                raise MembershipConflictError(
                    f"Members of circle {circle_id} were created concurrently",
                    meta={"circle_of_trust_id": circle_id},
                )
            return version
        new_version = await self._call(
            "update_members", crud.update_membership, circle_id, blob, expected_version
        )
        if new_version is None:
            raise MembershipConflictError(
                f"Members of circle {circle_id} changed concurrently",
                meta={"circle_of_trust_id": circle_id, "expected_version": expected_version},
            )
        return new_version

    async def delete_members(self, circle_id: int, expected_version: int) -> None:
        deleted = await self._call("delete_members", crud.delete_membership, circle_id, expected_version)
        if not deleted:
            raise MembershipConflictError(
                f"Members of circle {circle_id} changed concurrently",
                meta={"circle_of_trust_id": circle_id, "expected_version": expected_version},
            )
