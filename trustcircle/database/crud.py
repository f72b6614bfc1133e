# trustcircle/database/crud.py
from typing import Optional, Tuple

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trustcircle.database.models import Circle, CircleMembers, User


def create_user(db: Session, name: str) -> User:
    """Inserts a user; the id comes from the store."""
    db_user = User(user_name=name)
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def create_circle(db: Session, owner_id: int, name: str) -> Circle:
    circle = Circle(owner_id=owner_id, circle_of_trust_name=name)
    db.add(circle)
    db.commit()
    db.refresh(circle)
    return circle


def get_user_name(db: Session, user_id: int) -> Optional[str]:
    """Returns the user's display name, or None when no row exists."""
    row = db.execute(select(User.user_name).where(User.user_id == user_id)).first()
    if row is None:
        return None
    return row.user_name if row.user_name is not None else ""


def get_membership_record(db: Session, circle_id: int) -> Optional[Tuple[bytes, int]]:
    """Returns (members blob, version) for a circle, or None if it has no record yet."""
    row = db.execute(
        select(CircleMembers.members, CircleMembers.version).where(
            CircleMembers.circle_of_trust_id == circle_id
        )
    ).first()
    if row is None:
        return None
    return bytes(row.members or b""), row.version


def insert_membership(db: Session, circle_id: int, members: bytes) -> Optional[int]:
    """Creates the circle's record. Returns None if another writer created it first.

    Any other constraint failure (an unknown circle) propagates as IntegrityError.
    """
    try:
        db.execute(
            insert(CircleMembers).values(circle_of_trust_id=circle_id, members=members, version=1)
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        if get_membership_record(db, circle_id) is not None:
            return None
        raise
    return 1


def update_membership(db: Session, circle_id: int, members: bytes, expected_version: int) -> Optional[int]:
    """Compare-and-swap on version. Returns the new version, or None if the record moved on."""
    result = db.execute(
        update(CircleMembers)
        .where(
            CircleMembers.circle_of_trust_id == circle_id,
            CircleMembers.version == expected_version,
        )
        .values(members=members, version=expected_version + 1)
    )
    if result.rowcount != 1:
        db.rollback()
        return None
    db.commit()
    return expected_version + 1


def delete_membership(db: Session, circle_id: int, expected_version: int) -> bool:
    """Removes the record only if nobody wrote it since expected_version was read."""
    result = db.execute(
        delete(CircleMembers).where(
            CircleMembers.circle_of_trust_id == circle_id,
            CircleMembers.version == expected_version,
        )
    )
    if result.rowcount != 1:
        db.rollback()
        return False
    db.commit()
    return True
