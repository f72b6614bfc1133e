# trustcircle/database/models.py
from sqlalchemy import BigInteger, Column, ForeignKey, Integer, LargeBinary, String
from sqlalchemy.orm import relationship
from trustcircle.database.db import Base

# SQLite only auto-increments INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer, "sqlite")


class User(Base):
    __tablename__ = "circle_of_trust_users"

    user_id = Column(IdType, primary_key=True, autoincrement=True)
    user_name = Column(String(256))


class Circle(Base):
    __tablename__ = "circle_of_trust"

    circle_of_trust_id = Column(IdType, primary_key=True, autoincrement=True)
    owner_id = Column(IdType, nullable=False, index=True)
    circle_of_trust_name = Column(String(256))

    members = relationship("CircleMembers", back_populates="circle", uselist=False)


class CircleMembers(Base):
    __tablename__ = "circle_of_trust_members"

    circle_of_trust_id = Column(
        IdType, ForeignKey("circle_of_trust.circle_of_trust_id"), primary_key=True, autoincrement=False
    )
    members = Column(LargeBinary, nullable=False, default=b"")  # encoded CircleOfTrustMembersProto
    version = Column(Integer, nullable=False, default=1)  # bumped on every write, compared on update

    circle = relationship("Circle", back_populates="members")
