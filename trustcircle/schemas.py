# trustcircle/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Any, List

# Ids come from the store's positive sequence
PositiveId = Annotated[int, Field(gt=0, le=2 ** 63 - 1)]


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str = ""


class Circle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: int
    name: str


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)


class CircleCreate(BaseModel):
    owner_id: PositiveId
    circle_of_trust_name: str = Field(..., min_length=1, max_length=256)


class MembershipRequest(BaseModel):
    circle_of_trust_id: PositiveId
    user_id: PositiveId


class CircleRequest(BaseModel):
    circle_of_trust_id: PositiveId


class MembershipStatus(BaseModel):
    msg: str
    is_member: bool


class CircleMembersResponse(BaseModel):
    users: List[User]


class ErrorResponse(BaseModel):
    detail: str
    code: str | None = None
    meta: Any | None = None
