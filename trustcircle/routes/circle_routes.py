# trustcircle/routes/circle_routes.py
from fastapi import APIRouter, Depends

from trustcircle.schemas import (
    CircleCreate,
    CircleMembersResponse,
    CircleRequest,
    MembershipRequest,
    MembershipStatus,
)
from trustcircle.services.membership import MembershipService, get_membership_service

router = APIRouter()


@router.post("/create")
async def create_circle(
    request: CircleCreate,
    service: MembershipService = Depends(get_membership_service),
):
    circle = await service.create_circle(request.owner_id, request.circle_of_trust_name)
    return {"msg": "Circle of trust created", "circle": circle.model_dump()}


@router.post("/add_to_circle")
async def add_user_to_circle(
    request: MembershipRequest,
    service: MembershipService = Depends(get_membership_service),
):
    await service.add_member(request.circle_of_trust_id, request.user_id)
    return {"msg": "User added to circle of trust"}


@router.post("/remove_from_circle")
async def remove_user_from_circle(
    request: MembershipRequest,
    service: MembershipService = Depends(get_membership_service),
):
    await service.remove_member(request.circle_of_trust_id, request.user_id)
    return {"msg": "User removed from circle of trust"}


@router.post("/check_membership", response_model=MembershipStatus)
async def check_user_membership(
    request: MembershipRequest,
    service: MembershipService = Depends(get_membership_service),
):
    is_member = await service.check_membership(request.circle_of_trust_id, request.user_id)
    msg = "User is a member" if is_member else "User is not a member"
    return MembershipStatus(msg=msg, is_member=is_member)


@router.post("/list_users_in_circle", response_model=CircleMembersResponse)
async def list_users_in_circle(
    request: CircleRequest,
    service: MembershipService = Depends(get_membership_service),
):
    users = await service.list_members(request.circle_of_trust_id)
    return CircleMembersResponse(users=users)
