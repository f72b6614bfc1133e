# trustcircle/routes/user_routes.py
from fastapi import APIRouter, Depends

from trustcircle.schemas import UserCreate
from trustcircle.services.membership import MembershipService, get_membership_service

router = APIRouter()


@router.post("/create")
async def create_user(
    user_data: UserCreate,
    service: MembershipService = Depends(get_membership_service),
):
    user = await service.create_user(user_data.name)
    return {"msg": "User created", "user": user.model_dump()}
