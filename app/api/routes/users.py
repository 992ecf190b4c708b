# app/api/routes/users.py
from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_user_service
from app.schemas.user import UserCreate, UserOut
from app.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])

@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user_ep(payload: UserCreate, service: UserService = Depends(get_user_service)):
    return await service.create_user(payload)

# static route above the param route
@router.get("/by-email", response_model=UserOut)
async def get_by_email_ep(email: str = Query(..., min_length=1), service: UserService = Depends(get_user_service)):
    return await service.get_user_by_email(email)

@router.get("/{user_id}", response_model=UserOut)
async def get_user_ep(user_id: int, service: UserService = Depends(get_user_service)):
    return await service.get_user(user_id)
