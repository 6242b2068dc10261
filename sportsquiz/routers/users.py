from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from ..models import User
from ..schemas import UserCreate, UserResponse

router = APIRouter(prefix="/api", tags=["users"])


def _to_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        username=user.username,
        total_points=user.total_points,
        created_at=user.created_at,
    )


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(req: UserCreate):
    if await User.filter(username=req.username).first():
        raise HTTPException(status_code=400, detail="Username already exists")
    user = await User.create(username=req.username)
    return _to_response(user)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: str):
    try:
        uid = uuid.UUID(user_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="User not found")
    user = await User.filter(id=uid).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return _to_response(user)


@router.get("/leaderboard", response_model=List[UserResponse])
async def get_leaderboard(limit: int = Query(default=10, ge=1, le=100)):
    users = await User.all().order_by("-total_points", "created_at").limit(limit)
    return [_to_response(u) for u in users]
