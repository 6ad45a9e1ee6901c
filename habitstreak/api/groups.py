"""
Groups API: membership, habit links, and the derived group streak.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from habitstreak.api.deps import acting_user
from habitstreak.features.groups.service import group_service
from habitstreak.models.group import Group

router = APIRouter(prefix="/v1/groups", tags=["groups"])


class GroupCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    members: List[str] = Field(default_factory=list)
    tracking_type: Literal["shared", "individual"] = "shared"
    duration: int = Field(default=0, ge=0)
    avatar: Optional[str] = None
    description: Optional[str] = None


class MemberRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class HabitLinkRequest(BaseModel):
    habit_id: str = Field(..., min_length=1)


def serialize_group(group: Group) -> dict:
    return {
        "id": group.id,
        "name": group.name,
        "creator_id": group.creator_id,
        "members": list(group.members),
        "tracking_type": group.tracking_type,
        "duration": group.duration,
        "avatar": group.avatar,
        "description": group.description,
        "is_active": group.is_active,
        "group_streak": group.group_streak,
        "last_group_completed_day": group.last_group_completed_day,
        "member_habits": [{"user_id": link.user_id, "habit_id": link.habit_id} for link in group.member_habits],
    }


@router.post("", status_code=201)
def create_group(request: GroupCreateRequest, user_id: str = Depends(acting_user)):
    group = group_service.create_group(
        user_id,
        request.name,
        members=request.members,
        tracking_type=request.tracking_type,
        duration=request.duration,
        avatar=request.avatar,
        description=request.description,
    )
    return {"data": serialize_group(group)}


@router.get("")
def list_groups(include_inactive: bool = Query(False), user_id: str = Depends(acting_user)):
    groups = group_service.list_groups(user_id, active_only=not include_inactive)
    return {"data": [serialize_group(g) for g in groups], "count": len(groups)}


@router.get("/{group_id}")
def get_group(group_id: str, user_id: str = Depends(acting_user)):
    return {"data": serialize_group(group_service.get_group(group_id))}


@router.post("/{group_id}/members")
def add_member(group_id: str, request: MemberRequest, user_id: str = Depends(acting_user)):
    group = group_service.add_member(group_id, request.user_id, acting_user_id=user_id)
    return {"data": serialize_group(group)}


@router.delete("/{group_id}/members/{member_id}")
def remove_member(group_id: str, member_id: str, user_id: str = Depends(acting_user)):
    group = group_service.remove_member(group_id, member_id, acting_user_id=user_id)
    return {"data": serialize_group(group)}


@router.post("/{group_id}/habits")
def link_habit(group_id: str, request: HabitLinkRequest, user_id: str = Depends(acting_user)):
    group = group_service.link_habit(group_id, request.habit_id, acting_user_id=user_id)
    return {"data": serialize_group(group)}


@router.post("/{group_id}/deactivate")
def deactivate_group(group_id: str, user_id: str = Depends(acting_user)):
    group = group_service.deactivate_group(group_id, acting_user_id=user_id)
    return {"data": serialize_group(group)}
