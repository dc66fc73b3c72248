"""用户分组 Schema定义"""
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class UserGroupBase(BaseModel):
    name: str = Field(..., max_length=255, description="分组名称")
    description: Optional[str] = Field(None, description="分组描述")


class UserGroupCreate(UserGroupBase):
    pass


class UserGroupUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class UserGroupResponse(UserGroupBase):
    id: int
    member_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupMemberCreate(BaseModel):
    user_id: str = Field(..., min_length=1)


class GroupMembership(BaseModel):
    """分组成员关系 {user_id, group_id}"""
    id: int
    user_id: str
    group_id: int

    class Config:
        from_attributes = True


class GroupMemberListResponse(BaseModel):
    members: List[GroupMembership]
