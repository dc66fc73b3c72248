"""权限相关Schema定义"""
from enum import Enum
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class EntityType(str, Enum):
    """授权对象类型"""
    USER = "user"
    GROUP = "group"


class Permission(str, Enum):
    """权限值: Dashboard 使用 view/edit，数据库连接使用 read/write"""
    VIEW = "view"
    EDIT = "edit"
    READ = "read"
    WRITE = "write"


class ResourceKind(str, Enum):
    """受权限控制的资源类型"""
    DASHBOARD = "dashboard"
    DATABASE = "database"


# 每种资源允许的权限值
RESOURCE_PERMISSIONS = {
    ResourceKind.DASHBOARD: (Permission.VIEW, Permission.EDIT),
    ResourceKind.DATABASE: (Permission.READ, Permission.WRITE),
}


class PermissionGrantIn(BaseModel):
    """授权请求Schema (整体替换时提交的单条授权)"""
    entity_type: EntityType = Field(..., description="授权对象类型: user/group")
    entity_id: str = Field(..., min_length=1, description="用户ID或分组ID")
    permission: Permission = Field(..., description="权限: view/edit 或 read/write")


class PermissionGrantResponse(BaseModel):
    """授权响应Schema"""
    id: int
    resource_id: int
    entity_type: EntityType
    entity_id: str
    permission: Permission
    created_at: Optional[datetime] = None


class PermissionListResponse(BaseModel):
    """权限列表响应Schema"""
    permissions: List[PermissionGrantResponse]
