"""Dashboard Schema定义"""
import re
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from app.schemas.permission import PermissionGrantIn
from app.schemas.visualization import VisualizationOutput
from app.schemas.widget import LayoutModel, Widget

VARIABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Variable(LayoutModel):
    """Dashboard变量, 在查询中以 ${name} 引用"""
    name: str = Field(..., description="变量名, 在同一个Dashboard内唯一")
    default_value: str = Field("", description="默认值")
    description: Optional[str] = Field(None, description="变量说明")

    @field_validator("default_value", mode="before")
    @classmethod
    def coerce_default_value(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, (int, float)):
            return str(v)
        return v


class DashboardLayout(LayoutModel):
    """Dashboard布局: Widget与变量的唯一数据来源"""
    widgets: List[Widget] = Field(default_factory=list)
    variables: List[Variable] = Field(default_factory=list)


# Dashboard基础Schema
class DashboardBase(BaseModel):
    """Dashboard基础Schema"""
    name: str = Field(..., max_length=255, description="Dashboard名称")
    description: Optional[str] = Field(None, max_length=2000, description="Dashboard描述")


# 创建Dashboard的请求Schema
class DashboardCreate(DashboardBase):
    """创建Dashboard的请求Schema

    permissions 为完整授权列表, 保存时整体替换 (创建者自动获得 edit)
    """
    layout: DashboardLayout = Field(default_factory=DashboardLayout, description="布局")
    permissions: List[PermissionGrantIn] = Field(default_factory=list, description="授权列表")


# 更新Dashboard的请求Schema
class DashboardUpdate(DashboardCreate):
    """更新Dashboard的请求Schema (整体保存)"""
    pass


# Dashboard的响应Schema (简略版,用于列表)
class DashboardListItem(DashboardBase):
    """Dashboard列表项Schema"""
    id: int
    created_by: str
    widget_count: int = Field(0, description="Widget数量")
    can_edit: bool = Field(False, description="当前用户是否可编辑")
    is_favorite: bool = Field(False, description="是否已收藏")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Dashboard的详情响应Schema
class DashboardDetail(DashboardBase):
    """Dashboard详情Schema"""
    id: int
    created_by: str
    layout: DashboardLayout
    can_edit: bool = Field(False, description="当前用户是否可编辑")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Dashboard渲染请求
class DashboardRenderRequest(BaseModel):
    """Dashboard渲染请求Schema"""
    variables: Dict[str, Any] = Field(default_factory=dict, description="变量当前值, 缺省使用默认值")
    widget_ids: Optional[List[str]] = Field(None, description="只渲染指定的Widget, 为空则渲染全部")


class DashboardRenderResponse(BaseModel):
    """Dashboard渲染结果"""
    dashboard_id: int
    widgets: Dict[str, VisualizationOutput] = Field(default_factory=dict, description="widget_id -> 可视化结果")
    total_duration_ms: int = Field(0, description="总耗时(毫秒)")
    rendered_at: datetime


# 模板
class DashboardTemplateResponse(BaseModel):
    """Dashboard模板Schema"""
    id: int
    name: str
    description: Optional[str] = None
    layout: DashboardLayout
    created_by: str


class TemplateInstantiateRequest(BaseModel):
    """基于模板创建Dashboard, 名称缺省为 "<模板名> Copy" """
    name: Optional[str] = Field(None, max_length=255)


# 收藏
class FavoriteStatus(BaseModel):
    dashboard_id: int
    is_favorite: bool


class FavoriteListResponse(BaseModel):
    dashboard_ids: List[int] = Field(default_factory=list)
