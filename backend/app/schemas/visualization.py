"""可视化输出Schema定义"""
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class VisualizationState(str, Enum):
    """Widget渲染状态, 互斥"""
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"
    UNSUPPORTED = "unsupported"


class VisualizationOutput(BaseModel):
    """单个Widget的渲染结果"""
    widget_id: str
    widget_type: str
    title: str = ""
    state: VisualizationState
    message: Optional[str] = Field(None, description="error/empty/unsupported 时的提示")
    data: Optional[Any] = Field(None, description="ready 时的渲染数据")
    duration_ms: int = 0
