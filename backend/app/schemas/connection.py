"""数据库连接 Schema定义"""
from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field

from app.schemas.permission import PermissionGrantIn


class ConnectionType(str, Enum):
    """支持的连接类型, dummy 为内置演示数据源"""
    MYSQL = "mysql"
    POSTGRES = "postgres"
    MSSQL = "mssql"
    DUMMY = "dummy"


class ConnectionBase(BaseModel):
    name: str = Field(..., max_length=255, description="连接名称")
    type: ConnectionType = Field(..., description="连接类型")
    config: Dict[str, Any] = Field(default_factory=dict, description="连接参数, dummy 类型为空")


class ConnectionCreate(ConnectionBase):
    """创建连接请求Schema, permissions 整体替换 (创建者自动获得 read/write)"""
    permissions: List[PermissionGrantIn] = Field(default_factory=list)


class ConnectionUpdate(ConnectionCreate):
    pass


class ConnectionResponse(ConnectionBase):
    """连接响应Schema, config 中的密码已脱敏"""
    id: int
    created_by: Optional[str] = None
    can_write: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ColumnSchema(BaseModel):
    name: str
    type: str


class TableSchema(BaseModel):
    name: str
    columns: List[ColumnSchema]


class DatabaseSchema(BaseModel):
    """数据源的表结构"""
    tables: List[TableSchema]


class ConnectionQueryRequest(BaseModel):
    """在连接上执行查询, variables 按 ${name} 绑定"""
    query: str = Field(..., min_length=1)
    variables: Dict[str, Any] = Field(default_factory=dict)


class ConnectionQueryResponse(BaseModel):
    rows: List[Dict[str, Any]]
    row_count: int
