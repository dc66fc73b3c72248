"""业务异常定义

核心层只抛出以下类型化异常，由 API 层统一映射为 HTTP 响应：

- AccessDenied        权限校验未通过 -> 403
- AccessCheckError    存储层故障导致无法判断权限 -> 503
- ResourceNotFound    Dashboard / 连接 / 分组等不存在 -> 404
- ValidationError     名称为空、变量名重复或非法、布局解析失败等 -> 422
- UnsupportedWidgetType 未知Widget类型, 分发层降级为 unsupported 状态
- UnsupportedDataSource 非演示数据源 -> 422
- EntityStoreError    持久层调用失败 -> 503

数据整形与图表分发的错误不在此列，它们降级为 error/empty 可视化状态。
"""
from typing import Any, Dict, Optional


class DashboardBuilderError(Exception):
    """所有业务异常的基类"""

    status_code: int = 400

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AccessDenied(DashboardBuilderError):
    status_code = 403

    def __init__(self, *, user_id: str, resource_id: Any, permission: str):
        super().__init__(
            f"User {user_id} lacks '{permission}' permission on resource {resource_id}",
            details={"resource_id": resource_id, "permission": permission},
        )
        self.user_id = user_id
        self.resource_id = resource_id
        self.permission = permission


class AccessCheckError(DashboardBuilderError):
    """无法确定访问权限（与“拒绝”区分开）"""

    status_code = 503


class ResourceNotFound(DashboardBuilderError):
    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        super().__init__(f"{resource} {resource_id} not found", details={"resource": resource})
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(DashboardBuilderError):
    status_code = 422


class UnsupportedWidgetType(DashboardBuilderError):
    status_code = 422

    def __init__(self, widget_type: Any):
        super().__init__(f"Unsupported widget type: {widget_type}", details={"type": widget_type})
        self.widget_type = widget_type


class UnsupportedDataSource(DashboardBuilderError):
    status_code = 422


class EntityStoreError(DashboardBuilderError):
    status_code = 503
