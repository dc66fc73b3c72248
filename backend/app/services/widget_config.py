"""Widget配置模型

每种 WidgetType 都有一份规范默认配置（由对应的强类型配置模型导出），
渲染时使用 effective = {**defaults, **stored}，不修改存储的配置。
未知类型返回 None，由图表分发层转换为 unsupported 状态。
"""
from typing import Any, Dict, Mapping, Optional, Union

from app.schemas.widget import (
    WIDGET_CONFIG_MODELS,
    Widget,
    WidgetConfig,
    WidgetType,
    parse_widget_type,
)

TYPE_DEFAULTS: Dict[WidgetType, Dict[str, Any]] = {
    widget_type: model().model_dump(by_alias=True)
    for widget_type, model in WIDGET_CONFIG_MODELS.items()
}


def get_type_defaults(widget_type: Union[WidgetType, str]) -> Optional[Dict[str, Any]]:
    """获取类型的默认配置副本, 未知类型返回 None"""
    parsed = parse_widget_type(widget_type)
    if parsed is None:
        return None
    # 深拷贝列表值, 避免调用方修改共享的默认值
    return {
        key: list(value) if isinstance(value, list) else value
        for key, value in TYPE_DEFAULTS[parsed].items()
    }


def merge_config(
    widget_type: Union[WidgetType, str],
    stored: Optional[Mapping[str, Any]],
) -> Optional[Dict[str, Any]]:
    """计算生效配置: 类型默认值被存储的配置覆盖

    纯函数, 幂等: merge(merge(d, s), s) == merge(d, s)

    Returns:
        生效配置; 类型不受支持时返回 None
    """
    defaults = get_type_defaults(widget_type)
    if defaults is None:
        return None
    return {**defaults, **dict(stored or {})}


def effective_config(widget: Widget) -> Optional[Dict[str, Any]]:
    """Widget 的生效配置"""
    return merge_config(widget.type, widget.config)


def decode_config(
    widget_type: Union[WidgetType, str],
    stored: Optional[Mapping[str, Any]],
) -> Optional[WidgetConfig]:
    """在存储边界把松散的配置解码为该类型的强类型配置模型

    缺失的字段取默认值; 未知类型返回 None

    Raises:
        pydantic.ValidationError: 已有字段的取值类型不合法
    """
    parsed = parse_widget_type(widget_type)
    if parsed is None:
        return None
    return WIDGET_CONFIG_MODELS[parsed].model_validate(dict(stored or {}))
