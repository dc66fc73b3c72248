"""图表分发

按 Widget 类型选择渲染函数，把原始数据转换为带状态的可视化输出:
    loading / error(message) / empty / ready(data) / unsupported(type)

分发表覆盖全部 13 种 WidgetType，未知类型走 unsupported 分支，不抛异常。
输入数据由调用方按类型整形 (见 data_shaping), 这里不再整形。
渲染过程中的异常降级为 error 状态。
"""
from typing import Any, Callable, Dict, Mapping, Optional
import logging
import time

from app.core.exceptions import UnsupportedWidgetType
from app.schemas.visualization import VisualizationOutput, VisualizationState
from app.schemas.widget import Widget, WidgetType
from app.services import chart_renderers as renderers
from app.services.widget_config import merge_config

logger = logging.getLogger(__name__)

Renderer = Callable[[Any, Mapping[str, Any]], Dict[str, Any]]

RENDERERS: Dict[WidgetType, Renderer] = {
    WidgetType.PIE: renderers.render_pie,
    WidgetType.BAR: renderers.render_bar,
    WidgetType.LINE: renderers.render_line,
    WidgetType.TABLE: renderers.render_table,
    WidgetType.KPI: renderers.render_kpi,
    WidgetType.MIND_MAP: renderers.render_mind_map,
    WidgetType.FLOW_CHART: renderers.render_flow_chart,
    WidgetType.SCATTER: renderers.render_scatter,
    WidgetType.GAUGE: renderers.render_gauge,
    WidgetType.GROUPED_BAR: renderers.render_grouped_bar,
    WidgetType.STACKED_BAR: renderers.render_stacked_bar,
    WidgetType.DUAL_AXIS: renderers.render_dual_axis,
    WidgetType.TEXT: renderers.render_text,
}

if set(RENDERERS) != set(WidgetType):
    raise RuntimeError("每种WidgetType都必须有渲染函数")

# 不依赖数据源的类型
STATIC_TYPES = {WidgetType.TEXT}


def _output(widget: Widget, state: VisualizationState, **kwargs: Any) -> VisualizationOutput:
    return VisualizationOutput(
        widget_id=widget.id,
        widget_type=widget.type,
        title=widget.title,
        state=state,
        **kwargs,
    )


def loading(widget: Widget) -> VisualizationOutput:
    return _output(widget, VisualizationState.LOADING)


def error(widget: Widget, message: str, *, duration_ms: int = 0) -> VisualizationOutput:
    return _output(widget, VisualizationState.ERROR, message=message, duration_ms=duration_ms)


def empty(widget: Widget, *, duration_ms: int = 0) -> VisualizationOutput:
    return _output(widget, VisualizationState.EMPTY, message="No data available", duration_ms=duration_ms)


def unsupported(widget: Widget, exc: UnsupportedWidgetType) -> VisualizationOutput:
    return _output(widget, VisualizationState.UNSUPPORTED, message=exc.message)


def renderer_for(widget: Widget) -> Renderer:
    """按类型查找渲染函数

    Raises:
        UnsupportedWidgetType: 类型不在 WidgetType 中
    """
    if widget.widget_type is None:
        raise UnsupportedWidgetType(widget.type)
    return RENDERERS[widget.widget_type]


def needs_data(widget: Widget) -> bool:
    """Widget 渲染前是否需要查询数据源"""
    return widget.widget_type is not None and widget.widget_type not in STATIC_TYPES


def _is_empty(raw_data: Any) -> bool:
    if raw_data is None:
        return True
    if isinstance(raw_data, Mapping):
        return not raw_data
    return isinstance(raw_data, (list, tuple)) and len(raw_data) == 0


def render(widget: Widget, raw_data: Optional[Any]) -> VisualizationOutput:
    """渲染单个Widget

    Args:
        widget: Widget定义（不会被修改）
        raw_data: 已按类型整形的记录列表；mindMap/flowChart 为 {nodes, links}

    Returns:
        VisualizationOutput, 状态为 ready / empty / error / unsupported 之一
    """
    started = time.perf_counter()
    try:
        renderer = renderer_for(widget)
    except UnsupportedWidgetType as e:
        logger.warning(f"不支持的Widget类型: widget={widget.id}, type={widget.type!r}")
        return unsupported(widget, e)
    widget_type = widget.widget_type

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    if widget_type not in STATIC_TYPES and _is_empty(raw_data):
        return empty(widget, duration_ms=elapsed_ms())

    try:
        config = merge_config(widget_type, widget.config)
        rendered = renderer(raw_data, config)
    except Exception as e:
        logger.exception(f"Widget渲染失败: widget={widget.id}, type={widget.type}")
        return error(widget, str(e) or e.__class__.__name__, duration_ms=elapsed_ms())

    return _output(widget, VisualizationState.READY, data=rendered, duration_ms=elapsed_ms())
