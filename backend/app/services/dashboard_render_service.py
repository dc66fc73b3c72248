"""
Dashboard渲染服务
并发加载 Widget 数据：绑定查询 -> 执行 -> 整形 -> 图表分发
并发数与单个 Widget 的超时时间由配置控制；渲染会话关闭后取消未完成的加载，迟到的结果被丢弃
"""
import asyncio
import time
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional
from datetime import datetime, timezone

from app.core.config import settings
from app.core.exceptions import DashboardBuilderError
from app.db.entity_store import EntityStore
from app.schemas.dashboard import DashboardLayout, DashboardRenderResponse, Variable
from app.schemas.visualization import VisualizationOutput
from app.schemas.widget import Widget
from app.services import chart_dispatch
from app.services.data_shaping import shape_rows
from app.services.query_binder import bind_query
from app.services.query_executor import query_executor

logger = logging.getLogger(__name__)


class RenderSession:
    """一次 Dashboard 渲染

    每个 Widget 的加载是一个独立的 asyncio 任务，完成顺序不确定。
    close() 之后不再接受任何结果。
    """

    def __init__(
        self,
        store: EntityStore,
        *,
        dashboard_id: int,
        widgets: Iterable[Widget],
        variables: Iterable[Variable] = (),
        variable_values: Optional[Mapping[str, Any]] = None,
        max_concurrency: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.store = store
        self.dashboard_id = dashboard_id
        self.widgets: List[Widget] = list(widgets)
        self.variables: List[Variable] = list(variables)
        self.variable_values: Dict[str, Any] = dict(variable_values or {})
        self.timeout_seconds = timeout_seconds or settings.WIDGET_LOAD_TIMEOUT_SECONDS
        self._semaphore = asyncio.Semaphore(max_concurrency or settings.MAX_CONCURRENT_WIDGET_LOADS)
        self._results: Dict[str, VisualizationOutput] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> Dict[str, VisualizationOutput]:
        """当前状态: 已完成的 Widget 为其结果, 其余为 loading"""
        return {
            widget.id: self._results.get(widget.id) or chart_dispatch.loading(widget)
            for widget in self.widgets
        }

    def _accept(self, output: VisualizationOutput) -> None:
        if self._closed:
            logger.debug(f"渲染会话已关闭, 丢弃 Widget {output.widget_id} 的结果")
            return
        self._results[output.widget_id] = output

    async def _load(self, widget: Widget) -> VisualizationOutput:
        if not chart_dispatch.needs_data(widget):
            return chart_dispatch.render(widget, None)

        start_time = time.time()
        try:
            query = bind_query(widget.data_source.query, self.variables, self.variable_values)
            async with self._semaphore:
                rows = await query_executor.execute(self.store, data_source=widget.data_source, query=query)
        except DashboardBuilderError as e:
            logger.warning(f"加载Widget {widget.id} 数据失败: {e.message}")
            return chart_dispatch.error(widget, e.message, duration_ms=int((time.time() - start_time) * 1000))

        if isinstance(rows, (list, tuple)):
            rows = shape_rows(widget.widget_type, rows)
        output = chart_dispatch.render(widget, rows)
        output.duration_ms = int((time.time() - start_time) * 1000)
        return output

    async def _load_with_timeout(self, widget: Widget) -> None:
        try:
            output = await asyncio.wait_for(self._load(widget), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            output = chart_dispatch.error(
                widget,
                f"Loading timed out (>{self.timeout_seconds:g}s)",
                duration_ms=int(self.timeout_seconds * 1000),
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"加载Widget {widget.id} 时发生未预期的错误")
            output = chart_dispatch.error(widget, str(e) or e.__class__.__name__)
        self._accept(output)

    async def run(self) -> Dict[str, VisualizationOutput]:
        """加载全部 Widget, 返回 widget_id -> 可视化结果

        会话在加载过程中被关闭时, 返回关闭时刻的快照
        """
        if self._closed:
            return self.snapshot()

        for widget in self.widgets:
            self._tasks[widget.id] = asyncio.ensure_future(self._load_with_timeout(widget))

        try:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)
        finally:
            self._tasks.clear()
        return self.snapshot()

    def close(self) -> None:
        """关闭会话: 取消未完成的加载"""
        if self._closed:
            return
        self._closed = True
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.info(f"Dashboard {self.dashboard_id} 渲染会话已关闭, 取消 {len(pending)} 个加载任务")


class DashboardRenderService:
    """Dashboard渲染服务"""

    def open_session(
        self,
        store: EntityStore,
        *,
        dashboard_id: int,
        layout: DashboardLayout,
        variable_values: Optional[Mapping[str, Any]] = None,
        widget_ids: Optional[List[str]] = None,
    ) -> RenderSession:
        widgets = layout.widgets
        if widget_ids:
            wanted = set(widget_ids)
            widgets = [w for w in widgets if w.id in wanted]
        return RenderSession(
            store,
            dashboard_id=dashboard_id,
            widgets=widgets,
            variables=layout.variables,
            variable_values=variable_values,
        )

    async def render(
        self,
        store: EntityStore,
        *,
        dashboard_id: int,
        layout: DashboardLayout,
        variable_values: Optional[Mapping[str, Any]] = None,
        widget_ids: Optional[List[str]] = None,
    ) -> DashboardRenderResponse:
        """
        渲染Dashboard的全部(或指定)Widget

        调用前必须已经完成权限检查

        Args:
            store: Entity Store
            dashboard_id: Dashboard ID
            layout: 已解析校验的布局
            variable_values: 变量当前值
            widget_ids: 只渲染指定的Widget

        Returns:
            DashboardRenderResponse
        """
        start_time = time.time()
        session = self.open_session(
            store,
            dashboard_id=dashboard_id,
            layout=layout,
            variable_values=variable_values,
            widget_ids=widget_ids,
        )
        logger.info(f"开始渲染 Dashboard {dashboard_id}, Widget数量={len(session.widgets)}")
        try:
            results = await session.run()
        finally:
            session.close()

        total_duration_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Dashboard {dashboard_id} 渲染完成, 耗时={total_duration_ms}ms")
        return DashboardRenderResponse(
            dashboard_id=dashboard_id,
            widgets=results,
            total_duration_ms=total_duration_ms,
            rendered_at=datetime.now(timezone.utc),
        )


# 创建全局实例
dashboard_render_service = DashboardRenderService()
