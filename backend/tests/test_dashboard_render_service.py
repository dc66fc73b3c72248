"""
Dashboard渲染服务测试
"""
import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from app.schemas.dashboard import DashboardLayout, Variable
from app.schemas.visualization import VisualizationState
from app.schemas.widget import Widget
from app.services import chart_dispatch
from app.services.dashboard_render_service import RenderSession, dashboard_render_service
from app.services.query_executor import query_executor


def widget(widget_id, widget_type="pie", query="SELECT * FROM dummyData", **kwargs):
    return Widget(
        id=widget_id,
        type=widget_type,
        data_source={"databaseId": "dummy", "query": query},
        **kwargs,
    )


class TestRenderService:
    """测试整页渲染"""

    @pytest.mark.asyncio
    async def test_widgets_render_independently(self, store, demo_data):
        layout = DashboardLayout(widgets=[
            widget("pie"),
            widget("trend", "line"),
            widget("kpi", "kpi", query="SELECT * FROM dummyData LIMIT 1"),
            widget("broken", query="SELECT * FROM t WHERE city = '${city}'"),
            widget("radar", "radar"),
        ])

        response = await dashboard_render_service.render(store, dashboard_id=1, layout=layout)

        states = {widget_id: output.state for widget_id, output in response.widgets.items()}
        assert states == {
            "pie": VisualizationState.READY,
            "trend": VisualizationState.READY,
            "kpi": VisualizationState.READY,
            "broken": VisualizationState.ERROR,
            "radar": VisualizationState.UNSUPPORTED,
        }
        assert response.widgets["broken"].message == "Query references undefined variable: city"

    @pytest.mark.asyncio
    async def test_variables_are_bound(self, store, demo_data):
        layout = DashboardLayout(
            widgets=[widget("w1", query="SELECT * FROM dummyData WHERE region = '${region}'")],
            variables=[Variable(name="region", default_value="North")],
        )
        execute = AsyncMock(return_value=[{"category": "A", "value": 1, "date": "2024-01-01"}])
        with patch.object(query_executor, "execute", new=execute):
            response = await dashboard_render_service.render(
                store, dashboard_id=1, layout=layout, variable_values={"region": "South"}
            )

        assert response.widgets["w1"].state == VisualizationState.READY
        bound = execute.await_args.kwargs["query"]
        assert bound.sql == "SELECT * FROM dummyData WHERE region = :region"
        assert bound.params == {"region": "South"}

    @pytest.mark.asyncio
    async def test_raw_rows_are_shaped_before_rendering(self, store):
        """数据源返回原始记录, 渲染函数收到按类型整形后的数据"""
        layout = DashboardLayout(widgets=[widget("pie"), widget("bar", "bar", config={"dataKeys": ["A", "B"]})])
        execute = AsyncMock(return_value=[
            {"category": "A", "value": 10, "date": "2024-01-01", "region": "North"},
            {"category": "A", "value": 5, "date": "2024-01-02", "region": "South"},
            {"category": "B", "value": 3, "date": "2024-01-01", "region": "East"},
        ])
        with patch.object(query_executor, "execute", new=execute):
            response = await dashboard_render_service.render(store, dashboard_id=1, layout=layout)

        slices = response.widgets["pie"].data["slices"]
        assert [(s["name"], s["value"]) for s in slices] == [("A", 15), ("B", 3)]
        assert response.widgets["bar"].data["rows"] == [
            {"date": "2024-01-01", "A": 10, "B": 3},
            {"date": "2024-01-02", "A": 5},
        ]

    @pytest.mark.asyncio
    async def test_widget_ids_filter(self, store, demo_data):
        layout = DashboardLayout(widgets=[widget("a"), widget("b")])
        response = await dashboard_render_service.render(store, dashboard_id=1, layout=layout, widget_ids=["b"])
        assert list(response.widgets) == ["b"]

    @pytest.mark.asyncio
    async def test_empty_data_source(self, store):
        layout = DashboardLayout(widgets=[widget("pie")])
        response = await dashboard_render_service.render(store, dashboard_id=1, layout=layout)
        assert response.widgets["pie"].state == VisualizationState.EMPTY

    @pytest.mark.asyncio
    async def test_missing_connection_is_a_widget_error(self, store):
        layout = DashboardLayout(widgets=[
            Widget(id="w1", type="bar", data_source={"databaseId": "999", "query": "SELECT 1"}),
        ])
        response = await dashboard_render_service.render(store, dashboard_id=1, layout=layout)
        assert response.widgets["w1"].state == VisualizationState.ERROR


class TestRenderSession:
    """测试渲染会话的并发、超时与关闭"""

    @pytest.mark.asyncio
    async def test_timeout_becomes_error_state(self, store):
        async def slow(*args, **kwargs):
            await asyncio.sleep(5)
            return []

        with patch.object(query_executor, "execute", new=AsyncMock(side_effect=slow)):
            session = RenderSession(store, dashboard_id=1, widgets=[widget("w1")], timeout_seconds=0.05)
            results = await session.run()

        assert results["w1"].state == VisualizationState.ERROR
        assert "timed out" in results["w1"].message

    @pytest.mark.asyncio
    async def test_completion_order_does_not_matter(self, store):
        delays = {"SELECT slow": 0.05, "SELECT fast": 0}

        async def execute(store, *, data_source, query):
            await asyncio.sleep(delays[query.sql])
            return [{"category": data_source.query, "value": 1, "date": "2024-01-01"}]

        widgets = [widget("slow", query="SELECT slow"), widget("fast", query="SELECT fast")]
        with patch.object(query_executor, "execute", new=AsyncMock(side_effect=execute)):
            results = await RenderSession(store, dashboard_id=1, widgets=widgets).run()

        assert results["slow"].data["slices"][0]["name"] == "SELECT slow"
        assert results["fast"].data["slices"][0]["name"] == "SELECT fast"

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, store):
        running = 0
        peak = 0

        async def execute(*args, **kwargs):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return []

        widgets = [widget(f"w{i}") for i in range(6)]
        with patch.object(query_executor, "execute", new=AsyncMock(side_effect=execute)):
            await RenderSession(store, dashboard_id=1, widgets=widgets, max_concurrency=2).run()

        assert peak == 2

    @pytest.mark.asyncio
    async def test_close_cancels_and_discards_late_results(self, store):
        started = asyncio.Event()

        async def slow(*args, **kwargs):
            started.set()
            await asyncio.sleep(5)
            return [{"category": "A", "value": 1}]

        with patch.object(query_executor, "execute", new=AsyncMock(side_effect=slow)):
            session = RenderSession(store, dashboard_id=1, widgets=[widget("w1")])
            run = asyncio.ensure_future(session.run())
            await started.wait()
            session.close()
            results = await run

        assert session.closed
        assert results["w1"].state == VisualizationState.LOADING

        # 关闭后到达的结果被丢弃
        session._accept(chart_dispatch.render(widget("w1", "text"), None))
        assert session.snapshot()["w1"].state == VisualizationState.LOADING

    @pytest.mark.asyncio
    async def test_closed_session_does_not_start_loads(self, store):
        execute = AsyncMock(return_value=[])
        with patch.object(query_executor, "execute", new=execute):
            session = RenderSession(store, dashboard_id=1, widgets=[widget("w1")])
            session.close()
            await session.run()
        execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_static_widget_skips_data_source(self, store):
        execute = AsyncMock(return_value=[])
        with patch.object(query_executor, "execute", new=execute):
            results = await RenderSession(
                store, dashboard_id=1, widgets=[widget("t", "text", config={"content": "Hi"})]
            ).run()
        execute.assert_not_awaited()
        assert results["t"].data["content"] == "Hi"
