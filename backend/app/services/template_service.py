"""Dashboard模板服务

模板集合为空时写入两个内置模板 (Sales / Analytics)，created_by 为 "system"。
"""
from typing import Any, Dict, List
import logging

from app.db.entity_store import EntityStore
from app.schemas.dashboard import DashboardLayout, DashboardTemplateResponse
from app.services.dashboard_service import parse_layout, serialize_layout

logger = logging.getLogger(__name__)

SYSTEM_USER = "system"

_PALETTE = ["#8884d8", "#82ca9d", "#ffc658"]
_ALL_ROWS = {"databaseId": "dummy", "query": "SELECT * FROM dummyData"}
_FIRST_ROW = {"databaseId": "dummy", "query": "SELECT * FROM dummyData LIMIT 1"}


def _widget(widget_id: str, widget_type: str, title: str, config: Dict[str, Any], data_source: Dict[str, str],
            x: int, y: int, width: int, height: int) -> Dict[str, Any]:
    return {
        "id": widget_id,
        "type": widget_type,
        "title": title,
        "config": config,
        "dataSource": dict(data_source),
        "position": {"x": x, "y": y},
        "size": {"width": width, "height": height},
    }


DEFAULT_TEMPLATES: List[Dict[str, Any]] = [
    {
        "name": "Sales Dashboard",
        "description": "A template for tracking sales performance with various charts and KPIs",
        "layout": {
            "widgets": [
                _widget("sales-overview", "kpi", "Total Sales", {
                    "valueKey": "value", "labelKey": "label", "changeKey": "change",
                    "format": "currency", "prefix": "$",
                }, _FIRST_ROW, 0, 0, 3, 2),
                _widget("sales-by-product", "pie", "Sales by Product", {
                    "colors": list(_PALETTE), "innerRadius": 60, "outerRadius": 80,
                    "dataKey": "value", "nameKey": "name",
                }, _ALL_ROWS, 3, 0, 4, 4),
                _widget("sales-trend", "line", "Sales Trend", {
                    "xAxisKey": "date", "dataKeys": ["Product A", "Product B", "Product C"],
                    "colors": list(_PALETTE),
                }, _ALL_ROWS, 0, 4, 7, 4),
                _widget("sales-by-region", "bar", "Sales by Region", {
                    "xAxisKey": "region", "dataKeys": ["Product A", "Product B", "Product C"],
                    "colors": list(_PALETTE),
                }, _ALL_ROWS, 7, 0, 5, 4),
                _widget("sales-table", "table", "Sales Data", {
                    "columns": ["category", "value", "date", "region"], "pageSize": 5,
                }, _ALL_ROWS, 7, 4, 5, 4),
            ],
            "variables": [],
        },
    },
    {
        "name": "Analytics Dashboard",
        "description": "A template for tracking website analytics and user behavior",
        "layout": {
            "widgets": [
                _widget("visitors-kpi", "kpi", "Total Visitors", {
                    "valueKey": "value", "labelKey": "label", "changeKey": "change", "format": "number",
                }, _FIRST_ROW, 0, 0, 3, 2),
                _widget("pageviews-kpi", "kpi", "Page Views", {
                    "valueKey": "value", "labelKey": "label", "changeKey": "change", "format": "number",
                }, _FIRST_ROW, 3, 0, 3, 2),
                _widget("traffic-sources", "pie", "Traffic Sources", {
                    "colors": list(_PALETTE), "innerRadius": 0, "outerRadius": 80,
                }, _ALL_ROWS, 6, 0, 6, 4),
                _widget("visitor-trend", "line", "Visitor Trend", {
                    "xAxisKey": "date", "dataKeys": ["Product A"], "colors": ["#8884d8"],
                }, _ALL_ROWS, 0, 2, 6, 4),
                _widget("top-pages", "table", "Top Pages", {
                    "columns": ["category", "value"], "pageSize": 5,
                }, _ALL_ROWS, 0, 6, 12, 4),
            ],
            "variables": [],
        },
    },
]


class TemplateService:
    """Dashboard模板服务类"""

    async def seed_default_templates(self, store: EntityStore) -> int:
        """模板集合为空时写入内置模板

        Returns:
            写入的模板数量
        """
        if await store.select("dashboard_templates", limit=1):
            return 0
        records = [
            {
                "name": template["name"],
                "description": template["description"],
                "layout": serialize_layout(DashboardLayout.model_validate(template["layout"])),
                "created_by": SYSTEM_USER,
            }
            for template in DEFAULT_TEMPLATES
        ]
        await store.insert("dashboard_templates", records)
        logger.info(f"已写入 {len(records)} 个内置Dashboard模板")
        return len(records)

    async def list_templates(self, store: EntityStore) -> List[DashboardTemplateResponse]:
        rows = await store.select("dashboard_templates", order_by="id")
        return [
            DashboardTemplateResponse(
                id=row.id,
                name=row.name,
                description=row.description,
                layout=parse_layout(row.layout),
                created_by=row.created_by,
            )
            for row in rows
        ]


# 创建全局实例
template_service = TemplateService()
