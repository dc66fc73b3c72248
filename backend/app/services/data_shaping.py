"""数据整形

把演示数据源返回的扁平记录 {category, value, date, region} 转换为各图表类型需要的结构。
分组输出顺序由分组键第一次出现的顺序决定，不按数值排序。
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from app.schemas.widget import WidgetType, parse_widget_type

Record = Mapping[str, Any]

# 需要按日期透视的图表类型
DATE_PIVOT_TYPES = {
    WidgetType.BAR,
    WidgetType.LINE,
    WidgetType.GROUPED_BAR,
    WidgetType.STACKED_BAR,
    WidgetType.DUAL_AXIS,
}


def shape_pie(records: Iterable[Record]) -> List[Dict[str, Any]]:
    """按 category 分组求和 -> [{name, value}]"""
    totals: Dict[Any, Any] = {}
    for record in records:
        category = record.get("category")
        totals[category] = totals.get(category, 0) + record.get("value", 0)
    return [{"name": name, "value": value} for name, value in totals.items()]


def shape_by_date(records: Iterable[Record]) -> List[Dict[str, Any]]:
    """先按 date 再按 category 分组求和 -> 每个日期一行, 每个 category 一列"""
    grouped: Dict[Any, Dict[Any, Any]] = {}
    for record in records:
        categories = grouped.setdefault(record.get("date"), {})
        category = record.get("category")
        categories[category] = categories.get(category, 0) + record.get("value", 0)
    return [{"date": date, **categories} for date, categories in grouped.items()]


def to_epoch_ms(value: Any) -> Optional[int]:
    """日期 -> 毫秒时间戳; 不带时区的按 UTC 处理, 无法解析时返回 None"""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def shape_scatter(records: Iterable[Record]) -> List[Dict[str, Any]]:
    """每条记录 -> {x: 日期毫秒时间戳, y: value, category, region}"""
    return [
        {
            "x": to_epoch_ms(record.get("date")),
            "y": record.get("value"),
            "category": record.get("category"),
            "region": record.get("region"),
        }
        for record in records
    ]


def shape_rows(
    widget_type: Union[WidgetType, str],
    records: Iterable[Record],
) -> List[Dict[str, Any]]:
    """按图表类型整形; table 与其他类型（含未知类型）原样透传

    不修改输入记录
    """
    records = list(records)
    parsed = parse_widget_type(widget_type)

    if parsed == WidgetType.PIE:
        return shape_pie(records)
    if parsed in DATE_PIVOT_TYPES:
        return shape_by_date(records)
    if parsed == WidgetType.SCATTER:
        return shape_scatter(records)
    return [dict(record) for record in records]
