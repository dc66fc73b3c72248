"""各类型图表的渲染函数

每个渲染函数接收已整形的数据与生效配置，返回前端图表组件直接使用的渲染数据（JSON 可序列化）。
渲染函数不修改输入；数据格式不合法时抛 ValueError，由分发层降级为 error 状态。
"""
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

Config = Mapping[str, Any]

GAUGE_EMPTY_COLOR = "#f3f4f6"


def _first_item(data: Any) -> Optional[Mapping[str, Any]]:
    """KPI/Gauge 只使用第一条数据"""
    if isinstance(data, (list, tuple)):
        return data[0] if data else None
    return data


def _color(colors: Sequence[str], index: int) -> Optional[str]:
    if not colors:
        return None
    return colors[index % len(colors)]


def _series(keys: Sequence[str], colors: Sequence[str], **extra: Any) -> List[Dict[str, Any]]:
    return [{"key": key, "color": _color(colors, i), **extra} for i, key in enumerate(keys)]


def _rows(data: Any) -> List[Dict[str, Any]]:
    if not isinstance(data, (list, tuple)):
        raise ValueError("Expected a list of rows")
    return [dict(row) for row in data]


# ===== Gauge / KPI 数值推导 =====

def gauge_reading(value: float, min_value: float, max_value: float) -> Tuple[float, int]:
    """计算仪表盘百分比与颜色档位

    percentage = (value - min) / (max - min) * 100, 截断到 [0, 100];
    max == min 时取 0%。档位: <=33 -> 0, <=66 -> 1, 其余 -> 2

    Returns:
        (percentage, tier)
    """
    span = max_value - min_value
    if span == 0:
        percentage = 0.0
    else:
        percentage = (value - min_value) / span * 100
        percentage = min(100.0, max(0.0, percentage))

    if percentage <= 33:
        tier = 0
    elif percentage <= 66:
        tier = 1
    else:
        tier = 2
    return percentage, tier


def _format_grouped(value: float, max_fraction_digits: int) -> str:
    text = f"{value:,.{max_fraction_digits}f}"
    if max_fraction_digits and "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_kpi_value(value: Any, fmt: str) -> str:
    """按 format 格式化 KPI 数值

    - currency: $1,234.50
    - percent: 12%
    - number: 千分位, 最多3位小数
    - 其他: 原样输出
    """
    if fmt not in ("currency", "percent", "number"):
        return "" if value is None else str(value)
    if fmt == "percent":
        return f"{value}%"
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "" if value is None else str(value)
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)

    if fmt == "currency":
        sign = "-" if value < 0 else ""
        return f"{sign}${abs(value):,.2f}"
    if isinstance(value, int):
        return f"{value:,}"
    return _format_grouped(value, 3)


def change_indicator(change: Any) -> Optional[Dict[str, Any]]:
    """变化量 -> {direction: up/down, value: 绝对值}; 没有变化量时返回 None"""
    if change is None or isinstance(change, bool) or not isinstance(change, (int, float)):
        return None
    return {
        "direction": "up" if change >= 0 else "down",
        "value": abs(change),
        "display": f"{abs(change)}%",
    }


# ===== 各类型渲染函数 =====

def render_pie(data: Any, config: Config) -> Dict[str, Any]:
    rows = _rows(data)
    name_key, data_key = config["nameKey"], config["dataKey"]
    slices = [
        {
            "name": row.get(name_key),
            "value": row.get(data_key),
            "color": _color(config["colors"], i),
        }
        for i, row in enumerate(rows)
    ]
    return {
        "slices": slices,
        "innerRadius": config["innerRadius"],
        "outerRadius": config["outerRadius"],
        "showLegend": config["showLegend"],
    }


def _render_cartesian(data: Any, config: Config, **extra: Any) -> Dict[str, Any]:
    return {
        "rows": _rows(data),
        "xAxisKey": config["xAxisKey"],
        "series": _series(config["dataKeys"], config["colors"]),
        "showGrid": config["showGrid"],
        "showLegend": config["showLegend"],
        **extra,
    }


def render_bar(data: Any, config: Config) -> Dict[str, Any]:
    return _render_cartesian(data, config, stacked=bool(config.get("stacked", False)))


def render_line(data: Any, config: Config) -> Dict[str, Any]:
    return _render_cartesian(data, config, showDots=config["showDots"])


def render_grouped_bar(data: Any, config: Config) -> Dict[str, Any]:
    return _render_cartesian(data, config, stacked=False)


def render_stacked_bar(data: Any, config: Config) -> Dict[str, Any]:
    return _render_cartesian(data, config, stacked=True)


def render_dual_axis(data: Any, config: Config) -> Dict[str, Any]:
    return {
        "rows": _rows(data),
        "xAxisKey": config["xAxisKey"],
        "barSeries": _series(config["barKeys"], config["barColors"], yAxisId="left"),
        "lineSeries": _series(config["lineKeys"], config["lineColors"], yAxisId="right"),
        "showGrid": config["showGrid"],
        "showLegend": config["showLegend"],
    }


def render_table(data: Any, config: Config) -> Dict[str, Any]:
    rows = _rows(data)
    columns = list(config["columns"]) or (list(rows[0].keys()) if rows else [])
    page_size = int(config["pageSize"])
    return {
        "columns": columns,
        "rows": [{column: row.get(column) for column in columns} for row in rows[:page_size]],
        "pageSize": page_size,
        "totalRows": len(rows),
    }


def render_kpi(data: Any, config: Config) -> Dict[str, Any]:
    item = _first_item(data)
    if item is None:
        raise ValueError("No data available")
    value = item.get(config["valueKey"])
    return {
        "label": item.get(config["labelKey"]) or "Value",
        "value": value,
        "formattedValue": f"{config['prefix']}{format_kpi_value(value, config['format'])}{config['suffix']}",
        "change": change_indicator(item.get(config["changeKey"])),
    }


def render_gauge(data: Any, config: Config) -> Dict[str, Any]:
    item = _first_item(data)
    if item is None:
        raise ValueError("No data available")
    value = item.get(config["valueKey"]) or 0
    min_value, max_value = config["min"], config["max"]
    percentage, tier = gauge_reading(value, min_value, max_value)
    color = _color(config["colors"], tier)
    return {
        "value": value,
        "min": min_value,
        "max": max_value,
        "percentage": percentage,
        "tier": tier,
        "color": color,
        "thickness": config["thickness"],
        "segments": [
            {"name": "value", "value": percentage, "color": color},
            {"name": "empty", "value": 100 - percentage, "color": GAUGE_EMPTY_COLOR},
        ],
    }


def render_scatter(data: Any, config: Config) -> Dict[str, Any]:
    x_key, y_key, group_key = config["xAxisKey"], config["yAxisKey"], config["groupKey"]
    groups: Dict[Any, List[Dict[str, Any]]] = {}
    for row in _rows(data):
        group = row.get(group_key) or "default"
        groups.setdefault(group, []).append({"x": row.get(x_key), "y": row.get(y_key)})
    return {
        "series": [
            {"name": name, "color": _color(config["colors"], i), "points": points}
            for i, (name, points) in enumerate(groups.items())
        ],
        "showGrid": config["showGrid"],
        "showLegend": config["showLegend"],
    }


def _graph(data: Any, kind: str) -> Tuple[List[Mapping[str, Any]], List[Mapping[str, Any]]]:
    if not isinstance(data, Mapping) or not isinstance(data.get("nodes"), list) \
            or not isinstance(data.get("links"), list):
        raise ValueError(f"Invalid {kind} data format")
    return data["nodes"], data["links"]


def render_mind_map(data: Any, config: Config) -> Dict[str, Any]:
    """静态放射状布局: 第一个节点居中, 其余节点等角度分布在 linkDistance 半径上"""
    nodes, links = _graph(data, "mind map")
    radius, distance = config["nodeRadius"], config["linkDistance"]
    placed = []
    if nodes:
        root = nodes[0]
        placed.append({
            "id": root.get("id"),
            "name": root.get("name") or "Root",
            "x": 0.0,
            "y": 0.0,
            "radius": radius,
            "color": _color(config["colors"], 0),
        })
        children = nodes[1:]
        for i, node in enumerate(children):
            angle = i * (2 * math.pi / len(children))
            placed.append({
                "id": node.get("id"),
                "name": node.get("name"),
                "x": round(distance * math.cos(angle), 4),
                "y": round(distance * math.sin(angle), 4),
                "radius": radius * 0.8,
                "color": _color(config["colors"], i + 1),
            })
    return {"nodes": placed, "links": [dict(link) for link in links]}


def render_flow_chart(data: Any, config: Config) -> Dict[str, Any]:
    """静态网格布局: 每行3个节点"""
    nodes, links = _graph(data, "flow chart")
    width, height = config["nodeWidth"], config["nodeHeight"]
    placed = [
        {
            **dict(node),
            "x": (i % 3) * (width + 50) + 100,
            "y": (i // 3) * (height + 50) + 50,
            "width": width,
            "height": height,
            "color": _color(config["colors"], i),
        }
        for i, node in enumerate(nodes)
    ]
    return {"nodes": placed, "links": [dict(link) for link in links], "nodePadding": config["nodePadding"]}


def render_text(data: Any, config: Config) -> Dict[str, Any]:
    return {
        "content": config["content"],
        "style": {
            "fontSize": config["fontSize"],
            "textAlign": config["textAlign"],
            "fontWeight": config["fontWeight"],
        },
    }
