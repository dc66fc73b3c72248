"""Widget Schema定义

Widget 在 Dashboard 的 layout JSON 中以 camelCase 存储：
    {"id", "type", "title", "config", "dataSource": {"databaseId", "query"},
     "position": {"x", "y"}, "size": {"width", "height"}}

type 是封闭集合 WidgetType 中的标签；config 的合法键与默认值完全由 type 决定，
每种类型对应一个强类型配置模型（见 WIDGET_CONFIG_MODELS）。
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WidgetType(str, Enum):
    """支持的Widget类型 (恰好13种)"""
    PIE = "pie"
    BAR = "bar"
    LINE = "line"
    TABLE = "table"
    KPI = "kpi"
    MIND_MAP = "mindMap"
    FLOW_CHART = "flowChart"
    SCATTER = "scatter"
    GAUGE = "gauge"
    GROUPED_BAR = "groupedBar"
    STACKED_BAR = "stackedBar"
    DUAL_AXIS = "dualAxis"
    TEXT = "text"


def parse_widget_type(tag: Any) -> Optional[WidgetType]:
    """标签 -> WidgetType，不认识的标签返回 None 而不是抛异常"""
    try:
        return WidgetType(tag)
    except ValueError:
        return None


class LayoutModel(BaseModel):
    """layout JSON 中的结构统一使用 camelCase 别名"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(LayoutModel):
    x: int = Field(0, ge=0)
    y: int = Field(0, ge=0)


class Size(LayoutModel):
    width: int = Field(6, ge=1)
    height: int = Field(4, ge=1)


class DataSource(LayoutModel):
    """Widget数据源: databaseId 为连接ID或内置演示源 "dummy" """
    database_id: str = Field("dummy", description="数据库连接ID")
    query: str = Field("SELECT * FROM dummyData", description="查询模板, 可包含 ${变量名}")

    @field_validator("database_id", mode="before")
    @classmethod
    def coerce_database_id(cls, v: Any) -> Any:
        # 旧数据里连接ID可能是数字
        if isinstance(v, int):
            return str(v)
        return v


class Widget(LayoutModel):
    """Widget Schema

    type 保留原始字符串，未知类型在渲染时得到 unsupported 状态而不是在加载时失败
    """
    id: str = Field(..., min_length=1, description="Widget ID, 在同一个Dashboard内唯一")
    type: str = Field(..., min_length=1, description="Widget类型标签")
    title: str = Field("", description="Widget标题")
    config: Dict[str, Any] = Field(default_factory=dict, description="类型相关的配置")
    data_source: DataSource = Field(default_factory=DataSource)
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)

    @property
    def widget_type(self) -> Optional[WidgetType]:
        return parse_widget_type(self.type)


# ===== 每种类型的强类型配置 =====

PALETTE_3 = ["#8884d8", "#82ca9d", "#ffc658"]
PALETTE_5 = ["#8884d8", "#82ca9d", "#ffc658", "#ff8042", "#0088fe"]
DEFAULT_DATA_KEYS = ["Product A", "Product B", "Product C"]


class WidgetConfig(BaseModel):
    """配置模型基类: 未声明的键原样保留"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class PieConfig(WidgetConfig):
    colors: List[str] = Field(default_factory=lambda: list(PALETTE_5))
    inner_radius: float = 0
    outer_radius: float = 80
    data_key: str = "value"
    name_key: str = "name"
    show_legend: bool = True


class CartesianConfig(WidgetConfig):
    x_axis_key: str = "date"
    data_keys: List[str] = Field(default_factory=lambda: list(DEFAULT_DATA_KEYS))
    colors: List[str] = Field(default_factory=lambda: list(PALETTE_3))
    show_grid: bool = True
    show_legend: bool = True


class BarConfig(CartesianConfig):
    stacked: bool = False


class LineConfig(CartesianConfig):
    show_dots: bool = True


class GroupedBarConfig(CartesianConfig):
    pass


class StackedBarConfig(CartesianConfig):
    stacked: bool = True


class DualAxisConfig(WidgetConfig):
    x_axis_key: str = "date"
    bar_keys: List[str] = Field(default_factory=lambda: ["Product A"])
    line_keys: List[str] = Field(default_factory=lambda: ["Product B", "Product C"])
    bar_colors: List[str] = Field(default_factory=lambda: ["#8884d8"])
    line_colors: List[str] = Field(default_factory=lambda: ["#ff7300", "#82ca9d"])
    show_grid: bool = True
    show_legend: bool = True


class TableConfig(WidgetConfig):
    columns: List[str] = Field(default_factory=list)
    page_size: int = 10


class KpiConfig(WidgetConfig):
    value_key: str = "value"
    label_key: str = "label"
    change_key: str = "change"
    format: str = "number"  # currency / percent / number, 其他值原样输出
    prefix: str = ""
    suffix: str = ""


class GaugeConfig(WidgetConfig):
    min: float = 0
    max: float = 100
    value_key: str = "value"
    colors: List[str] = Field(default_factory=lambda: ["#ff0000", "#ffff00", "#00ff00"])
    thickness: float = 60


class ScatterConfig(WidgetConfig):
    x_axis_key: str = "x"
    y_axis_key: str = "y"
    group_key: str = "category"
    colors: List[str] = Field(default_factory=lambda: list(PALETTE_5))
    show_grid: bool = True
    show_legend: bool = True


class MindMapConfig(WidgetConfig):
    node_radius: float = 20
    link_distance: float = 100
    colors: List[str] = Field(default_factory=lambda: list(PALETTE_5))


class FlowChartConfig(WidgetConfig):
    node_width: float = 150
    node_height: float = 40
    node_padding: float = 10
    colors: List[str] = Field(default_factory=lambda: list(PALETTE_5))


class TextConfig(WidgetConfig):
    content: str = ""
    font_size: str = "1rem"
    text_align: str = "left"
    font_weight: str = "normal"


WIDGET_CONFIG_MODELS: Dict[WidgetType, Type[WidgetConfig]] = {
    WidgetType.PIE: PieConfig,
    WidgetType.BAR: BarConfig,
    WidgetType.LINE: LineConfig,
    WidgetType.TABLE: TableConfig,
    WidgetType.KPI: KpiConfig,
    WidgetType.MIND_MAP: MindMapConfig,
    WidgetType.FLOW_CHART: FlowChartConfig,
    WidgetType.SCATTER: ScatterConfig,
    WidgetType.GAUGE: GaugeConfig,
    WidgetType.GROUPED_BAR: GroupedBarConfig,
    WidgetType.STACKED_BAR: StackedBarConfig,
    WidgetType.DUAL_AXIS: DualAxisConfig,
    WidgetType.TEXT: TextConfig,
}

if set(WIDGET_CONFIG_MODELS) != set(WidgetType):
    raise RuntimeError("每种WidgetType都必须有配置模型")
