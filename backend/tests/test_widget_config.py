"""
Widget配置模型单元测试
"""
import copy

import pytest
from pydantic import ValidationError

from app.schemas.widget import WIDGET_CONFIG_MODELS, GaugeConfig, PieConfig, Widget, WidgetType
from app.services.widget_config import (
    TYPE_DEFAULTS,
    decode_config,
    effective_config,
    get_type_defaults,
    merge_config,
)


class TestTypeDefaults:
    """测试类型默认配置"""

    def test_every_type_has_defaults(self):
        assert set(WIDGET_CONFIG_MODELS) == set(WidgetType)
        assert set(TYPE_DEFAULTS) == set(WidgetType)
        assert len(TYPE_DEFAULTS) == 13

    def test_defaults_use_camel_case_keys(self):
        assert TYPE_DEFAULTS[WidgetType.PIE] == {
            "colors": ["#8884d8", "#82ca9d", "#ffc658", "#ff8042", "#0088fe"],
            "innerRadius": 0,
            "outerRadius": 80,
            "dataKey": "value",
            "nameKey": "name",
            "showLegend": True,
        }

    def test_gauge_defaults(self):
        defaults = TYPE_DEFAULTS[WidgetType.GAUGE]
        assert defaults["min"] == 0
        assert defaults["max"] == 100
        assert defaults["colors"] == ["#ff0000", "#ffff00", "#00ff00"]
        assert defaults["thickness"] == 60

    def test_stacked_bar_is_stacked(self):
        assert TYPE_DEFAULTS[WidgetType.STACKED_BAR]["stacked"] is True
        assert TYPE_DEFAULTS[WidgetType.BAR]["stacked"] is False
        assert "stacked" not in TYPE_DEFAULTS[WidgetType.LINE]

    def test_unknown_type_has_no_defaults(self):
        assert get_type_defaults("radar") is None

    def test_returned_defaults_are_copies(self):
        defaults = get_type_defaults("pie")
        defaults["colors"].append("#000000")
        assert "#000000" not in TYPE_DEFAULTS[WidgetType.PIE]["colors"]


class TestMergeConfig:
    """测试生效配置合并"""

    def test_stored_keys_override_defaults(self):
        merged = merge_config("pie", {"innerRadius": 60, "nameKey": "category"})
        assert merged["innerRadius"] == 60
        assert merged["nameKey"] == "category"
        assert merged["outerRadius"] == 80

    def test_extra_keys_are_kept(self):
        merged = merge_config("table", {"striped": True})
        assert merged["striped"] is True
        assert merged["pageSize"] == 10

    def test_empty_stored_config_gives_defaults(self):
        assert merge_config("kpi", None) == TYPE_DEFAULTS[WidgetType.KPI]
        assert merge_config("kpi", {}) == TYPE_DEFAULTS[WidgetType.KPI]

    def test_merge_is_idempotent(self):
        stored = {"min": 10, "max": 50}
        once = merge_config("gauge", stored)
        assert merge_config("gauge", once) == once

    def test_stored_config_is_not_mutated(self):
        stored = {"columns": ["category"], "pageSize": 5}
        snapshot = copy.deepcopy(stored)
        merge_config("table", stored)
        assert stored == snapshot

    def test_unknown_type_returns_none(self):
        assert merge_config("radar", {"foo": 1}) is None

    def test_effective_config_of_widget(self):
        widget = Widget(id="w1", type="line", config={"showDots": False})
        config = effective_config(widget)
        assert config["showDots"] is False
        assert config["xAxisKey"] == "date"


class TestDecodeConfig:
    """测试强类型配置解码"""

    def test_decodes_into_variant_model(self):
        config = decode_config("gauge", {"min": 10})
        assert isinstance(config, GaugeConfig)
        assert config.min == 10
        assert config.value_key == "value"

    def test_unknown_type_returns_none(self):
        assert decode_config("radar", {}) is None

    def test_invalid_field_type_raises(self):
        with pytest.raises(ValidationError):
            decode_config("pie", {"innerRadius": "wide"})

    def test_dump_by_alias_round_trip_keeps_extra_keys(self):
        config = decode_config("pie", {"innerRadius": 60, "custom": "x"})
        assert isinstance(config, PieConfig)
        dumped = config.model_dump(by_alias=True)
        assert dumped["innerRadius"] == 60
        assert dumped["custom"] == "x"
