"""查询变量绑定

把查询模板中的 ${name} 占位符转换为具名绑定参数 :name，变量值作为参数传入，
不做任何字符串拼接。

    SELECT * FROM t WHERE region = '${region}'
    -> SELECT * FROM t WHERE region = :region   params={"region": "North"}

被单引号包住的占位符整体替换（引号一并去掉）。
变量值优先取本次渲染传入的当前值，其次取变量定义的 defaultValue；
引用了未定义的变量时抛 ValidationError。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional
import re

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from app.core.exceptions import ValidationError
from app.schemas.dashboard import Variable

PLACEHOLDER_PATTERN = re.compile(r"'\$\{(\w+)\}'|\$\{(\w+)\}")


@dataclass
class BoundQuery:
    """绑定后的查询"""
    sql: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_clause(self) -> TextClause:
        """转换为 SQLAlchemy 可执行的 text 子句"""
        clause = text(self.sql)
        if self.params:
            clause = clause.bindparams(**self.params)
        return clause


def find_placeholders(template: str) -> List[str]:
    """按出现顺序列出模板引用的变量名(去重)"""
    names: List[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(template or ""):
        name = match.group(1) or match.group(2)
        if name not in names:
            names.append(name)
    return names


def resolve_values(
    variables: Iterable[Variable],
    overrides: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """变量名 -> 当前值 (传入值覆盖默认值)

    传入值中没有对应变量定义的键被忽略
    """
    overrides = overrides or {}
    values: Dict[str, Any] = {}
    for variable in variables:
        if variable.name in overrides and overrides[variable.name] is not None:
            values[variable.name] = overrides[variable.name]
        else:
            values[variable.name] = variable.default_value
    return values


def bind_query(
    template: str,
    variables: Iterable[Variable],
    overrides: Optional[Mapping[str, Any]] = None,
) -> BoundQuery:
    """绑定查询模板

    Args:
        template: 查询模板
        variables: Dashboard 定义的变量
        overrides: 本次渲染的变量当前值

    Returns:
        BoundQuery

    Raises:
        ValidationError: 模板引用了未定义的变量
    """
    values = resolve_values(variables, overrides)
    params: Dict[str, Any] = {}

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1) or match.group(2)
        if name not in values:
            raise ValidationError(
                f"Query references undefined variable: {name}",
                details={"variable": name},
            )
        params[name] = values[name]
        return f":{name}"

    sql = PLACEHOLDER_PATTERN.sub(replace, template or "")
    return BoundQuery(sql=sql, params=params)
