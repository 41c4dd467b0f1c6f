"""
字段读取工具 - Field Reading Helpers

配件与类别可能是 pydantic 模型，也可能是来自客户端的松散字典（驼峰或下划线命名）。
Components and categories arrive either as pydantic models or as loose client
dicts (camelCase or snake_case); these helpers read them without raising.
"""

from __future__ import annotations

import math
from typing import Any, Optional


def read_field(item: Any, *names: str) -> Any:
    """Return the first non-None value among ``names`` on a model or dict."""
    if item is None:
        return None
    for name in names:
        if isinstance(item, dict):
            value = item.get(name)
        else:
            value = getattr(item, name, None)
        if value is not None:
            return value
    return None


def to_text(value: Any) -> str:
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return ""


def to_number(value: Any) -> Optional[float]:
    """Finite float or None; bools are not numbers here."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def category_key(item: Any) -> str:
    return to_text(read_field(item, "category")).upper()


def item_id(item: Any) -> Optional[str]:
    value = read_field(item, "id", "_id")
    return str(value) if value is not None else None
