"""
预算分配模块 - Budget Allocation Module

按类别优先级把总预算分配到各配件类别，输出每个类别的价格区间，用于筛选候选配件。
Distribute a total budget across categories by priority weight and produce a
price range per category for filtering the catalog.

已经选过配件的类别被"锁定"：优先级归零，区间固定为已花费金额。
Categories that already hold a selection are locked: priority drops to zero
and the range collapses to the amount already spent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..errors import ValidationError
from ..schemas import BudgetAllocationResult, CategoryAllocation
from .fields import category_key, item_id, read_field, to_number, to_text


RANGE_FLEXIBILITY = 0.20
"""
预算弹性 - Range Flexibility

分配点上下浮动 20% 形成价格区间。
The range spans ±20% around the allocated point.
"""


# 超过 2**52 的浮点数没有小数部分，无需舍入（也避免放大后溢出）
# Floats at or above 2**52 carry no fraction; scaling them could overflow.
_EXACT_FLOAT_LIMIT = float(2**52)


def _round_half_up(value: float, scale: int) -> float:
    # 四舍五入（非银行家舍入）- half-up, not banker's rounding
    if not math.isfinite(value) or abs(value) >= _EXACT_FLOAT_LIMIT:
        return value
    return math.floor(value * scale + 0.5) / scale


def round2(value: float) -> float:
    return _round_half_up(value, 100)


def round3(value: float) -> float:
    return _round_half_up(value, 1000)


def validate_budget(value: Any) -> float:
    budget = to_number(value)
    if budget is None or budget < 0:
        raise ValidationError("Total budget must be a non-negative number")
    if not math.isfinite(budget * (1 + RANGE_FLEXIBILITY)):
        # the upper end of the range must stay representable
        raise ValidationError("Total budget is too large")
    return budget


def normalize_priority(value: Any) -> int:
    """缺失或非法优先级按 1 处理，且不小于 1 - Missing/invalid → 1, clamped to >= 1."""
    number = to_number(value)
    if number is None:
        return 1
    return max(1, math.floor(number))


def component_price(item: Any) -> float:
    return to_number(read_field(item, "price")) or 0.0


@dataclass
class _CategoryWeight:
    category_id: Optional[str]
    category_name: str
    priority: int
    spent: float


def allocate_budget_by_category(
    total_budget: Any,
    categories: Iterable[Any],
    selected_components: Iterable[Any] = (),
) -> BudgetAllocationResult:
    """
    按类别分配预算 - Allocate Budget by Category

    每次调用都从头计算，无状态，界面可以在每次输入或选择变化时调用。
    Recomputed from scratch on every call; stateless, so callers may invoke it
    on every keystroke or selection change.

    参数 Parameters:
        total_budget: 总预算（美元），必须是有限非负数
                      Total budget in dollars; finite and non-negative.
        categories: 类别模型或字典，isActive 为 False 的被忽略
                    Category models or dicts; ``isActive is False`` ones are skipped.
        selected_components: 已选配件，按类别名（不区分大小写）累计已花费
                             Already selected components, summed per category
                             name case-insensitively.

    返回 Returns:
        预算分配结果，金额保留两位小数，比例保留三位
        Allocation result; money rounded to 2 decimals, ratio to 3.

    异常 Raises:
        ValidationError: 预算不是有限非负数
                         when the budget is not a finite non-negative number.
    """
    budget = validate_budget(total_budget)

    active = [c for c in (categories or []) if read_field(c, "is_active", "isActive") is not False]
    if not active:
        return BudgetAllocationResult(total_budget=round2(budget), spent=0.0, remaining=round2(budget))

    # 统计各类别已花费 - Spent per category
    spent_by_category: Dict[str, float] = {}
    total_spent = 0.0
    for comp in selected_components or []:
        price = component_price(comp)
        key = category_key(comp)
        spent_by_category[key] = spent_by_category.get(key, 0.0) + price
        total_spent += price

    remaining_budget = max(0.0, budget - total_spent)

    weights: List[_CategoryWeight] = []
    for cat in active:
        name = to_text(read_field(cat, "name"))
        spent = spent_by_category.get(name.upper(), 0.0)
        weights.append(
            _CategoryWeight(
                category_id=item_id(cat),
                category_name=name,
                priority=0 if spent > 0 else normalize_priority(read_field(cat, "priority")),
                spent=spent,
            )
        )

    total_priority = sum(w.priority for w in weights)

    allocations: List[CategoryAllocation] = []
    for w in weights:
        ratio = 0.0
        allocated = min_budget = max_budget = 0.0
        if w.priority > 0 and total_priority > 0:
            ratio = w.priority / total_priority
            allocated = ratio * remaining_budget
            min_budget = max(0.0, allocated * (1 - RANGE_FLEXIBILITY))
            max_budget = allocated * (1 + RANGE_FLEXIBILITY)
        elif w.spent > 0:
            # 已锁定：区间退化为已花费金额 - locked: a fixed point, not a range
            allocated = min_budget = max_budget = w.spent

        allocations.append(
            CategoryAllocation(
                category_id=w.category_id,
                category_name=w.category_name,
                priority=w.priority,
                ratio=round3(ratio),
                allocated_budget=round2(allocated),
                min_budget=round2(min_budget),
                max_budget=round2(max_budget),
                spent=round2(w.spent),
                remaining=round2(allocated - w.spent),
            )
        )

    return BudgetAllocationResult(
        total_budget=round2(budget),
        spent=round2(total_spent),
        remaining=round2(remaining_budget),
        allocations=allocations,
    )
