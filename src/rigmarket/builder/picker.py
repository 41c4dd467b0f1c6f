"""
候选配件筛选模块 - Candidate Selection Module

把预算分配结果与兼容性检查结合起来，为交互式装机给出每个类别可选的配件；
并提供一个贪心自动选配，把交互循环一次跑完。
Combine the budget allocation with the compatibility checker to offer
eligible components per category during interactive composition, plus a
greedy picker that runs the interactive loop to completion.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

from ..schemas import (
    BudgetAllocationResult,
    BuildSuggestion,
    CandidateCheck,
    CandidateResult,
    CategoryAllocation,
    Component,
)
from .budget import allocate_budget_by_category, round2
from .compatibility import check_compatibility
from .fields import read_field, to_number

logger = logging.getLogger(__name__)


CANDIDATE_PRICE_TOLERANCE = 0.10
"""
候选价格容差 - Candidate Price Tolerance

在分配器 ±20% 区间之外再放宽 ±10%。
A second ±10% widening on top of the allocator's own ±20% range.
"""


def candidate_price_window(allocation: CategoryAllocation) -> Tuple[float, float]:
    # NOTE: this compounds with RANGE_FLEXIBILITY in budget.py; existing clients
    # depend on the combined width. Collapsing the two tolerances into one
    # needs a product decision.
    low = allocation.min_budget * (1 - CANDIDATE_PRICE_TOLERANCE)
    high = allocation.max_budget * (1 + CANDIDATE_PRICE_TOLERANCE)
    return low, high


def substitute_candidate(selected: Sequence[Component], candidate: Component) -> List[Component]:
    """
    代入候选配件 - Substitute Candidate

    替换同类别的已选配件（第一个），没有则追加，保证每个类别只出现一次。
    Replace the first selected component of the candidate's category, or
    append when the category is new, so a category never appears twice.
    """
    trial = list(selected)
    for index, item in enumerate(trial):
        if item.category == candidate.category:
            trial[index] = candidate
            return trial
    trial.append(candidate)
    return trial


def filter_candidates(
    all_components: Iterable[Component],
    selected_components: Sequence[Component],
    allocation_result: BudgetAllocationResult,
) -> CandidateResult:
    """
    按预算和兼容性筛选 - Filter by Budget and Compatibility

    筛选策略 Selection Strategy:
    1. 只保留有货配件 - in stock only
    2. 已锁定类别只返回已选的配件 - locked categories offer only their selection
    3. 其余类别按价格窗口过滤 - others filter on the widened price window
    4. 代入当前选择后重新检查兼容性，只保留兼容的 - re-check with the
       candidate substituted into the selection, keep compatible ones
    """
    by_category: Dict[str, List[Component]] = defaultdict(list)
    for comp in all_components:
        by_category[comp.category].append(comp)

    result = CandidateResult()
    for alloc in allocation_result.allocations:
        key = alloc.category_name.strip().upper()
        pool = [c for c in by_category.get(key, []) if c.stock_status]

        if alloc.spent > 0:
            chosen_ids = {s.id for s in selected_components if s.category == key}
            budget_fit = [c for c in pool if c.id in chosen_ids]
        else:
            low, high = candidate_price_window(alloc)
            budget_fit = [c for c in pool if low <= c.price <= high]

        compatible: List[Component] = []
        for comp in budget_fit:
            verdict = check_compatibility(substitute_candidate(selected_components, comp))
            if selected_components and not verdict.is_compatible:
                continue
            compatible.append(comp)
            result.compatibility_info[comp.id] = CandidateCheck(
                is_compatible=verdict.is_compatible,
                issues=verdict.issues,
                warnings=verdict.warnings,
            )
        logger.debug("%s: %d in stock, %d in budget, %d compatible", key, len(pool), len(budget_fit), len(compatible))
        result.filtered[key] = compatible

    return result


def rank_candidates(candidates: Iterable[Component], target: float) -> List[Component]:
    """离分配金额最近的优先，同距离取便宜的 - closest to target first, cheaper (then by name) on ties."""
    return sorted(candidates, key=lambda c: (abs(c.price - target), c.price, c.name))


def pick_build_from_candidates(
    total_budget: Any,
    categories: Iterable[Any],
    selected_components: Sequence[Component],
    search_candidates_fn: Callable,
) -> BuildSuggestion:
    """
    自动选配 - Pick Build from Candidates

    按类别优先级（高到低，再按名称）依次补全缺失类别，每一步都重新分配预算并调用
    候选搜索工具，取排序第一的候选。找不到候选的类别留空并记录。
    Fill each missing category in priority order (desc, then name). Every step
    re-allocates the budget and asks the search tool for candidates, taking
    the first ranked one. Categories without a candidate stay empty and are
    reported in ``missing_categories``.

    参数 Parameters:
        total_budget: 总预算 - total budget
        categories: 类别列表 - categories
        selected_components: 用户已选配件 - components the user already picked
        search_candidates_fn: 候选搜索工具，支持 ``invoke(dict)``
                              Candidate search tool exposing ``invoke(dict)``.
    """
    categories = list(categories)
    active = [c for c in categories if read_field(c, "is_active", "isActive") is not False]
    order = sorted(
        active,
        key=lambda c: (-(to_number(read_field(c, "priority")) or 1), str(read_field(c, "name") or "").upper()),
    )

    chosen: List[Component] = list(selected_components)
    missing: List[str] = []
    for cat in order:
        key = str(read_field(cat, "name") or "").strip().upper()
        if not key or any(c.category == key for c in chosen):
            continue
        raw = search_candidates_fn.invoke(
            {
                "category": key,
                "total_budget": total_budget,
                "component_ids": [c.id for c in chosen],
            }
        )
        if not raw:
            missing.append(key)
            continue
        chosen.append(Component.model_validate(raw[0]))

    return BuildSuggestion(
        components=chosen,
        missing_categories=missing,
        total_price=round2(sum(c.price for c in chosen)),
        allocation=allocate_budget_by_category(total_budget, categories, chosen),
        compatibility=check_compatibility(chosen),
    )
