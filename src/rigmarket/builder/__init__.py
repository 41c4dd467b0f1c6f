"""Builder 模块：兼容性检查、预算分配与候选筛选"""

from .compatibility import check_compatibility
from .budget import allocate_budget_by_category
from .picker import filter_candidates, pick_build_from_candidates, rank_candidates

__all__ = [
    "check_compatibility",
    "allocate_budget_by_category",
    "filter_candidates",
    "pick_build_from_candidates",
    "rank_candidates",
]
