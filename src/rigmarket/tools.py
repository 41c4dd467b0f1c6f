from __future__ import annotations

from typing import Any, List

from langchain_core.tools import tool
from pydantic import BaseModel, Field

from .builder.budget import allocate_budget_by_category
from .builder.compatibility import check_compatibility
from .builder.picker import filter_candidates, rank_candidates
from .catalog import CatalogService
from .schemas import normalize_name


class SearchCandidatesInput(BaseModel):
    category: str = Field(description="Category name such as CPU, GPU, MOTHERBOARD")
    total_budget: Any = Field(description="Total budget in dollars for the whole build")
    component_ids: List[str] = Field(default_factory=list, description="Components already selected")


class AllocateBudgetInput(BaseModel):
    total_budget: Any = Field(description="Total budget in dollars for the whole build")
    component_ids: List[str] = Field(default_factory=list)


class CheckCompatibilityInput(BaseModel):
    component_ids: List[str] = Field(default_factory=list)


class Toolset:
    def __init__(self, catalog: CatalogService, *, max_candidates: int = 5):
        self.catalog = catalog
        self.max_candidates = max_candidates
        self.tool_map = self.register()

    def register(self):
        catalog = self.catalog
        max_candidates = self.max_candidates

        @tool("search_candidates", args_schema=SearchCandidatesInput)
        def search_candidates(category: str, total_budget: Any, component_ids: List[str] | None = None) -> List[dict]:
            """Find in-stock components of one category inside its budget window that stay compatible with the current selection, closest to the allocated amount first."""
            key = normalize_name(category)
            selected = catalog.resolve_components(component_ids or [])
            allocation = allocate_budget_by_category(total_budget, catalog.list_categories(), selected)
            target = next((a for a in allocation.allocations if a.category_name == key), None)
            if target is None:
                return []
            scoped = allocation.model_copy(update={"allocations": [target]})
            result = filter_candidates(catalog.list_components(category=key), selected, scoped)
            ranked = rank_candidates(result.filtered.get(key, []), target.allocated_budget)
            return [c.to_document() for c in ranked[:max_candidates]]

        @tool("allocate_budget", args_schema=AllocateBudgetInput)
        def allocate_budget(total_budget: Any, component_ids: List[str] | None = None) -> dict:
            """Split the remaining budget across active categories by priority and return per-category price ranges."""
            selected = catalog.resolve_components(component_ids or [])
            return allocate_budget_by_category(total_budget, catalog.list_categories(), selected).to_wire()

        @tool("check_compatibility", args_schema=CheckCompatibilityInput)
        def check_compatibility_tool(component_ids: List[str] | None = None) -> dict:
            """Validate socket, chipset, form factor, RAM type, power and storage compatibility of a component set."""
            return check_compatibility(catalog.resolve_components(component_ids or [])).to_wire()

        return {
            "search_candidates": search_candidates,
            "allocate_budget": allocate_budget,
            "check_compatibility": check_compatibility_tool,
        }
