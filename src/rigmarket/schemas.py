from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


Role = Literal["user", "admin", "assembler", "supplier"]
ROLES = ("user", "admin", "assembler", "supplier")

AssemblyStatus = Literal["Pending", "Assembling", "Completed"]
ASSEMBLY_STATUSES = ("Pending", "Assembling", "Completed")


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_name(value: str) -> str:
    return (value or "").strip().upper()


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


# === 目录 Catalog ===


class Category(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    is_active: bool = True
    priority: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        name = normalize_name(value)
        if not name:
            raise ValueError("Category name is required")
        return name


class Component(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    category: str
    price: float = Field(ge=0)
    specifications: str = ""
    compatibility: str = ""  # legacy free text, only read when structured fields are blank
    url: str = ""

    # structured compatibility fields
    socket: str = ""
    chipset: str = ""
    form_factor: str = ""
    ram_type: str = ""
    storage_interface: str = ""
    power_requirement: Optional[int] = Field(default=None, ge=0)
    wattage: Optional[int] = Field(default=None, ge=0)

    stock_status: bool = True
    priority: int = Field(default=1, ge=1)
    supplier_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        name = (value or "").strip()
        if not name:
            raise ValueError("Component name is required")
        return name

    @field_validator("category")
    @classmethod
    def _normalize_category(cls, value: str) -> str:
        category = normalize_name(value)
        if not category:
            raise ValueError("Component category is required")
        return category


class User(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str
    email: str = ""
    role: Role = "user"
    created_at: datetime = Field(default_factory=utcnow)


# === 兼容性 Compatibility ===


class CompatibilityVerdict(CamelModel):
    is_compatible: bool = True
    issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    summary: str = "Build is compatible"


# === 装机单 Build ===


class BuildComponent(CamelModel):
    """Snapshot of a catalog component taken when the build is created."""

    model_config = ConfigDict(frozen=True)

    component_id: str
    component_name: str
    category: str
    price: float


class Build(CamelModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    components: List[BuildComponent] = Field(default_factory=list)
    total_price: float = 0.0
    assembly_status: AssemblyStatus = "Pending"
    assembler_id: Optional[str] = None
    compatibility_check: CompatibilityVerdict = Field(default_factory=CompatibilityVerdict)
    is_compatible: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# === 预算 Budget ===


class CategoryAllocation(CamelModel):
    category_id: Optional[str] = None
    category_name: str
    priority: int = 0
    ratio: float = 0.0
    allocated_budget: float = 0.0
    min_budget: float = 0.0
    max_budget: float = 0.0
    spent: float = 0.0
    remaining: float = 0.0


class BudgetAllocationResult(CamelModel):
    total_budget: float
    spent: float = 0.0
    remaining: float = 0.0
    allocations: List[CategoryAllocation] = Field(default_factory=list)


class CandidateCheck(CamelModel):
    is_compatible: bool
    issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class CandidateResult(CamelModel):
    filtered: Dict[str, List[Component]] = Field(default_factory=dict)
    compatibility_info: Dict[str, CandidateCheck] = Field(default_factory=dict)


class BuildSuggestion(CamelModel):
    components: List[Component] = Field(default_factory=list)
    missing_categories: List[str] = Field(default_factory=list)
    total_price: float = 0.0
    allocation: BudgetAllocationResult
    compatibility: CompatibilityVerdict


# === 请求体 Request bodies ===


class ComponentCreate(CamelModel):
    name: str
    category: str
    price: float = Field(ge=0)
    specifications: str
    compatibility: str = ""
    url: str = ""
    socket: str = ""
    chipset: str = ""
    form_factor: str = ""
    ram_type: str = ""
    storage_interface: str = ""
    power_requirement: Optional[int] = Field(default=None, ge=0)
    wattage: Optional[int] = Field(default=None, ge=0)
    stock_status: bool = True
    priority: int = Field(default=1, ge=1)
    supplier_id: Optional[str] = Field(default=None, alias="supplierID")


class ComponentUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    specifications: Optional[str] = None
    compatibility: Optional[str] = None
    url: Optional[str] = None
    socket: Optional[str] = None
    chipset: Optional[str] = None
    form_factor: Optional[str] = None
    ram_type: Optional[str] = None
    storage_interface: Optional[str] = None
    power_requirement: Optional[int] = Field(default=None, ge=0)
    wattage: Optional[int] = Field(default=None, ge=0)
    stock_status: Optional[bool] = None
    priority: Optional[int] = Field(default=None, ge=1)
    supplier_id: Optional[str] = Field(default=None, alias="supplierID")


class CategoryCreate(CamelModel):
    name: str = ""
    description: str = ""
    is_active: bool = True
    priority: int = Field(default=1, ge=1)


class CategoryUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    priority: Optional[int] = Field(default=None, ge=1)


class RoleUpdate(CamelModel):
    role: str = ""


class BuildCreateRequest(CamelModel):
    component_ids: List[str] = Field(default_factory=list, alias="componentIDs")


class StatusUpdateRequest(CamelModel):
    status: str = ""


class AssignRequest(CamelModel):
    assembler_id: Optional[str] = Field(default=None, alias="assemblerID")


class ComposeRequest(CamelModel):
    total_budget: Any = None
    component_ids: List[str] = Field(default_factory=list, alias="componentIDs")
