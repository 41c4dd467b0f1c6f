from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .accounts import require_role
from .db import DocumentStore
from .errors import ConflictError, NotFoundError, ValidationError
from .schemas import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    Component,
    ComponentCreate,
    ComponentUpdate,
    User,
    normalize_name,
    utcnow,
)

logger = logging.getLogger(__name__)

COMPONENTS = "components"
CATEGORIES = "categories"

# fields a PUT may clear by sending null
NULLABLE_FIELDS = ("power_requirement", "wattage")


class CatalogService:
    """Components and categories, with the role rules suppliers and admins work under."""

    def __init__(self, store: DocumentStore):
        self.store = store

    # === 类别 Categories ===

    def list_categories(self, include_inactive: bool = False) -> List[Category]:
        categories = [Category.model_validate(d) for d in self.store.all(CATEGORIES)]
        if not include_inactive:
            categories = [c for c in categories if c.is_active]
        categories.sort(key=lambda c: c.name)
        return categories

    def get_category(self, category_id: str) -> Category:
        doc = self.store.get(CATEGORIES, category_id)
        if doc is None:
            raise NotFoundError("Category not found")
        return Category.model_validate(doc)

    def find_category_by_name(self, name: str) -> Optional[Category]:
        docs = self.store.find(CATEGORIES, name=normalize_name(name))
        return Category.model_validate(docs[0]) if docs else None

    def _components_using(self, category_name: str) -> int:
        return self.store.count(COMPONENTS, category=category_name)

    def create_category(self, actor: User, payload: CategoryCreate) -> Category:
        require_role(actor, "admin")
        name = normalize_name(payload.name)
        if not name:
            raise ValidationError("Category name is required")
        if self.find_category_by_name(name) is not None:
            raise ConflictError("Category already exists")
        category = Category(
            name=name,
            description=payload.description or "",
            is_active=payload.is_active,
            priority=payload.priority,
        )
        self.store.insert(CATEGORIES, category.to_document())
        logger.info("Category %s created by %s", category.name, actor.id)
        return category

    def update_category(self, actor: User, category_id: str, payload: CategoryUpdate) -> Category:
        require_role(actor, "admin")
        category = self.get_category(category_id)

        if payload.name is not None and payload.name.strip():
            name = normalize_name(payload.name)
            if name != category.name:
                existing = self.find_category_by_name(name)
                if existing is not None and existing.id != category.id:
                    raise ConflictError("Category name already exists")
                in_use = self._components_using(category.name)
                if in_use:
                    raise ConflictError(
                        f"Cannot rename category. It is being used by {in_use} component(s). "
                        "Please remove or reassign those components first."
                    )
                category.name = name
        if payload.description is not None:
            category.description = payload.description
        if payload.is_active is not None:
            category.is_active = payload.is_active
        if payload.priority is not None:
            category.priority = payload.priority

        category.updated_at = utcnow()
        self.store.replace(CATEGORIES, category.to_document())
        return category

    def delete_category(self, actor: User, category_id: str) -> None:
        require_role(actor, "admin")
        category = self.get_category(category_id)
        in_use = self._components_using(category.name)
        if in_use:
            logger.warning("Refused to delete category %s: %d component(s) reference it", category.name, in_use)
            raise ConflictError(
                f"Cannot delete category. It is being used by {in_use} component(s). "
                "Please remove or reassign those components first."
            )
        self.store.delete(CATEGORIES, category.id)
        logger.info("Category %s deleted by %s", category.name, actor.id)

    # === 配件 Components ===

    def list_components(
        self,
        category: Optional[str] = None,
        stock_status: Optional[bool] = None,
        supplier_id: Optional[str] = None,
    ) -> List[Component]:
        docs = self.store.find(
            COMPONENTS,
            category=normalize_name(category) if category else None,
            stock_status=stock_status,
            supplier_id=supplier_id,
        )
        components = [Component.model_validate(d) for d in docs]
        components.sort(key=lambda c: c.created_at, reverse=True)
        return components

    def get_component(self, component_id: str) -> Component:
        doc = self.store.get(COMPONENTS, component_id)
        if doc is None:
            raise NotFoundError("Component not found")
        return Component.model_validate(doc)

    def resolve_components(self, component_ids: Sequence[str]) -> List[Component]:
        """Load components in the given order; any unknown id fails the whole lookup."""
        components: List[Component] = []
        for component_id in component_ids:
            doc = self.store.get(COMPONENTS, component_id)
            if doc is None:
                raise NotFoundError(f"Component not found: {component_id}")
            components.append(Component.model_validate(doc))
        return components

    def _require_known_category(self, name: str) -> str:
        category = self.find_category_by_name(name)
        if category is None:
            raise ValidationError(f"Unknown category '{normalize_name(name)}'")
        return category.name

    def create_component(self, actor: User, payload: ComponentCreate) -> Component:
        require_role(actor, "admin", "supplier")
        if not payload.name.strip() or not payload.category.strip() or not payload.specifications.strip():
            raise ValidationError("Please provide name, category, price, and specifications")

        data = payload.model_dump(exclude={"supplier_id"})
        data["category"] = self._require_known_category(payload.category)
        supplier_id = actor.id if actor.role == "supplier" else (payload.supplier_id or None)

        component = Component(**data, supplier_id=supplier_id)
        self.store.insert(COMPONENTS, component.to_document())
        logger.info("Component %s (%s) created by %s", component.id, component.category, actor.id)
        return component

    def update_component(self, actor: User, component_id: str, payload: ComponentUpdate) -> Component:
        require_role(actor, "admin", "supplier")
        component = self.get_component(component_id)

        changes = payload.model_dump(exclude_unset=True, exclude={"supplier_id"})
        # an explicit null clears a nullable field; elsewhere it means "unchanged"
        changes = {k: v for k, v in changes.items() if v is not None or k in NULLABLE_FIELDS}
        for key in ("name", "category", "specifications"):
            if key in changes and not changes[key].strip():
                changes.pop(key)
        if "category" in changes:
            changes["category"] = self._require_known_category(changes["category"])

        data = component.to_document()
        data.update(changes)
        if actor.role == "supplier":
            # suppliers take ownership of whatever they edit
            data["supplier_id"] = actor.id
        elif "supplier_id" in payload.model_fields_set:
            data["supplier_id"] = payload.supplier_id or None
        data["updated_at"] = utcnow()

        updated = Component.model_validate(data)
        self.store.replace(COMPONENTS, updated.to_document())
        return updated

    def delete_component(self, actor: User, component_id: str) -> None:
        require_role(actor, "admin", "supplier")
        component = self.get_component(component_id)
        self.store.delete(COMPONENTS, component.id)
        logger.info("Component %s deleted by %s", component.id, actor.id)
