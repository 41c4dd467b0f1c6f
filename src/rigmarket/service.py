from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .accounts import UserService, require_role
from .builder.budget import round2
from .builder.compatibility import check_compatibility
from .catalog import CatalogService
from .db import DocumentStore
from .errors import AuthorizationError, NotFoundError, ValidationError
from .schemas import ASSEMBLY_STATUSES, Build, BuildComponent, CompatibilityVerdict, User, utcnow

logger = logging.getLogger(__name__)

BUILDS = "builds"

# Pending → Assembling → Completed, plus Assembling → Pending when an
# assembler un-starts work. Anything else is rejected.
ALLOWED_TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    "Pending": ("Assembling",),
    "Assembling": ("Completed", "Pending"),
    "Completed": (),
}


def validate_status(status: Optional[str]) -> str:
    if status not in ASSEMBLY_STATUSES:
        raise ValidationError("Invalid status. Must be Pending, Assembling, or Completed")
    return status


class BuildService:
    """
    Build records and their assembly lifecycle.

    Every transition is a single-document read-modify-write with no version
    check: two actors updating the same build concurrently is last-write-wins.
    """

    def __init__(self, store: DocumentStore, catalog: CatalogService, users: UserService):
        self.store = store
        self.catalog = catalog
        self.users = users

    def _load(self, build_id: str) -> Build:
        doc = self.store.get(BUILDS, build_id)
        if doc is None:
            raise NotFoundError("Build not found")
        return Build.model_validate(doc)

    def _save(self, build: Build) -> Build:
        build.updated_at = utcnow()
        self.store.replace(BUILDS, build.to_document())
        return build

    def list_builds(self, actor: User, status: Optional[str] = None) -> List[Build]:
        filters = {}
        if actor.role == "user":
            filters["user_id"] = actor.id
        elif actor.role == "assembler":
            filters["assembler_id"] = actor.id
        if status:
            filters["assembly_status"] = validate_status(status)
        builds = [Build.model_validate(d) for d in self.store.find(BUILDS, **filters)]
        builds.sort(key=lambda b: b.created_at, reverse=True)
        return builds

    def get_build(self, actor: User, build_id: str) -> Build:
        build = self._load(build_id)
        if actor.role == "user" and build.user_id != actor.id:
            raise AuthorizationError("Access denied")
        if actor.role == "assembler" and build.assembler_id != actor.id:
            raise AuthorizationError("Access denied")
        return build

    def create_build(self, actor: User, component_ids: Sequence[str]) -> Tuple[Build, CompatibilityVerdict]:
        """
        Create a Pending build from catalog component ids.

        All-or-nothing: every id must resolve to an in-stock component before
        anything is written. The verdict is computed once here and frozen.
        """
        require_role(actor, "user")
        if not component_ids or not isinstance(component_ids, (list, tuple)):
            raise ValidationError("Please provide an array of component IDs")
        if len(set(component_ids)) != len(component_ids):
            raise ValidationError("Component IDs must not repeat")

        try:
            components = self.catalog.resolve_components(component_ids)
        except NotFoundError as exc:
            raise ValidationError("One or more components not found or out of stock") from exc
        if not all(c.stock_status for c in components):
            raise ValidationError("One or more components not found or out of stock")

        verdict = check_compatibility(components)
        snapshot = [
            BuildComponent(component_id=c.id, component_name=c.name, category=c.category, price=c.price)
            for c in components
        ]
        build = Build(
            user_id=actor.id,
            components=snapshot,
            total_price=round2(sum(item.price for item in snapshot)),
            assembly_status="Pending",
            compatibility_check=verdict,
            is_compatible=verdict.is_compatible,
        )
        self.store.insert(BUILDS, build.to_document())
        logger.info(
            "Build %s created by %s with %d component(s), compatible=%s",
            build.id,
            actor.id,
            len(snapshot),
            verdict.is_compatible,
        )
        return build, verdict

    def assign(self, actor: User, build_id: str, assembler_id: Optional[str]) -> Build:
        require_role(actor, "admin")
        if not assembler_id:
            raise ValidationError("Please provide assemblerID")
        build = self._load(build_id)
        assembler = self.users.get_user(assembler_id)
        if assembler.role != "assembler":
            raise ValidationError("User is not an assembler")

        build.assembler_id = assembler.id
        if build.assembly_status == "Pending":
            build.assembly_status = "Assembling"
        logger.info("Build %s assigned to %s by %s", build.id, assembler.id, actor.id)
        return self._save(build)

    def update_status(self, actor: User, build_id: str, status: Optional[str]) -> Build:
        require_role(actor, "assembler", "admin")
        status = validate_status(status)
        build = self._load(build_id)

        if actor.role == "assembler" and build.assembler_id != actor.id:
            claiming = build.assembler_id is None and status == "Assembling"
            if not claiming:
                raise AuthorizationError("You can only update assigned builds")

        if status not in ALLOWED_TRANSITIONS[build.assembly_status]:
            raise ValidationError(f"Cannot change status from {build.assembly_status} to {status}")

        if status == "Assembling" and build.assembler_id is None:
            build.assembler_id = actor.id
        previous = build.assembly_status
        build.assembly_status = status
        logger.info("Build %s moved %s -> %s by %s", build.id, previous, status, actor.id)
        return self._save(build)

    def delete_build(self, actor: User, build_id: str) -> None:
        build = self._load(build_id)
        if actor.role != "admin" and build.user_id != actor.id:
            raise AuthorizationError("You can only delete your own builds")
        self.store.delete(BUILDS, build.id)
        logger.info("Build %s deleted by %s", build.id, actor.id)
