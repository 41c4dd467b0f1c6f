from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .accounts import UserService
from .builder.budget import allocate_budget_by_category, validate_budget
from .builder.compatibility import check_compatibility
from .builder.picker import filter_candidates, pick_build_from_candidates
from .catalog import CatalogService
from .config import Settings, load_settings
from .db import DocumentStore, open_store
from .errors import RigMarketError
from .schemas import (
    AssignRequest,
    BuildCreateRequest,
    CategoryCreate,
    CategoryUpdate,
    ComponentCreate,
    ComponentUpdate,
    ComposeRequest,
    RoleUpdate,
    StatusUpdateRequest,
    User,
)
from .seed import seed_demo_data
from .service import BuildService
from .tools import Toolset

logger = logging.getLogger(__name__)


def _ok(data: Any, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    body.update(extra)
    return body


def _listing(items) -> Dict[str, Any]:
    data = [item.to_wire() for item in items]
    return _ok(data, count=len(data))


def create_app(settings: Optional[Settings] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = store if store is not None else open_store(settings)
    if settings.seed_demo_data:
        seed_demo_data(store)

    users = UserService(store)
    catalog = CatalogService(store)
    builds = BuildService(store, catalog, users)
    toolset = Toolset(catalog)

    app = FastAPI(title="RigMarket")
    app.state.settings = settings
    app.state.store = store
    app.state.users = users
    app.state.catalog = catalog
    app.state.builds = builds
    app.state.toolset = toolset

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RigMarketError)
    async def handle_domain_error(request: Request, exc: RigMarketError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

    def current_user(x_user_id: Optional[str] = Header(default=None)) -> User:
        return users.authenticate(x_user_id or "")

    @app.get("/health")
    def health():
        return {"status": "ok", "store": settings.store}

    # === 配件 Components ===

    @app.get("/api/components")
    def list_components(
        category: Optional[str] = None,
        stock_status: Optional[bool] = Query(default=None, alias="stockStatus"),
        supplier_id: Optional[str] = Query(default=None, alias="supplierID"),
    ):
        return _listing(catalog.list_components(category, stock_status, supplier_id))

    @app.get("/api/components/{component_id}")
    def get_component(component_id: str):
        return _ok(catalog.get_component(component_id).to_wire())

    @app.post("/api/components", status_code=201)
    def create_component(payload: ComponentCreate, actor: User = Depends(current_user)):
        return _ok(catalog.create_component(actor, payload).to_wire())

    @app.put("/api/components/{component_id}")
    def update_component(component_id: str, payload: ComponentUpdate, actor: User = Depends(current_user)):
        return _ok(catalog.update_component(actor, component_id, payload).to_wire())

    @app.delete("/api/components/{component_id}")
    def delete_component(component_id: str, actor: User = Depends(current_user)):
        catalog.delete_component(actor, component_id)
        return {"success": True, "message": "Component removed"}

    # === 类别 Categories ===

    @app.get("/api/categories")
    def list_categories(include_inactive: bool = Query(default=False, alias="includeInactive")):
        return _listing(catalog.list_categories(include_inactive))

    @app.get("/api/categories/{category_id}")
    def get_category(category_id: str):
        return _ok(catalog.get_category(category_id).to_wire())

    @app.post("/api/categories", status_code=201)
    def create_category(payload: CategoryCreate, actor: User = Depends(current_user)):
        return _ok(catalog.create_category(actor, payload).to_wire())

    @app.put("/api/categories/{category_id}")
    def update_category(category_id: str, payload: CategoryUpdate, actor: User = Depends(current_user)):
        return _ok(catalog.update_category(actor, category_id, payload).to_wire())

    @app.delete("/api/categories/{category_id}")
    def delete_category(category_id: str, actor: User = Depends(current_user)):
        catalog.delete_category(actor, category_id)
        return {"success": True, "message": "Category deleted successfully"}

    # === 用户 Users ===

    @app.get("/api/users")
    def list_users(actor: User = Depends(current_user)):
        return _listing(users.list_users(actor))

    @app.put("/api/users/{user_id}/role")
    def update_role(user_id: str, payload: RoleUpdate, actor: User = Depends(current_user)):
        return _ok(users.update_role(actor, user_id, payload.role).to_wire())

    @app.delete("/api/users/{user_id}")
    def delete_user(user_id: str, actor: User = Depends(current_user)):
        users.delete_user(actor, user_id)
        return {"success": True, "message": "User removed"}

    # === 装机单 Builds ===

    @app.post("/api/builds", status_code=201)
    def create_build(payload: BuildCreateRequest, actor: User = Depends(current_user)):
        build, verdict = builds.create_build(actor, payload.component_ids)
        return _ok(build.to_wire(), compatibility=verdict.to_wire())

    @app.get("/api/builds")
    def list_builds(status: Optional[str] = None, actor: User = Depends(current_user)):
        return _listing(builds.list_builds(actor, status))

    @app.get("/api/builds/{build_id}")
    def get_build(build_id: str, actor: User = Depends(current_user)):
        return _ok(builds.get_build(actor, build_id).to_wire())

    @app.put("/api/builds/{build_id}/status")
    def update_build_status(build_id: str, payload: StatusUpdateRequest, actor: User = Depends(current_user)):
        return _ok(builds.update_status(actor, build_id, payload.status).to_wire())

    @app.put("/api/builds/{build_id}/assign")
    def assign_build(build_id: str, payload: AssignRequest, actor: User = Depends(current_user)):
        return _ok(builds.assign(actor, build_id, payload.assembler_id).to_wire())

    @app.delete("/api/builds/{build_id}")
    def delete_build(build_id: str, actor: User = Depends(current_user)):
        builds.delete_build(actor, build_id)
        return {"success": True, "message": "Build removed"}

    # === 选配 Compose ===

    @app.post("/api/compose/allocate")
    def compose_allocate(payload: ComposeRequest):
        selected = catalog.resolve_components(payload.component_ids)
        result = allocate_budget_by_category(payload.total_budget, catalog.list_categories(), selected)
        return _ok(result.to_wire())

    @app.post("/api/compose/candidates")
    def compose_candidates(payload: ComposeRequest):
        selected = catalog.resolve_components(payload.component_ids)
        allocation = allocate_budget_by_category(payload.total_budget, catalog.list_categories(), selected)
        result = filter_candidates(catalog.list_components(), selected, allocation)
        return _ok(result.to_wire(), allocation=allocation.to_wire())

    @app.post("/api/compose/check")
    def compose_check(payload: ComposeRequest):
        selected = catalog.resolve_components(payload.component_ids)
        return _ok(check_compatibility(selected).to_wire())

    @app.post("/api/compose/suggest")
    def compose_suggest(payload: ComposeRequest):
        validate_budget(payload.total_budget)
        selected = catalog.resolve_components(payload.component_ids)
        suggestion = pick_build_from_candidates(
            payload.total_budget,
            catalog.list_categories(),
            selected,
            toolset.tool_map["search_candidates"],
        )
        return _ok(suggestion.to_wire())

    logger.info("RigMarket app ready (store=%s)", settings.store)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
