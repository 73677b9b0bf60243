"""UI endpoints.

GET  /                   - HTML page for the current view
GET  /v1/ui/view         - view snapshot (tab switch + search via query params)
POST /v1/ui/...          - actions (add/update/delete/reorder/expand/refresh)

The workspace is started lazily on the first UI request, like a page mount.
Routers are thin: the workspace owns caching and mutation semantics.
"""

from fastapi import APIRouter, Query, Request
from fastapi.responses import HTMLResponse

from knowledge_hub.schemas import (
    ActionResponse,
    Category,
    QAForm,
    ReadingEditForm,
    ReadingForm,
    ReadingKind,
    ReorderForm,
    ViewResponse,
)
from knowledge_hub.services.page import render_page
from knowledge_hub.services.workspace import Workspace

router = APIRouter()


async def _workspace(request: Request) -> Workspace:
    workspace: Workspace = request.app.state.workspace
    await workspace.start()
    return workspace


async def _apply_view_params(workspace: Workspace, tab: Category | None, q: str | None) -> None:
    if tab is not None:
        await workspace.switch_tab(tab)
    if q is not None:
        workspace.set_search(q)
    workspace.refresh_stale()


def _result(workspace: Workspace, ok: bool) -> ActionResponse:
    return ActionResponse(ok=ok, view=workspace.snapshot())


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index(
    request: Request,
    tab: Category | None = Query(default=None),
    q: str | None = Query(default=None),
) -> HTMLResponse:
    workspace = await _workspace(request)
    await _apply_view_params(workspace, tab, q)
    return HTMLResponse(render_page(workspace.snapshot()))


@router.get("/v1/ui/view", response_model=ViewResponse)
async def get_view(
    request: Request,
    tab: Category | None = Query(default=None, description="Switch to this tab"),
    q: str | None = Query(default=None, description="Search query; empty clears"),
) -> ViewResponse:
    """Current view; switching to an uncached tab fetches it once."""
    workspace = await _workspace(request)
    await _apply_view_params(workspace, tab, q)
    return workspace.snapshot()


@router.post("/v1/ui/refresh", response_model=ActionResponse)
async def refresh(request: Request, tab: Category | None = Query(default=None)) -> ActionResponse:
    workspace = await _workspace(request)
    ok = await workspace.refresh(tab)
    return _result(workspace, ok)


@router.post("/v1/ui/expand/{item_id}", response_model=ActionResponse)
async def toggle_expanded(request: Request, item_id: str) -> ActionResponse:
    workspace = await _workspace(request)
    workspace.toggle_expanded(item_id)
    return _result(workspace, True)


# ============================================================
# QA actions
# ============================================================


@router.post("/v1/ui/qa", response_model=ActionResponse)
async def add_qa(request: Request, form: QAForm) -> ActionResponse:
    workspace = await _workspace(request)
    item = await workspace.add_qa(form.title, form.content, form.tags)
    return _result(workspace, item is not None)


@router.put("/v1/ui/qa/{item_id}", response_model=ActionResponse)
async def update_qa(request: Request, item_id: str, form: QAForm) -> ActionResponse:
    workspace = await _workspace(request)
    ok = await workspace.update_qa(item_id, form.title, form.content, form.tags)
    return _result(workspace, ok)


@router.delete("/v1/ui/qa/{item_id}", response_model=ActionResponse)
async def delete_qa(request: Request, item_id: str) -> ActionResponse:
    workspace = await _workspace(request)
    ok = await workspace.delete_qa(item_id)
    return _result(workspace, ok)


@router.post("/v1/ui/qa/reorder", response_model=ActionResponse)
async def reorder_qa(request: Request, form: ReorderForm) -> ActionResponse:
    workspace = await _workspace(request)
    ok = workspace.reorder_qa(form.moved_id, form.target_id)
    return _result(workspace, ok)


# ============================================================
# Reading actions
# ============================================================


@router.post("/v1/ui/reading", response_model=ActionResponse)
async def add_reading(request: Request, form: ReadingForm) -> ActionResponse:
    workspace = await _workspace(request)
    item = await workspace.add_reading(form.text, ReadingKind(form.kind))
    return _result(workspace, item is not None)


@router.put("/v1/ui/reading/{item_id}", response_model=ActionResponse)
async def update_reading(request: Request, item_id: str, form: ReadingEditForm) -> ActionResponse:
    workspace = await _workspace(request)
    kind = ReadingKind(form.kind) if form.kind else None
    ok = await workspace.update_reading(item_id, form.text, kind)
    return _result(workspace, ok)


@router.delete("/v1/ui/reading/{item_id}", response_model=ActionResponse)
async def delete_reading(request: Request, item_id: str) -> ActionResponse:
    workspace = await _workspace(request)
    ok = await workspace.delete_reading(item_id)
    return _result(workspace, ok)
