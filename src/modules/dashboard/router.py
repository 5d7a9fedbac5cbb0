"""API for dashboard views, their expansion sessions and XLSX exports."""

import io

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import StreamingResponse

from src.core.config import settings
from src.integrations.directus.client import DirectusClient
from src.integrations.directus.dependencies import get_directus_client
from src.modules.dashboard.excel_export import build_view_xlsx
from src.modules.dashboard.schemas import (
    DashboardView,
    FinancialResponse,
    InstrumentsResponse,
    LessonsResponse,
    OverviewResponse,
    PackagesResponse,
    StudentsResponse,
    TeachersResponse,
    ToggleRequest,
    ToggleResponse,
    ViewSessionCreate,
    ViewSessionResponse,
)
from src.modules.dashboard.service import DashboardService
from src.modules.dashboard.sessions import ViewSession, ViewSessionStore
from src.modules.reporting.expansion import ViewExpansion
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

SessionQuery = Query(None, description="View session holding the expanded rows.")


def get_session_store(request: Request) -> ViewSessionStore:
    return request.app.state.sessions


def get_dashboard_service(
    client: DirectusClient = Depends(get_directus_client),
) -> DashboardService:
    return DashboardService(client, settings)


def _expansion(
    store: ViewSessionStore, session_id: str | None, view: DashboardView
) -> ViewExpansion | None:
    session = store.get_for_view(session_id, view.value)
    return session.expansion if session else None


def _session_payload(session: ViewSession) -> dict:
    return {
        "session_id": session.id,
        "view": session.view,
        "levels": session.expansion.levels,
        "expanded": session.expansion.snapshot(),
    }


def _xlsx_response(view: DashboardView, data: dict) -> StreamingResponse:
    content = build_view_xlsx(view.value, data)
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{view.value}.xlsx"'},
    )


# --- View sessions ---


@router.post(
    "/sessions",
    response_model=ApiResponse[ViewSessionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def open_view_session(
    data: ViewSessionCreate,
    store: ViewSessionStore = Depends(get_session_store),
):
    """Open a session when a view mounts. Every row starts collapsed."""
    session = store.create(data.view.value)
    return ApiResponse(data=ViewSessionResponse(**_session_payload(session)))


@router.get(
    "/sessions/{session_id}",
    response_model=ApiResponse[ViewSessionResponse],
)
async def get_view_session(
    session_id: str,
    store: ViewSessionStore = Depends(get_session_store),
):
    session = store.get(session_id)
    return ApiResponse(data=ViewSessionResponse(**_session_payload(session)))


@router.post(
    "/sessions/{session_id}/toggle",
    response_model=ApiResponse[ToggleResponse],
)
async def toggle_row(
    session_id: str,
    data: ToggleRequest,
    store: ViewSessionStore = Depends(get_session_store),
):
    """
    Expand a collapsed row or collapse an expanded one.

    Levels are independent: collapsing a parent keeps its children's state.
    """
    session, is_expanded = store.toggle(session_id, data.level, data.key)
    return ApiResponse(
        data=ToggleResponse(
            **_session_payload(session),
            level=data.level,
            key=data.key,
            is_expanded=is_expanded,
        )
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_view_session(
    session_id: str,
    store: ViewSessionStore = Depends(get_session_store),
):
    """Discard a session when its view unmounts."""
    store.discard(session_id)


# --- Views ---


@router.get("/overview", response_model=ApiResponse[OverviewResponse])
async def get_overview(service: DashboardService = Depends(get_dashboard_service)):
    """Home page cards: teachers, students, instruments, recent lessons, revenue."""
    data = await service.get_overview()
    return ApiResponse(data=OverviewResponse(**data))


@router.get("/financial", response_model=ApiResponse[FinancialResponse])
async def get_financial(
    session_id: str | None = SessionQuery,
    store: ViewSessionStore = Depends(get_session_store),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Revenue by month and instrument; expanded months list their payments."""
    expansion = _expansion(store, session_id, DashboardView.FINANCIAL)
    data = await service.get_financial(expansion)
    return ApiResponse(data=FinancialResponse(**data))


@router.get("/lessons", response_model=ApiResponse[LessonsResponse])
async def get_lessons(
    session_id: str | None = SessionQuery,
    store: ViewSessionStore = Depends(get_session_store),
    service: DashboardService = Depends(get_dashboard_service),
):
    expansion = _expansion(store, session_id, DashboardView.LESSONS)
    data = await service.get_lessons(expansion)
    return ApiResponse(data=LessonsResponse(**data))


@router.get("/packages", response_model=ApiResponse[PackagesResponse])
async def get_packages(
    session_id: str | None = SessionQuery,
    store: ViewSessionStore = Depends(get_session_store),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Package name -> student -> package drill-down with distributions."""
    expansion = _expansion(store, session_id, DashboardView.PACKAGES)
    data = await service.get_packages(expansion)
    return ApiResponse(data=PackagesResponse(**data))


@router.get("/students", response_model=ApiResponse[StudentsResponse])
async def get_students(
    session_id: str | None = SessionQuery,
    store: ViewSessionStore = Depends(get_session_store),
    service: DashboardService = Depends(get_dashboard_service),
):
    expansion = _expansion(store, session_id, DashboardView.STUDENTS)
    data = await service.get_students(expansion)
    return ApiResponse(data=StudentsResponse(**data))


@router.get("/teachers", response_model=ApiResponse[TeachersResponse])
async def get_teachers(
    session_id: str | None = SessionQuery,
    store: ViewSessionStore = Depends(get_session_store),
    service: DashboardService = Depends(get_dashboard_service),
):
    expansion = _expansion(store, session_id, DashboardView.TEACHERS)
    data = await service.get_teachers(expansion)
    return ApiResponse(data=TeachersResponse(**data))


@router.get("/instruments", response_model=ApiResponse[InstrumentsResponse])
async def get_instruments(service: DashboardService = Depends(get_dashboard_service)):
    data = await service.get_instruments()
    return ApiResponse(data=InstrumentsResponse(**data))


# --- Exports ---


@router.get("/financial/export")
async def export_financial(
    session_id: str | None = SessionQuery,
    store: ViewSessionStore = Depends(get_session_store),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Monthly revenue table as XLSX; payments only under expanded months."""
    expansion = _expansion(store, session_id, DashboardView.FINANCIAL)
    data = await service.get_financial(expansion)
    return _xlsx_response(DashboardView.FINANCIAL, data)


@router.get("/lessons/export")
async def export_lessons(
    session_id: str | None = SessionQuery,
    store: ViewSessionStore = Depends(get_session_store),
    service: DashboardService = Depends(get_dashboard_service),
):
    expansion = _expansion(store, session_id, DashboardView.LESSONS)
    data = await service.get_lessons(expansion)
    return _xlsx_response(DashboardView.LESSONS, data)


@router.get("/teachers/export")
async def export_teachers(
    session_id: str | None = SessionQuery,
    store: ViewSessionStore = Depends(get_session_store),
    service: DashboardService = Depends(get_dashboard_service),
):
    expansion = _expansion(store, session_id, DashboardView.TEACHERS)
    data = await service.get_teachers(expansion)
    return _xlsx_response(DashboardView.TEACHERS, data)
