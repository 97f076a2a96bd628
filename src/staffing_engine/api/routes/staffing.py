"""Event staffing endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, status

from staffing_engine.api.dependencies import Catalog, Store
from staffing_engine.api.routes._convert import to_context, to_override
from staffing_engine.api.schemas import (
    AssignmentCreatedResponse,
    AssignStaffRequest,
    CompensationResponse,
    ErrorResponse,
    PositionSyncRequest,
    SaveCompensationRequest,
    SkippedRoleResponse,
    SyncReportResponse,
)
from staffing_engine.config import get_settings
from staffing_engine.services.assignment_service import (
    AssignmentLockedError,
    AssignmentService,
    EventNotFoundError,
    StaffNotFoundError,
)
from staffing_engine.services.reconciler import AssignmentReconciler
from staffing_engine.stores.base import AssignmentNotFoundError, DuplicateAssignmentError

router = APIRouter(tags=["staffing"])


@router.post(
    "/events/{event_id}/staffing/sync",
    response_model=SyncReportResponse,
    responses={404: {"model": ErrorResponse}},
)
async def sync_positions(
    store: Store,
    catalog: Catalog,
    event_id: Annotated[UUID, Path()],
    payload: PositionSyncRequest,
) -> SyncReportResponse:
    """Reconcile the event's assignments with the positions grid.

    Always answers 200 with a per-role report; individual roles that could
    not be written are listed under ``skipped``.
    """
    if await store.get_event_date(event_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    reconciler = AssignmentReconciler(store, store, catalog)
    report = await reconciler.reconcile(
        event_id,
        payload.positions,
        context=to_context(payload.context, get_settings().currency_symbol),
    )
    return SyncReportResponse(
        created=report.created,
        updated=report.updated,
        deleted=report.deleted,
        skipped=[SkippedRoleResponse(role=s.role, reason=s.reason.value) for s in report.skipped],
        summary=report.summary(),
    )


@router.post(
    "/events/{event_id}/assignments",
    response_model=AssignmentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def assign_staff(
    store: Store,
    catalog: Catalog,
    event_id: Annotated[UUID, Path()],
    payload: AssignStaffRequest,
) -> AssignmentCreatedResponse:
    """Add a staffer to an event role from the assignment list."""
    service = AssignmentService(store, store, store, catalog)
    try:
        assignment_id = await service.assign_staff(
            event_id,
            payload.staff_id,
            payload.role,
            context=to_context(payload.context, get_settings().currency_symbol),
            manual_total=payload.manual_total,
            pay_type=payload.pay_type,
        )
    except (EventNotFoundError, StaffNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except DuplicateAssignmentError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return AssignmentCreatedResponse(id=assignment_id)


@router.put(
    "/assignments/{assignment_id}/compensation",
    response_model=CompensationResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def save_compensation(
    store: Store,
    catalog: Catalog,
    assignment_id: Annotated[UUID, Path()],
    payload: SaveCompensationRequest,
) -> CompensationResponse:
    """Recalculate and store an assignment's pay."""
    service = AssignmentService(store, store, store, catalog)
    try:
        result = await service.save_compensation(
            assignment_id,
            to_override(payload.override),
            context=to_context(payload.context, get_settings().currency_symbol),
            use_suggested=payload.use_suggested,
        )
    except AssignmentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except AssignmentLockedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return CompensationResponse(
        total=result.total,
        breakdown=result.breakdown,
        effective_parameters=result.effective_parameters,
        needs_revenue=result.needs_revenue,
    )


@router.delete(
    "/assignments/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def remove_assignment(
    store: Store,
    catalog: Catalog,
    assignment_id: Annotated[UUID, Path()],
) -> None:
    """Remove a staffer from an event."""
    service = AssignmentService(store, store, store, catalog)
    try:
        await service.remove_assignment(assignment_id)
    except AssignmentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except AssignmentLockedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
