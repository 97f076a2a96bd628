"""Payroll batch endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, status

from staffing_engine.api.dependencies import Store
from staffing_engine.api.schemas import (
    ErrorResponse,
    PayrollBatchCreate,
    PayrollBatchDetailResponse,
    PayrollBatchListResponse,
    PayrollBatchResponse,
    PayrollItemResponse,
    ProcessBatchResponse,
    StaffTotalResponse,
)
from staffing_engine.services.payroll_batcher import (
    BatchLinkConflictError,
    BatchNotFoundError,
    NoEligibleAssignmentsError,
    PayrollBatcher,
    staff_totals,
)
from staffing_engine.services.state_machine import InvalidTransitionError

router = APIRouter(prefix="/payroll-batches", tags=["payroll"])


@router.post(
    "",
    response_model=PayrollBatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_payroll_batch(
    store: Store,
    payload: PayrollBatchCreate,
) -> PayrollBatchResponse:
    """Create a draft batch for the week containing ``anchor_date``."""
    batcher = PayrollBatcher(store, store)
    try:
        batch_id = await batcher.create_batch(payload.anchor_date)
    except (NoEligibleAssignmentsError, BatchLinkConflictError) as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return PayrollBatchResponse.model_validate(await batcher.get_batch(batch_id))


@router.get("", response_model=PayrollBatchListResponse)
async def list_payroll_batches(store: Store) -> PayrollBatchListResponse:
    """List batches, newest period first."""
    batches = await store.list_batches()
    return PayrollBatchListResponse(
        items=[PayrollBatchResponse.model_validate(b) for b in batches],
        total=len(batches),
    )


@router.get(
    "/{batch_id}",
    response_model=PayrollBatchDetailResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_payroll_batch(
    store: Store,
    batch_id: Annotated[UUID, Path()],
) -> PayrollBatchDetailResponse:
    """Get a batch with its assignments, their events and per-staff totals."""
    batcher = PayrollBatcher(store, store)
    try:
        batch = await batcher.get_batch(batch_id)
    except BatchNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    assignments = await batcher.batch_items(batch_id)
    names = {member.id: member.full_name for member in await store.list_staff()}
    events = {
        event.id: event
        for event in await store.get_events(sorted({a.event_id for a in assignments}))
    }

    items = []
    for assignment in assignments:
        item = PayrollItemResponse.model_validate(assignment)
        item.staff_name = names.get(assignment.staff_id)
        event = events.get(assignment.event_id)
        if event is not None:
            item.event_name = event.name
            item.event_date = event.event_date
            item.venue_name = event.venue_name
        items.append(item)

    return PayrollBatchDetailResponse(
        **PayrollBatchResponse.model_validate(batch).model_dump(),
        items=items,
        staff_totals=[
            StaffTotalResponse(
                staff_id=group.staff_id,
                staff_name=names.get(group.staff_id),
                total=group.total,
                items=group.assignment_ids,
            )
            for group in staff_totals(assignments)
        ],
    )


@router.post(
    "/{batch_id}/process",
    response_model=ProcessBatchResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def process_payroll_batch(
    store: Store,
    batch_id: Annotated[UUID, Path()],
) -> ProcessBatchResponse:
    """Mark a draft batch and its assignments paid."""
    batcher = PayrollBatcher(store, store)
    try:
        count = await batcher.process_batch(batch_id)
    except BatchNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except InvalidTransitionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return ProcessBatchResponse(batch_id=batch_id, status="paid", assignments_paid=count)
