# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from leaveflow.api.deps import AdminDep, ApproverDep, AuthDep, LeaveServiceDep
from leaveflow.schemas.request import (
    CreateLeaveRequestPayload,
    DecisionPayload,
    LeaveRequestListResponse,
    LeaveRequestResponse,
    UpdateLeaveRequestPayload,
)

requests_router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])


@requests_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateLeaveRequestPayload,
    service: LeaveServiceDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """File a new leave request for the authenticated user."""
    return await service.create_request(auth, payload)


@requests_router.get("/me", response_model=LeaveRequestListResponse)
async def list_my_requests(
    service: LeaveServiceDep,
    auth: AuthDep,
) -> LeaveRequestListResponse:
    """List the authenticated user's leave requests."""
    return await service.list_user_requests(auth, auth.user_id)


@requests_router.get("/for-approval", response_model=LeaveRequestListResponse)
async def list_requests_for_approval(
    service: LeaveServiceDep,
    auth: ApproverDep,
) -> LeaveRequestListResponse:
    """List pending requests of the caller's direct reports (admin/manager only)."""
    return await service.list_requests_for_approval(auth)


@requests_router.get("/all", response_model=LeaveRequestListResponse)
async def list_all_requests(
    service: LeaveServiceDep,
    auth: AdminDep,
) -> LeaveRequestListResponse:
    """List every leave request (admin only)."""
    return await service.list_all_requests(auth)


@requests_router.get("/user/{user_id}", response_model=LeaveRequestListResponse)
async def list_user_requests(
    user_id: uuid.UUID,
    service: LeaveServiceDep,
    auth: AuthDep,
) -> LeaveRequestListResponse:
    """List a user's leave requests."""
    return await service.list_user_requests(auth, user_id)


@requests_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_request(
    request_id: uuid.UUID,
    service: LeaveServiceDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Get a single leave request."""
    return await service.get_request(auth, request_id)


@requests_router.put("/{request_id}", response_model=LeaveRequestResponse)
async def update_request(
    request_id: uuid.UUID,
    payload: UpdateLeaveRequestPayload,
    service: LeaveServiceDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Edit a pending leave request (owner only)."""
    return await service.update_request(auth, request_id, payload)


@requests_router.post("/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    service: LeaveServiceDep,
    auth: ApproverDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Approve a pending leave request (admin/manager only)."""
    return await service.approve_request(auth, request_id, payload)


@requests_router.post("/{request_id}/reject", response_model=LeaveRequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    service: LeaveServiceDep,
    auth: ApproverDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Reject a pending leave request (admin/manager only)."""
    return await service.reject_request(auth, request_id, payload)


@requests_router.post("/{request_id}/cancel", response_model=LeaveRequestResponse)
async def cancel_request(
    request_id: uuid.UUID,
    service: LeaveServiceDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Cancel the caller's own pending leave request."""
    return await service.cancel_request(auth, request_id)


@requests_router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: uuid.UUID,
    service: LeaveServiceDep,
    auth: AdminDep,
) -> None:
    """Delete a pending leave request (admin only)."""
    await service.delete_request(auth, request_id)
