# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy.exc import DBAPIError, OperationalError

from leaveflow.config import get_settings
from leaveflow.db import get_session_factory
from leaveflow.exceptions import InvalidStateError, UnauthorizedError
from leaveflow.models.enums import LeaveRequestStatus, RoleType, Transition
from leaveflow.models.request import LeaveRequest
from leaveflow.schemas.request import LeaveRequestListResponse, LeaveRequestResponse
from leaveflow.services.approval import ApprovalPolicy, select_approval_policy
from leaveflow.services.balance import BalanceLedger
from leaveflow.services.duration import calculate_duration_days
from leaveflow.services.leave_type import get_leave_type_or_404
from leaveflow.services.repository import LeaveRequestRepository
from leaveflow.services.user import get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from leaveflow.models.leave_type import LeaveType
    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.request import (
        CreateLeaveRequestPayload,
        DecisionPayload,
        UpdateLeaveRequestPayload,
    )

logger = logging.getLogger(__name__)

T = TypeVar("T")

PolicySelector = Callable[["AuthContext", "LeaveType | None"], ApprovalPolicy]

# Serialization failure, deadlock detected, lock not available.
_TRANSIENT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})

_BALANCE_AFFECTING_FIELDS = frozenset({"leave_type_id", "start_date", "end_date"})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_request_response(request: LeaveRequest) -> LeaveRequestResponse:
    """Map a request model to its response schema."""
    return LeaveRequestResponse(
        id=request.id,
        user_id=request.user_id,
        leave_type_id=request.leave_type_id,
        start_date=request.start_date,
        end_date=request.end_date,
        duration=request.duration,
        reason=request.reason,
        status=LeaveRequestStatus(request.status),
        comments=request.comments,
        approved_by_id=request.approved_by_id,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


def _build_list_response(requests: list[LeaveRequest]) -> LeaveRequestListResponse:
    return LeaveRequestListResponse(
        items=[_build_request_response(r) for r in requests],
        total=len(requests),
    )


def _is_transient(exc: DBAPIError) -> bool:
    """Whether a database error is worth retrying with a fresh transaction."""
    if exc.connection_invalidated or isinstance(exc, OperationalError):
        return True
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return sqlstate in _TRANSIENT_SQLSTATES


def _require_pending(request: LeaveRequest, transition: Transition) -> None:
    if request.status != LeaveRequestStatus.PENDING.value:
        raise InvalidStateError(transition, request.id, request.status)


# ---------------------------------------------------------------------------
# Lifecycle engine
# ---------------------------------------------------------------------------


class LeaveRequestService:
    """State machine for leave requests.

    The only writer of ``LeaveRequest.status`` and the only caller of
    ``BalanceLedger.deduct``. Every command runs as one transaction that
    re-reads the request under a row lock, checks authorization and state,
    and writes through a status-guarded update. Transient database failures
    re-run the whole unit up to ``max_attempts`` times; domain errors
    propagate on the first attempt.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        repository: LeaveRequestRepository | None = None,
        ledger: BalanceLedger | None = None,
        policy_selector: PolicySelector = select_approval_policy,
        max_attempts: int = 3,
        enforce_balance_on_approve: bool = False,
    ) -> None:
        self._session_factory = session_factory
        self._repository = repository or LeaveRequestRepository()
        self._ledger = ledger or BalanceLedger()
        self._policy_selector = policy_selector
        self._max_attempts = max(1, max_attempts)
        self._enforce_balance_on_approve = enforce_balance_on_approve

    async def _run_in_transaction(
        self,
        transition: Transition,
        request_id: uuid.UUID | None,
        operation: Callable[[AsyncSession], Awaitable[T]],
    ) -> T:
        """Run ``operation`` in its own transaction, retrying transient failures."""
        attempt = 1
        while True:
            try:
                async with self._session_factory() as session, session.begin():
                    return await operation(session)
            except DBAPIError as exc:
                if not _is_transient(exc) or attempt >= self._max_attempts:
                    logger.error(
                        "Database error during %s of leave request %s after %d attempt(s)",
                        transition,
                        request_id,
                        attempt,
                    )
                    raise
                logger.warning(
                    "Transient database error during %s of leave request %s (attempt %d/%d): %s",
                    transition,
                    request_id,
                    attempt,
                    self._max_attempts,
                    exc.orig,
                )
                attempt += 1

    # -- commands ----------------------------------------------------------

    async def create_request(
        self,
        auth: AuthContext,
        payload: CreateLeaveRequestPayload,
    ) -> LeaveRequestResponse:
        """File a new PENDING request for the actor.

        Flow:
        1. Load the owner and the leave type (404 if either is missing)
        2. Compute the inclusive duration
        3. Check the category balance covers it (point-in-time, not a hold)
        4. Insert the request
        """

        async def _operation(session: AsyncSession) -> LeaveRequestResponse:
            owner = await get_user_or_404(session, auth.user_id)
            leave_type = await get_leave_type_or_404(session, payload.leave_type_id)
            duration = calculate_duration_days(payload.start_date, payload.end_date)

            self._ledger.check_sufficient(owner, leave_type, duration)

            request = LeaveRequest(
                user_id=owner.id,
                leave_type_id=leave_type.id,
                start_date=payload.start_date,
                end_date=payload.end_date,
                duration=duration,
                reason=payload.reason,
                status=LeaveRequestStatus.PENDING.value,
            )
            await self._repository.add(session, request)
            return _build_request_response(request)

        response = await self._run_in_transaction(Transition.CREATE, None, _operation)
        logger.info("Leave request %s created by user %s (%d day(s))", response.id, auth.user_id, response.duration)
        return response

    async def approve_request(
        self,
        auth: AuthContext,
        request_id: uuid.UUID,
        payload: DecisionPayload | None = None,
    ) -> LeaveRequestResponse:
        """Approve a pending request and deduct the owner's balance in the same transaction."""
        return await self._decide(
            auth,
            request_id,
            LeaveRequestStatus.APPROVED,
            Transition.APPROVE,
            payload.comments if payload else None,
        )

    async def reject_request(
        self,
        auth: AuthContext,
        request_id: uuid.UUID,
        payload: DecisionPayload | None = None,
    ) -> LeaveRequestResponse:
        """Reject a pending request. Balances are untouched."""
        return await self._decide(
            auth,
            request_id,
            LeaveRequestStatus.REJECTED,
            Transition.REJECT,
            payload.comments if payload else None,
        )

    async def _decide(
        self,
        auth: AuthContext,
        request_id: uuid.UUID,
        new_status: LeaveRequestStatus,
        transition: Transition,
        comments: str | None,
    ) -> LeaveRequestResponse:
        """Shared approve/reject flow.

        1. Lock the request row and re-read its status.
        2. Load the approver (404 if unknown) and the owner.
        3. Resolve the approval policy for this approver and leave type.
        4. Require PENDING.
        5. Guarded status write (approved_by_id, comments).
        6. Approve only: deduct the owner's balance.

        Authorization is checked before status, so an unauthorized caller gets
        UnauthorizedError even when the request is already terminal.
        """
        approving = new_status == LeaveRequestStatus.APPROVED

        async def _operation(session: AsyncSession) -> LeaveRequestResponse:
            request = await self._repository.get_by_id(session, request_id, for_update=True)
            await get_user_or_404(session, auth.user_id)
            owner = await get_user_or_404(
                session,
                request.user_id,
                for_update=approving and self._enforce_balance_on_approve,
            )
            leave_type = await get_leave_type_or_404(session, request.leave_type_id)

            policy = self._policy_selector(auth, leave_type)
            if not policy(auth, owner, leave_type):
                raise UnauthorizedError(transition, request_id)

            _require_pending(request, transition)

            if approving and self._enforce_balance_on_approve:
                self._ledger.check_sufficient(owner, leave_type, request.duration)

            values: dict[str, Any] = {"status": new_status.value, "approved_by_id": auth.user_id}
            if comments:
                values["comments"] = comments
            await self._repository.update_if_pending(session, request, values, transition)

            if approving:
                await self._ledger.deduct(session, owner, leave_type, request.duration)

            return _build_request_response(request)

        response = await self._run_in_transaction(transition, request_id, _operation)
        logger.info("Leave request %s %s by user %s", request_id, new_status.lower(), auth.user_id)
        return response

    async def cancel_request(
        self,
        auth: AuthContext,
        request_id: uuid.UUID,
    ) -> LeaveRequestResponse:
        """Cancel a pending request. Only the owner can cancel."""

        async def _operation(session: AsyncSession) -> LeaveRequestResponse:
            request = await self._repository.get_by_id(session, request_id, for_update=True)
            if request.user_id != auth.user_id:
                raise UnauthorizedError(Transition.CANCEL, request_id, "only the owner can cancel a request")
            _require_pending(request, Transition.CANCEL)

            await self._repository.update_if_pending(
                session,
                request,
                {"status": LeaveRequestStatus.CANCELLED.value},
                Transition.CANCEL,
            )
            return _build_request_response(request)

        response = await self._run_in_transaction(Transition.CANCEL, request_id, _operation)
        logger.info("Leave request %s cancelled by user %s", request_id, auth.user_id)
        return response

    async def update_request(
        self,
        auth: AuthContext,
        request_id: uuid.UUID,
        payload: UpdateLeaveRequestPayload,
    ) -> LeaveRequestResponse:
        """Edit dates, leave type or reason of the owner's pending request.

        The duration is recomputed. The balance is re-checked only when the
        leave type or a date is part of the payload; a reason-only edit never
        fails on balance.
        """

        async def _operation(session: AsyncSession) -> LeaveRequestResponse:
            request = await self._repository.get_by_id(session, request_id, for_update=True)
            if request.user_id != auth.user_id:
                raise UnauthorizedError(Transition.UPDATE, request_id, "only the owner can edit a request")
            _require_pending(request, Transition.UPDATE)

            leave_type_id = payload.leave_type_id or request.leave_type_id
            start_date = payload.start_date or request.start_date
            end_date = payload.end_date or request.end_date

            leave_type = await get_leave_type_or_404(session, leave_type_id)
            duration = calculate_duration_days(start_date, end_date)
            if payload.model_fields_set & _BALANCE_AFFECTING_FIELDS:
                owner = await get_user_or_404(session, request.user_id)
                self._ledger.check_sufficient(owner, leave_type, duration)

            values: dict[str, Any] = {
                "leave_type_id": leave_type.id,
                "start_date": start_date,
                "end_date": end_date,
                "duration": duration,
            }
            if "reason" in payload.model_fields_set:
                values["reason"] = payload.reason

            await self._repository.update_if_pending(session, request, values, Transition.UPDATE)
            return _build_request_response(request)

        response = await self._run_in_transaction(Transition.UPDATE, request_id, _operation)
        logger.info("Leave request %s updated by user %s", request_id, auth.user_id)
        return response

    async def delete_request(
        self,
        auth: AuthContext,
        request_id: uuid.UUID,
    ) -> LeaveRequestResponse:
        """Hard-delete a pending request (admin only). No balance was ever applied."""
        if auth.role != RoleType.ADMIN:
            raise UnauthorizedError(Transition.DELETE, request_id, "admin role required")

        async def _operation(session: AsyncSession) -> LeaveRequestResponse:
            request = await self._repository.get_by_id(session, request_id, for_update=True)
            _require_pending(request, Transition.DELETE)
            response = _build_request_response(request)
            await self._repository.remove_if_pending(session, request, Transition.DELETE)
            return response

        response = await self._run_in_transaction(Transition.DELETE, request_id, _operation)
        logger.info("Leave request %s deleted by user %s", request_id, auth.user_id)
        return response

    # -- queries -----------------------------------------------------------

    async def get_request(self, auth: AuthContext, request_id: uuid.UUID) -> LeaveRequestResponse:
        """Get a single request. Visible to its owner, the owner's manager and admins."""
        async with self._session_factory() as session:
            request = await self._repository.get_by_id(session, request_id)
            if auth.role != RoleType.ADMIN and request.user_id != auth.user_id:
                owner = await get_user_or_404(session, request.user_id)
                if owner.manager_id != auth.user_id:
                    raise UnauthorizedError(Transition.VIEW, request_id)
            return _build_request_response(request)

    async def list_user_requests(self, auth: AuthContext, user_id: uuid.UUID) -> LeaveRequestListResponse:
        """List a user's requests, newest first. Users see their own; admins see anyone's."""
        if user_id != auth.user_id and auth.role != RoleType.ADMIN:
            raise UnauthorizedError(Transition.VIEW, reason=f"cannot list requests of user {user_id}")
        async with self._session_factory() as session:
            return _build_list_response(await self._repository.get_by_user(session, user_id))

    async def list_requests_for_approval(self, auth: AuthContext) -> LeaveRequestListResponse:
        """Pending requests of the actor's direct reports, oldest first."""
        async with self._session_factory() as session:
            return _build_list_response(await self._repository.get_pending_for_manager(session, auth.user_id))

    async def list_all_requests(self, auth: AuthContext) -> LeaveRequestListResponse:
        """Every request, newest first (admin only)."""
        if auth.role != RoleType.ADMIN:
            raise UnauthorizedError(Transition.VIEW, reason="admin role required")
        async with self._session_factory() as session:
            return _build_list_response(await self._repository.list_all(session))


_leave_service: LeaveRequestService | None = None


def get_leave_service() -> LeaveRequestService:
    """FastAPI dependency for the leave request service."""
    global _leave_service
    if _leave_service is None:
        settings = get_settings()
        _leave_service = LeaveRequestService(
            get_session_factory(),
            max_attempts=settings.transaction_max_attempts,
            enforce_balance_on_approve=settings.enforce_balance_on_approve,
        )
    return _leave_service


def set_leave_service(service: LeaveRequestService | None) -> None:
    """Override the service (for testing or production wiring). ``None`` restores the default."""
    global _leave_service
    _leave_service = service
