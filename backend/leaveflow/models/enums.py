from __future__ import annotations

import enum


class RoleType(enum.StrEnum):
    """Role of a user, drives approval rights."""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class LeaveCategory(enum.StrEnum):
    """Category of a leave type; selects the balance a request draws on."""

    ANNUAL = "ANNUAL"
    SICK = "SICK"
    OTHER = "OTHER"


class LeaveRequestStatus(enum.StrEnum):
    """State machine for leave requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class Transition(enum.StrEnum):
    """Operations checked against a leave request: state-changing commands plus read access (VIEW)."""

    CREATE = "create"
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    UPDATE = "update"
    DELETE = "delete"
    VIEW = "view"
