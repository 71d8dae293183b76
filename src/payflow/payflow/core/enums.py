from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles carried by the acting user."""

    ADMIN = "admin"
    FINANCE = "finance"
    EXEC = "exec"
    ADMIN_FINAL = "admin_final"
    EMPLOYEE = "employee"


class EmployeeCategory(str, Enum):
    """Decides which rate field and rule set applies to an employee."""

    CORE = "core"
    CORE_PROBATIONARY = "core_probationary"
    OWNER = "owner"
    INTERN = "intern"
    FREELANCER = "freelancer"

    @classmethod
    def normalize(cls, value: str | None) -> "EmployeeCategory":
        """Map loose spellings ("Core-Probationary", "INTERN ") onto a member."""
        s = (value or "").strip().lower().replace("-", "_").replace(" ", "_")
        if "owner" in s:
            return cls.OWNER
        if "freelancer" in s:
            return cls.FREELANCER
        if "intern" in s:
            return cls.INTERN
        if "core" in s and "probation" in s:
            return cls.CORE_PROBATIONARY
        return cls.CORE


class ObCategory(str, Enum):
    """Official-business engagement kinds, each with its own default rate."""

    ASSISTED = "assisted"
    VIDEOGRAPHER = "videographer"
    TALENT = "talent"

    @classmethod
    def normalize(cls, value: str | None) -> "ObCategory | None":
        s = (value or "").strip().lower()
        if s in {"assisted", "assist", "shoot"}:
            return cls.ASSISTED
        if s in {"videographer", "video", "vid"}:
            return cls.VIDEOGRAPHER
        if s in {"talent", "actor", "model"}:
            return cls.TALENT
        return None


class RequestType(str, Enum):
    OT = "OT"
    OB = "OB"
    LEAVE = "LEAVE"
    REMOTEWORK = "REMOTEWORK"
    WFH = "WFH"
    RDOT = "RDOT"


class RequestStatus(str, Enum):
    """Approval state of a filed request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DraftStatus(str, Enum):
    """Payroll draft lifecycle: draft -> pending_exec -> pending_admin -> approved | rejected."""

    DRAFT = "draft"
    PENDING_EXEC = "pending_exec"
    PENDING_ADMIN = "pending_admin"
    APPROVED = "approved"
    REJECTED = "rejected"


class PayslipStatus(str, Enum):
    READY = "ready"
    PUBLISHED = "published"


class CutoffHalf(str, Enum):
    """Which semi-monthly half a cutoff counts as for cash-advance scheduling."""

    FIRST = "first"
    SECOND = "second"


class CommissionKind(str, Enum):
    """Sales commissions are a percentage of the sale; others are a flat amount."""

    SALES = "sales"
    OTHERS = "others"
