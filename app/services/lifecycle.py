"""
Status transitions and derived timing fields for maintenance requests.

    new ──► in_progress ──► completed   (terminal)
     │           │
     └───────────┴────────► cancelled   (terminal)

Transitions are not forced forward: an authorized update may set any status.
`completedAt` is one-shot. It is stamped the first time a request enters
`completed` and is left alone afterwards, including when a request is reopened
and completed again.
"""
from datetime import datetime, timezone

from app.models.maintenance_request import MaintenanceRequest, RequestStatus

TERMINAL_STATUSES = frozenset({RequestStatus.COMPLETED, RequestStatus.CANCELLED})


def _utc(dt: datetime) -> datetime:
    # SQLite hands back naive timestamps; they are stored as UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def is_terminal(status: RequestStatus) -> bool:
    return RequestStatus(status) in TERMINAL_STATUSES


def apply_status(
    request: MaintenanceRequest,
    new_status: RequestStatus,
    now: datetime | None = None,
) -> RequestStatus | None:
    """
    Move `request` to `new_status`.
    Returns the previous status when it changed, otherwise None.
    """
    new_status = RequestStatus(new_status)
    old_status = RequestStatus(request.status) if request.status is not None else None

    if old_status == new_status:
        return None

    request.status = new_status
    if new_status == RequestStatus.COMPLETED and request.completedAt is None:
        request.completedAt = now or datetime.now(timezone.utc)
    return old_status


def age_in_days(request: MaintenanceRequest, now: datetime | None = None) -> int | None:
    if request.createdAt is None:
        return None
    now = now or datetime.now(timezone.utc)
    return (now - _utc(request.createdAt)).days


def completion_hours(request: MaintenanceRequest) -> float | None:
    if request.completedAt is None or request.createdAt is None:
        return None
    delta = _utc(request.completedAt) - _utc(request.createdAt)
    return round(max(delta.total_seconds(), 0) / 3600, 2)
