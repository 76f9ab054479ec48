"""Edit-lock and lifecycle permission matrix."""

import uuid

import pytest

from fieldops.core.exceptions import (
    InspectionAccessError,
    InspectionLockedError,
    InvalidStatusTransitionError,
)
from fieldops.core.inspection_access import (
    can_edit_inspection,
    check_edit_access,
    check_manage_access,
    check_progress_access,
    check_transition,
)
from fieldops.db.enums import EDITABLE_STATUSES, LOCKED_STATUSES, InspectionStatus, Role
from fieldops.db.models import Inspection
from fieldops.schemas.auth import UserSession


ORG_ID = uuid.uuid4()
WORKER_ID = uuid.uuid4()


def _session(role: Role, user_id: uuid.UUID | None = None) -> UserSession:
    return UserSession(
        user_id=user_id or uuid.uuid4(),
        org_id=ORG_ID,
        role=role,
        email="someone@test.com",
        display_name="Someone",
    )


def _inspection(status: InspectionStatus) -> Inspection:
    return Inspection(
        id=uuid.uuid4(),
        organization_id=ORG_ID,
        status=status.value,
        assigned_to_user_id=WORKER_ID,
    )


@pytest.mark.parametrize("status", list(InspectionStatus))
@pytest.mark.parametrize("role", [Role.ADMIN, Role.DISPATCHER])
def test_managers_edit_in_every_status(role, status):
    inspection = _inspection(status)
    session = _session(role)

    assert can_edit_inspection(inspection, session) is True
    check_edit_access(inspection, session)


@pytest.mark.parametrize(
    "status,editable",
    [
        (InspectionStatus.OPEN, True),
        (InspectionStatus.IN_PROGRESS, True),
        (InspectionStatus.SUBMITTED, False),
        (InspectionStatus.REVIEWED, False),
    ],
)
def test_assigned_worker_is_locked_out_after_submission(status, editable):
    inspection = _inspection(status)
    session = _session(Role.WORKER, WORKER_ID)

    assert can_edit_inspection(inspection, session) is editable
    if editable:
        check_edit_access(inspection, session)
    else:
        with pytest.raises(InspectionLockedError):
            check_edit_access(inspection, session)


def test_unassigned_worker_never_edits():
    inspection = _inspection(InspectionStatus.OPEN)
    session = _session(Role.WORKER)

    assert can_edit_inspection(inspection, session) is False
    with pytest.raises(InspectionAccessError):
        check_edit_access(inspection, session)


def test_manage_access_rejects_workers():
    check_manage_access(_session(Role.DISPATCHER))
    with pytest.raises(InspectionAccessError, match="worker"):
        check_manage_access(_session(Role.WORKER))


@pytest.mark.parametrize(
    "current,target",
    [
        (InspectionStatus.OPEN, InspectionStatus.IN_PROGRESS),
        (InspectionStatus.OPEN, InspectionStatus.SUBMITTED),
        (InspectionStatus.IN_PROGRESS, InspectionStatus.SUBMITTED),
        (InspectionStatus.SUBMITTED, InspectionStatus.REVIEWED),
    ],
)
def test_forward_transitions_allowed(current, target):
    check_transition(_inspection(current), target)


@pytest.mark.parametrize(
    "current,target",
    [
        (InspectionStatus.IN_PROGRESS, InspectionStatus.OPEN),
        (InspectionStatus.OPEN, InspectionStatus.REVIEWED),
        (InspectionStatus.SUBMITTED, InspectionStatus.IN_PROGRESS),
        (InspectionStatus.REVIEWED, InspectionStatus.SUBMITTED),
        (InspectionStatus.SUBMITTED, InspectionStatus.SUBMITTED),
    ],
)
def test_backward_skipping_and_terminal_transitions_rejected(current, target):
    with pytest.raises(InvalidStatusTransitionError):
        check_transition(_inspection(current), target)


def test_progress_requires_assignee_or_manager():
    inspection = _inspection(InspectionStatus.OPEN)

    check_progress_access(inspection, _session(Role.WORKER, WORKER_ID), InspectionStatus.IN_PROGRESS)
    check_progress_access(inspection, _session(Role.ADMIN), InspectionStatus.SUBMITTED)
    with pytest.raises(InspectionAccessError):
        check_progress_access(inspection, _session(Role.WORKER), InspectionStatus.IN_PROGRESS)


def test_every_status_is_either_editable_or_locked():
    assert EDITABLE_STATUSES.isdisjoint(LOCKED_STATUSES)
    assert EDITABLE_STATUSES | LOCKED_STATUSES == {s.value for s in InspectionStatus}
