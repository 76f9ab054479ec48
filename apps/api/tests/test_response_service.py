"""Tests for the response store: upsert-by-key, empty omission, edit-lock."""
import uuid

import pytest
from sqlalchemy import func, select

from fieldops.core.exceptions import (
    ChecklistItemNotFoundError,
    InspectionAccessError,
    InspectionLockedError,
    InspectionNotFoundError,
    InvalidResponseValueError,
    TemplateNotAssignedError,
)
from fieldops.db.enums import InspectionStatus
from fieldops.db.models import InspectionResponse
from fieldops.schemas.checklist import ResponseWrite
from fieldops.schemas.inspection import InspectionCreate
from fieldops.services import inspection_service, response_service


def _row_count(db, inspection_id):
    return db.execute(
        select(func.count(InspectionResponse.id)).where(
            InspectionResponse.inspection_id == inspection_id
        )
    ).scalar_one()


def test_upsert_twice_keeps_one_row_with_latest_value(db, inspection, checklist, worker_session):
    item_id = checklist.item_id("cleanliness_score")

    response_service.upsert_responses(
        db, worker_session, inspection.id, [ResponseWrite(item_id=item_id, value=3)]
    )
    response_service.upsert_responses(
        db, worker_session, inspection.id, [ResponseWrite(item_id=item_id, value=5, note="great")]
    )
    db.commit()

    stored = response_service.get_responses(db, worker_session, inspection.id)
    assert _row_count(db, inspection.id) == 1
    assert stored[item_id].value == 5
    assert stored[item_id].note == "great"


@pytest.mark.parametrize("empty", [None, "", []])
def test_empty_value_is_never_stored(db, inspection, checklist, worker_session, empty):
    item_id = checklist.item_id("extras_done")

    counts = response_service.upsert_responses(
        db, worker_session, inspection.id, [ResponseWrite(item_id=item_id, value=empty)]
    )

    assert counts == {"saved": 0, "removed": 0, "skipped": 1}
    assert _row_count(db, inspection.id) == 0


def test_empty_value_removes_existing_answer(db, inspection, checklist, worker_session):
    item_id = checklist.item_id("inspector_name")
    response_service.upsert_responses(
        db, worker_session, inspection.id, [ResponseWrite(item_id=item_id, value="Alex")]
    )
    db.commit()

    counts = response_service.upsert_responses(
        db, worker_session, inspection.id, [ResponseWrite(item_id=item_id, value="")]
    )
    db.commit()

    assert counts["removed"] == 1
    assert item_id not in response_service.get_responses(db, worker_session, inspection.id)


def test_round_trip_every_item_type(db, inspection, checklist, worker_session):
    values = {
        "inspector_name": "Alex",
        "cleanliness_score": 4,
        "windows_cleaned": False,
        "rooms_count": 0,
        "odor_level": "none",
        "extras_done": ["oven", "fridge"],
        "deviation_reason": "Grease behind the stove",
        "completed_at": "2026-10-18T09:30:00+00:00",
    }
    response_service.upsert_responses(
        db,
        worker_session,
        inspection.id,
        [ResponseWrite(item_id=checklist.item_id(k), value=v) for k, v in values.items()],
    )
    db.commit()

    stored = response_service.get_responses(db, worker_session, inspection.id)

    for key, value in values.items():
        assert stored[checklist.item_id(key)].value == value


def test_last_entry_for_same_item_wins(db, inspection, checklist, worker_session):
    item_id = checklist.item_id("rooms_count")

    counts = response_service.upsert_responses(
        db,
        worker_session,
        inspection.id,
        [ResponseWrite(item_id=item_id, value=2), ResponseWrite(item_id=item_id, value=7)],
    )

    assert counts["saved"] == 1
    assert response_service.response_values(db, worker_session.org_id, inspection.id) == {item_id: 7}


def test_blank_note_stored_as_null(db, inspection, checklist, worker_session):
    item_id = checklist.item_id("rooms_count")

    response_service.upsert_responses(
        db, worker_session, inspection.id, [ResponseWrite(item_id=item_id, value=1, note="")]
    )

    assert response_service.get_responses(db, worker_session, inspection.id)[item_id].note is None


def test_value_must_match_item_type(db, inspection, checklist, worker_session):
    with pytest.raises(InvalidResponseValueError):
        response_service.upsert_responses(
            db,
            worker_session,
            inspection.id,
            [ResponseWrite(item_id=checklist.item_id("cleanliness_score"), value="great")],
        )


def test_item_from_another_version_rejected(db, inspection, worker_session):
    with pytest.raises(ChecklistItemNotFoundError):
        response_service.upsert_responses(
            db, worker_session, inspection.id, [ResponseWrite(item_id=uuid.uuid4(), value="x")]
        )


def test_unassigned_worker_cannot_write(db, inspection, checklist, other_worker_session):
    with pytest.raises(InspectionAccessError):
        response_service.upsert_responses(
            db,
            other_worker_session,
            inspection.id,
            [ResponseWrite(item_id=checklist.item_id("inspector_name"), value="Sam")],
        )


def test_admin_can_write_any_inspection_in_company(db, inspection, checklist, admin_session):
    counts = response_service.upsert_responses(
        db,
        admin_session,
        inspection.id,
        [ResponseWrite(item_id=checklist.item_id("inspector_name"), value="Admin")],
    )

    assert counts["saved"] == 1


@pytest.mark.parametrize("status", [InspectionStatus.SUBMITTED, InspectionStatus.REVIEWED])
def test_worker_locked_out_after_submission(db, inspection, checklist, worker_session, status):
    inspection.status = status.value
    db.commit()

    with pytest.raises(InspectionLockedError):
        response_service.upsert_responses(
            db,
            worker_session,
            inspection.id,
            [ResponseWrite(item_id=checklist.item_id("inspector_name"), value="Late")],
        )


def test_dispatcher_can_edit_submitted_inspection(db, inspection, checklist, dispatcher_session):
    inspection.status = InspectionStatus.SUBMITTED.value
    db.commit()

    counts = response_service.upsert_responses(
        db,
        dispatcher_session,
        inspection.id,
        [ResponseWrite(item_id=checklist.item_id("inspector_name"), value="Fixed")],
    )

    assert counts["saved"] == 1


def test_other_company_sees_not_found(db, inspection, checklist, other_org_session):
    with pytest.raises(InspectionNotFoundError):
        response_service.upsert_responses(
            db,
            other_org_session,
            inspection.id,
            [ResponseWrite(item_id=checklist.item_id("inspector_name"), value="x")],
        )
    with pytest.raises(InspectionNotFoundError):
        response_service.get_responses(db, other_org_session, inspection.id)


def test_cross_tenant_probe_is_logged_for_operators(db, inspection, other_org_session, caplog):
    with caplog.at_level("WARNING", logger="fieldops.services.inspection_service"):
        with pytest.raises(InspectionNotFoundError):
            response_service.get_responses(db, other_org_session, inspection.id)

    assert "inspection_cross_tenant_access" in caplog.text


def test_truly_missing_inspection_is_not_logged_as_probe(db, worker_session, caplog):
    with caplog.at_level("WARNING", logger="fieldops.services.inspection_service"):
        with pytest.raises(InspectionNotFoundError):
            response_service.get_responses(db, worker_session, uuid.uuid4())

    assert "inspection_cross_tenant_access" not in caplog.text


def test_write_without_template_fails(db, dispatcher_session):
    unbound = inspection_service.create_inspection(db, dispatcher_session, InspectionCreate())
    db.commit()

    with pytest.raises(TemplateNotAssignedError):
        response_service.upsert_responses(
            db, dispatcher_session, unbound.id, [ResponseWrite(item_id=uuid.uuid4(), value="x")]
        )


def test_repeated_multi_select_options_are_rejected_not_rewritten(db, inspection, checklist, worker_session):
    item_id = checklist.item_id("extras_done")

    with pytest.raises(InvalidResponseValueError):
        response_service.upsert_responses(
            db,
            worker_session,
            inspection.id,
            [ResponseWrite(item_id=item_id, value=["fridge", "fridge"])],
        )

    assert item_id not in response_service.get_responses(db, worker_session, inspection.id)
