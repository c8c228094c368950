import uuid

import pytest

from medslot.core.errors import Forbidden, InvalidTransition, RemarksRequired
from medslot.scheduling.lifecycle import (
    TRANSITIONS,
    Actor,
    AppointmentStatus,
    ensure_assigned_doctor,
    ensure_can_reschedule_or_cancel,
    ensure_can_view,
    ensure_reschedulable,
    ensure_transition,
    require_remarks,
)

PATIENT_ID = uuid.uuid4()
DOCTOR_ID = uuid.uuid4()

patient = Actor(user_id=PATIENT_ID, role="patient")
stranger = Actor(user_id=uuid.uuid4(), role="patient")
doctor = Actor(user_id=uuid.uuid4(), role="doctor", doctor_id=DOCTOR_ID)
other_doctor = Actor(user_id=uuid.uuid4(), role="doctor", doctor_id=uuid.uuid4())
admin = Actor(user_id=uuid.uuid4(), role="admin")

TERMINAL = [AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NOSHOW]


def test_only_scheduled_is_non_terminal():
    assert not AppointmentStatus.SCHEDULED.is_terminal
    for status in TERMINAL:
        assert status.is_terminal
        assert TRANSITIONS[status] == frozenset()


@pytest.mark.parametrize("target", TERMINAL)
def test_scheduled_can_reach_every_terminal_state(target):
    ensure_transition("scheduled", target)


@pytest.mark.parametrize("current", TERMINAL)
@pytest.mark.parametrize("target", TERMINAL)
def test_no_transition_out_of_terminal_states(current, target):
    with pytest.raises(InvalidTransition):
        ensure_transition(current, target)


@pytest.mark.parametrize("current", TERMINAL)
def test_terminal_appointments_cannot_be_rescheduled(current):
    with pytest.raises(InvalidTransition):
        ensure_reschedulable(current.value)


def test_require_remarks():
    assert require_remarks("  All good  ") == "All good"
    for blank in (None, "", "   "):
        with pytest.raises(RemarksRequired):
            require_remarks(blank)


def test_view_permissions():
    for actor in (patient, doctor, admin):
        ensure_can_view(actor, patient_id=PATIENT_ID, doctor_id=DOCTOR_ID)
    for actor in (stranger, other_doctor):
        with pytest.raises(Forbidden):
            ensure_can_view(actor, patient_id=PATIENT_ID, doctor_id=DOCTOR_ID)


def test_reschedule_and_cancel_allow_owner_doctor_and_admin():
    for actor in (patient, doctor, admin):
        ensure_can_reschedule_or_cancel(actor, patient_id=PATIENT_ID, doctor_id=DOCTOR_ID)
    with pytest.raises(Forbidden) as exc:
        ensure_can_reschedule_or_cancel(stranger, patient_id=PATIENT_ID, doctor_id=DOCTOR_ID)
    assert exc.value.code == "not_owner"


def test_complete_and_no_show_are_assigned_doctor_only():
    ensure_assigned_doctor(doctor, doctor_id=DOCTOR_ID)
    for actor in (patient, admin, other_doctor):
        with pytest.raises(Forbidden) as exc:
            ensure_assigned_doctor(actor, doctor_id=DOCTOR_ID)
        assert exc.value.code == "doctor_only"


def test_doctor_without_profile_is_never_assigned():
    profileless = Actor(user_id=uuid.uuid4(), role="doctor")
    assert not profileless.is_assigned_doctor(DOCTOR_ID)
