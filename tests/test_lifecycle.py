"""Tests for the appointment lifecycle transitions."""

import pytest

from lifecycle import AppointmentLifecycle, AppointmentNotFound
from models import AppointmentStatus


@pytest.fixture
def lifecycle(repo):
    return AppointmentLifecycle(repo)


@pytest.fixture
def permissive(repo):
    return AppointmentLifecycle(repo, strict=False)


class TestForwardTransitions:
    def test_accept_pending(self, lifecycle, seed):
        appointment_id = seed()
        appointment = lifecycle.accept(appointment_id)
        assert appointment.status == "accepted"

    def test_complete_accepted(self, lifecycle, seed):
        appointment_id = seed(AppointmentStatus.ACCEPTED)
        appointment = lifecycle.complete(appointment_id)
        assert appointment.status == "done"

    def test_full_lifecycle(self, lifecycle, repo, seed):
        appointment_id = seed()
        lifecycle.accept(appointment_id)
        lifecycle.complete(appointment_id)
        assert [a.id for a in repo.list_recent()] == [appointment_id]
        assert repo.list_requests() == []
        assert repo.list_accepted() == []


class TestReject:
    def test_reject_deletes_pending(self, lifecycle, repo, seed):
        appointment_id = seed()
        lifecycle.reject(appointment_id)
        assert repo.get(appointment_id) is None
        for status in AppointmentStatus:
            assert repo.list_by_status(status) == []

    def test_reject_unknown_id(self, lifecycle):
        with pytest.raises(AppointmentNotFound):
            lifecycle.reject(4242)


class TestNotFound:
    def test_accept_unknown_id_creates_nothing(self, lifecycle, repo):
        with pytest.raises(AppointmentNotFound) as exc_info:
            lifecycle.accept(4242)
        assert exc_info.value.appointment_id == 4242
        for status in AppointmentStatus:
            assert repo.list_by_status(status) == []

    def test_complete_unknown_id(self, lifecycle):
        with pytest.raises(AppointmentNotFound):
            lifecycle.complete(4242)


class TestStrictPreconditions:
    def test_done_cannot_go_back_to_accepted(self, lifecycle, repo, seed):
        appointment_id = seed(AppointmentStatus.DONE)
        with pytest.raises(AppointmentNotFound):
            lifecycle.accept(appointment_id)
        assert repo.get(appointment_id).status == "done"

    def test_pending_cannot_skip_to_done(self, lifecycle, repo, seed):
        appointment_id = seed()
        with pytest.raises(AppointmentNotFound):
            lifecycle.complete(appointment_id)
        assert repo.get(appointment_id).status == "pending"

    def test_accepted_cannot_be_accepted_twice(self, lifecycle, seed):
        appointment_id = seed()
        lifecycle.accept(appointment_id)
        with pytest.raises(AppointmentNotFound):
            lifecycle.accept(appointment_id)

    def test_reject_only_from_pending(self, lifecycle, repo, seed):
        appointment_id = seed(AppointmentStatus.ACCEPTED)
        with pytest.raises(AppointmentNotFound):
            lifecycle.reject(appointment_id)
        assert repo.get(appointment_id) is not None


class TestPermissiveMode:
    def test_accept_ignores_current_status(self, permissive, seed):
        appointment_id = seed(AppointmentStatus.DONE)
        assert permissive.accept(appointment_id).status == "accepted"

    def test_reject_deletes_any_status(self, permissive, repo, seed):
        appointment_id = seed(AppointmentStatus.ACCEPTED)
        permissive.reject(appointment_id)
        assert repo.get(appointment_id) is None

    def test_unknown_id_still_not_found(self, permissive):
        with pytest.raises(AppointmentNotFound):
            permissive.complete(4242)
