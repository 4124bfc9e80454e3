"""Tests for registering and dropping students."""

import threading
from datetime import date

import pytest

from registrar.core.enums import EntityType
from registrar.core.exceptions import (
    DuplicateRegistrationError, NotFoundError, UnknownCourseError, UnknownStudentError, ValidationError
)


class TestRegister:

    def test_register_defaults_to_today(self, enrollment, jane, cs101):
        registration = enrollment.register(jane.id, cs101.id)
        assert registration.registration_date == date.today()
        assert enrollment.is_registered(jane.id, cs101.id)

    def test_register_with_explicit_date(self, enrollment, jane, cs101):
        registration = enrollment.register(jane.id, cs101.id, "2024-09-02")
        assert registration.registration_date == date(2024, 9, 2)

    def test_bad_date_rejected(self, enrollment, jane, cs101):
        with pytest.raises(ValidationError):
            enrollment.register(jane.id, cs101.id, "not-a-date")
        assert not enrollment.is_registered(jane.id, cs101.id)

    def test_trailing_text_after_date_rejected(self, enrollment, jane, cs101):
        with pytest.raises(ValidationError):
            enrollment.register(jane.id, cs101.id, "2024-09-01 not a date at all")
        assert not enrollment.is_registered(jane.id, cs101.id)

    def test_duplicate_rejected(self, enrollment, jane, cs101):
        enrollment.register(jane.id, cs101.id)
        with pytest.raises(DuplicateRegistrationError):
            enrollment.register(jane.id, cs101.id)
        assert len(enrollment.list_registrations()) == 1

    def test_unknown_student(self, enrollment, cs101):
        with pytest.raises(NotFoundError):
            enrollment.register("missing", cs101.id)
        assert enrollment.list_registrations() == []

    def test_unknown_course(self, enrollment, jane):
        with pytest.raises(NotFoundError):
            enrollment.register(jane.id, "missing")

    def test_register_by_keys(self, enrollment, jane, cs101):
        registration = enrollment.register_by_keys("STU001", "CS101")
        assert registration.pair == (jane.id, cs101.id)

    def test_register_by_unknown_keys(self, enrollment, jane, cs101):
        with pytest.raises(UnknownStudentError):
            enrollment.register_by_keys("STU999", "CS101")
        with pytest.raises(UnknownCourseError):
            enrollment.register_by_keys("STU001", "XX999")


class TestDrop:

    def test_drop_then_register_again(self, enrollment, jane, cs101):
        enrollment.register(jane.id, cs101.id)
        enrollment.drop(jane.id, cs101.id)
        assert not enrollment.is_registered(jane.id, cs101.id)
        enrollment.register(jane.id, cs101.id)
        assert enrollment.is_registered(jane.id, cs101.id)

    def test_drop_when_not_registered(self, enrollment, store, jane, bob, cs101):
        enrollment.register(bob.id, cs101.id)
        before = store.export_records()
        with pytest.raises(NotFoundError):
            enrollment.drop(jane.id, cs101.id)
        assert store.export_records() == before

    def test_drop_by_registration_id(self, enrollment, jane, cs101):
        registration = enrollment.register(jane.id, cs101.id)
        enrollment.drop_registration(registration.id)
        assert enrollment.list_registrations() == []

    def test_drop_by_stale_id_keeps_newer_registration(self, enrollment, store, monkeypatch, jane, cs101):
        first = enrollment.register(jane.id, cs101.id)
        replacement = {}
        original_require = store.require

        def require_then_reregister(entity_type, entity_id):
            found = original_require(entity_type, entity_id)
            # another caller drops and re-registers the pair after the id was resolved
            def other_caller():
                enrollment.drop(jane.id, cs101.id)
                replacement['registration'] = enrollment.register(jane.id, cs101.id)
            thread = threading.Thread(target=other_caller)
            thread.start()
            thread.join(timeout=5)
            return found

        monkeypatch.setattr(store, "require", require_then_reregister)
        with pytest.raises(NotFoundError):
            enrollment.drop_registration(first.id)

        newer = replacement['registration']
        assert newer.id != first.id
        assert store.get(EntityType.REGISTRATION, newer.id) is newer
        assert enrollment.is_registered(jane.id, cs101.id)

    def test_drop_unknown_registration_id(self, enrollment):
        with pytest.raises(NotFoundError):
            enrollment.drop_registration("missing")


class TestQueries:

    def test_available_courses_excludes_registered(self, enrollment, jane, cs101, math201):
        enrollment.register(jane.id, cs101.id)
        assert [c.code for c in enrollment.available_courses_for(jane.id)] == ["MATH201"]

    def test_statistics(self, enrollment, jane, bob, cs101, math201):
        enrollment.register(jane.id, cs101.id)
        enrollment.register(jane.id, math201.id)
        enrollment.register(bob.id, cs101.id)
        assert enrollment.get_statistics() == {
            'total_registrations': 3,
            'registered_students': 2,
            'registered_courses': 2,
        }
