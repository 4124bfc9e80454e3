"""Tests for student roster management."""

import pytest

from registrar.core.exceptions import DuplicateKeyError, NotFoundError, ValidationError


def test_add_student(roster):
    student = roster.add_student("Jane Doe", "jane@university.edu", "STU001")
    assert roster.get_student(student.id) is student
    assert roster.find_student_by_number(" STU001 ") is student


def test_duplicate_student_number(roster, jane):
    with pytest.raises(DuplicateKeyError):
        roster.add_student("Someone Else", "else@university.edu", "STU001")
    assert len(roster.list_students()) == 1


def test_blank_student_number(roster):
    with pytest.raises(ValidationError):
        roster.add_student("Jane", "jane@university.edu", "   ")


def test_update_student_number_moves_lookup(roster, jane):
    roster.update_student(jane.id, student_number="STU100")
    assert roster.find_student_by_number("STU001") is None
    assert roster.find_student_by_number("STU100").id == jane.id


def test_update_onto_taken_number(roster, jane, bob):
    with pytest.raises(DuplicateKeyError):
        roster.update_student(bob.id, student_number="STU001")
    assert roster.get_student(bob.id).student_number == "STU002"


def test_delete_student(roster, jane):
    roster.delete_student(jane.id)
    assert roster.list_students() == []
    with pytest.raises(NotFoundError):
        roster.delete_student(jane.id)


def test_update_unknown_student(roster, jane):
    with pytest.raises(NotFoundError):
        roster.update_student("missing", name="Nobody")
    assert roster.get_student(jane.id).name == "Jane Doe"
