"""Shared fixtures: a fresh platform per test plus a small catalog and roster."""

import pytest

from registrar.core.session import SessionContext
from registrar.main import RegistrarPlatform


@pytest.fixture
def platform():
    """In-memory platform with a short lock timeout."""
    return RegistrarPlatform({'persist': False, 'lock_timeout': 2.0})


@pytest.fixture
def store(platform):
    return platform.store


@pytest.fixture
def catalog(platform):
    return platform.catalog


@pytest.fixture
def roster(platform):
    return platform.roster


@pytest.fixture
def enrollment(platform):
    return platform.enrollment


@pytest.fixture
def results(platform):
    return platform.results


@pytest.fixture
def projections(platform):
    return platform.projections


@pytest.fixture
def admin():
    return SessionContext.admin()


@pytest.fixture
def cs101(catalog):
    return catalog.add_course("CS101", "Intro to CS", 3, "Dr. Smith")


@pytest.fixture
def math201(catalog):
    return catalog.add_course("MATH201", "Linear Algebra", 4, "Dr. Noether")


@pytest.fixture
def jane(roster):
    return roster.add_student("Jane Doe", "jane@university.edu", "STU001")


@pytest.fixture
def bob(roster):
    return roster.add_student("Bob Smith", "bob@university.edu", "STU002")


@pytest.fixture
def jane_session(jane):
    return SessionContext.student(jane.student_number)
