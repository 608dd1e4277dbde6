"""Tests for seed file loading."""

import pytest

from helpmatch.domain.models import JobStatus, UserRole, Weekday
from helpmatch.persistence import DatabaseJobStore, DatabaseUserDirectory, close_database, init_database
from helpmatch.seed import SeedFileError, load_seed_file, parse_seed_data, seed_database
from tests.helpers import FIXTURES_DIR


def test_load_marketplace_fixture():
    users, jobs = load_seed_file(FIXTURES_DIR / "marketplace.yaml")

    assert len(users) == 6
    assert len(jobs) == 4

    spidey = next(user for user in users if user.email == "spidey@email.com")
    assert spidey.availability == frozenset({Weekday.WEDNESDAY})

    seeker = next(user for user in users if user.email == "seeker@email.com")
    assert seeker.role == UserRole.SEEKER

    assert jobs[2].status == JobStatus.CLOSED


def test_invalid_records_are_all_reported():
    with pytest.raises(SeedFileError) as exc_info:
        load_seed_file(FIXTURES_DIR / "invalid_seed.yaml")

    errors = exc_info.value.errors
    assert any(error.startswith("users[0] email") for error in errors)
    assert any(error.startswith("users[0] availability") for error in errors)
    assert any(error.startswith("jobs[0] author") for error in errors)


def test_missing_file():
    with pytest.raises(SeedFileError, match="Failed to read"):
        load_seed_file(FIXTURES_DIR / "no_such_seed.yaml")


def test_malformed_yaml():
    with pytest.raises(SeedFileError, match="Failed to parse"):
        load_seed_file(FIXTURES_DIR / "malformed_config.yaml")


def test_root_must_be_mapping(tmp_path):
    seed_file = tmp_path / "seed.yaml"
    seed_file.write_text("- just\n- a list\n")

    with pytest.raises(SeedFileError, match="must contain a mapping"):
        load_seed_file(seed_file)


def test_sections_must_be_lists():
    with pytest.raises(SeedFileError) as exc_info:
        parse_seed_data({"users": {"email": "a@b.com"}})

    assert exc_info.value.errors == ["'users' must be a list"]


def test_empty_data_is_valid():
    assert parse_seed_data({}) == ([], [])


def test_seed_database_assigns_fresh_ids():
    init_database("sqlite:///:memory:")
    try:
        users, jobs = load_seed_file(FIXTURES_DIR / "marketplace.yaml")

        stored = seed_database(users, jobs, DatabaseUserDirectory(), DatabaseJobStore())

        assert [job.id for job in stored] == [1, 2, 3, 4]
        assert stored[2].status == JobStatus.CLOSED
        assert DatabaseUserDirectory().find_by_id("wanda@email.com") is not None
    finally:
        close_database()
