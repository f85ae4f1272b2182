"""Tests for ClaimDB and the recipient history source."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from foodshare.matching.db import ClaimDB, ListingDB, UserDB


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "test.db"
    users = UserDB(path)
    users.add_user("d1", "Donor", "d@example.com", "donor")
    users.add_user("n1", "NGO One", "n1@example.com", "recipient")
    users.add_user("n2", "NGO Two", "n2@example.com", "recipient")
    users.close()
    return path


@pytest.fixture
def listing_id(db_path):
    listings = ListingDB(db_path)
    lid = listings.add_listing("d1", "Rice", 20)
    listings.close()
    return lid


@pytest.fixture
def db(db_path):
    claims = ClaimDB(db_path)
    yield claims
    claims.close()


def test_add_claim_starts_requested(db, listing_id):
    claim_id = db.add_claim(listing_id, "n1", donor_id="d1", quantity=5)

    claim = db.get_claim(claim_id)
    assert claim["status"] == "requested"
    assert claim["requested_at"] is not None
    assert claim["quantity"] == 5


def test_update_status_stamps_timestamp(db, listing_id):
    claim_id = db.add_claim(listing_id, "n1")

    assert db.update_status(claim_id, "approved") is True

    claim = db.get_claim(claim_id)
    assert claim["status"] == "approved"
    assert claim["approved_at"] is not None
    assert claim["fulfilled_at"] is None


def test_update_status_unknown_claim(db):
    assert db.update_status(999, "fulfilled") is False


@pytest.mark.parametrize("status", ["requested", "picked_up", "fulfilled_at = 1; --"])
def test_update_status_rejects_invalid_status(db, listing_id, status):
    claim_id = db.add_claim(listing_id, "n1")
    with pytest.raises(ValueError, match="Invalid claim status"):
        db.update_status(claim_id, status)


def test_recent_claims_newest_first_and_limited(db, listing_id):
    statuses = ["fulfilled", "rejected", "approved", "cancelled"]
    for status in statuses:
        claim_id = db.add_claim(listing_id, "n1")
        db.update_status(claim_id, status)
    db.add_claim(listing_id, "n2")

    recent = db.recent_claims("n1", limit=3)

    assert [c.status for c in recent] == ["cancelled", "approved", "rejected"]


def test_recent_claims_none(db):
    assert db.recent_claims("n2") == []


def test_recent_claims_from_worker_threads(db, listing_id):
    db.add_claim(listing_id, "n1")

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(db.recent_claims, ["n1", "n2", "n1", "n2"]))

    assert [len(r) for r in results] == [1, 0, 1, 0]
