"""Tests for the foodshare-match CLI."""

import json

import pytest

from foodshare.matching.cli import main


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(f'[database]\npath = "{tmp_path / "cli.db"}"\n')
    return str(path)


def _run(config_path, *args):
    main(["--config", config_path, *args])


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 1
    assert "foodshare-match" in capsys.readouterr().out


def test_match_with_no_recipients(config_path, capsys):
    _run(
        config_path, "match", "--food-name", "Rice", "--quantity", "10",
        "--hours", "4", "--json",
    )
    data = json.loads(capsys.readouterr().out)
    assert data["success"] is True
    assert data["matchedNGOs"] == []
    assert data["totalNGOs"] == 0


def test_match_ranks_registered_recipients(config_path, capsys):
    _run(config_path, "add-user", "n1", "Roti Bank", "r@example.com",
         "--role", "recipient", "--lat", "12.97", "--lon", "77.59")
    _run(config_path, "add-user", "n2", "Food Link", "f@example.com",
         "--role", "recipient")
    capsys.readouterr()

    _run(
        config_path, "match", "--food-name", "Rice", "--quantity", "10",
        "--hours", "1", "--lat", "12.97", "--lon", "77.59", "--json",
    )
    data = json.loads(capsys.readouterr().out)

    assert [m["ngoId"] for m in data["matchedNGOs"]] == ["n1", "n2"]
    assert data["matchedNGOs"][0]["score"] == 95


def test_match_text_output(config_path, capsys):
    _run(config_path, "add-user", "n1", "Roti Bank", "r@example.com",
         "--role", "recipient")
    capsys.readouterr()

    _run(config_path, "match", "--food-name", "Rice", "--quantity", "10",
         "--hours", "1")
    out = capsys.readouterr().out

    assert "Top 1 of 1 NGOs" in out
    assert "Roti Bank" in out


def test_match_stored_listing_and_claims(config_path, capsys):
    _run(config_path, "add-user", "d1", "Donor", "d@example.com", "--role", "donor")
    _run(config_path, "add-user", "n1", "Roti Bank", "r@example.com",
         "--role", "recipient")
    _run(config_path, "add-listing", "d1", "Idli", "--quantity", "40", "--hours", "5")
    _run(config_path, "claim", "1", "n1")
    _run(config_path, "claim-status", "1", "fulfilled")
    capsys.readouterr()

    _run(config_path, "match-listing", "1", "--json")
    data = json.loads(capsys.readouterr().out)

    match = data["matchedNGOs"][0]
    assert match["breakdown"]["reliabilityScore"] == 15
    assert match["breakdown"]["expiryScore"] == 20


def test_match_listing_not_found(config_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        _run(config_path, "match-listing", "99")
    assert exc_info.value.code == 1
    assert "not found" in capsys.readouterr().err


def test_recipients_listing(config_path, capsys):
    _run(config_path, "add-user", "n1", "Roti Bank", "r@example.com",
         "--role", "recipient", "--radius", "12")
    capsys.readouterr()

    _run(config_path, "recipients")
    out = capsys.readouterr().out
    assert "Recipient NGOs: 1" in out
    assert "Roti Bank" in out
    assert "12 km" in out


def _setup_dashboard(config_path):
    _run(config_path, "add-user", "d1", "Hotel", "d@example.com", "--role", "donor")
    _run(config_path, "add-user", "n1", "Roti Bank", "r@example.com",
         "--role", "recipient", "--food-preference", "veg", "--capacity", "20")
    _run(config_path, "add-listing", "d1", "Veg pulao", "--quantity", "20",
         "--hours", "3", "--food-type", "veg", "--prepared-hours-ago", "1",
         "--verified")
    _run(config_path, "add-listing", "d1", "Chicken curry", "--quantity", "20",
         "--hours", "3", "--food-type", "non-veg")
    _run(config_path, "add-listing", "d1", "Bread", "--quantity", "5",
         "--hours", "30", "--food-type", "bread")


def test_listings_for_recipient_json(config_path, capsys):
    _setup_dashboard(config_path)
    capsys.readouterr()

    _run(config_path, "listings-for", "n1", "--json")
    data = json.loads(capsys.readouterr().out)

    assert data["totalListings"] == 2
    assert [m["foodName"] for m in data["listings"]] == ["Veg pulao", "Bread"]
    assert data["listings"][0]["scoreBreakdown"]["verifiedScore"] == 1.0


def test_listings_for_recipient_text_with_limit(config_path, capsys):
    _setup_dashboard(config_path)
    capsys.readouterr()

    _run(config_path, "listings-for", "n1", "--limit", "1")
    out = capsys.readouterr().out

    assert "Listings for Roti Bank (veg): 2 of 3 available" in out
    assert "Veg pulao" in out
    assert "Bread" not in out


def test_listings_for_unknown_recipient(config_path, capsys):
    _run(config_path, "add-user", "d1", "Hotel", "d@example.com", "--role", "donor")
    capsys.readouterr()

    with pytest.raises(SystemExit) as exc_info:
        _run(config_path, "listings-for", "d1")
    assert exc_info.value.code == 1
    assert "not found" in capsys.readouterr().err
