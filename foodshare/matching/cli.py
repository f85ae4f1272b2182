"""CLI entry point for NGO matching."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timedelta

from dotenv import load_dotenv

from .config import FoodShareConfig, load_config
from .db import ClaimDB, ListingDB, UserDB, listing_from_row
from .display import (
    estimate_eta_minutes,
    format_distance,
    format_expiry_time,
    match_quality,
)
from .errors import InternalError, InvalidArgumentError
from .models import Listing, MatchResponse
from .relevance import AvailableListing, RecipientProfile, rank_listings_for_recipient
from .scoring import round_half_up
from .service import MatchingService


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="foodshare-match",
        description="Rank recipient NGOs for a surplus-food donation",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # match
    match_parser = sub.add_parser("match", help="Rank NGOs for an ad-hoc listing")
    match_parser.add_argument("--food-name", required=True)
    match_parser.add_argument("--quantity", type=float, required=True)
    match_parser.add_argument(
        "--hours", type=float, required=True, help="Hours until the food expires"
    )
    match_parser.add_argument("--lat", type=float, default=None)
    match_parser.add_argument("--lon", type=float, default=None)
    match_parser.add_argument("--food-type", type=str, default="")
    match_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # match-listing
    ml_parser = sub.add_parser("match-listing", help="Rank NGOs for a stored listing")
    ml_parser.add_argument("listing_id", type=int)
    ml_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # recipients
    sub.add_parser("recipients", help="List recipient NGOs")

    # add-user
    user_parser = sub.add_parser("add-user", help="Register a donor or recipient")
    user_parser.add_argument("uid")
    user_parser.add_argument("name")
    user_parser.add_argument("email")
    user_parser.add_argument("--role", choices=["donor", "recipient"], required=True)
    user_parser.add_argument("--lat", type=float, default=None)
    user_parser.add_argument("--lon", type=float, default=None)
    user_parser.add_argument(
        "--radius", type=float, default=None, help="Pickup radius in km"
    )
    user_parser.add_argument(
        "--food-preference", choices=["veg", "non-veg", "both"], default="both"
    )
    user_parser.add_argument(
        "--capacity", type=float, default=None, help="Quantity the NGO can take"
    )

    # add-listing
    listing_parser = sub.add_parser("add-listing", help="Store a food listing")
    listing_parser.add_argument("donor_id")
    listing_parser.add_argument("food_name")
    listing_parser.add_argument("--quantity", type=float, required=True)
    listing_parser.add_argument(
        "--hours", type=float, default=24.0, help="Hours until the food expires"
    )
    listing_parser.add_argument("--food-type", type=str, default="")
    listing_parser.add_argument("--unit", type=str, default="item")
    listing_parser.add_argument("--lat", type=float, default=None)
    listing_parser.add_argument("--lon", type=float, default=None)
    listing_parser.add_argument(
        "--prepared-hours-ago",
        type=float,
        default=None,
        help="How long ago the food was prepared",
    )
    listing_parser.add_argument(
        "--verified", action="store_true", help="Donor is verified"
    )

    # listings-for
    lf_parser = sub.add_parser(
        "listings-for", help="Rank available listings for a recipient NGO"
    )
    lf_parser.add_argument("recipient_id")
    lf_parser.add_argument("--limit", type=int, default=None)
    lf_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # claim
    claim_parser = sub.add_parser("claim", help="Record a claim on a listing")
    claim_parser.add_argument("listing_id", type=int)
    claim_parser.add_argument("recipient_id")
    claim_parser.add_argument("--quantity", type=float, default=None)

    # claim-status
    status_parser = sub.add_parser("claim-status", help="Update a claim's status")
    status_parser.add_argument("claim_id", type=int)
    status_parser.add_argument(
        "status", choices=["approved", "rejected", "fulfilled", "cancelled"]
    )

    # schedule
    sub.add_parser("schedule", help="Run the listing expiry scheduler")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    config = load_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    match args.command:
        case "match":
            listing = Listing(
                food_name=args.food_name,
                quantity=args.quantity,
                hours_to_expiry=args.hours,
                latitude=args.lat,
                longitude=args.lon,
                food_type=args.food_type,
            )
            _run_match(config, listing, as_json=args.json)
        case "match-listing":
            _cmd_match_listing(config, args)
        case "listings-for":
            _cmd_listings_for(config, args)
        case "recipients":
            _cmd_recipients(config)
        case "add-user":
            _cmd_add_user(config, args)
        case "add-listing":
            _cmd_add_listing(config, args)
        case "claim":
            _cmd_claim(config, args)
        case "claim-status":
            _cmd_claim_status(config, args)
        case "schedule":
            _cmd_schedule(config)


def _run_match(config: FoodShareConfig, listing: Listing, *, as_json: bool) -> None:
    users = UserDB(config.database.path)
    claims = ClaimDB(config.database.path)
    try:
        service = MatchingService(users, claims, config.matching)
        response = asyncio.run(service.match_listing(listing))
    except InvalidArgumentError as e:
        print(f"Invalid listing: {e}", file=sys.stderr)
        sys.exit(2)
    except InternalError as e:
        print(f"Matching failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        users.close()
        claims.close()

    if as_json:
        print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(_format_response(listing, response))


def _format_response(listing: Listing, response: MatchResponse) -> str:
    lines: list[str] = []
    lines.append(
        f"🍱 {listing.food_name} x{listing.quantity:g}"
        f"  (expires in {format_expiry_time(listing.hours_to_expiry)})"
    )
    if not response.matched_ngos:
        lines.append(response.message or "No NGOs matched.")
        return "\n".join(lines)

    lines.append(
        f"Top {len(response.matched_ngos)} of {response.total_ngos} NGOs:"
    )
    for rank, match in enumerate(response.matched_ngos, start=1):
        quality = match_quality(match.total_score)
        b = match.breakdown
        eta = estimate_eta_minutes(b.distance_km)
        eta_text = f"~{eta} min" if eta is not None else "N/A"
        lines.append(
            f"  {rank}. {match.candidate_name:<20} {match.total_score:>3}"
            f"  {quality.emoji} {quality.label}"
        )
        lines.append(
            f"     distance {format_distance(b.distance_km)} (ETA {eta_text})"
            f"  location {b.location_score} / expiry {b.expiry_score}"
            f" / capacity {b.capacity_score} / reliability {b.reliability_score}"
        )
    return "\n".join(lines)


def _cmd_match_listing(config: FoodShareConfig, args) -> None:
    db = ListingDB(config.database.path)
    try:
        row = db.get_listing(args.listing_id)
    finally:
        db.close()

    if row is None:
        print(f"Listing {args.listing_id} not found", file=sys.stderr)
        sys.exit(1)
    _run_match(config, listing_from_row(row), as_json=args.json)


def _cmd_recipients(config: FoodShareConfig) -> None:
    db = UserDB(config.database.path)
    try:
        recipients = db.list_recipients()
    finally:
        db.close()

    if not recipients:
        print("No recipient NGOs registered.")
        return
    print(f"Recipient NGOs: {len(recipients)}")
    default_radius = config.matching.default_pickup_radius_km
    for r in recipients:
        where = (
            f"({r.latitude:.4f}, {r.longitude:.4f})" if r.has_location else "(no location)"
        )
        radius = r.pickup_radius_km if r.pickup_radius_km is not None else default_radius
        print(f"  {r.id:<12} {r.name:<20} {where}  pickup ≤ {radius:g} km")


def _cmd_add_user(config: FoodShareConfig, args) -> None:
    db = UserDB(config.database.path)
    try:
        created = db.add_user(
            args.uid,
            args.name,
            args.email,
            args.role,
            latitude=args.lat,
            longitude=args.lon,
            pickup_radius_km=args.radius,
            food_preference=args.food_preference,
            capacity=args.capacity,
        )
    except ValueError as e:
        print(str(e), file=sys.stderr)
        sys.exit(2)
    finally:
        db.close()
    print(f"Created {args.role} {args.uid}" if created else f"User {args.uid} already exists")


def _cmd_add_listing(config: FoodShareConfig, args) -> None:
    now = datetime.now()
    prepared_time = None
    if args.prepared_hours_ago is not None:
        prepared_time = now - timedelta(hours=args.prepared_hours_ago)

    db = ListingDB(config.database.path)
    try:
        listing_id = db.add_listing(
            args.donor_id,
            args.food_name,
            args.quantity,
            expiry_time=now + timedelta(hours=args.hours),
            food_type=args.food_type,
            unit=args.unit,
            latitude=args.lat,
            longitude=args.lon,
            prepared_time=prepared_time,
            verified=args.verified,
        )
    finally:
        db.close()
    print(f"Listing {listing_id} created")


def _cmd_listings_for(config: FoodShareConfig, args) -> None:
    users = UserDB(config.database.path)
    listings = ListingDB(config.database.path)
    try:
        user = users.get_user(args.recipient_id)
        rows = listings.get_available()
    finally:
        users.close()
        listings.close()

    if user is None or user["role"] != "recipient":
        print(f"Recipient {args.recipient_id} not found", file=sys.stderr)
        sys.exit(1)

    profile = RecipientProfile.from_row(user)
    ranked = rank_listings_for_recipient(
        [AvailableListing.from_row(row) for row in rows], profile
    )
    shown = ranked[: args.limit] if args.limit is not None else ranked

    if args.json:
        data = {
            "recipientId": args.recipient_id,
            "listings": [m.to_dict() for m in shown],
            "totalListings": len(ranked),
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    print(
        f"Listings for {user['name']} ({profile.food_preference}):"
        f" {len(ranked)} of {len(rows)} available"
    )
    for rank, match in enumerate(shown, start=1):
        score = round_half_up(match.score)
        quality = match_quality(score)
        verified = " ✔ verified" if match.listing.verified else ""
        lines = [
            f"  {rank}. {match.listing.food_name:<20} {score:>3}"
            f"  {quality.emoji} {quality.label}{verified}",
            f"     distance {format_distance(match.distance_km)}"
            f"  expires in {format_expiry_time(match.expiry_hours)}"
            f"  quantity {match.listing.quantity:g}",
        ]
        print("\n".join(lines))


def _cmd_claim(config: FoodShareConfig, args) -> None:
    listings = ListingDB(config.database.path)
    try:
        row = listings.get_listing(args.listing_id)
    finally:
        listings.close()
    if row is None:
        print(f"Listing {args.listing_id} not found", file=sys.stderr)
        sys.exit(1)

    db = ClaimDB(config.database.path)
    try:
        claim_id = db.add_claim(
            args.listing_id,
            args.recipient_id,
            donor_id=row["donor_id"],
            quantity=args.quantity,
        )
    finally:
        db.close()
    print(f"Claim {claim_id} requested")


def _cmd_claim_status(config: FoodShareConfig, args) -> None:
    db = ClaimDB(config.database.path)
    try:
        found = db.update_status(args.claim_id, args.status)
    finally:
        db.close()
    if not found:
        print(f"Claim {args.claim_id} not found", file=sys.stderr)
        sys.exit(1)
    print(f"Claim {args.claim_id} → {args.status}")


def _cmd_schedule(config: FoodShareConfig) -> None:
    from .scheduler import ExpiryScheduler

    try:
        scheduler = ExpiryScheduler(config)
    except ImportError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    if not config.scheduler.enabled:
        print("Scheduler is disabled; set [scheduler] enabled = true", file=sys.stderr)
        sys.exit(1)

    async def _run() -> None:
        scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.stop()

    print("Expiry scheduler running (Ctrl+C to stop)")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        pass
