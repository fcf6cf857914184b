import pytest

from snowscore.ingestion.identity import IdentityResolver, display_name_from_slug, slugify
from tests.helpers import WEDNESDAY, make_record


def test_exact_match_on_name_and_alias_is_case_insensitive(registry):
    resolver = IdentityResolver(registry)

    assert resolver.resolve("Zermatt") == "zermatt"
    assert resolver.resolve("  ZERMATT ") == "zermatt"
    assert resolver.resolve("Davos Klosters Parsenn") == "davos-parsenn"
    assert resolver.resolve("andermatt - gemsstock") == "andermatt"


def test_containment_matches_in_both_directions(registry):
    resolver = IdentityResolver(registry)

    # Raw name contains a catalog name.
    assert resolver.lookup("Engelberg Titlis (Trübsee)").identity == "engelberg-titlis"
    # Raw name is contained in a catalog name; the first catalog entry wins.
    davos = resolver.lookup("Davos")
    assert davos.identity == "davos-parsenn"
    assert davos.mapped is True


def test_unmatched_name_gets_a_slug_identity(registry):
    resolver = IdentityResolver(registry)

    resolution = resolver.lookup("Obergoms - Goms")

    assert resolution.identity == "obergoms-goms"
    assert resolution.mapped is False


def test_blank_name_is_rejected(registry):
    resolver = IdentityResolver(registry)

    with pytest.raises(ValueError):
        resolver.resolve("   ")
    with pytest.raises(ValueError):
        resolver.resolve("***")


def test_slug_helpers():
    assert slugify("  Hoch -- Ybrig!! ") == "hoch-ybrig"
    assert display_name_from_slug("obergoms-goms") == "Obergoms Goms"


def test_synthesized_destination_uses_defaults_and_lift_derived_season(registry, settings):
    resolver = IdentityResolver(registry, settings.unmapped)

    running = make_record("obergoms-goms", WEDNESDAY, lifts_open=2, source_name="Obergoms - Goms")
    destination, mapped = resolver.destination_for("obergoms-goms", running)

    assert mapped is False
    assert destination.name == "Obergoms - Goms"
    assert destination.season_status == "OPEN"
    assert destination.priority == 3
    assert destination.difficulty == "mixed"
    assert (destination.location.lat, destination.location.lon) == (46.8, 8.2)

    idle = make_record("obergoms-goms", WEDNESDAY, lifts_open=0)
    assert resolver.synthesize("obergoms-goms", idle).season_status == "CLOSED"
    unknown = make_record("obergoms-goms", WEDNESDAY, lifts_open=None)
    assert resolver.synthesize("obergoms-goms", unknown).season_status == "CLOSED"
    assert resolver.synthesize("obergoms-goms").name == "Obergoms Goms"


def test_mapped_identity_returns_registry_entry(registry):
    resolver = IdentityResolver(registry)

    destination, mapped = resolver.destination_for("hoch-ybrig")

    assert mapped is True
    assert destination.season_status == "CLOSED"
