import asyncio

import pytest

from services.geocoding import (
    AddressParts,
    Coordinates,
    InvalidCoordinates,
    Location,
    MalformedResponse,
    NetworkFailure,
    SearchResult,
)
from services.location_picker import (
    LocationResolver,
    LocationSelection,
    SelectionState,
    location_fields,
)

from conftest import ControlledGeocoder, FakeGeocoder


@pytest.mark.parametrize(
    "address, expected_place",
    [
        (AddressParts(city="Mumbai", town="Thane", village="Gorai", suburb="Andheri"), "Mumbai"),
        (AddressParts(town="Thane", village="Gorai", suburb="Andheri"), "Thane"),
        (AddressParts(village="Gorai", suburb="Andheri"), "Gorai"),
        (AddressParts(suburb="Andheri"), "Andheri"),
        (AddressParts(), ""),
    ],
)
def test_place_precedence(address, expected_place):
    assert location_fields(address)["place"] == expected_place


@pytest.mark.parametrize(
    "address, expected_district",
    [
        (AddressParts(state_district="Konkan Division", county="Mumbai Suburban"), "Konkan Division"),
        (AddressParts(county="Mumbai Suburban"), "Mumbai Suburban"),
        (AddressParts(), ""),
    ],
)
def test_district_precedence(address, expected_district):
    assert location_fields(address)["district"] == expected_district


def test_pincode_and_state_default_to_empty():
    fields = location_fields(AddressParts(city="Mumbai"))
    assert fields["pincode"] == ""
    assert fields["state"] == ""


def test_empty_strings_fall_through_to_next_tier():
    fields = location_fields(AddressParts(city="", town="Thane", state_district="", county="Thane"))
    assert fields["place"] == "Thane"
    assert fields["district"] == "Thane"


def test_place_may_exist_without_state():
    fields = location_fields(AddressParts(village="Gorai"))
    assert fields == {"pincode": "", "district": "", "place": "Gorai", "state": ""}


@pytest.mark.asyncio
async def test_point_is_applied_before_reverse_geocode_completes(pune_address):
    geocoder = ControlledGeocoder()
    selection = LocationSelection()
    resolver = LocationResolver(geocoder.reverse, selection)

    resolver.resolve_from_point(18.5204, 73.8567)

    assert selection.state == SelectionState.POINT_ONLY
    assert selection.position == Coordinates(latitude=18.5204, longitude=73.8567)
    assert selection.location.place == ""

    await asyncio.sleep(0)
    _, future = geocoder.reverses[0]
    future.set_result(pune_address)
    await resolver.wait_idle()

    assert selection.state == SelectionState.RESOLVED
    assert selection.location == Location(
        pincode="411001",
        state="Maharashtra",
        district="Pune District",
        place="Pune",
        coordinates=Coordinates(latitude=18.5204, longitude=73.8567),
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [NetworkFailure("timeout"), MalformedResponse("no address")])
async def test_failed_reverse_geocode_keeps_text_and_moves_point(error):
    previous = Location(
        pincode="400001",
        state="Maharashtra",
        district="Mumbai",
        place="Fort",
        coordinates=Coordinates(latitude=18.93, longitude=72.83),
    )
    selection = LocationSelection(previous)
    resolver = LocationResolver(FakeGeocoder(reverse_error=error).reverse, selection)

    resolver.resolve_from_point(19.2, 72.97)
    await resolver.wait_idle()

    assert selection.state == SelectionState.RESOLVED
    assert selection.location.coordinates == Coordinates(latitude=19.2, longitude=72.97)
    assert (
        selection.location.pincode,
        selection.location.state,
        selection.location.district,
        selection.location.place,
    ) == ("400001", "Maharashtra", "Mumbai", "Fort")


@pytest.mark.asyncio
async def test_slow_reverse_for_earlier_click_is_dropped(pune_address):
    geocoder = ControlledGeocoder()
    selection = LocationSelection()
    resolver = LocationResolver(geocoder.reverse, selection)
    mumbai_address = AddressParts(city="Mumbai", state="Maharashtra")

    resolver.resolve_from_point(18.5204, 73.8567)
    await asyncio.sleep(0)
    resolver.resolve_from_point(19.076, 72.8777)
    await asyncio.sleep(0)

    (_, first), (_, second) = geocoder.reverses
    second.set_result(mumbai_address)
    await asyncio.sleep(0)
    if not first.cancelled():
        first.set_result(pune_address)
    await resolver.wait_idle()

    assert selection.location.place == "Mumbai"
    assert selection.location.coordinates == Coordinates(latitude=19.076, longitude=72.8777)


@pytest.mark.asyncio
async def test_new_click_returns_to_point_only():
    selection = LocationSelection(Location(place="Fort", coordinates=Coordinates(latitude=18.93, longitude=72.83)))
    assert selection.state == SelectionState.RESOLVED
    resolver = LocationResolver(ControlledGeocoder().reverse, selection)

    resolver.resolve_from_point(19.0, 73.0)

    assert selection.state == SelectionState.POINT_ONLY
    await resolver.aclose()


@pytest.mark.asyncio
async def test_search_result_resolution_is_synchronous(mumbai_result):
    geocoder = FakeGeocoder()
    selection = LocationSelection()
    resolver = LocationResolver(geocoder.reverse, selection)

    location = resolver.resolve_from_search_result(mumbai_result)

    assert geocoder.reverse_calls == []
    assert selection.state == SelectionState.RESOLVED
    assert location == Location(
        place="Mumbai",
        district="",
        state="Maharashtra",
        pincode="400001",
        coordinates=Coordinates(latitude=19.076, longitude=72.8777),
    )


@pytest.mark.asyncio
async def test_search_result_uses_county_fallback():
    result = SearchResult(
        display_name="Alibag, Raigad, Maharashtra",
        lat="18.64",
        lon="72.87",
        address=AddressParts(town="Alibag", county="Raigad", state="Maharashtra"),
    )
    resolver = LocationResolver(FakeGeocoder().reverse, LocationSelection())

    location = resolver.resolve_from_search_result(result)

    assert location.district == "Raigad"
    assert location.place == "Alibag"


@pytest.mark.asyncio
async def test_malformed_result_coordinates_keep_prior_state(mumbai_result):
    selection = LocationSelection()
    resolver = LocationResolver(FakeGeocoder().reverse, selection)
    resolver.resolve_from_search_result(mumbai_result)
    before = selection.location

    broken = SearchResult(display_name="Broken", lat="19.0N", lon="72.8E")
    with pytest.raises(InvalidCoordinates):
        resolver.resolve_from_search_result(broken)

    assert selection.location is before
    assert selection.state == SelectionState.RESOLVED


@pytest.mark.asyncio
async def test_search_result_supersedes_pending_reverse(mumbai_result, pune_address):
    geocoder = ControlledGeocoder()
    selection = LocationSelection()
    resolver = LocationResolver(geocoder.reverse, selection)

    resolver.resolve_from_point(18.5204, 73.8567)
    await asyncio.sleep(0)
    resolver.resolve_from_search_result(mumbai_result)

    _, future = geocoder.reverses[0]
    if not future.cancelled():
        future.set_result(pune_address)
    await resolver.wait_idle()

    assert selection.location.place == "Mumbai"
