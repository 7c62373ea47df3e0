import asyncio

import pytest

from services.geocoding import NetworkFailure
from services.location_picker import SearchDebouncer

from conftest import INTERVAL, ControlledGeocoder, FakeGeocoder, settle


def _debouncer(geocoder, **kwargs):
    return SearchDebouncer(geocoder.search, interval=INTERVAL, min_length=3, **kwargs)


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "a", "ab", "  ab  ", "\tx "])
async def test_short_input_never_searches(text, mumbai_result):
    geocoder = FakeGeocoder(results=[mumbai_result])
    debouncer = _debouncer(geocoder)

    debouncer.update(text)
    assert not debouncer.timer_armed
    await settle(debouncer)

    assert geocoder.search_calls == []
    assert debouncer.results == []


@pytest.mark.asyncio
async def test_rapid_edits_issue_one_search_with_last_value(mumbai_result):
    geocoder = FakeGeocoder(results=[mumbai_result])
    debouncer = _debouncer(geocoder)

    for text in ["Mum", "Mumb", "Mumba", "Mumbai"]:
        debouncer.update(text)
        await asyncio.sleep(INTERVAL / 4)
    await settle(debouncer)

    assert geocoder.search_calls == ["Mumbai"]
    assert debouncer.results == [mumbai_result]


@pytest.mark.asyncio
async def test_query_is_trimmed_before_search():
    geocoder = FakeGeocoder()
    debouncer = _debouncer(geocoder)

    debouncer.update("  Pune  ")
    await settle(debouncer)

    assert geocoder.search_calls == ["Pune"]
    assert debouncer.text == "  Pune  "


@pytest.mark.asyncio
async def test_nothing_scheduled_before_quiet_period_ends():
    geocoder = FakeGeocoder()
    debouncer = _debouncer(geocoder)

    debouncer.update("Mumbai")
    await asyncio.sleep(INTERVAL / 4)

    assert geocoder.search_calls == []
    assert debouncer.timer_armed


@pytest.mark.asyncio
async def test_searching_flag_tracks_outstanding_request(mumbai_result):
    geocoder = ControlledGeocoder()
    debouncer = _debouncer(geocoder)

    debouncer.update("Mumbai")
    await asyncio.sleep(INTERVAL * 3)
    assert debouncer.searching
    assert len(geocoder.searches) == 1

    _, future = geocoder.searches[0]
    future.set_result([mumbai_result])
    await debouncer.wait_idle()

    assert not debouncer.searching
    assert debouncer.results == [mumbai_result]


@pytest.mark.asyncio
async def test_failure_clears_results_and_flag(mumbai_result):
    geocoder = FakeGeocoder(results=[mumbai_result])
    debouncer = _debouncer(geocoder)
    debouncer.update("Mumbai")
    await settle(debouncer)
    assert debouncer.results

    geocoder.search_error = NetworkFailure("timed out")
    debouncer.update("Mumbai Central")
    await settle(debouncer)

    assert debouncer.results == []
    assert not debouncer.searching


@pytest.mark.asyncio
async def test_success_replaces_results_wholesale(mumbai_result):
    geocoder = FakeGeocoder(results=[mumbai_result, mumbai_result])
    debouncer = _debouncer(geocoder)
    debouncer.update("Mumbai")
    await settle(debouncer)
    assert len(debouncer.results) == 2

    geocoder.results = []
    debouncer.update("Mumbaii")
    await settle(debouncer)

    assert debouncer.results == []


@pytest.mark.asyncio
async def test_clear_cancels_pending_timer():
    geocoder = FakeGeocoder()
    debouncer = _debouncer(geocoder)

    debouncer.update("Mumbai")
    debouncer.clear()
    await settle(debouncer)

    assert geocoder.search_calls == []
    assert debouncer.text == ""


@pytest.mark.asyncio
async def test_teardown_cancels_pending_timer():
    geocoder = FakeGeocoder()
    debouncer = _debouncer(geocoder)

    debouncer.update("Mumbai")
    await debouncer.aclose()
    await asyncio.sleep(INTERVAL * 3)

    assert geocoder.search_calls == []


@pytest.mark.asyncio
async def test_late_response_does_not_refill_short_query(mumbai_result):
    geocoder = ControlledGeocoder()
    debouncer = _debouncer(geocoder)

    debouncer.update("Mumbai")
    await asyncio.sleep(INTERVAL * 3)
    debouncer.update("Mu")

    _, future = geocoder.searches[0]
    if not future.cancelled():
        future.set_result([mumbai_result])
    await debouncer.wait_idle()

    assert debouncer.results == []
    assert not debouncer.searching


@pytest.mark.asyncio
async def test_stale_search_response_is_discarded(mumbai_result):
    geocoder = ControlledGeocoder()
    debouncer = _debouncer(geocoder)

    debouncer.update("Mumb")
    await asyncio.sleep(INTERVAL * 3)
    debouncer.update("Mumbai")
    await asyncio.sleep(INTERVAL * 3)
    assert [query for query, _ in geocoder.searches] == ["Mumb", "Mumbai"]

    (_, older), (_, newer) = geocoder.searches
    newer.set_result([mumbai_result])
    await asyncio.sleep(0)
    if not older.cancelled():
        older.set_result([])
    await debouncer.wait_idle()

    assert debouncer.results == [mumbai_result]


@pytest.mark.asyncio
async def test_on_change_called_for_each_transition(mumbai_result):
    geocoder = FakeGeocoder(results=[mumbai_result])
    changes = []
    debouncer = _debouncer(geocoder, on_change=lambda: changes.append(
        (debouncer.searching, len(debouncer.results))
    ))

    debouncer.update("Mumbai")
    await settle(debouncer)

    # typed, search started, results landed
    assert changes == [(False, 0), (True, 0), (False, 1)]
