"""Shared fakes for the geocoding providers"""

import asyncio

import pytest

from services.geocoding import AddressParts, SearchResult

# Short quiet interval so debounce tests stay fast
INTERVAL = 0.02


class FakeGeocoder:
    """Answers immediately with canned data and records every call"""

    def __init__(self, results=None, address=None, search_error=None, reverse_error=None):
        self.results = results or []
        self.address = address or AddressParts()
        self.search_error = search_error
        self.reverse_error = reverse_error
        self.search_calls = []
        self.reverse_calls = []
        self.closed = False

    async def search(self, query):
        self.search_calls.append(query)
        if self.search_error:
            raise self.search_error
        return list(self.results)

    async def reverse(self, latitude, longitude):
        self.reverse_calls.append((latitude, longitude))
        if self.reverse_error:
            raise self.reverse_error
        return self.address

    async def close(self):
        self.closed = True


class ControlledGeocoder:
    """Every call parks on a future the test resolves (or fails) explicitly"""

    def __init__(self):
        self.searches = []
        self.reverses = []

    async def search(self, query):
        future = asyncio.get_running_loop().create_future()
        self.searches.append((query, future))
        return await future

    async def reverse(self, latitude, longitude):
        future = asyncio.get_running_loop().create_future()
        self.reverses.append(((latitude, longitude), future))
        return await future


async def settle(component, interval=INTERVAL):
    """Let a debounce period pass, then wait for the requests it started"""
    await asyncio.sleep(interval * 3)
    await component.wait_idle()


@pytest.fixture
def mumbai_result():
    return SearchResult(
        display_name="Mumbai, Mumbai Suburban, Maharashtra, 400001, India",
        lat="19.0760",
        lon="72.8777",
        address=AddressParts(city="Mumbai", state="Maharashtra", postcode="400001"),
    )


@pytest.fixture
def pune_address():
    return AddressParts(
        postcode="411001",
        state="Maharashtra",
        state_district="Pune District",
        city="Pune",
    )
