"""Location picker: debounced search, point resolution and the shared selection record

Usage:
    from services.location_picker import LocationPicker

    picker = LocationPicker(get_nominatim_client(), on_confirm=save_location)
    picker.set_query("Mumbai")
    ...
    picker.select_result(0)
    picker.confirm()
"""

from .debouncer import SearchDebouncer
from .picker import LocationPicker, PickerSnapshot, ResultItem
from .pincode import PincodeInput, PincodeSnapshot, sanitize_pincode
from .record import EDITABLE_FIELDS, LocationSelection, SelectionError, SelectionState
from .resolver import LocationResolver, location_fields
from .sequencing import ResolutionSequencer
from .timer import CancellableTimer

__all__ = [
    # Session
    "LocationPicker",
    "PickerSnapshot",
    "ResultItem",
    "PincodeInput",
    "PincodeSnapshot",
    "sanitize_pincode",
    # Building blocks
    "SearchDebouncer",
    "LocationResolver",
    "location_fields",
    "ResolutionSequencer",
    "CancellableTimer",
    # Selection record
    "EDITABLE_FIELDS",
    "LocationSelection",
    "SelectionError",
    "SelectionState",
]
