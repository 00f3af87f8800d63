from __future__ import annotations

import pytest

from mongo_tracker.kernel.errors import (
    AlreadyTrackedError,
    ConfigurationError,
    EntityNotModifiedError,
    MisuseError,
    NotTrackedError,
    TrackerError,
)


@pytest.mark.unit
def test_tracker_error_rejects_invalid_code():
    with pytest.raises(ValueError):
        TrackerError(code="Not A Code", message="x")


@pytest.mark.unit
def test_tracker_error_to_dict_includes_meta_only_when_present():
    assert TrackerError(code="tracker.misuse", message="Nope").to_dict() == {
        "code": "tracker.misuse",
        "message": "Nope",
    }
    err = TrackerError(code="tracker.misuse", message="Nope", meta={"id": "1"})
    assert err.to_dict()["meta"] == {"id": "1"}


@pytest.mark.unit
def test_not_tracked_error_is_a_key_error_with_readable_message():
    err = NotTrackedError(message="Entity 'Book' with id 'b1' is not tracked")
    assert isinstance(err, KeyError)
    assert isinstance(err, MisuseError)
    assert str(err) == "Entity 'Book' with id 'b1' is not tracked"
    assert err.code == "tracker.not_tracked"


@pytest.mark.unit
def test_error_codes_are_stable():
    assert AlreadyTrackedError().code == "tracker.already_tracked"
    assert EntityNotModifiedError().code == "tracker.entity_not_modified"
    assert ConfigurationError(message="bad").code == "model.configuration_error"
