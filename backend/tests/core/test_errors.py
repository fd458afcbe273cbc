"""Error hierarchy tests — status codes, codes and response envelopes."""

from certnum.core.errors import (
    CertnumError, ErrorCategory, ErrorContext, ErrorSeverity,
    InvalidDisplaySettingsError, InvariantViolationError, RecordNotFoundError,
    StorageTimeoutError, StorageUnavailableError,
)


def test_record_not_found_carries_issue_id():
    err = RecordNotFoundError("Issue", "abc")
    body = err.to_response()["error"]
    assert err.http_status == 404
    assert body["code"] == "RECORD_NOT_FOUND"
    assert body["context"]["issue_id"] == "abc"


def test_element_not_found_leaves_issue_id_empty():
    err = RecordNotFoundError("Element", "xyz")
    assert err.context.issue_id is None
    assert "Element 'xyz'" in err.message


def test_invalid_display_settings_is_validation_error():
    err = InvalidDisplaySettingsError("bad blob")
    assert err.http_status == 400
    assert err.category is ErrorCategory.VALIDATION


def test_storage_unavailable_records_operation():
    err = StorageUnavailableError("connection refused", "assign")
    assert err.http_status == 503
    assert err.severity is ErrorSeverity.ERROR
    assert err.context.operation == "assign"


def test_storage_timeout_is_storage_unavailable():
    err = StorageTimeoutError("lock_wait", 2.5, ErrorContext(sequence_key="global"))
    assert isinstance(err, StorageUnavailableError)
    assert err.code == "STORAGE_TIMEOUT"
    assert err.category is ErrorCategory.TIMEOUT
    assert "2.5s" in err.message
    assert err.severity is ErrorSeverity.ERROR
    assert err.to_response()["error"]["context"]["sequence_key"] == "global"


def test_invariant_violation_is_critical():
    err = InvariantViolationError("dup", duplicates=[3])
    assert isinstance(err, CertnumError)
    assert err.severity is ErrorSeverity.CRITICAL
    assert err.duplicates == [3]
    assert err.missing == []
