"""
Tests for the exception hierarchy.
"""

from datetime import timezone

from yarnstash.exceptions import NotFoundError, create_error_context


def test_context_timestamp_is_aware_utc():
    context = create_error_context(operation="delete", object_id="obj-1", status=404)

    assert context.timestamp.tzinfo is not None
    assert context.timestamp.utcoffset() == timezone.utc.utcoffset(None)
    data = context.to_dict()
    assert data["timestamp"].endswith("+00:00")
    assert data["status"] == 404


def test_log_string_and_response():
    error = NotFoundError(
        "Drive object not found during delete: obj-1",
        error_code="OBJECT_NOT_FOUND",
        context=create_error_context(operation="delete"),
    )

    assert error.to_log_string().startswith("[OBJECT_NOT_FOUND] Drive object not found")
    assert error.to_response() == {
        "code": "OBJECT_NOT_FOUND",
        "message": "The requested resource was not found.",
    }
