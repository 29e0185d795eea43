"""Unit tests for custom exceptions and error context."""

from geocache.exceptions import (
    AlreadyExistsError,
    ConflictError,
    ErrorCode,
    ErrorHandler,
    GeoCacheError,
    NotSupportedError,
    ResourceNotFoundError,
    SerializationError,
)


class TestGeoCacheError:
    """Test GeoCacheError base class."""

    def test_error_creation(self):
        """Test creating GeoCacheError."""
        error = GeoCacheError("Test error", ErrorCode.INTERNAL_ERROR, {"detail": "test"})

        assert str(error) == "Test error"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.data == {"detail": "test"}

    def test_error_to_dict(self):
        """Test converting GeoCacheError to dict."""
        error = GeoCacheError("Test error", ErrorCode.CONFLICT, {"resource_key": "k"})
        error_dict = error.to_dict()

        assert error_dict["code"] == "conflict"
        assert error_dict["message"] == "Test error"
        assert error_dict["data"] == {"resource_key": "k"}

    def test_error_without_data(self):
        """Test GeoCacheError without additional data."""
        error_dict = GeoCacheError("Simple error").to_dict()

        assert error_dict["code"] == ErrorCode.INTERNAL_ERROR.value
        assert "data" not in error_dict


class TestSpecificErrors:
    """Test specific error types."""

    def test_already_exists_error(self):
        """Test AlreadyExistsError."""
        error = AlreadyExistsError(key="parcels", field="features")

        assert isinstance(error, GeoCacheError)
        assert str(error) == "Cache key is already in use"
        assert error.code == ErrorCode.ALREADY_EXISTS
        assert error.data == {"resource_key": "parcels", "field": "features"}

    def test_resource_not_found_error(self):
        """Test ResourceNotFoundError."""
        error = ResourceNotFoundError(key="parcels")

        assert str(error) == "Resource not found"
        assert error.code == ErrorCode.RESOURCE_NOT_FOUND
        assert error.data == {"resource_key": "parcels"}

    def test_conflict_error(self):
        """Test ConflictError."""
        error = ConflictError(key="parcels")

        assert str(error) == "Cannot delete catalog entry while data is still in cache"
        assert error.code == ErrorCode.CONFLICT

    def test_not_supported_error(self):
        """Test NotSupportedError."""
        error = NotSupportedError(operation="create_stream")

        assert str(error) == "Streaming not yet supported"
        assert error.data["operation"] == "create_stream"

    def test_serialization_error_truncates_value(self):
        """Test SerializationError value truncation."""
        error = SerializationError(key="k", field="metadata", value="x" * 1001)

        assert error.code == ErrorCode.SERIALIZATION_ERROR
        assert len(error.data["value"]) == 100  # Truncated

    def test_caller_data_not_mutated(self):
        """Test that extra data passed in is copied, not modified."""
        data = {"detail": "x"}

        error = ResourceNotFoundError(key="parcels", field="features", data=data)
        NotSupportedError(operation="create_stream", data=data)

        assert data == {"detail": "x"}
        assert error.data == {
            "detail": "x",
            "resource_key": "parcels",
            "field": "features",
        }

    def test_empty_string_key_is_kept(self):
        """Test that an empty key is still recorded."""
        assert ResourceNotFoundError(key="").data == {"resource_key": ""}


class TestErrorHandler:
    """Test structured-log error context."""

    def test_context_for_cache_error(self):
        """Test error context for a cache error."""
        error = ConflictError(key="parcels")

        context = ErrorHandler.create_error_context(
            error, operation="catalog_delete", key="parcels"
        )

        assert context["error_type"] == "ConflictError"
        assert context["operation"] == "catalog_delete"
        assert context["resource_key"] == "parcels"
        assert context["error_code"] == "conflict"
        assert context["error_data"] == {"resource_key": "parcels"}

    def test_context_for_generic_error(self):
        """Test error context for a non-cache error."""
        context = ErrorHandler.create_error_context(ValueError("bad"))

        assert context == {"error_type": "ValueError", "error_message": "bad"}
