"""Tests for the exception framework."""

import pytest

from parentree_common.exceptions import (
    ConfigurationError,
    NotFoundError,
    ParentreeError,
    SerializationError,
    ValidationError,
)


class TestParentreeError:
    """Test the base ParentreeError class."""

    def test_basic_exception(self):
        """Test basic exception without context."""
        error = ParentreeError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.context == {}

    def test_exception_with_context(self):
        """Test exception with context dictionary."""
        error = ParentreeError("Build failed", context={"node_id": 5, "parent_id": 5})
        assert str(error) == "Build failed"
        assert error.context == {"node_id": 5, "parent_id": 5}

    def test_context_is_copied(self):
        """Changing the passed dictionary does not change the error."""
        context = {"node_id": 5}
        error = ParentreeError("Build failed", context=context)
        context["node_id"] = 6
        assert error.context == {"node_id": 5}

    def test_repr(self):
        error = NotFoundError("Invalid node primary key 9", context={"node_id": 9})
        assert repr(error) == "NotFoundError('Invalid node primary key 9', context={'node_id': 9})"

    def test_exception_catchable_as_base(self):
        """Test that specific exceptions can be caught as base."""
        with pytest.raises(ParentreeError):
            raise ValidationError("Invalid data")


@pytest.mark.parametrize(
    "error_class",
    [ValidationError, ConfigurationError, NotFoundError, SerializationError],
)
def test_specific_errors_carry_context(error_class):
    error = error_class("Failed", context={"field": "id"})
    assert isinstance(error, ParentreeError)
    assert str(error) == "Failed"
    assert error.context == {"field": "id"}
