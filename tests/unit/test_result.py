"""Tests for the Result container."""

import pytest

from fluent_config.core.errors import MissingRequiredKey
from fluent_config.core.result import Failure, Result, Success
from fluent_config.exceptions import InvalidArgumentError, ResultAccessError


class TestResultConstruction:
    """Test cases for creating results."""

    def test_success_carries_value(self):
        """A success exposes its value and no errors."""
        result = Result.success(42)

        assert result.is_success
        assert not result.is_failure
        assert result.value == 42
        assert result.errors == ()

    def test_failure_flattens_error_arguments(self):
        """Errors may be passed individually or as lists."""
        result = Result.failure("first", ["second", "third"])

        assert result.is_failure
        assert result.errors == ("first", "second", "third")

    def test_failure_without_errors_is_rejected(self):
        """An empty failure is a contract violation."""
        with pytest.raises(InvalidArgumentError):
            Result.failure()

    def test_reading_value_of_failure_raises(self):
        """Accessing the value of a failure raises ResultAccessError."""
        result = Result.failure("boom")

        with pytest.raises(ResultAccessError) as exc_info:
            _ = result.value

        assert exc_info.value.errors == ["boom"]
        assert exc_info.value.to_dict()["error_code"] == "RESULT_ACCESS_ERROR"

    def test_results_compare_by_value(self):
        """Results are immutable values."""
        assert Result.success(1) == Success(1)
        assert Result.failure("x") == Failure(("x",))
        assert Result.success(1) != Result.success(2)

    def test_messages_render_structured_errors(self):
        """Structured errors and plain strings both render to text."""
        result = Result.failure(MissingRequiredKey.for_key("Database:Host"), "plain")

        assert result.messages == ["Required key 'Database:Host' was not found", "plain"]


class TestResultOperators:
    """Test cases for map, bind, match and combine."""

    def test_map_transforms_success(self):
        """Map applies to the value of a success."""
        assert Result.success(2).map(lambda v: v * 10) == Success(20)

    def test_map_skips_failure(self):
        """Map leaves a failure untouched."""
        failure = Result.failure("bad")
        assert failure.map(lambda v: v * 10) is failure

    def test_bind_chains_results(self):
        """Bind can turn a success into a failure."""
        result = Result.success("abc").bind(
            lambda v: Result.failure(f"{v} rejected") if v == "abc" else Result.success(v)
        )

        assert result.messages == ["abc rejected"]

    def test_match_dispatches_on_state(self):
        """Match picks the handler for the current state."""
        on_success = Result.success(3).match(lambda v: f"ok {v}", lambda e: "failed")
        on_failure = Result.failure("x", "y").match(lambda v: "ok", lambda e: len(e))

        assert on_success == "ok 3"
        assert on_failure == 2

    def test_combine_accumulates_both_sides(self):
        """Combining two failures keeps every error in order."""
        left = Result.failure("a")
        right = Result.failure("b")

        assert left.combine(right, lambda x, y: x + y).errors == ("a", "b")
        assert Result.success(1).combine(Result.success(2), lambda x, y: x + y) == Success(3)

    def test_collect_returns_all_values_or_all_errors(self):
        """Collect either gathers every value or every error."""
        assert Result.collect([Result.success(1), Result.success(2)]) == Success([1, 2])

        mixed = Result.collect([Result.failure("a"), Result.success(2), Result.failure("b")])
        assert mixed.errors == ("a", "b")

    def test_unwrap_or_and_to_option(self):
        """Fallback helpers behave per state."""
        assert Result.failure("x").unwrap_or(7) == 7
        assert Result.success(1).unwrap_or(7) == 1
        assert Result.success(1).to_option().value == 1
        assert Result.failure("x").to_option().is_none
