"""Tests for document-style binding and its agreement with reflective binding."""

import hypothesis.strategies as st
import pytest
from hypothesis import given, settings

from fluent_config.binding.binder import Binder
from fluent_config.binding.structured import StructuredBinder, bind_structured, coerce_leaf
from fluent_config.core.errors import ErrorKind, MissingRequiredKey
from tests.sample_types import (
    AppSettings,
    Catalog,
    Credentials,
    Item,
    Limits,
    Root,
    ServerModel,
    ServiceOptions,
    Tunables,
)
from tests.unit.test_binder import FULL_APP_CONFIG


@pytest.fixture
def reflective(registry):
    return Binder(registry=registry)


@pytest.fixture
def structured(registry):
    return StructuredBinder(registry=registry)


class TestEquivalence:
    """Both binding modes build equal objects from the same map."""

    @pytest.mark.parametrize(
        "cls,configuration",
        [
            (AppSettings, FULL_APP_CONFIG),
            (AppSettings, {}),
            (AppSettings, {"DATABASE__USESSL": "true", "endpoints:3:weight": "2"}),
            (
                Catalog,
                {
                    "Items:0:Name": "bolt",
                    "Items:0:Count": "2",
                    "Items:1:Name": "nut",
                    "Items:1:Count": " 7 ",
                    "Owner:User": "u",
                    "Owner:Password": "p",
                    "Labels:0": "x",
                },
            ),
            (ServerModel, {"Host": "h", "Port": "8080", "Aliases:0": "a", "Level": "WARNING"}),
            (Root, {"A:B": "value"}),
        ],
    )
    def test_modes_agree(self, reflective, structured, cls, configuration):
        """Reflective and structured results compare equal."""
        left = reflective.bind(cls, configuration)
        right = structured.bind(cls, configuration)

        assert left.is_success, left.messages
        assert right.is_success, right.messages
        assert left.value == right.value

    def test_constructor_bound_members_agree(self, structured):
        """Immutable members come out as real instances."""
        catalog = structured.bind(Catalog, {"Items:0:Name": "a", "Items:0:Count": "1"}).value

        assert catalog.items == [Item("a", 1)]
        assert isinstance(catalog.items[0], Item)
        assert catalog.owner is None

    def test_exponent_text_is_not_an_integer(self, reflective, structured):
        """Both modes reject 1e3 for an int member at the same path."""
        left = reflective.bind(Tunables, {"Retries": "1e3"})
        right = structured.bind(Tunables, {"Retries": "1e3"})

        for result in (left, right):
            assert result.is_failure
            assert [e.path for e in result.errors] == ["retries"]
            assert result.errors[0].kind is ErrorKind.CONVERSION

    def test_missing_required_member_agrees(self, reflective, structured):
        """Both modes report the same single missing Required member."""
        left = reflective.bind(Limits, {"Retries": "2"})
        right = structured.bind(Limits, {"Retries": "2"})

        for result in (left, right):
            assert len(result.errors) == 1
            assert isinstance(result.errors[0], MissingRequiredKey)
            assert result.errors[0].path == "name"

    @given(
        name=st.one_of(st.none(), st.text(max_size=10)),
        retries=st.one_of(st.none(), st.sampled_from(["1", "42", "-7", "abc", "", "1.5", " 3 ", "1e3", "2.0"])),
        enabled=st.one_of(st.none(), st.sampled_from(["true", "False", "yes", "0", "maybe", ""])),
        ratio=st.one_of(st.none(), st.sampled_from(["2.5", "3", "x", "1e3"])),
        limit=st.one_of(st.none(), st.sampled_from(["", "5", "1e3"])),
    )
    @settings(max_examples=80, deadline=None)
    def test_equivalence_property(self, name, retries, enabled, ratio, limit):
        """Property: same success, same value, same failing paths."""
        configuration = {
            key: value
            for key, value in (
                ("Name", name),
                ("Retries", retries),
                ("Enabled", enabled),
                ("Ratio", ratio),
                ("Limit", limit),
            )
            if value is not None
        }

        left = Binder().bind(Tunables, configuration)
        right = StructuredBinder().bind(Tunables, configuration)

        assert left.is_success == right.is_success
        if left.is_success:
            assert left.value == right.value
        else:
            assert {e.path for e in left.errors} == {e.path for e in right.errors}


class TestStructuredBinderBehaviour:
    """Test cases for behaviour of the document route itself."""

    def test_conversion_failures_carry_paths(self, structured):
        """pydantic errors are translated to located ConversionErrors."""
        result = structured.bind(AppSettings, {"Database:Port": "abc"})

        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.kind is ErrorKind.CONVERSION
        assert error.path == "database:port"
        assert error.raw_value == "abc"

    def test_plain_classes_are_unsupported(self, structured):
        """Types pydantic cannot describe fail with UnsupportedShapeError."""
        result = structured.bind(ServiceOptions, {"Name": "x"})

        assert result.errors[0].kind is ErrorKind.UNSUPPORTED_SHAPE

    def test_scalar_root_is_unsupported(self, structured):
        """Only object shapes can be bound at the root."""
        assert structured.bind(int, {}).errors[0].kind is ErrorKind.UNSUPPORTED_SHAPE

    def test_frozen_member(self):
        """The module-level helper uses the default registry."""
        result = bind_structured(Catalog, {"Owner:User": "u", "Owner:Password": "p"})

        assert result.value.owner == Credentials("u", "p")

    def test_to_document(self, structured):
        """Index-only nodes become lists and leaves are typed heuristically."""
        document = structured.to_document({"A:0": "1", "A:1": "x", "B:C": "true", "B:D": "2.5"})

        assert document == {"A": [1, "x"], "B": {"C": True, "D": 2.5}}

    def test_coerce_leaf(self, registry):
        """Leaves are shaped for the member they feed."""
        assert coerce_leaf("TRUE", registry.shape_of(bool)) is True
        assert coerce_leaf("yes", registry.shape_of(bool)) == "yes"
        assert coerce_leaf(" 3 ", registry.shape_of(int)) == 3
        assert coerce_leaf("1e3", registry.shape_of(int)) == "1e3"
        assert coerce_leaf("1e3", registry.shape_of(float)) == 1000.0
        assert coerce_leaf("007", registry.shape_of(str)) == "007"
        assert coerce_leaf("", registry.shape_of(Tunables.__annotations__["limit"])) is None
