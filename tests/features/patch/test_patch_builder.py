"""Tests for patch path normalisation, selectors and the operation builder."""

from datetime import datetime, timezone

import pytest

from nosql_persistence.core.exceptions import InvalidPatchPathError
from nosql_persistence.features.patch import (
    PatchOperation,
    PatchOperationBuilder,
    PatchOperationType,
    compile_selector,
    is_array_index,
    normalize_path,
)

from conftest import Order, OrderLine


class TestNormalizePath:
    """Test string path normalisation."""

    @pytest.mark.parametrize("path,expected", [
        ("status", "/status"),
        ("/status", "/status"),
        ("lines/0/quantity", "/lines/0/quantity"),
        ("/meta/a~1b", "/meta/a~1b"),
    ])
    def test_accepted_forms(self, path, expected):
        assert normalize_path(path) == expected

    @pytest.mark.parametrize("path", ["", "/", "a//b", "/a/", " a", "a/ b", "a~2b", "a~"])
    def test_rejected_forms(self, path):
        with pytest.raises(InvalidPatchPathError):
            normalize_path(path)

    def test_append_marker_only_for_add(self):
        assert normalize_path("tags/-", PatchOperationType.ADD) == "/tags/-"
        with pytest.raises(InvalidPatchPathError):
            normalize_path("tags/-", PatchOperationType.SET)
        with pytest.raises(InvalidPatchPathError):
            normalize_path("tags/-/name", PatchOperationType.ADD)

    def test_non_string_path(self):
        with pytest.raises(InvalidPatchPathError):
            normalize_path(None)

    def test_array_index_detection(self):
        assert is_array_index("0")
        assert is_array_index("12")
        assert not is_array_index("01")
        assert not is_array_index("-")
        assert not is_array_index("x")


class TestSelectors:
    """Test selector compilation against entity models."""

    def test_field_uses_document_name(self):
        assert compile_selector(Order, lambda o: o.customer_id) == "/customerId"
        assert compile_selector(Order, lambda o: o.restore_count) == "/restoreCount"

    def test_aliased_provider_fields(self):
        assert compile_selector(Order, lambda o: o.etag) == "/_etag"

    def test_nested_array_element(self):
        assert compile_selector(Order, lambda o: o.lines[2].quantity) == "/lines/2/quantity"

    def test_optional_field(self):
        assert compile_selector(Order, lambda o: o.revision) == "/revision"

    def test_unknown_field_is_rejected(self):
        with pytest.raises(InvalidPatchPathError):
            compile_selector(Order, lambda o: o.nope)

    def test_derived_property_is_rejected(self):
        with pytest.raises(InvalidPatchPathError):
            compile_selector(Order, lambda o: o.partition_key)

    def test_negative_index_is_rejected(self):
        with pytest.raises(InvalidPatchPathError):
            compile_selector(Order, lambda o: o.tags[-1])

    def test_index_on_scalar_is_rejected(self):
        with pytest.raises(InvalidPatchPathError):
            compile_selector(Order, lambda o: o.status[0])

    def test_selector_must_address_a_field(self):
        with pytest.raises(InvalidPatchPathError):
            compile_selector(Order, lambda o: o)
        with pytest.raises(InvalidPatchPathError):
            compile_selector(Order, lambda o: "status")

    def test_untyped_selector(self):
        assert compile_selector(None, lambda d: d.anything["key"]) == "/anything/key"


class TestPatchOperationBuilder:
    """Test operation accumulation."""

    @pytest.fixture
    def builder(self):
        return PatchOperationBuilder(Order)

    def test_selector_and_path_forms_are_identical(self):
        by_selector = PatchOperationBuilder(Order).set(lambda o: o.customer_id, "c1").build()
        by_path = PatchOperationBuilder(Order).set_by_path("customerId", "c1").build()

        assert by_selector == by_path == (PatchOperation(PatchOperationType.SET, "/customerId", "c1"),)

    def test_chaining_preserves_order(self, builder):
        result = (
            builder
            .set(lambda o: o.status, "paid")
            .add_by_path("/tags/-", "rush")
            .increment(lambda o: o.revision, 1)
            .remove(lambda o: o.lines[0])
        )

        assert result is builder
        assert len(builder) == 4
        assert [operation.operation_type for operation in builder.build()] == [
            PatchOperationType.SET,
            PatchOperationType.ADD,
            PatchOperationType.INCREMENT,
            PatchOperationType.REMOVE,
        ]

    def test_build_returns_snapshot(self, builder):
        first = builder.set(lambda o: o.status, "paid").build()
        builder.set(lambda o: o.total, 10)

        assert len(first) == 1
        assert len(builder.build()) == 2

    def test_empty_build_is_rejected(self, builder):
        with pytest.raises(ValueError):
            builder.build()

    def test_replace_is_root_level_only(self, builder):
        builder.replace(lambda o: o.status, "paid")
        with pytest.raises(InvalidPatchPathError):
            builder.replace(lambda o: o.lines[0].quantity, 2)
        with pytest.raises(InvalidPatchPathError):
            builder.replace_by_path("lines/0", {"sku": "x"})

    @pytest.mark.parametrize("value", [True, "1", None])
    def test_increment_requires_a_number(self, builder, value):
        with pytest.raises(TypeError):
            builder.increment(lambda o: o.revision, value)

    def test_increment_accepts_floats(self, builder):
        operation = builder.increment(lambda o: o.total, 2.5).build()[0]
        assert operation.value == 2.5

    def test_values_are_stored_in_document_form(self, builder):
        moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        operations = (
            builder
            .set(lambda o: o.lines, [OrderLine(sku="A-1", quantity=2)])
            .set(lambda o: o.deleted_on, moment)
            .build()
        )

        assert operations[0].value == [{"sku": "A-1", "quantity": 2}]
        assert operations[1].value == "2024-01-02T03:04:05Z"

    def test_invalid_path_fails_at_build_time(self, builder):
        with pytest.raises(InvalidPatchPathError):
            builder.set_by_path("a//b", 1)
        assert len(builder) == 0

    def test_operation_dict_round_trip(self):
        operation = PatchOperation(PatchOperationType.INCREMENT, "/revision", 3)
        assert PatchOperation.from_dict(operation.to_dict()) == operation
