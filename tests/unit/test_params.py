"""Unit tests for parameter helpers."""

from __future__ import annotations

from row_gateway.core.params import coerce_params, placeholders


class TestCoerceParams:
    def test_none_passthrough(self) -> None:
        assert coerce_params(None) is None

    def test_dict_passthrough(self) -> None:
        p = {"id": 1}
        assert coerce_params(p) is p

    def test_tuple_passthrough(self) -> None:
        assert coerce_params((1, 2)) == (1, 2)

    def test_list_converted_to_tuple(self) -> None:
        assert coerce_params([1, 2]) == (1, 2)

    def test_int_scalar_wrapped(self) -> None:
        assert coerce_params(42) == (42,)

    def test_str_scalar_wrapped(self) -> None:
        assert coerce_params("hello") == ("hello",)

    def test_empty_list_converted(self) -> None:
        assert coerce_params([]) == ()


class TestPlaceholders:
    def test_three(self) -> None:
        assert placeholders(3) == "?,?,?"

    def test_one(self) -> None:
        assert placeholders(1) == "?"

    def test_zero(self) -> None:
        assert placeholders(0) == ""
