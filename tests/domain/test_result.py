"""Unit tests for the Result helpers."""

import pytest

from unitask.domain.shared import Err, NotFoundError, Ok, is_err, is_ok, unwrap


def test_ok_and_err_predicates() -> None:
    assert is_ok(Ok(1)) and not is_err(Ok(1))
    assert is_err(Err("boom")) and not is_ok(Err("boom"))


def test_unwrap_returns_value() -> None:
    assert unwrap(Ok("value")) == "value"


def test_unwrap_raises_typed_error() -> None:
    with pytest.raises(NotFoundError):
        unwrap(Err(NotFoundError("task", "t-1")))


def test_unwrap_plain_error_becomes_runtime_error() -> None:
    with pytest.raises(RuntimeError, match="boom"):
        unwrap(Err("boom"))
