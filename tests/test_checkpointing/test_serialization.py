"""Tests for checkpoint JSON encoding and schema validation."""

import math
from collections import deque

import numpy as np
import pytest
import torch

from iterflow import IterState, TerminationReason
from iterflow.checkpointing import (
    CHECKPOINT_VERSION,
    checkpoint_to_json,
    decode,
    dumps,
    encode,
    json_to_checkpoint,
    loads,
    validate_checkpoint,
)
from iterflow.core import SOLVER_NAME_KEY


def through_json(value):
    return decode(loads(dumps(encode(value))))


def test_ndarray_keeps_dtype_and_shape():
    arr = np.arange(6, dtype=np.float32).reshape(2, 3)
    out = through_json(arr)
    assert out.dtype == np.float32
    assert out.shape == (2, 3)
    assert np.array_equal(out, arr)


def test_tensor_keeps_dtype_and_grad_flag():
    t = torch.tensor([[1.5, -2.0]], dtype=torch.float64, requires_grad=True)
    out = through_json(t)
    assert isinstance(out, torch.Tensor)
    assert out.dtype == torch.float64
    assert out.requires_grad
    assert torch.equal(out.detach(), t.detach())


def test_scalar_tensor():
    out = through_json(torch.tensor(3.0))
    assert out.shape == ()
    assert out.item() == 3.0


def test_numpy_scalars():
    assert through_json(np.float32(1.5)).dtype == np.float32
    assert through_json(np.int64(7)) == 7
    assert isinstance(through_json(np.int64(7)), np.int64)


def test_containers():
    value = {"t": (1, 2.5, "a"), "d": deque([1, 2], maxlen=3), "l": [None, True]}
    out = through_json(value)
    assert out["t"] == (1, 2.5, "a")
    assert isinstance(out["d"], deque)
    assert out["d"].maxlen == 3
    assert list(out["d"]) == [1, 2]
    assert out["l"] == [None, True]


def test_dict_with_tag_like_key_is_not_misread():
    value = {"__tuple__": [1, 2]}
    assert through_json(value) == value


def test_non_finite_floats():
    out = through_json({"a": math.inf, "b": -math.inf, "c": math.nan})
    assert out["a"] == math.inf
    assert out["b"] == -math.inf
    assert math.isnan(out["c"])


def test_python_floats_are_exact():
    value = 0.1 + 0.2
    assert through_json(value) == value


@pytest.mark.parametrize("value", [object(), {1: "a"}, np.array([object()], dtype=object)])
def test_unencodable_values(value):
    with pytest.raises(TypeError):
        encode(value)


def make_document():
    state = IterState(param=np.array([1.0, 2.0]))
    state.set_cost(5.0)
    state.update_best()
    state.iter = 3
    state.set_counts({"cost": 3, "gradient": 3})
    state.terminate_with(TerminationReason.no_improvement(2))
    return checkpoint_to_json("run", {SOLVER_NAME_KEY: "Gradient descent", "velocity": None}, state.to_dict())


def test_document_round_trip():
    solver_snapshot, state_snapshot = json_to_checkpoint(loads(dumps(make_document())))
    assert solver_snapshot == {SOLVER_NAME_KEY: "Gradient descent", "velocity": None}
    state = IterState.from_dict(state_snapshot)
    assert state.iter == 3
    assert state.best_cost == 5.0
    assert np.array_equal(state.best_param, [1.0, 2.0])
    assert state.counts == {"cost": 3, "gradient": 3}
    assert state.termination_reason == TerminationReason.no_improvement(2)


def test_document_version():
    assert make_document()["version"] == CHECKPOINT_VERSION


@pytest.mark.parametrize(
    "mutate, match",
    [
        (lambda d: d.pop("version"), "version"),
        (lambda d: d.update(version="other-1.0"), "Unsupported checkpoint version"),
        (lambda d: d.update(identifier=3), "identifier"),
        (lambda d: d.update(solver=[]), "solver"),
        (lambda d: d.pop("state"), "state"),
        (lambda d: d["state"].pop("counts"), "counts"),
        (lambda d: d["state"].update(iter=-1), "non-negative"),
        (lambda d: d["state"]["counts"].update(cost=-2), "non-negative"),
        (lambda d: d["state"]["termination_reason"].update(kind="exploded"), "Unknown termination kind"),
        (lambda d: d.update(metadata=[]), "metadata"),
    ],
)
def test_validation_errors(mutate, match):
    document = make_document()
    mutate(document)
    with pytest.raises(ValueError, match=match):
        validate_checkpoint(document)


def test_validation_rejects_non_dict():
    with pytest.raises(ValueError, match="dictionary"):
        validate_checkpoint([])
