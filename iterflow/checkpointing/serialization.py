"""JSON encoding of solver and state snapshots.

Snapshots contain numpy arrays, torch tensors, numpy scalars, tuples and
deques besides plain JSON values. Those are written as tagged objects so
that dtype and shape survive the round trip:

    {"__ndarray__": {"dtype": "float32", "shape": [2], "data": [1.0, 2.0]}}

Python floats round-trip exactly through ``json`` (including NaN and
infinities, which are emitted as ``NaN``/``Infinity``). The checkpoint
envelope produced by :func:`checkpoint_to_json` is described in
:mod:`iterflow.checkpointing.schema`.
"""

from __future__ import annotations

import json
from collections import deque
from typing import Any, Dict, Optional, Tuple

import numpy as np
import torch

from .schema import CHECKPOINT_VERSION, validate_checkpoint

_TAGS = ("__ndarray__", "__npscalar__", "__tensor__", "__tuple__", "__deque__", "__dict__")


def _array_payload(arr: np.ndarray) -> Dict[str, Any]:
    return {"dtype": arr.dtype.name, "shape": list(arr.shape), "data": arr.ravel().tolist()}


def encode(obj: Any) -> Any:
    """
    Convert a snapshot value into a JSON-compatible structure.

    Raises
    ------
    TypeError
        If the value (or a nested value) has no JSON representation.
    """
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, (int, float)) and not isinstance(obj, (np.generic,)):
        return obj
    if isinstance(obj, np.ndarray):
        if obj.dtype == object:
            raise TypeError("Object arrays cannot be encoded.")
        return {"__ndarray__": _array_payload(obj)}
    if isinstance(obj, np.generic):
        return {"__npscalar__": {"dtype": obj.dtype.name, "value": obj.item()}}
    if isinstance(obj, torch.Tensor):
        arr = obj.detach().cpu().numpy()
        payload = _array_payload(arr)
        payload["dtype"] = str(obj.dtype).replace("torch.", "")
        payload["requires_grad"] = bool(obj.requires_grad)
        return {"__tensor__": payload}
    if isinstance(obj, tuple):
        return {"__tuple__": [encode(v) for v in obj]}
    if isinstance(obj, deque):
        return {"__deque__": {"maxlen": obj.maxlen, "items": [encode(v) for v in obj]}}
    if isinstance(obj, list):
        return [encode(v) for v in obj]
    if isinstance(obj, dict):
        if not all(isinstance(k, str) for k in obj):
            raise TypeError("Only dictionaries with string keys can be encoded.")
        encoded = {k: encode(v) for k, v in obj.items()}
        if len(obj) == 1 and next(iter(obj)) in _TAGS:
            return {"__dict__": encoded}
        return encoded
    raise TypeError(f"Cannot encode value of type {type(obj).__name__}.")


def decode(obj: Any) -> Any:
    """Inverse of :func:`encode`."""
    if isinstance(obj, list):
        return [decode(v) for v in obj]
    if not isinstance(obj, dict):
        return obj
    if len(obj) == 1:
        tag, payload = next(iter(obj.items()))
        if tag == "__ndarray__":
            arr = np.asarray(payload["data"], dtype=np.dtype(payload["dtype"]))
            return arr.reshape(payload["shape"])
        if tag == "__npscalar__":
            return np.dtype(payload["dtype"]).type(payload["value"])
        if tag == "__tensor__":
            dtype = getattr(torch, payload["dtype"])
            tensor = torch.tensor(payload["data"], dtype=dtype).reshape(payload["shape"])
            if payload.get("requires_grad"):
                tensor.requires_grad_(True)
            return tensor
        if tag == "__tuple__":
            return tuple(decode(v) for v in payload)
        if tag == "__deque__":
            return deque((decode(v) for v in payload["items"]), maxlen=payload["maxlen"])
        if tag == "__dict__":
            return {k: decode(v) for k, v in payload.items()}
    return {k: decode(v) for k, v in obj.items()}


def checkpoint_to_json(
    identifier: str,
    solver_snapshot: Dict[str, Any],
    state_snapshot: Dict[str, Any],
    metadata: Optional[dict] = None,
) -> dict:
    """
    Build the JSON document for one checkpoint.

    Parameters
    ----------
    identifier : str
        Name the checkpoint is stored under.
    solver_snapshot : dict
        Output of ``Solver.state_dict()``, including the solver name.
    state_snapshot : dict
        Output of ``IterState.to_dict()``.
    metadata : dict, optional
        Free-form JSON-serializable metadata.
    """
    result: Dict[str, Any] = {
        "version": CHECKPOINT_VERSION,
        "identifier": identifier,
        "solver": encode(solver_snapshot),
        "state": encode(state_snapshot),
    }
    if metadata:
        result["metadata"] = metadata
    return result


def json_to_checkpoint(obj: dict) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Validate a checkpoint document and decode it.

    Returns
    -------
    tuple
        ``(solver_snapshot, state_snapshot)``.

    Raises
    ------
    ValueError
        If the document does not conform to the checkpoint schema.
    """
    validate_checkpoint(obj)
    return decode(obj["solver"]), decode(obj["state"])


def dumps(obj: dict) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def loads(text: str) -> dict:
    return json.loads(text)


__all__ = [
    "checkpoint_to_json",
    "decode",
    "dumps",
    "encode",
    "json_to_checkpoint",
    "loads",
]
