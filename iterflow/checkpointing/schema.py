"""Checkpoint document schema and validation.

Schema Structure:
    {
        "version": "iterflow-checkpoint-1.0",
        "identifier": <string>,
        "solver": {<encoded Solver.state_dict(), with "__solver__": <string>>},
        "state": {
            "float_dtype": <string>,
            "iter": <integer>,
            "last_best_iter": <integer>,
            "counts": {<capability>: <integer>, ...},
            "termination_reason": {"kind": <string>, "window": ..., "message": ...},
            ...                                  # encoded IterState.to_dict()
        },
        "metadata": {...}                        # optional
    }
"""

from __future__ import annotations

from ..core.termination import TerminationKind

CHECKPOINT_VERSION = "iterflow-checkpoint-1.0"

_REQUIRED_STATE_FIELDS = (
    "float_dtype",
    "iter",
    "last_best_iter",
    "counts",
    "termination_reason",
)


def checkpoint_schema() -> dict:
    """
    Return a structural description of the checkpoint document.

    This is a description for tooling and documentation, not a full JSON
    Schema validator.
    """
    return {
        "version": {"type": "string", "required": True, "value": CHECKPOINT_VERSION},
        "identifier": {"type": "string", "required": True},
        "solver": {"type": "dict", "required": True},
        "state": {
            "type": "dict",
            "required": True,
            "items": {name: {"required": True} for name in _REQUIRED_STATE_FIELDS},
        },
        "metadata": {"type": "dict", "required": False},
    }


def validate_checkpoint(obj: dict) -> None:
    """
    Validate a checkpoint document against the schema.

    Raises
    ------
    ValueError
        If the object does not conform to the schema.
    """
    if not isinstance(obj, dict):
        raise ValueError("Checkpoint must be a dictionary object.")

    if "version" not in obj:
        raise ValueError("Checkpoint missing required field 'version'.")
    if obj["version"] != CHECKPOINT_VERSION:
        raise ValueError(
            f"Unsupported checkpoint version {obj['version']!r}, expected {CHECKPOINT_VERSION!r}."
        )

    if not isinstance(obj.get("identifier"), str):
        raise ValueError("Field 'identifier' must be a string.")

    if not isinstance(obj.get("solver"), dict):
        raise ValueError("Checkpoint missing required dictionary field 'solver'.")

    state = obj.get("state")
    if not isinstance(state, dict):
        raise ValueError("Checkpoint missing required dictionary field 'state'.")
    for name in _REQUIRED_STATE_FIELDS:
        if name not in state:
            raise ValueError(f"Checkpoint state missing required field {name!r}.")

    for name in ("iter", "last_best_iter"):
        if not isinstance(state[name], int) or state[name] < 0:
            raise ValueError(f"Field 'state.{name}' must be a non-negative integer.")

    counts = state["counts"]
    if not isinstance(counts, dict):
        raise ValueError("Field 'state.counts' must be a dictionary.")
    for key, value in counts.items():
        if not isinstance(value, int) or value < 0:
            raise ValueError(f"Count {key!r} must be a non-negative integer, got {value!r}.")

    reason = state["termination_reason"]
    if not isinstance(reason, dict) or "kind" not in reason:
        raise ValueError("Field 'state.termination_reason' must be a dictionary with 'kind'.")
    valid_kinds = {k.value for k in TerminationKind}
    if reason["kind"] not in valid_kinds:
        raise ValueError(
            f"Unknown termination kind {reason['kind']!r}. Valid kinds: {sorted(valid_kinds)}."
        )

    if "metadata" in obj and not isinstance(obj["metadata"], dict):
        raise ValueError("Field 'metadata' must be a dictionary.")


__all__ = ["CHECKPOINT_VERSION", "checkpoint_schema", "validate_checkpoint"]
