"""Observer writing parameters to disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from ..checkpointing.serialization import encode
from .base import Observer, ObserverSnapshot


class ParamWriter(Observer):
    """
    Write the parameter of each observed iteration as a JSON file.

    Files are named ``<prefix>_<iteration>.json`` and hold the encoded
    parameter together with its iteration and cost.

    Parameters
    ----------
    directory : str or Path
        Output directory, created on the first write.
    best : bool
        Write the best parameter so far instead of the current one.
    prefix : str
        File name prefix.
    """

    def __init__(self, directory: Union[str, Path], best: bool = False, prefix: str = "param") -> None:
        self.directory = Path(directory)
        self.best = best
        self.prefix = prefix

    def path(self, iteration: int) -> Path:
        return self.directory / f"{self.prefix}_{iteration}.json"

    def observe_iter(self, snapshot: ObserverSnapshot) -> None:
        param = snapshot.best_param if self.best else snapshot.param
        cost = snapshot.best_cost if self.best else snapshot.cost
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.path(snapshot.iteration), "w", encoding="utf-8") as f:
            json.dump(
                {"iteration": snapshot.iteration, "cost": cost, "param": encode(param)},
                f,
                indent=2,
            )


__all__ = ["ParamWriter"]
