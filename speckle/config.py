"""
speckle/config.py

Processing parameters.

- ConfigSnapshot: immutable, validated set of the numeric parameters the worker
  reads at the start of every cycle.
- LiveSettings: the mutable settings holder a host (GUI, CLI, test) updates.
  Each update swaps in a fresh snapshot, so readers never see a half-updated
  set of values and need no lock.
"""

from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Mapping, Optional
import numbers
import logging
import threading

logger = logging.getLogger(__name__)

# Defaults shown by the host's settings panel
DEFAULT_ACCUMULATION_LENGTH = 10
DEFAULT_FILTER_SIZE = 0
DEFAULT_RESIZE_FOR_DISPLAY = False
DEFAULT_WINDOW_SIZE = 128


def _is_whole_number(value) -> bool:
    """True for ints and integral floats (5, 5.0); False for None, strings, bools, 2.5, inf."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return float(value).is_integer()


@dataclass(frozen=True)
class ConfigSnapshot:
    accumulation_length: int = DEFAULT_ACCUMULATION_LENGTH
    filter_size: int = DEFAULT_FILTER_SIZE
    resize_for_display: bool = DEFAULT_RESIZE_FOR_DISPLAY

    def __post_init__(self):
        if not _is_whole_number(self.accumulation_length) or self.accumulation_length < 1:
            raise ValueError(
                f"accumulation_length must be an integer >= 1, got {self.accumulation_length!r}."
            )
        if not _is_whole_number(self.filter_size) or self.filter_size < 0:
            raise ValueError(f"filter_size must be a non-negative integer, got {self.filter_size!r}.")
        # normalise numeric types (e.g. 5.0 -> 5) without breaking immutability
        object.__setattr__(self, "accumulation_length", int(self.accumulation_length))
        object.__setattr__(self, "filter_size", int(self.filter_size))
        object.__setattr__(self, "resize_for_display", bool(self.resize_for_display))

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "ConfigSnapshot":
        """Build a snapshot from a dict, ignoring unknown keys."""
        known = {k: params[k] for k in ("accumulation_length", "filter_size", "resize_for_display") if k in params}
        return cls(**known)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LiveSettings:
    """
    Settings holder standing in for the host's settings panel.

    Instances are callable and return the current snapshot, so they can be
    handed to the pipeline directly as its config provider.
    """

    def __init__(self, snapshot: Optional[ConfigSnapshot] = None):
        self._snapshot = snapshot if snapshot is not None else ConfigSnapshot()
        self._write_lock = threading.Lock()

    def snapshot(self) -> ConfigSnapshot:
        return self._snapshot

    def update(self, **fields) -> ConfigSnapshot:
        """
        Replace some fields and publish the new snapshot.
        Raises ValueError (leaving the current snapshot in place) on invalid values.
        """
        with self._write_lock:
            new = replace(self._snapshot, **fields)
            self._snapshot = new
        logger.debug("Settings updated: %s", new)
        return new

    def __call__(self) -> ConfigSnapshot:
        return self._snapshot
