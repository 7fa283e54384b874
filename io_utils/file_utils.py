# io_utils/file_utils.py
"""
File naming and parameter recording helpers.
"""

import os
import datetime
from typing import Dict, Optional


def make_run_dir(base_dir: str, prefix: str = "speckle_run") -> str:
    """Create and return a timestamped output directory under base_dir."""
    timestamp = datetime.datetime.now().strftime("%Y%m%dT%H%M%S")
    path = os.path.join(base_dir, f"{prefix}_{timestamp}")
    os.makedirs(path, exist_ok=True)
    return path


def make_artifact_filename(
    kind: str,
    cycle: int,
    frame_sequence: Optional[int] = None,
    ext: str = "png",
    outdir: str = ".",
) -> str:
    seq = "na" if frame_sequence is None else f"{int(frame_sequence):06d}"
    safe_kind = str(kind).replace(" ", "_")
    fname = f"{safe_kind}_cycle-{int(cycle):04d}_frame-{seq}.{ext}"
    os.makedirs(outdir, exist_ok=True)
    return os.path.join(outdir, fname)


def save_parameters_txt(outdir: str, params: Dict):
    os.makedirs(outdir, exist_ok=True)
    path = os.path.join(outdir, "parameters.txt")
    with open(path, "w", encoding="utf-8") as f:
        for k, v in params.items():
            f.write(f"{k}: {v}\n")
    return path
