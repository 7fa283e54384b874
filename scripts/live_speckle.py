"""
Run the live speckle pipeline on a recorded or simulated stream.

Frames are pumped at a fixed rate into the pipeline exactly as a camera
callback would deliver them (frames arriving while the worker is busy are
dropped). Every artifact can be written to disk, and a 2x2 summary panel of
the last cycle plus a parameters.txt are saved at the end.

Usage (from project root):
python -m scripts.live_speckle --frames 200 --accumulation-length 20 --filter-size 9
python -m scripts.live_speckle --npy frame_runs/frame_stack.npy --fps 50 --save-all
"""

import argparse
import json
import logging
import time
from pathlib import Path

from speckle.config import ConfigSnapshot, LiveSettings, DEFAULT_WINDOW_SIZE
from pipeline import ArtifactKind, SlotState, start, stop
from io_utils import (
    ArtifactRecorder,
    ArtifactSaver,
    AviFrameSource,
    ErrorLog,
    ImageFolderSource,
    NpyFrameSource,
    SyntheticSpeckleSource,
    fan_out,
    make_run_dir,
    save_parameters_txt,
)
from visuals.plots import plot_artifact_panel

log = logging.getLogger(__name__)


def build_source(args):
    if args.npy:
        return NpyFrameSource(args.npy, loop=args.loop)
    if args.avi:
        return AviFrameSource(args.avi)
    if args.images:
        return ImageFolderSource(args.images, pattern=args.pattern)
    separation = tuple(args.binary) if args.binary else None
    return SyntheticSpeckleSource(
        args.width,
        args.height,
        speckle_size=args.window_size,
        pupil_radius=args.pupil_radius,
        separation=separation,
        n_frames=args.frames,
        seed=args.seed,
    )


def _wait_until_drained(handle, timeout: float) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if handle.handoff.state is SlotState.EMPTY:
            return
        time.sleep(0.01)
    log.warning("Worker still busy after %.1fs; stopping anyway.", timeout)


def run(args) -> dict:
    settings = LiveSettings(
        ConfigSnapshot(
            accumulation_length=args.accumulation_length,
            filter_size=args.filter_size,
            resize_for_display=args.resize,
        )
    )
    out_dir = make_run_dir(args.out_dir)
    recorder = ArtifactRecorder()
    sinks = [recorder]
    if args.save_all:
        sinks.append(ArtifactSaver(str(Path(out_dir) / "artifacts")))
    errors = ErrorLog()

    source = build_source(args)
    interval = 1.0 / args.fps if args.fps and args.fps > 0 else None
    log.info("Source %s, frame shape %s, interval %s", type(source).__name__, source.shape, interval)

    handle = start(
        settings,
        fan_out(*sinks),
        errors,
        window_size=args.window_size,
        frame_source=source,
        source_interval=interval,
    )
    try:
        while not handle.pump.finished.wait(0.5):
            log.debug("Stats: %s", handle.stats())
        _wait_until_drained(handle, timeout=5.0)
    except KeyboardInterrupt:
        log.info("Interrupted.")
    finally:
        stop(handle)

    stats = handle.stats()
    params = dict(settings.snapshot().as_dict())
    params.update({"window_size": args.window_size, "source": type(source).__name__, **stats})
    save_parameters_txt(out_dir, params)

    if recorder.count(ArtifactKind.AUTOCORRELATION):
        panel = plot_artifact_panel(recorder.latest_images(), out_path=str(Path(out_dir) / "summary.png"))
        log.info("Summary panel: %s", panel)
    else:
        log.warning("No accumulation cycle completed; increase --frames or lower --accumulation-length.")

    return {"out_dir": out_dir, "errors": len(errors), **stats}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Live speckle autocorrelation on a frame stream.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--npy", default=None, help="(N,H,W) or (H,W) .npy frame stack")
    src.add_argument("--avi", default=None, help="Video file readable by OpenCV")
    src.add_argument("--images", default=None, help="Folder of image files")
    parser.add_argument("--pattern", default="*.png", help="Glob for --images")
    parser.add_argument("--loop", action="store_true", help="Loop the .npy stack forever")
    parser.add_argument("--frames", type=int, default=200, help="Synthetic frames to generate")
    parser.add_argument("--width", type=int, default=320, help="Synthetic frame width")
    parser.add_argument("--height", type=int, default=240, help="Synthetic frame height")
    parser.add_argument("--pupil-radius", type=float, default=12.0, help="Synthetic pupil radius (freq. px)")
    parser.add_argument("--binary", type=int, nargs=2, default=None, metavar=("DY", "DX"),
                        help="Add a synthetic companion at this offset")
    parser.add_argument("--seed", type=int, default=None, help="Synthetic RNG seed")
    parser.add_argument("--fps", type=float, default=30.0, help="Frame delivery rate (0 = as fast as possible)")
    parser.add_argument("--window-size", type=int, default=DEFAULT_WINDOW_SIZE, help="Processing window side")
    parser.add_argument("--accumulation-length", type=int, default=10, help="Frames per accumulation cycle")
    parser.add_argument("--filter-size", type=int, default=0, help="High-pass box size (<=1 disables)")
    parser.add_argument("--resize", action="store_true", help="2x upscale artifacts for display")
    parser.add_argument("--out-dir", default="results", help="Output directory")
    parser.add_argument("--save-all", action="store_true", help="Write every artifact as PNG")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--json", action="store_true", help="Print a JSON summary")
    return parser


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    summary = run(args)
    if args.json:
        print(json.dumps(summary))
    else:
        print("Run done. Results in:", summary["out_dir"])


if __name__ == "__main__":
    main()
