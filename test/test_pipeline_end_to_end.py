import time
import numpy as np
from pipeline import ArtifactKind, FrameHandoff, WorkerLoop, start, stop
from speckle.accumulator import Accumulator
from speckle.config import ConfigSnapshot, LiveSettings
from speckle.extraction import frame_window
from speckle.fft_engine import power_spectrum, autocorrelation, shift_quadrants
from speckle.filters import highpass_filter
from io_utils.frame_sources import PointSourceFrames, SyntheticSpeckleSource
from io_utils.sinks import ArtifactRecorder, ErrorLog

def test_point_source_numeric_chain():
    source = PointSourceFrames(width=256, height=256, n_frames=5)
    acc = Accumulator((128, 128))
    for frame in source.frames():
        window = frame_window(frame, 128)
        assert window[64, 64] == 255 and window.sum() == 255
        acc.add(power_spectrum(window.astype(float)))
    assert acc.is_due(5)
    # a point has a flat power spectrum
    assert np.allclose(acc.sum, 5 * 255.0 ** 2, rtol=1e-9)
    ac = shift_quadrants(autocorrelation(acc.sum))
    filtered = highpass_filter(ac, 5)
    peak = np.unravel_index(np.argmax(filtered), filtered.shape)
    assert peak == (64, 64)
    others = np.delete(filtered.ravel(), 64 * 128 + 64)
    assert filtered[64, 64] > 10 * np.abs(others).max()

def test_point_source_through_worker():
    rec = ArtifactRecorder()
    w = WorkerLoop(FrameHandoff(), LiveSettings(ConfigSnapshot(accumulation_length=5, filter_size=5)),
                   rec, window_size=128)
    for frame in PointSourceFrames(width=256, height=256, n_frames=5).frames():
        w.process_frame(frame)
    assert w.cycles_completed == 1
    ac = rec.latest(ArtifactKind.AUTOCORRELATION).image
    assert ac.shape == (128, 128, 3)
    # the single maximum maps to pure red at the center
    red = (ac[..., 0] == 255) & (ac[..., 1] == 0) & (ac[..., 2] == 0)
    assert red.sum() == 1 and red[64, 64]
    win = rec.latest(ArtifactKind.WINDOW).image
    assert win[64, 64] == 255

def test_binary_star_shows_companion_peaks():
    src = SyntheticSpeckleSource(256, 256, speckle_size=128, pupil_radius=20.0,
                                 separation=(0, 16), companion_ratio=0.8,
                                 noise=0.0, n_frames=20, seed=1)
    acc = Accumulator((128, 128))
    for frame in src.frames():
        acc.add(power_spectrum(frame_window(frame, 128).astype(float)))
    ac = shift_quadrants(autocorrelation(acc.sum))
    filtered = highpass_filter(ac, 9)
    center = filtered[64, 64]
    side = max(filtered[64, 64 + 16], filtered[64, 64 - 16])
    background = np.median(np.abs(filtered))
    assert center > side > 3 * background

def test_start_with_frame_source_runs_cycles(tmp_path):
    rec = ArtifactRecorder()
    errors = ErrorLog()
    src = SyntheticSpeckleSource(200, 160, speckle_size=64, n_frames=60, stride=256, seed=3)
    with start(LiveSettings(ConfigSnapshot(accumulation_length=3, filter_size=3)), rec, errors,
               window_size=64, wait_timeout=0.05, frame_source=src, source_interval=0.005) as handle:
        assert handle.pump.finished.wait(10)
        assert rec.wait_for(ArtifactKind.AUTOCORRELATION, timeout=10)
    assert not handle.running
    stats = handle.stats()
    assert stats["frames_sent"] == 60
    assert stats["offered"] == 60
    assert stats["accepted"] + stats["dropped"] == 60
    assert stats["frames_processed"] >= 3
    assert len(errors) == 0

def test_stop_is_idempotent():
    handle = start(LiveSettings(), lambda a: None, window_size=32, wait_timeout=0.05)
    stop(handle)
    t0 = time.monotonic()
    stop(handle)
    assert time.monotonic() - t0 < 0.5
