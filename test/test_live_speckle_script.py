import os
from scripts.live_speckle import build_parser, run

def test_run_synthetic_stream(tmp_path):
    args = build_parser().parse_args([
        "--frames", "12", "--width", "96", "--height", "96", "--window-size", "64",
        "--accumulation-length", "3", "--filter-size", "3", "--fps", "100",
        "--seed", "0", "--out-dir", str(tmp_path), "--save-all",
    ])
    summary = run(args)
    out_dir = summary["out_dir"]
    assert os.path.exists(os.path.join(out_dir, "parameters.txt"))
    assert summary["frames_sent"] == 12
    assert summary["errors"] == 0
    assert summary["frames_processed"] >= 1
    saved = os.listdir(os.path.join(out_dir, "artifacts"))
    assert any(name.startswith("window_") for name in saved)
    if summary["cycles_completed"]:
        assert os.path.exists(os.path.join(out_dir, "summary.png"))

def test_parser_sources_are_exclusive():
    parser = build_parser()
    args = parser.parse_args(["--npy", "stack.npy"])
    assert args.npy == "stack.npy" and args.avi is None
