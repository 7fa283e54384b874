import numpy as np
import pytest
from speckle.extraction import extract_window, extract_buffer_area, frame_window
from speckle.frame import Frame

def _ramp(h, w):
    return (np.arange(h * w) % 251).astype(np.uint8).reshape(h, w)

def test_extract_centered_window():
    img = _ramp(100, 120)
    out = extract_window(img.tobytes(), 120, 100, 120, 32)
    assert out.shape == (32, 32)
    assert out.dtype == np.uint8
    y0, x0 = 50 - 16, 60 - 16
    assert np.array_equal(out, img[y0:y0 + 32, x0:x0 + 32])

def test_extract_honors_stride():
    h, w, stride = 80, 90, 128
    padded = np.full((h, stride), 7, dtype=np.uint8)
    padded[:, :w] = _ramp(h, w)
    out = extract_window(padded.reshape(-1), w, h, stride, 40)
    y0, x0 = h // 2 - 20, w // 2 - 20
    assert np.array_equal(out, padded[y0:y0 + 40, x0:x0 + 40])

@pytest.mark.parametrize("size", [1, 8, 63, 64, 65, 98, 99, 100, 200])
def test_output_length_is_always_window_squared(size):
    img = _ramp(100, 100)
    out = extract_window(img.tobytes(), 100, 100, 100, size)
    assert out.size == size * size

def test_window_ending_on_right_and_bottom_edge_is_zero():
    img = np.full((100, 100), 3, dtype=np.uint8)
    # x0 = y0 = 1; 1 + 99 reaches the edge, 1 + 98 stays inside
    assert not extract_window(img.tobytes(), 100, 100, 100, 99).any()
    assert np.all(extract_window(img.tobytes(), 100, 100, 100, 98) == 3)

def test_zero_window_is_empty_not_error():
    out = extract_window(bytes(100), 10, 10, 10, 0)
    assert out.shape == (0, 0) and out.dtype == np.uint8
    with pytest.raises(ValueError):
        extract_window(bytes(100), 10, 10, 10, -1)

def test_window_touching_edge_is_zero():
    img = np.full((64, 64), 200, dtype=np.uint8)
    # x0 = y0 = 0 -> no one-pixel margin
    out = extract_window(img.tobytes(), 64, 64, 64, 64)
    assert out.shape == (64, 64)
    assert not out.any()

def test_window_larger_than_source_is_zero():
    img = np.full((32, 32), 200, dtype=np.uint8)
    out = extract_window(img, 32, 32, 32, 128)
    assert out.shape == (128, 128)
    assert not out.any()

def test_short_buffer_is_zero_not_error():
    out = extract_window(b"\x01" * 50, 100, 100, 100, 16)
    assert out.shape == (16, 16)
    assert not out.any()

def test_one_pixel_margin_is_enough():
    img = np.full((34, 34), 9, dtype=np.uint8)
    out = extract_window(img, 34, 34, 34, 32)
    # x0 = y0 = 1, 1 + 32 < 34
    assert np.all(out == 9)

def test_extract_buffer_area_bytes():
    img = _ramp(20, 30)
    out = extract_buffer_area(img.tobytes(), 5, 4, 10, 6, 30, 20)
    assert isinstance(out, bytes)
    assert out == img[4:10, 5:15].tobytes()
    bad = extract_buffer_area(img.tobytes(), 0, 4, 10, 6, 30, 20)
    assert bad == bytes(60)

def test_frame_window_uses_frame_stride():
    h, w, stride = 64, 64, 80
    padded = np.zeros((h, stride), dtype=np.uint8)
    padded[:, :w] = _ramp(h, w)
    frame = Frame(w, h, padded.reshape(-1), stride=stride)
    out = frame_window(frame, 16)
    assert np.array_equal(out, padded[24:40, 24:40])
