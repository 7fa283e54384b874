import numpy as np
import pytest
from speckle.frame import Frame, MONO8
from speckle.config import ConfigSnapshot, LiveSettings

def test_frame_from_array_and_back():
    img = np.arange(48, dtype=np.uint8).reshape(6, 8)
    f = Frame.from_array(img, sequence=3)
    assert (f.width, f.height, f.stride) == (8, 6, 8)
    assert f.sequence == 3
    assert f.pixel_format == MONO8 and f.is_mono8
    assert np.array_equal(f.to_array(), img)

def test_frame_clone_is_independent():
    buf = bytearray(range(64))
    f = Frame(8, 8, np.frombuffer(buf, dtype=np.uint8).copy())
    c = f.clone()
    f.buffer[0] = 99
    assert c.buffer[0] == 0
    assert c.buffer is not f.buffer
    assert (c.width, c.height, c.stride, c.sequence) == (f.width, f.height, f.stride, f.sequence)
    assert not c.buffer.flags.writeable

def test_frame_with_stride_to_array():
    padded = np.zeros((4, 10), dtype=np.uint8)
    padded[:, :6] = 5
    f = Frame(6, 4, padded.tobytes(), stride=10)
    arr = f.to_array()
    assert arr.shape == (4, 6)
    assert np.all(arr == 5)

def test_frame_validation():
    with pytest.raises(ValueError):
        Frame(0, 4, bytes(16))
    with pytest.raises(ValueError):
        Frame(8, 4, bytes(32), stride=4)
    with pytest.raises(ValueError):
        Frame(8, 8, bytes(10))

def test_config_defaults_and_validation():
    c = ConfigSnapshot()
    assert c.accumulation_length >= 1
    assert c.filter_size >= 0
    assert c.resize_for_display is False
    with pytest.raises(ValueError):
        ConfigSnapshot(accumulation_length=0)
    with pytest.raises(ValueError):
        ConfigSnapshot(filter_size=-1)
    with pytest.raises(ValueError):
        ConfigSnapshot(accumulation_length=2.5)

def test_config_rejects_non_numbers_with_value_error():
    for bad in (None, "5", True, float("inf")):
        with pytest.raises(ValueError):
            ConfigSnapshot(accumulation_length=bad)
    with pytest.raises(ValueError):
        ConfigSnapshot(filter_size=None)
    s = LiveSettings()
    before = s()
    with pytest.raises(ValueError):
        s.update(accumulation_length=None)
    assert s() is before

def test_config_is_immutable():
    c = ConfigSnapshot(accumulation_length=5)
    with pytest.raises(AttributeError):
        c.accumulation_length = 6

def test_config_from_mapping():
    c = ConfigSnapshot.from_mapping({"accumulation_length": 7, "filter_size": 3, "other": 1})
    assert c.as_dict() == {"accumulation_length": 7, "filter_size": 3, "resize_for_display": False}

def test_live_settings_update_swaps_snapshot():
    s = LiveSettings(ConfigSnapshot(accumulation_length=4))
    before = s()
    after = s.update(filter_size=5)
    assert before.filter_size == 0
    assert after.filter_size == 5 and after.accumulation_length == 4
    assert s.snapshot() is after

def test_live_settings_invalid_update_keeps_snapshot():
    s = LiveSettings()
    before = s()
    with pytest.raises(ValueError):
        s.update(accumulation_length=0)
    assert s() is before
