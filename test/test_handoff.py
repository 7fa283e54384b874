import threading
import time
import numpy as np
from pipeline.handoff import FrameHandoff, SlotState
from speckle.frame import Frame

def _frame(seq=0, value=1):
    return Frame.from_array(np.full((8, 8), value, dtype=np.uint8), sequence=seq)

def test_offer_claim_ready_cycle():
    h = FrameHandoff()
    assert h.state is SlotState.EMPTY and h.ready
    assert h.offer(_frame(1))
    assert h.state is SlotState.OCCUPIED_UNCLAIMED
    f = h.wait_and_claim(0.1)
    assert f.sequence == 1
    assert h.state is SlotState.CLAIMED and not h.ready
    h.mark_ready()
    assert h.state is SlotState.EMPTY

def test_offer_stores_a_clone():
    h = FrameHandoff()
    src = _frame(1, value=5)
    h.offer(src)
    src.buffer[:] = 0
    f = h.wait_and_claim(0.1)
    assert f is not src
    assert np.all(f.buffer == 5)

def test_drop_while_claimed():
    h = FrameHandoff()
    h.offer(_frame(0))
    h.wait_and_claim(0.1)
    results = [h.offer(_frame(i)) for i in range(1, 11)]
    assert not any(results)
    assert h.stats.dropped == 10
    # nothing waiting after the worker finishes
    h.mark_ready()
    assert h.wait_and_claim(0.01) is None

def test_unclaimed_frame_is_replaced_by_newer():
    h = FrameHandoff()
    assert h.offer(_frame(1))
    assert h.offer(_frame(2))
    assert h.stats.replaced == 1
    assert h.wait_and_claim(0.1).sequence == 2
    assert h.wait_and_claim(0.01) is None

def test_wait_times_out_with_none():
    h = FrameHandoff()
    t0 = time.monotonic()
    assert h.wait_and_claim(0.1) is None
    assert time.monotonic() - t0 >= 0.09

def test_offer_wakes_waiter():
    h = FrameHandoff()
    got = []
    t = threading.Thread(target=lambda: got.append(h.wait_and_claim(5.0)))
    t.start()
    time.sleep(0.05)
    h.offer(_frame(7))
    t.join(2.0)
    assert not t.is_alive()
    assert got[0].sequence == 7

def test_close_wakes_waiter_and_refuses_offers():
    h = FrameHandoff()
    got = []
    t = threading.Thread(target=lambda: got.append(h.wait_and_claim(5.0)))
    t.start()
    time.sleep(0.05)
    t0 = time.monotonic()
    h.close()
    t.join(2.0)
    assert time.monotonic() - t0 < 1.0
    assert got == [None]
    assert not h.offer(_frame(1))
    assert h.closed

def test_stats_counts():
    h = FrameHandoff()
    h.offer(_frame(0))
    h.wait_and_claim(0.1)
    h.offer(_frame(1))
    h.mark_ready()
    h.offer(_frame(2))
    s = h.stats
    assert (s.offered, s.accepted, s.dropped) == (3, 2, 1)
