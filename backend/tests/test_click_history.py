from __future__ import annotations

from clicks.history import ClickHistory
from geo.aoi import GeoPoint


class FakeClock:
    def __init__(self) -> None:
        self.now_ms = 0.0

    def __call__(self) -> float:
        return self.now_ms


A = GeoPoint(lat=35.70, lon=139.70)
B = GeoPoint(lat=35.80, lon=139.80)


def test_store_keeps_newest_first_and_caps_size():
    clock = FakeClock()
    h = ClickHistory(max_size=3, clock=clock)
    for i in range(5):
        clock.now_ms += 10
        h.store(GeoPoint(lat=35.0 + i / 10, lon=139.0), "tokyo")
    assert len(h) == 3
    assert h.recent_for_region("tokyo").position.lat == 35.4


def test_records_expire():
    clock = FakeClock()
    h = ClickHistory(timeout_ms=5000, clock=clock)
    h.store(A, "tokyo")
    clock.now_ms = 5000
    assert h.recent_for_region("tokyo") is None
    assert len(h) == 0


def test_rapid_click_keeps_more_confident_earlier_click():
    clock = FakeClock()
    h = ClickHistory(clock=clock)
    h.store(A, "tokyo", confidence=0.9)
    clock.now_ms = 300
    chosen = h.resolve_rapid_click(B, "tokyo", confidence=0.5)
    assert chosen.position == A
    assert len(h) == 1  # resolving does not store


def test_strictly_better_new_click_wins():
    clock = FakeClock()
    h = ClickHistory(clock=clock)
    h.store(A, "tokyo", confidence=0.6)
    clock.now_ms = 300
    assert h.resolve_rapid_click(B, "tokyo", confidence=0.6).position == A
    assert h.resolve_rapid_click(B, "tokyo", confidence=0.7).position == B


def test_slow_or_other_region_clicks_are_not_rapid():
    clock = FakeClock()
    h = ClickHistory(clock=clock)
    h.store(A, "tokyo", confidence=1.0)
    clock.now_ms = 200
    assert h.resolve_rapid_click(B, "saitama", confidence=0.1).position == B
    clock.now_ms = 1500
    assert h.resolve_rapid_click(B, "tokyo", confidence=0.1).position == B


def test_statistics_and_clearing():
    clock = FakeClock()
    h = ClickHistory(clock=clock)
    h.store(A, "tokyo", near_boundary=True, confidence=0.5)
    h.store(B, "saitama", confidence=1.0)
    h.store(B, "tokyo", confidence=0.9)

    st = h.statistics()
    assert st.total_clicks == 3
    assert st.boundary_clicks == 1
    assert abs(st.average_confidence - 0.8) < 1e-9
    assert st.regions_clicked == ["tokyo", "saitama"]

    h.clear_region("tokyo")
    assert h.statistics().regions_clicked == ["saitama"]
    h.clear()
    assert h.statistics().total_clicks == 0
    assert h.statistics().average_confidence == 0.0
