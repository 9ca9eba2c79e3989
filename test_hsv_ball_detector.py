"""
Tests for HsvBallDetector.

Validates:
1. A 60x60 in-range region is detected
2. A 40x40 in-range region is too small
3. Inverted bounds produce an empty mask and never detect
4. Size gate is strict (> min on both axes)
5. Largest qualifying region is reported
6. Overlay: in-range pixels kept, background black, rectangles drawn
7. None / empty frames return None
"""

import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import numpy as np

from golfsim.detection.HsvBallDetector import HsvBallDetector
from golfsim.detection.ThresholdConfig import ThresholdConfig


# ── helpers ──────────────────────────────────────────────────────────────────

GREEN_BGR = (0, 255, 0)  # HSV (60, 255, 255)
BLUE_BGR = (255, 0, 0)   # HSV (120, 255, 255)

GREEN_RANGE = ThresholdConfig(
    hue_min=50, hue_max=70,
    saturation_min=100, saturation_max=255,
    value_min=100, value_max=255,
)


def make_frame(width=320, height=240):
    return np.zeros((height, width, 3), dtype=np.uint8)


def paint(frame, x, y, w, h, color=GREEN_BGR):
    frame[y:y + h, x:x + w] = color
    return frame


def make_detector(**kwargs):
    return HsvBallDetector(**kwargs)


# ── detection ────────────────────────────────────────────────────────────────

def test_60px_region_detected():
    frame = paint(make_frame(), 100, 80, 60, 60)
    result = make_detector().analyze(frame, GREEN_RANGE, timestamp=1.0)

    assert result is not None
    assert result.detection.detected is True
    assert result.detection.timestamp == 1.0
    largest = result.detection.largest
    assert (largest.x, largest.y, largest.width, largest.height) == (100, 80, 60, 60)
    print("PASS test_60px_region_detected")


def test_40px_region_not_detected():
    frame = paint(make_frame(), 100, 80, 40, 40)
    result = make_detector().analyze(frame, GREEN_RANGE, timestamp=1.0)

    assert result.detection.detected is False
    assert result.detection.largest is None
    # Still a candidate region, just below the size gate
    assert len(result.detection.regions) == 1
    print("PASS test_40px_region_not_detected")


def test_size_gate_is_strict_on_both_axes():
    detector = make_detector(min_ball_size=50)

    exact = paint(make_frame(), 10, 10, 50, 50)
    assert detector.analyze(exact, GREEN_RANGE, 0.0).detection.detected is False

    wide_only = paint(make_frame(), 10, 10, 120, 30)
    assert detector.analyze(wide_only, GREEN_RANGE, 0.0).detection.detected is False

    just_over = paint(make_frame(), 10, 10, 51, 51)
    assert detector.analyze(just_over, GREEN_RANGE, 0.0).detection.detected is True
    print("PASS test_size_gate_is_strict_on_both_axes")


def test_inverted_bounds_never_detect():
    frame = paint(make_frame(), 100, 80, 80, 80)
    inverted = ThresholdConfig(
        hue_min=70, hue_max=50,
        saturation_min=100, saturation_max=255,
        value_min=100, value_max=255,
    )
    assert inverted.is_inverted

    detector = make_detector()
    assert not detector.build_mask(frame, inverted).any()

    result = detector.analyze(frame, inverted, 0.0)
    assert result.detection.detected is False
    assert result.detection.regions == []
    assert not result.overlay.any()
    print("PASS test_inverted_bounds_never_detect")


def test_out_of_range_color_ignored():
    frame = paint(make_frame(), 100, 80, 60, 60, color=BLUE_BGR)
    result = make_detector().analyze(frame, GREEN_RANGE, 0.0)
    assert result.detection.detected is False
    print("PASS test_out_of_range_color_ignored")


def test_largest_qualifying_region_reported():
    frame = make_frame()
    paint(frame, 10, 10, 60, 60)
    paint(frame, 150, 100, 90, 80)
    paint(frame, 280, 10, 20, 20)
    result = make_detector().analyze(frame, GREEN_RANGE, 0.0)

    assert result.detection.detected is True
    assert len(result.detection.regions) == 3
    assert result.detection.largest.width == 90
    assert result.detection.largest.height == 80
    print("PASS test_largest_qualifying_region_reported")


def test_min_ball_size_configurable():
    frame = paint(make_frame(), 100, 80, 40, 40)
    result = make_detector(min_ball_size=30).analyze(frame, GREEN_RANGE, 0.0)
    assert result.detection.detected is True
    print("PASS test_min_ball_size_configurable")


# ── overlay ──────────────────────────────────────────────────────────────────

def test_overlay_keeps_in_range_pixels_and_draws_rectangles():
    frame = make_frame()
    paint(frame, 100, 80, 60, 60)
    paint(frame, 0, 200, 40, 40, color=BLUE_BGR)
    detector = make_detector(overlay_color=(0, 0, 255), overlay_thickness=2)
    overlay = detector.analyze(frame, GREEN_RANGE, 0.0).overlay

    assert overlay.shape == frame.shape
    # Interior of the ball is kept as-is
    assert tuple(overlay[110, 130]) == GREEN_BGR
    # Out-of-range pixels are blacked out
    assert not overlay[210:230, 10:30].any()
    # Rectangle edge in BGR red
    assert tuple(overlay[80, 130]) == (0, 0, 255)
    print("PASS test_overlay_keeps_in_range_pixels_and_draws_rectangles")


def test_overlay_does_not_modify_input_frame():
    frame = paint(make_frame(), 100, 80, 60, 60)
    original = frame.copy()
    make_detector().analyze(frame, GREEN_RANGE, 0.0)
    assert np.array_equal(frame, original)
    print("PASS test_overlay_does_not_modify_input_frame")


def test_rectangle_stays_inside_region_bounds():
    frame = paint(make_frame(), 100, 80, 60, 60)
    overlay = make_detector(overlay_color=(0, 0, 255), overlay_thickness=1).analyze(frame, GREEN_RANGE, 0.0).overlay

    # Region covers columns 100..159 and rows 80..139
    assert tuple(overlay[110, 159]) == (0, 0, 255)
    assert tuple(overlay[139, 130]) == (0, 0, 255)
    assert not overlay[110, 160].any()
    assert not overlay[140, 130].any()
    print("PASS test_rectangle_stays_inside_region_bounds")


# ── edge cases ───────────────────────────────────────────────────────────────

def test_missing_frame_returns_none():
    detector = make_detector()
    assert detector.analyze(None, GREEN_RANGE, 0.0) is None
    assert detector.analyze(np.zeros((0, 0, 3), dtype=np.uint8), GREEN_RANGE, 0.0) is None
    print("PASS test_missing_frame_returns_none")


def test_default_thresholds_match_whole_frame():
    frame = make_frame(200, 100)
    result = make_detector().analyze(frame, ThresholdConfig(), 0.0)
    # Defaults span the full range: the whole frame is one region
    assert result.detection.detected is True
    assert result.detection.largest.width == 200
    assert result.detection.largest.height == 100
    print("PASS test_default_thresholds_match_whole_frame")


if __name__ == '__main__':
    test_60px_region_detected()
    test_40px_region_not_detected()
    test_size_gate_is_strict_on_both_axes()
    test_inverted_bounds_never_detect()
    test_out_of_range_color_ignored()
    test_largest_qualifying_region_reported()
    test_min_ball_size_configurable()
    test_overlay_keeps_in_range_pixels_and_draws_rectangles()
    test_overlay_does_not_modify_input_frame()
    test_rectangle_stays_inside_region_bounds()
    test_missing_frame_returns_none()
    test_default_thresholds_match_whole_frame()
    print("\nAll HsvBallDetector tests passed!")
