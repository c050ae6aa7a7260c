"""
Unit tests for the 23-line EMA ribbon

Tests periods, trend classification and color/width assignment
"""

import pytest

from core.models.chart import SeriesPoint
from domain.indicators.moving_averages import ema_series
from domain.indicators.ribbon import (
    BASELINE_COLOR,
    FAST_PERIODS,
    RIBBON_PERIODS,
    SLOW_PERIODS,
    Ribbon,
    Trend,
    classify_trend,
    fast_color,
    slow_color,
)
from services.chart_feed.memory_chart import MemoryChart
from tests.unit.fakes import make_candles


def line(*values):
    return [SeriesPoint(time=i, value=v) for i, v in enumerate(values)]


@pytest.mark.unit
class TestRibbonPeriods:
    """Test ribbon layout constants"""

    def test_period_groups(self):
        assert FAST_PERIODS == (3, 6, 9, 12, 15, 18, 21)
        assert SLOW_PERIODS == tuple(range(24, 67, 3))
        assert RIBBON_PERIODS[-1] == 200
        assert len(RIBBON_PERIODS) == 23


@pytest.mark.unit
class TestTrendClassification:
    """Test shortest-vs-longest trend rule"""

    def test_bullish(self):
        assert classify_trend([line(1, 5), line(1, 3), line(1, 2)]) == Trend.BULLISH

    def test_bearish(self):
        assert classify_trend([line(1, 1), line(1, 3)]) == Trend.BEARISH

    def test_neutral_on_equal(self):
        assert classify_trend([line(2, 2), line(3, 2)]) == Trend.NEUTRAL

    def test_neutral_on_empty(self):
        assert classify_trend([]) == Trend.NEUTRAL
        assert classify_trend([[], []]) == Trend.NEUTRAL


@pytest.mark.unit
class TestRibbonColors:
    """Test per-trend colors and opacity gradient"""

    def test_fast_opacity_gradient(self):
        assert fast_color(Trend.BULLISH, 0) == "rgba(0,255,255,0.40)"
        assert fast_color(Trend.BEARISH, 6) == "rgba(255,165,0,1.00)"
        assert fast_color(Trend.NEUTRAL, 2) == "rgba(128,128,128,0.60)"

    def test_slow_opacity_gradient(self):
        assert slow_color(Trend.BULLISH, 0) == "rgba(50,205,50,0.30)"
        assert slow_color(Trend.BEARISH, 14) == "rgba(255,0,0,0.72)"

    def test_colors_length_and_baseline(self):
        colors = Ribbon().colors(Trend.BULLISH, Trend.BEARISH)

        assert len(colors) == 23
        assert colors[0].startswith("rgba(0,255,255")
        assert colors[7].startswith("rgba(255,0,0")
        assert colors[-1] == BASELINE_COLOR


@pytest.mark.unit
class TestRibbonIndicator:
    """Test ribbon calculation and rendering"""

    def test_calculate_no_length_gate(self):
        """Test every line is drawn from the first candle"""
        candles = make_candles([100, 101, 102])

        results = Ribbon().calculate(candles)

        assert len(results) == 23
        assert all(len(points) == 3 for points in results)
        assert all(points[0].value == 100 for points in results)

    def test_calculate_matches_ema_series(self):
        candles = make_candles([100 + (i % 7) for i in range(30)])

        results = Ribbon().calculate(candles)

        assert results[3] == ema_series(candles, 12, min_length=1)
        assert results[-1] == ema_series(candles, 200, min_length=1)

    def test_calculate_empty(self):
        assert Ribbon().calculate([]) == []

    def test_render_line_widths(self):
        """Test edges of each group and the baseline are thicker"""
        chart = MemoryChart()
        Ribbon().render(chart)

        widths = [s.options["line_width"] for s in chart.series]

        assert len(widths) == 23
        assert [i for i, w in enumerate(widths) if w == 2] == [6, 21, 22]

    def test_uptrend_colors(self):
        """Test rising market tints both groups bullish"""
        chart = MemoryChart()
        ribbon = Ribbon()
        ribbon.render(chart)

        ribbon.update(make_candles([100 + i for i in range(80)]))

        assert ribbon.fast_trend == Trend.BULLISH
        assert ribbon.slow_trend == Trend.BULLISH
        assert chart.series[0].options["color"] == fast_color(Trend.BULLISH, 0)
        assert chart.series[7].options["color"] == slow_color(Trend.BULLISH, 0)
        assert chart.series[-1].options["color"] == BASELINE_COLOR
        assert all(len(s.points) == 80 for s in chart.series)

    def test_downtrend_colors(self):
        chart = MemoryChart()
        ribbon = Ribbon()
        ribbon.render(chart)

        ribbon.update(make_candles([200 - i for i in range(80)]))

        assert ribbon.fast_trend == Trend.BEARISH
        assert ribbon.slow_trend == Trend.BEARISH

    def test_flat_market_is_neutral(self):
        chart = MemoryChart()
        ribbon = Ribbon()
        ribbon.render(chart)

        ribbon.update(make_candles([100]))

        assert ribbon.fast_trend == Trend.NEUTRAL
        assert chart.series[0].options["color"] == fast_color(Trend.NEUTRAL, 0)

    def test_update_last_falls_back_to_full_update(self):
        chart = MemoryChart()
        ribbon = Ribbon()
        ribbon.render(chart)
        candles = make_candles([100, 101])

        ribbon.update_last(candles[-1], candles)

        assert chart.series[0].set_data_calls == 1

    def test_destroy_removes_all_lines(self):
        chart = MemoryChart()
        ribbon = Ribbon()
        ribbon.render(chart)

        ribbon.destroy()

        assert chart.series == []
        assert ribbon.series == []
