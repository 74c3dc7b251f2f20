"""Unit tests for the display metrics."""

import pytest

from e20sim.core.interpolator import EmissionInterpolator
from e20sim.core.metrics import (
    EfficiencyTier,
    EmissionLevel,
    MetricReport,
    efficiency_tier,
    emission_level,
    reduction,
    vibration_period,
)


class TestBands:

    def test_reduction(self):
        assert reduction(100) == 0
        assert reduction(70) == 30
        assert reduction(120) == 0

    def test_emission_level_boundaries(self):
        assert emission_level(50) is EmissionLevel.LOW
        assert emission_level(70) is EmissionLevel.LOW
        assert emission_level(71) is EmissionLevel.MEDIUM
        assert emission_level(85) is EmissionLevel.MEDIUM
        assert emission_level(86) is EmissionLevel.HIGH

    def test_efficiency_tier_boundaries(self):
        assert efficiency_tier(0) is EfficiencyTier.STANDARD
        assert efficiency_tier(9) is EfficiencyTier.STANDARD
        assert efficiency_tier(10) is EfficiencyTier.MEDIUM
        assert efficiency_tier(14) is EfficiencyTier.MEDIUM
        assert efficiency_tier(15) is EfficiencyTier.HIGH
        assert efficiency_tier(20) is EfficiencyTier.HIGH

    def test_vibration_period(self):
        assert vibration_period(0) == pytest.approx(0.1)
        assert vibration_period(20) == pytest.approx(0.1 / 0.7)
        assert vibration_period(10) == pytest.approx(0.1 / 0.85)
        assert vibration_period(-4) == pytest.approx(0.1)


class TestMetricReport:

    def test_pure_gasoline(self):
        report = MetricReport.build(0, EmissionInterpolator().compute(0))
        assert all(level is EmissionLevel.HIGH for level in report.levels.values())
        assert report.format_reduction('co2') == "-0% vs pure petrol"
        assert report.tier is EfficiencyTier.STANDARD

    def test_e20(self):
        report = MetricReport.build(20, EmissionInterpolator().compute(20))
        assert report.reductions == {'co2': 30, 'co': 50, 'hc': 33, 'pm': 20}
        assert report.levels['pm'] is EmissionLevel.MEDIUM
        assert report.levels['co'] is EmissionLevel.LOW
        assert report.format_reduction('co') == "-50% vs pure petrol"

    def test_to_dict(self):
        data = MetricReport.build(10, EmissionInterpolator().compute(10)).to_dict()
        assert data['label'] == "E10"
        assert data['values'] == {'co2': 90, 'co': 70, 'hc': 80, 'pm': 90}
        assert data['tier'] == "medium"
        assert data['levels']['co'] == "low"
