"""Tests for speed reduction assessment."""

import pytest
from pydantic import ValidationError

from aeb_variants.assessment import SpeedReductionBand, SpeedReductionTable


class TestSpeedReductionTable:
    """Tests for SpeedReductionTable."""

    @pytest.mark.parametrize(
        ("impact_speed", "expected"),
        [
            (0.0, "avoided"),
            (2.0, "high"),
            (5.0, "moderate"),
            (6.0, "low"),
            (9.0, "none"),
            (10.0, "none"),
        ],
    )
    def test_grade(self, impact_speed: float, expected: str) -> None:
        """Test band selection at a 10 m/s test speed."""
        band = SpeedReductionTable().grade(10.0, impact_speed)
        assert band.name == expected

    def test_pass_fail(self) -> None:
        """Test which bands count as a pass."""
        table = SpeedReductionTable()

        assert table.grade(10.0, 0.0).passed
        assert table.grade(10.0, 5.0).passed
        assert not table.grade(10.0, 6.0).passed

    def test_reduction_fraction_clipped(self) -> None:
        """Test that the reduction fraction stays within [0, 1]."""
        assert SpeedReductionTable.reduction_fraction(10.0, 12.0) == 0.0
        assert SpeedReductionTable.reduction_fraction(10.0, -1.0) == 1.0
        with pytest.raises(ValueError):
            SpeedReductionTable.reduction_fraction(0.0, 0.0)

    def test_bands_sorted(self) -> None:
        """Test that bands are matched from the highest bound down regardless of order."""
        table = SpeedReductionTable(
            bands=[
                SpeedReductionBand(name="fail", min_reduction=0.0, color="red", passed=False),
                SpeedReductionBand(name="pass", min_reduction=0.5, color="green", passed=True),
            ]
        )

        assert [b.name for b in table.bands] == ["pass", "fail"]
        assert table.grade(10.0, 4.0).name == "pass"
        assert table.grade(10.0, 6.0).name == "fail"

    def test_lowest_band_must_start_at_zero(self) -> None:
        """Test that every reduction must fall into some band."""
        with pytest.raises(ValidationError):
            SpeedReductionTable(
                bands=[SpeedReductionBand(name="pass", min_reduction=0.5, color="g", passed=True)]
            )

    def test_band_lookup(self) -> None:
        """Test band lookup by name."""
        table = SpeedReductionTable()

        assert table.band("avoided").color == "#1a9641"
        with pytest.raises(KeyError):
            table.band("unknown")

    def test_lowest_band(self) -> None:
        """Test the band used for runs that never exercised the AEB system."""
        table = SpeedReductionTable()

        assert table.lowest.name == "none"
        assert not table.lowest.passed
