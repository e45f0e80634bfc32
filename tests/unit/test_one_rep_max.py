"""
Unit tests for one-rep-max estimation.

Tests cover:
- Epley formula (scoring, PR detection)
- Brzycki formula (best-set display ranking)
- Rep-range eligibility
"""
import pytest

from backend.core.one_rep_max import brzycki_1rm, epley_1rm, is_e1rm_eligible


@pytest.mark.unit
class TestEpleyFormula:
    """Tests for the Epley 1RM formula."""

    def test_standard_8_reps(self):
        """100 kg x 8 = 100 * (1 + 8/30) ≈ 126.67."""
        assert epley_1rm(100, 8) == pytest.approx(126.667, abs=0.01)

    def test_single_rep_adds_one_thirtieth(self):
        """Epley does not special-case single reps."""
        assert epley_1rm(100, 1) == pytest.approx(103.333, abs=0.01)

    def test_zero_reps_returns_zero(self):
        assert epley_1rm(100, 0) == 0.0

    def test_missing_or_negative_weight_returns_zero(self):
        """Null, zero and negative loads contribute nothing."""
        assert epley_1rm(None, 5) == 0.0
        assert epley_1rm(0, 5) == 0.0
        assert epley_1rm(-20, 5) == 0.0

    def test_high_reps_not_clamped(self):
        """Reps above 12 are the caller's problem, the formula is applied as-is."""
        assert epley_1rm(100, 15) == pytest.approx(150.0)


@pytest.mark.unit
class TestBrzyckiFormula:
    """Tests for the Brzycki 1RM formula."""

    def test_single_rep_returns_weight(self):
        """1 rep means the weight IS the 1RM."""
        assert brzycki_1rm(225, 1) == 225.0

    def test_zero_reps_returns_zero(self):
        assert brzycki_1rm(225, 0) == 0.0

    def test_zero_weight_returns_zero(self):
        assert brzycki_1rm(0, 5) == 0.0

    def test_standard_5_reps(self):
        """100 x 5 = 100 * 36/32 = 112.5."""
        assert brzycki_1rm(100, 5) == pytest.approx(112.5)

    def test_reps_capped_at_12(self):
        """Reps beyond 12 use the 12-rep value instead of blowing up near 37."""
        assert brzycki_1rm(100, 12) == pytest.approx(144.0)
        assert brzycki_1rm(100, 37) == pytest.approx(144.0)

    @pytest.mark.parametrize("reps", range(1, 12))
    def test_monotonic_in_reps(self, reps):
        """More reps at the same load is never a lower estimate."""
        assert brzycki_1rm(80, reps + 1) > brzycki_1rm(80, reps)

    def test_monotonic_in_weight(self):
        assert brzycki_1rm(101, 6) > brzycki_1rm(100, 6)

    def test_formulas_differ(self):
        """Epley and Brzycki give different numbers for the same set."""
        assert epley_1rm(100, 8) != pytest.approx(brzycki_1rm(100, 8))


@pytest.mark.unit
class TestEligibility:
    """Tests for E1RM rep-range eligibility."""

    @pytest.mark.parametrize("reps,expected", [(0, False), (1, True), (12, True), (13, False)])
    def test_rep_range(self, reps, expected):
        assert is_e1rm_eligible(100, reps) is expected

    def test_missing_weight_not_eligible(self):
        assert is_e1rm_eligible(None, 5) is False
