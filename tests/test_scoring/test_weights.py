"""
Scoring Weights and Category Threshold Tests.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from saferoute.schemas import SafetyCategory
from saferoute.scoring.weights import (
    CategoryThresholds,
    categorize,
    category_rank,
    clamp_score,
)


class TestClampScore:
    @pytest.mark.parametrize("raw,expected", [
        (-25, 0),
        (0, 0),
        (57.2, 57),
        (57.8, 58),
        (100, 100),
        (130, 100),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_score(raw) == expected

    @given(st.floats(min_value=-1e6, max_value=1e6, allow_nan=False))
    def test_always_in_range(self, raw):
        assert 0 <= clamp_score(raw) <= 100


class TestCategorize:
    @pytest.mark.parametrize("score,expected", [
        (0, SafetyCategory.RISKY),
        (30, SafetyCategory.RISKY),
        (31, SafetyCategory.MODERATE),
        (70, SafetyCategory.MODERATE),
        (71, SafetyCategory.SAFE),
        (100, SafetyCategory.SAFE),
    ])
    def test_boundaries(self, score, expected):
        assert categorize(score) == expected

    @given(st.integers(0, 100), st.integers(0, 100))
    def test_monotonic(self, a, b):
        low, high = sorted((a, b))
        assert category_rank(categorize(low)) <= category_rank(categorize(high))

    def test_custom_thresholds(self):
        thresholds = CategoryThresholds(risky_max=40, moderate_max=80)
        assert categorize(40, thresholds) == SafetyCategory.RISKY
        assert categorize(75, thresholds) == SafetyCategory.MODERATE

    def test_invalid_thresholds(self):
        with pytest.raises(ValueError):
            CategoryThresholds(risky_max=70, moderate_max=30)
