# tests/unit/dayauction/test_metrics.py
"""
Tests for welfare and path metrics.

These tests pin the societal loss formula, including the sign flip for a
seller insider, and the example-path selection rule.
"""

import numpy as np
import pytest

from dayauction.insider import InsiderVolumes
from dayauction.metrics import (
    path_statistics,
    post_event_mean,
    post_event_window,
    select_illustrative_paths,
    societal_loss,
)
from dayauction.orders import Side


# =============================================================================
# Test: Post-event window
# =============================================================================


class TestPostEventWindow:
    def test_window_starts_day_after_event(self):
        assert post_event_window(n_days=500, event_day=150, window=30) == (151, 181)

    def test_window_clipped_to_horizon(self):
        assert post_event_window(n_days=160, event_day=150, window=30) == (151, 161)

    def test_empty_window_raises(self):
        with pytest.raises(ValueError, match="no post-event days"):
            post_event_window(n_days=150, event_day=150, window=30)

    def test_post_event_mean(self):
        path = [100.0, 101.0, 102.0, 110.0, 120.0, 130.0]
        assert post_event_mean(path, event_day=2, window=2) == 115.0

    def test_post_event_mean_excludes_event_day(self):
        path = [100.0, 1000.0, 50.0]
        assert post_event_mean(path, event_day=1, window=30) == 50.0


# =============================================================================
# Test: Societal loss
# =============================================================================


class TestSocietalLoss:
    volumes = InsiderVolumes(
        insider_fill_volume=1500.0,
        actual_buyer_volume=2000.0,
        actual_seller_volume=3500.0,
        counterfactual_volume=2600.0,
    )

    def test_buyer_insider_loss(self):
        loss = societal_loss(self.volumes, theoretical_price=100.0, post_mean=104.0, insider_side=Side.BUY)
        # (2600 - 2000) * -4 = -2400 ; (2600 - 3500) * -4 = 3600
        assert loss.buyer_loss == pytest.approx(-2400.0)
        assert loss.seller_loss == pytest.approx(3600.0)
        assert loss.total == pytest.approx(1200.0)

    def test_seller_insider_loss_is_negated(self):
        buy = societal_loss(self.volumes, 100.0, 104.0, Side.BUY)
        sell = societal_loss(self.volumes, 100.0, 104.0, Side.SELL)
        assert sell.buyer_loss == buy.buyer_loss
        assert sell.seller_loss == buy.seller_loss
        assert sell.total == -buy.total

    def test_no_price_gap_no_loss(self):
        loss = societal_loss(self.volumes, 104.0, 104.0, Side.BUY)
        assert loss.total == 0.0


# =============================================================================
# Test: Path diagnostics
# =============================================================================


class TestIllustrativePaths:
    def test_selects_by_final_price(self):
        paths = np.array(
            [
                [100.0, 90.0, 80.0],
                [100.0, 105.0, 130.0],
                [100.0, 99.0, 101.0],
                [100.0, 101.0, 60.0],
            ]
        )
        picks = select_illustrative_paths(paths, seed_price=100.0)
        assert picks == {"bearish": 3, "stable": 2, "bullish": 1}

    def test_ties_resolve_to_first_run(self):
        paths = np.array([[100.0, 100.0], [100.0, 100.0]])
        assert select_illustrative_paths(paths) == {"bearish": 0, "stable": 0, "bullish": 0}

    def test_no_paths_raises(self):
        with pytest.raises(ValueError):
            select_illustrative_paths(np.empty((0, 3)))


class TestPathStatistics:
    def test_per_day_statistics(self):
        paths = np.array([[1.0, 2.0], [3.0, 6.0]])
        summary = path_statistics(paths)
        np.testing.assert_allclose(summary["mean"], [2.0, 4.0])
        np.testing.assert_allclose(summary["min"], [1.0, 2.0])
        np.testing.assert_allclose(summary["max"], [3.0, 6.0])
        np.testing.assert_allclose(summary["std"], [np.sqrt(2.0), np.sqrt(8.0)])

    def test_single_run_has_zero_spread(self):
        summary = path_statistics(np.array([[1.0, 2.0]]))
        np.testing.assert_array_equal(summary["std"], [0.0, 0.0])

    def test_no_runs_gives_nan(self):
        summary = path_statistics(np.empty((0, 4)))
        assert summary["mean"].shape == (4,)
        assert np.all(np.isnan(summary["mean"]))
