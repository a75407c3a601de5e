"""Tests for render parameters."""

import os

import pytest

from pathtracer.core.config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_DEPTH,
    MAX_SEED,
    RenderParams,
    default_workers,
)


class TestRenderParams:
    def test_defaults(self):
        params = RenderParams(width=320, height=240)
        assert params.samples_per_pixel == 16
        assert params.max_depth == DEFAULT_MAX_DEPTH
        assert params.batch_size == DEFAULT_BATCH_SIZE
        assert params.workers == default_workers()
        assert params.seed == 0
        assert not params.russian_roulette
        assert not params.light_sampling

    def test_aspect_ratio(self):
        assert RenderParams(width=320, height=240).aspect_ratio == pytest.approx(4.0 / 3.0)

    def test_zero_depth_is_allowed(self):
        assert RenderParams(width=1, height=1, max_depth=0).max_depth == 0

    @pytest.mark.parametrize(
        "changes",
        [
            {"width": 0},
            {"height": -1},
            {"samples_per_pixel": 0},
            {"max_depth": -1},
            {"workers": 0},
            {"seed": -5},
            {"seed": MAX_SEED + 1},
            {"seed": 2**32},
            {"batch_size": 0},
        ],
    )
    def test_invalid_values(self, changes):
        values = {"width": 8, "height": 8}
        values.update(changes)
        with pytest.raises(ValueError):
            RenderParams(**values)

    def test_largest_seed_is_accepted(self):
        assert RenderParams(width=8, height=8, seed=MAX_SEED).seed == 2**31 - 1

    def test_with_overrides(self):
        params = RenderParams(width=8, height=8, workers=2)
        changed = params.with_overrides(workers=4, light_sampling=True)
        assert changed.workers == 4
        assert changed.light_sampling
        assert params.workers == 2

    def test_with_overrides_validates(self):
        with pytest.raises(ValueError):
            RenderParams(width=8, height=8).with_overrides(samples_per_pixel=0)

    def test_frozen(self):
        params = RenderParams(width=8, height=8)
        with pytest.raises(AttributeError):
            params.width = 16


def test_default_workers_matches_cpu_count():
    assert default_workers() == (os.cpu_count() or 1)
    assert default_workers() >= 1
