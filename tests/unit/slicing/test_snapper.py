"""Tests for vertex snapping and interning."""

import pytest

from strata.slicing.snapper import Snapper


@pytest.mark.unit
@pytest.mark.slicing
class TestSnapper:
    def test_rejects_non_positive_eps(self):
        with pytest.raises(ValueError):
            Snapper(0.0)

    def test_key_rounds_to_grid(self):
        snapper = Snapper(1e-3)
        assert snapper.key(1.0004, -2.0006) == (1000, -2001)

    def test_nearby_points_share_vertex_id(self):
        snapper = Snapper(1e-6)
        a = snapper.vertex_id(1.0, 2.0)
        b = snapper.vertex_id(1.0 + 1e-8, 2.0 - 1e-8)
        assert a == b
        assert len(snapper) == 1

    def test_ids_are_dense_in_first_seen_order(self):
        snapper = Snapper(1e-6)
        ids = [snapper.vertex_id(x, 0.0) for x in (0.0, 1.0, 0.0, 2.0)]
        assert ids == [0, 1, 0, 2]

    def test_normalize_returns_first_seen_representative(self):
        snapper = Snapper(1e-6)
        snapper.vertex_id(0.5, 0.5)
        assert snapper.normalize(0.5 + 1e-8, 0.5) == (0.5, 0.5)
        assert snapper.point(0) == (0.5, 0.5)

    def test_same_is_key_equality(self):
        snapper = Snapper(1.0)
        # 0.49 and 0.51 straddle the rounding boundary at 0.5
        assert not snapper.same((0.49, 0.0), (0.51, 0.0))
        assert snapper.same((0.51, 0.0), (1.4, 0.0))

    def test_close_is_distance(self):
        snapper = Snapper(0.1)
        assert snapper.close((0.0, 0.0), (0.03, 0.04))
        assert not snapper.close((0.0, 0.0), (0.1, 0.1))
