# Copyright 2024, m3shware
#
# Permission is hereby granted, free of charge, to any person obtaining a
# copy of this software and associated documentation files (the "Software"),
# to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense,
# and/or sell copies of the Software, and to permit persons to whom the
# Software is furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
# FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS
# IN THE SOFTWARE.

"""Tests for the vector math helpers."""

import math

import numpy as np
import pytest

import surfmesh.linalg as linalg


class TestVectors:
    """Tests for single vector functions."""

    def test_angle(self):
        """Test angles between vectors."""
        x = np.array([1.0, 0.0, 0.0])
        y = np.array([0.0, 2.0, 0.0])

        assert linalg.angle(x, y) == pytest.approx(0.5 * math.pi)
        assert linalg.angle(x, -x, deg=True) == pytest.approx(180.0)
        assert linalg.angle(x, np.zeros(3)) == 0.0

    def test_cross_and_norm(self):
        """Test agreement with NumPy."""
        u = np.array([1.0, 2.0, 3.0])
        v = np.array([-2.0, 0.5, 4.0])

        np.testing.assert_allclose(linalg.cross(u, v), np.cross(u, v))
        assert linalg.norm(u) == pytest.approx(np.linalg.norm(u))
        assert linalg.sqrd(u) == pytest.approx(14.0)
        assert linalg.norm(linalg.unit(v)) == pytest.approx(1.0)

    def test_clamp(self):
        assert linalg.clamp(2.0, -1.0, 1.0) == 1.0
        assert linalg.clamp(-2.0, -1.0, 1.0) == -1.0
        assert linalg.clamp(0.5, -1.0, 1.0) == 0.5

    def test_cotan(self):
        """Test cotangent of the angle between two vectors."""
        u = np.array([1.0, 0.0, 0.0])
        v = np.array([1.0, 1.0, 0.0])

        assert linalg.cotan(u, v) == pytest.approx(1.0)


class TestTriangles:
    """Tests for triangle functions."""

    a = np.array([0.0, 0.0, 0.0])
    b = np.array([1.0, 0.0, 0.0])
    c = np.array([0.0, 1.0, 0.0])

    def test_area_and_normal(self):
        assert linalg.triangle_area(self.a, self.b, self.c) == \
               pytest.approx(0.5)
        np.testing.assert_allclose(
            linalg.triangle_normal(self.a, self.b, self.c), [0, 0, 1])

    def test_aspect_ratio(self):
        """Test that degenerate triangles have a large aspect ratio."""
        regular = linalg.aspect_ratio(
            self.a, self.b, np.array([0.5, 0.5 * math.sqrt(3), 0.0]))
        sliver = linalg.aspect_ratio(
            self.a, self.b, np.array([0.5, 0.01, 0.0]))

        assert sliver > regular

    @pytest.mark.parametrize('p, expected', [
        ((0.2, 0.2, 1.0), (0.2, 0.2, 0.0)),
        ((-1.0, -1.0, 0.0), (0.0, 0.0, 0.0)),
        ((2.0, -0.5, 0.0), (1.0, 0.0, 0.0)),
        ((1.0, 1.0, 0.0), (0.5, 0.5, 0.0)),
        ((0.5, -1.0, 3.0), (0.5, 0.0, 0.0)),
    ])
    def test_closest_point(self, p, expected):
        """Test closest points in all Voronoi regions of a triangle."""
        q, bary = linalg.closest_point_triangle(
            np.array(p), self.a, self.b, self.c)

        np.testing.assert_allclose(q, expected, atol=1e-12)
        assert bary.sum() == pytest.approx(1.0)
        np.testing.assert_allclose(
            bary[0] * self.a + bary[1] * self.b + bary[2] * self.c, q,
            atol=1e-12)
