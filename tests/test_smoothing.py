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

"""Tests for Laplacian smoothing."""

import numpy as np
import pytest

import surfmesh.laplace as laplace
import surfmesh.smoothing as smoothing
import surfmesh.traits as traits

from surfmesh.config import SmoothingConfig
from surfmesh.flags import VertexFlag


@pytest.fixture
def noisy_grid(make_grid):
    """Planar grid with random heights at interior vertices."""
    mesh = make_grid(8)
    rng = np.random.default_rng(3)

    for v in mesh.vertices:
        if not v.boundary:
            v.point = v.point + [0.0, 0.0, rng.uniform(-0.2, 0.2)]

    return mesh


class TestExplicit:
    """Tests for explicit smoothing."""

    @pytest.mark.parametrize('uniform', [False, True])
    def test_noise_reduction(self, noisy_grid, uniform):
        before = noisy_grid.points.copy()

        config = SmoothingConfig(iterations=20, uniform_laplace=uniform)
        smoothing.explicit(noisy_grid, config)

        after = noisy_grid.points
        boundary = [v.index for v in noisy_grid.vertices if v.boundary]

        assert np.abs(after[:, 2]).max() < 0.5 * np.abs(before[:, 2]).max()
        np.testing.assert_array_equal(after[boundary], before[boundary])

    def test_fixed_vertices(self, noisy_grid):
        v = noisy_grid.vertices[27]
        v.flags = VertexFlag.FIXED
        point = v.point.copy()

        smoothing.explicit(noisy_grid)

        np.testing.assert_array_equal(v.point, point)

    def test_tangential(self, make_grid):
        """Test that tangential smoothing stays in the plane."""
        mesh = make_grid(6)
        mesh.points[14, :2] += 0.3

        smoothing.explicit(mesh, SmoothingConfig(iterations=30,
                                                   tangential=True))

        np.testing.assert_allclose(mesh.points[:, 2], 0.0, atol=1e-12)
        np.testing.assert_allclose(mesh.points[14, :2], [2.0, 2.0],
                                   atol=0.1)

    def test_tangential_keeps_input_planes(self, sphere):
        """Test that curved surfaces slide within their input planes."""
        normals = np.array([traits.vertex_normal(v) for v in sphere.vertices])
        before = sphere.points.copy()

        smoothing.explicit(sphere, SmoothingConfig(iterations=10,
                                                     tangential=True))

        offsets = np.einsum('ij,ij->i', sphere.points - before, normals)
        np.testing.assert_allclose(offsets, 0.0, atol=1e-12)


class TestImplicit:
    """Tests for implicit smoothing."""

    def test_noise_reduction(self, noisy_grid):
        before = noisy_grid.points.copy()

        smoothing.implicit(noisy_grid, SmoothingConfig(timestep=1.0))

        after = noisy_grid.points
        boundary = [v.index for v in noisy_grid.vertices if v.boundary]

        assert np.abs(after[:, 2]).max() < 0.5 * np.abs(before[:, 2]).max()
        np.testing.assert_allclose(after[boundary], before[boundary])

    def test_rescale(self, sphere):
        """Test that closed meshes keep their area and barycenter."""
        area = traits.surface_area(sphere)
        center = laplace.barycenter(sphere)

        smoothing.implicit(sphere, SmoothingConfig(timestep=0.01))

        assert traits.surface_area(sphere) == pytest.approx(area)
        np.testing.assert_allclose(laplace.barycenter(sphere), center,
                                   atol=1e-9)

    def test_shrinks_without_rescale(self, sphere):
        area = traits.surface_area(sphere)

        config = SmoothingConfig(timestep=0.01, rescale=False)
        smoothing.implicit(sphere, config)

        assert traits.surface_area(sphere) < area
