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

"""Tests for hole filling."""

import numpy as np
import pytest

import surfmesh.holes as holes
import surfmesh.iterators as iterators
import surfmesh.topology as topology
import surfmesh.traits as traits

from surfmesh.config import HoleFillingConfig
from surfmesh.flags import FaceFlag
from surfmesh.hds import DegenerateError, Mesh, NonManifoldError
from surfmesh.hds import PreconditionError


@pytest.fixture
def punched_grid(make_grid):
    """Grid with the one-ring of an interior vertex removed."""
    mesh = make_grid(6)
    center = mesh.vertices[14]

    for f in list(iterators.faces(center)):
        mesh.delete_face(f)

    mesh.clean()
    return mesh


def _hole(mesh):
    """First halfedge of the shortest boundary loop."""
    loops = sorted(iterators.borders(mesh), key=len)
    return loops[0][0]


class TestFillHole:
    """Tests for closing a single hole."""

    def test_plain_triangulation(self, punched_grid):
        config = HoleFillingConfig(refine=False)
        patch = holes.fill_hole(punched_grid, _hole(punched_grid), config)

        punched_grid.check()
        assert len(patch) == 4
        assert all(FaceFlag.FILLED in f.flags for f in patch)
        assert topology.is_disc(punched_grid)
        assert punched_grid.size[0] == 35
        assert traits.surface_area(punched_grid) == pytest.approx(25.0)

    def test_refined_patch(self, punched_grid):
        """Test that the patch matches the surrounding density."""
        patch = holes.fill_hole(punched_grid, _hole(punched_grid))

        punched_grid.check()
        assert len(patch) > 4
        assert topology.is_disc(punched_grid)
        np.testing.assert_allclose(punched_grid.points[:, 2], 0.0,
                                   atol=1e-9)
        assert traits.surface_area(punched_grid) == pytest.approx(25.0)

        filled = [f for f in punched_grid.faces
                  if FaceFlag.FILLED in f.flags]
        assert set(filled) == set(patch)

    def test_curved_hole(self, sphere):
        """Test that the patch continues a curved surface."""
        for f in list(iterators.faces(sphere.vertices[0])):
            sphere.delete_face(f)

        sphere.clean()
        holes.fill_hole(sphere, _hole(sphere))

        sphere.check()
        assert topology.is_sphere(sphere)

        radii = np.linalg.norm(sphere.points, axis=1)
        assert np.all(radii < 1.0 + 1e-9)
        assert np.all(radii > 0.9)

    def test_not_a_boundary_halfedge(self, punched_grid):
        h = next(iter(punched_grid.halfedges.values()))
        h = h if h.face is not None else h.pair

        with pytest.raises(ValueError):
            holes.fill_hole(punched_grid, h)

    def test_size_limit(self, punched_grid):
        config = HoleFillingConfig(max_hole_size=5)

        with pytest.raises(PreconditionError):
            holes.fill_hole(punched_grid, _hole(punched_grid), config)

    def test_non_manifold_vertex(self):
        """Test that holes through non-manifold vertices are refused."""
        points = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (-1, 0, 0), (0, -1, 0)]
        mesh = Mesh(points, [[0, 1, 2], [0, 3, 4]])
        size = mesh.size

        h = mesh.halfedges[mesh.vertices[2], mesh.vertices[1]]

        with pytest.raises(NonManifoldError):
            holes.fill_hole(mesh, h)

        assert mesh.size == size


class TestFillHoles:
    """Tests for closing all holes of a mesh."""

    def test_closed_mesh(self, icosahedron):
        assert holes.fill_holes(icosahedron) == (0, 0)
        assert icosahedron.size == (12, 30, 20)

    def test_cylinder(self, cylinder):
        closed, skipped = holes.fill_holes(
            cylinder, HoleFillingConfig(refine=False))

        cylinder.check()
        assert (closed, skipped) == (2, 0)
        assert topology.is_sphere(cylinder)
        assert cylinder.size[2] == 32 + 2 * 6

    def test_skip_large_holes(self, punched_grid, capsys):
        """Test that the outer border exceeds the size limit."""
        closed, skipped = holes.fill_holes(
            punched_grid, HoleFillingConfig(max_hole_size=10), quiet=False)

        assert (closed, skipped) == (1, 1)
        assert topology.number_of_borders(punched_grid) == 1
        assert 'filled 1 holes' in capsys.readouterr().out

    def test_singular_fairing_keeps_patch(self, punched_grid, monkeypatch):
        """Test that a failed fairing step still counts as a filled hole."""
        def singular(*args, **kwargs):
            raise DegenerateError('fairing system is singular')

        monkeypatch.setattr(holes.fairing, 'fair', singular)

        closed, skipped = holes.fill_holes(
            punched_grid, HoleFillingConfig(max_hole_size=10))

        punched_grid.check()
        assert (closed, skipped) == (1, 1)
        assert topology.number_of_borders(punched_grid) == 1
        assert any(FaceFlag.FILLED in f.flags for f in punched_grid.faces)
        np.testing.assert_allclose(punched_grid.points[:, 2], 0.0,
                                   atol=1e-9)
