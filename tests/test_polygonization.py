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

"""Tests for polygonization."""

import surfmesh.polygonization as polygonization
import surfmesh.topology as topology
import surfmesh.triangulation as triangulation

from surfmesh.config import PolygonizationConfig
from surfmesh.hds import Mesh


def _strip():
    """Two triangulated unit squares side by side."""
    points = [(0, 0, 0), (1, 0, 0), (2, 0, 0),
              (0, 1, 0), (1, 1, 0), (2, 1, 0)]
    faces = [[0, 1, 4], [0, 4, 3], [1, 2, 5], [1, 5, 4]]

    return Mesh(points, faces)


class TestPolygonize:
    """Tests for merging coplanar faces."""

    def test_strip(self):
        """Test that straight sides lose their middle vertices."""
        mesh = _strip()

        assert polygonization.polygonize(mesh) == (3, 2)

        mesh.check()
        assert mesh.size == (4, 4, 1)
        assert len(mesh.faces[0]) == 4

    def test_cube_round_trip(self, cube):
        triangulation.triangulate(cube)
        assert polygonization.polygonize(cube) == (6, 0)

        cube.check()
        assert cube.size == (8, 12, 6)
        assert cube.is_quad_mesh()
        assert topology.is_sphere(cube)

    def test_curved_surface(self, icosahedron):
        assert polygonization.polygonize(icosahedron) == (0, 0)
        assert icosahedron.size == (12, 30, 20)

    def test_threshold(self, make_grid):
        """Test that a bent grid merges on each side of the bend."""
        mesh = make_grid(3)
        mesh.points[[2, 5, 8], 2] = 1.0

        polygonization.polygonize(mesh, PolygonizationConfig(
            angle_threshold=10.0))
        mesh.check()
        assert mesh.size[2] == 2
        assert all(len(f) == 4 for f in mesh.faces)
