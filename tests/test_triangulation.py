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

"""Tests for polygon triangulation."""

import pytest

import surfmesh.topology as topology
import surfmesh.traits as traits
import surfmesh.triangulation as triangulation

from surfmesh.config import Objective
from surfmesh.hds import Mesh


def _quad(points):
    return Mesh(points, [[0, 1, 2, 3]])


class TestTriangulate:
    """Tests for triangulation of polygon meshes."""

    def test_cube(self, cube):
        assert triangulation.triangulate(cube) == (6, 0)

        cube.check()
        assert cube.size == (8, 18, 12)
        assert cube.is_triangle_mesh()
        assert topology.is_sphere(cube)
        assert traits.surface_area(cube) == pytest.approx(6.0)

    def test_triangles_are_kept(self, icosahedron):
        assert triangulation.triangulate(icosahedron) == (0, 0)
        assert icosahedron.size == (12, 30, 20)

    def test_hexagon_face(self):
        mesh = Mesh([(1, 0, 0), (2, 0, 0), (3, 1, 0), (2, 2, 0),
                     (1, 2, 0), (0, 1, 0)], [[0, 1, 2, 3, 4, 5]])

        assert triangulation.triangulate(mesh, Objective.MAX_ANGLE) == (1, 0)

        mesh.check()
        assert mesh.size == (6, 9, 4)
        assert traits.surface_area(mesh) == pytest.approx(4.0)

    def test_min_area(self):
        """Test that the flatter diagonal of a skew quad is chosen."""
        mesh = _quad([(0, 0, 0), (4, 0, 0), (3, 2, 1), (0, 1, 0)])
        triangulation.triangulate(mesh, Objective.MIN_AREA)

        v = mesh.vertices
        assert (v[1], v[3]) in mesh.halfedges
        assert (v[0], v[2]) not in mesh.halfedges

    def test_min_area_planar(self):
        """Test that squared areas prefer balanced triangles in the plane."""
        mesh = _quad([(0, 0, 0), (4, 0, 0), (3, 2, 0), (0, 1, 0)])
        triangulation.triangulate(mesh, Objective.MIN_AREA)

        v = mesh.vertices
        assert (v[1], v[3]) in mesh.halfedges
        assert (v[0], v[2]) not in mesh.halfedges
        assert traits.surface_area(mesh) == pytest.approx(5.5)

    def test_max_angle(self):
        """Test that the diagonal avoiding sliver triangles is chosen."""
        mesh = _quad([(0, 0, 0), (3, 0, 0), (4, 1, 0), (0, 1, 0)])
        triangulation.triangulate(mesh, 'max_angle')

        v = mesh.vertices
        assert (v[1], v[3]) in mesh.halfedges
        assert (v[0], v[2]) not in mesh.halfedges


class TestTriangulateFace:
    """Tests for faces with existing diagonals."""

    def test_existing_diagonal(self):
        """Test that edges present elsewhere are not inserted twice."""
        points = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0), (1, 1, 1)]
        mesh = Mesh(points, [[0, 1, 2, 3], [0, 2, 4]])
        quad = mesh.faces[0]

        assert triangulation.triangulate_face(mesh, quad)

        v = mesh.vertices
        assert (v[1], v[3]) in mesh.halfedges
        assert mesh.size[2] == 3

    def test_impossible(self):
        """Test a quad whose diagonals both exist."""
        points = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0),
                  (1, 1, 1), (0, 0, 1)]
        mesh = Mesh(points, [[0, 1, 2, 3], [0, 2, 4], [1, 3, 5]])
        size = mesh.size

        assert not triangulation.triangulate_face(mesh, mesh.faces[0])
        assert mesh.size == size
        assert triangulation.triangulate(mesh) == (0, 1)
