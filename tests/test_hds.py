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

"""Tests for the halfedge mesh kernel."""

from itertools import permutations

import numpy as np
import pytest

import surfmesh.iterators as iterators

from surfmesh.hds import DegenerateError, Mesh, MeshError
from surfmesh.hds import NonManifoldError, PreconditionError


def _assert_one_rings_close(mesh):
    """Following next around faces and one-rings returns to the start."""
    for h in mesh.halfedges.values():
        assert h.pair.pair is h
        assert h.next.prev is h

        steps = 0
        hh = h

        while True:
            hh = hh.next
            steps += 1

            if hh is h:
                break

            assert steps <= len(mesh.halfedges)

    for v in mesh.vertices:
        if v.deleted or v.isolated:
            continue

        ring = list(v._hiter())
        assert len(ring) == v.degree


class TestConstruction:
    """Tests for building meshes from face lists."""

    def test_tetrahedron_size(self, tetrahedron):
        """Test counts and Euler characteristic of a tetrahedron."""
        assert tetrahedron.size == (4, 6, 4)
        assert tetrahedron.euler_characteristic == 2
        assert tetrahedron.is_triangle_mesh()
        assert not tetrahedron.is_quad_mesh()

    def test_cube_is_quad_mesh(self, cube):
        """Test that the cube consists of quads."""
        assert cube.size == (8, 12, 6)
        assert cube.is_quad_mesh()

    def test_grid_size(self, grid):
        """Test counts of the planar grid."""
        assert grid.size == (25, 56, 32)
        assert grid.euler_characteristic == 1

    def test_check_passes(self, icosahedron, torus, cylinder):
        """Test that the invariants hold for freshly built meshes."""
        for mesh in (icosahedron, torus, cylinder):
            mesh.check(contains_test=True)
            _assert_one_rings_close(mesh)

    def test_add_vertex_and_face(self):
        """Test incremental construction."""
        mesh = Mesh()
        verts = [mesh.add_vertex(p) for p in [(0, 0, 0), (1, 0, 0), (0, 1, 0)]]
        f = mesh.add_face(verts)

        assert mesh.size == (3, 3, 1)
        assert len(f) == 3
        assert all(v.boundary for v in verts)
        np.testing.assert_allclose(f.barycenter, [1 / 3, 1 / 3, 0])

    def test_add_vertex_wrong_shape(self):
        """Test that points must have three coordinates."""
        with pytest.raises(ValueError):
            Mesh().add_vertex((1.0, 2.0))

    def test_duplicate_vertices_rejected(self, grid):
        """Test that a face may not repeat a vertex."""
        with pytest.raises(ValueError):
            grid.add_face([0, 1, 0])

    def test_interior_halfedge_rejected(self, tetrahedron):
        """Test that duplicating an interior halfedge fails atomically."""
        with pytest.raises(NonManifoldError):
            tetrahedron.add_face([0, 1, 2])

        assert tetrahedron.size == (4, 6, 4)
        tetrahedron.check()

    def test_interior_vertex_rejected(self, hexagon):
        """Test that faces cannot be attached to interior vertices."""
        v = hexagon.add_vertex((0.0, 0.0, 1.0))

        with pytest.raises(NonManifoldError):
            hexagon.add_face([0, v.index, 1])

        assert hexagon.size == (8, 12, 6)

    def test_non_manifold_vertex(self):
        """Test that two fans sharing a vertex are reported."""
        points = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (-1, 0, 0), (0, -1, 0)]
        mesh = Mesh(points, [[0, 1, 2], [0, 3, 4]])

        assert not mesh.vertices[0].manifold
        assert mesh.vertices[1].manifold

    def test_face_joins_two_fans(self):
        """Test that a face between two fans yields a manifold vertex."""
        points = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (-1, 0, 0), (0, -1, 0)]
        mesh = Mesh(points, [[0, 1, 2], [0, 3, 4]])

        mesh.add_face([0, 2, 3])

        assert mesh.size == (5, 7, 3)
        assert mesh.vertices[0].manifold
        assert [len(loop) for loop in iterators.borders(mesh)] == [5]

        mesh.check(contains_test=True)
        _assert_one_rings_close(mesh)

    def test_row_major_grid(self):
        """Test a grid built row by row, closing gaps between fans."""
        points = [(i, j, 0) for j in range(3) for i in range(3)]
        faces = [[0, 1, 4], [0, 4, 3], [1, 2, 5], [1, 5, 4],
                 [3, 4, 7], [3, 7, 6], [4, 5, 8], [4, 8, 7]]

        mesh = Mesh(points, faces)

        assert mesh.size == (9, 16, 8)
        assert all(v.manifold for v in mesh.vertices)
        assert not mesh.vertices[4].boundary
        assert [len(loop) for loop in iterators.borders(mesh)] == [8]

        mesh.check(contains_test=True)
        _assert_one_rings_close(mesh)

    def test_fan_in_any_order(self):
        """Test every insertion order of the faces around a vertex."""
        angles = np.arange(6) * np.pi / 3
        points = [(0, 0, 0)] + [(np.cos(a), np.sin(a), 0) for a in angles]
        faces = [[0, k, k % 6 + 1] for k in range(1, 7)]

        for order in permutations(faces):
            mesh = Mesh(points, order)
            center = mesh.vertices[0]

            assert center.manifold
            assert not center.boundary
            assert center.degree == 6
            assert [len(loop) for loop in iterators.borders(mesh)] == [6]

            mesh.check()
            _assert_one_rings_close(mesh)

    def test_partial_fans_stay_consistent(self):
        """Test that fans are regrouped when a face closes one gap."""
        angles = np.arange(6) * np.pi / 3
        points = [(0, 0, 0)] + [(np.cos(a), np.sin(a), 0) for a in angles]

        mesh = Mesh(points, [[0, 1, 2], [0, 3, 4], [0, 5, 6]])
        mesh.add_face([0, 6, 1])

        center = mesh.vertices[0]
        assert not center.manifold
        assert center.degree == 6

        mesh.check()
        _assert_one_rings_close(mesh)

        mesh.add_face([0, 2, 3])
        mesh.add_face([0, 4, 5])

        assert center.manifold
        assert not center.boundary

    def test_error_hierarchy(self):
        """Test that kernel errors share a common base class."""
        for cls in (NonManifoldError, DegenerateError, PreconditionError):
            assert issubclass(cls, MeshError)

    def test_bounding_box(self, cube):
        """Test the axis-aligned bounding box."""
        lo, hi = cube.bounding_box()
        np.testing.assert_allclose(lo, [0, 0, 0])
        np.testing.assert_allclose(hi, [1, 1, 1])

        with pytest.raises(ValueError):
            Mesh().bounding_box()


class TestQueries:
    """Tests for boundary and adjacency queries."""

    def test_boundary_flags(self, hexagon):
        """Test boundary classification of the hexagon fan."""
        center = hexagon.vertices[0]

        assert not center.boundary
        assert center.degree == 6
        assert all(v.boundary for v in hexagon.vertices[1:])
        assert all(v.manifold for v in hexagon.vertices)

        border = [h for h in hexagon.halfedges.values() if h.boundary]
        assert len(border) == 6

    def test_closed_mesh_has_no_boundary(self, icosahedron):
        """Test that no halfedge of a closed mesh is a boundary."""
        assert not any(h.boundary for h in icosahedron.halfedges.values())
        assert all(v.degree == 5 for v in icosahedron.vertices)

    def test_halfedge_geometry(self, grid):
        """Test length, vector, and midpoint of a halfedge."""
        h = grid.halfedges[grid.vertices[0], grid.vertices[1]]

        assert h.length == pytest.approx(1.0)
        np.testing.assert_allclose(h.vector, [1, 0, 0])
        np.testing.assert_allclose(h.midpoint, [0.5, 0, 0])
        assert h.pair.origin is grid.vertices[1]


class TestEdits:
    """Tests for topological edit operations."""

    def test_split_edge(self, tetrahedron):
        """Test that an edge split adds one vertex and two faces."""
        h = next(iter(tetrahedron.halfedges.values()))
        v = tetrahedron.split_edge(h)

        assert tetrahedron.size == (5, 9, 6)
        assert v.degree == 4
        tetrahedron.check(contains_test=True)
        _assert_one_rings_close(tetrahedron)

    def test_split_boundary_edge(self, grid):
        """Test splitting a boundary edge."""
        h = grid.halfedges[grid.vertices[0], grid.vertices[1]]
        v = grid.split_edge(h)

        assert v.boundary
        assert grid.size == (26, 58, 33)
        grid.check()

    def test_flip_edge(self, grid):
        """Test that a flip connects the opposite vertices."""
        h = grid.halfedges[grid.vertices[6], grid.vertices[12]]
        assert h.flippable

        h = grid.flip_edge(h)

        assert {h.origin.index, h.target.index} == {7, 11}
        assert grid.size == (25, 56, 32)
        grid.check(contains_test=True)
        _assert_one_rings_close(grid)

    def test_flip_rejected(self, tetrahedron):
        """Test that tetrahedron edges cannot be flipped."""
        h = next(iter(tetrahedron.halfedges.values()))

        assert not h.flippable

        with pytest.raises(NonManifoldError):
            tetrahedron.flip_edge(h)

        tetrahedron.check()

    def test_collapse_edge(self, icosahedron):
        """Test that a collapse removes a vertex, three edges, two faces."""
        h = next(iter(icosahedron.halfedges.values()))
        origin = h.origin

        assert h.collapsible
        v = icosahedron.collapse_edge(h)

        assert v is origin
        assert icosahedron.size == (11, 27, 18)
        assert icosahedron.garbage

        icosahedron.clean()

        assert not icosahedron.garbage
        assert icosahedron.euler_characteristic == 2
        icosahedron.check(contains_test=True)
        _assert_one_rings_close(icosahedron)

    def test_collapse_rejected(self, tetrahedron):
        """Test that collapsing a tetrahedron edge fails atomically."""
        h = next(iter(tetrahedron.halfedges.values()))

        assert not h.collapsible

        with pytest.raises(NonManifoldError):
            tetrahedron.collapse_edge(h)

        assert tetrahedron.size == (4, 6, 4)
        tetrahedron.check()

    def test_collapse_boundary_halfedge(self, grid):
        """Test that boundary halfedges cannot be collapsed."""
        h = grid.halfedges[grid.vertices[1], grid.vertices[0]]

        assert h.boundary

        with pytest.raises(ValueError):
            grid.collapse_edge(h)

    def test_edit_sequence(self, make_grid):
        """Test invariants after a mixed sequence of edits."""
        mesh = make_grid(6)

        for k in range(3):
            h = mesh.halfedges[mesh.vertices[7 + k], mesh.vertices[14 + k]]
            mesh.split_edge(h)

        for h in iterators.halfs_frozen(mesh):
            if not h.deleted and h.flippable and not h.edge_boundary:
                mesh.flip_edge(h)
                break

        for h in iterators.halfs_frozen(mesh):
            if not h.deleted and h.collapsible:
                mesh.collapse_edge(h)
                break

        mesh.clean()
        mesh.check(contains_test=True)
        _assert_one_rings_close(mesh)
        assert mesh.euler_characteristic == 1

    def test_split_face(self, cube):
        """Test splitting a quad into a triangle fan."""
        v = cube.split_face(cube.faces[0])

        assert v.degree == 4
        assert cube.size == (9, 16, 9)
        cube.check()

    def test_insert_edge(self, cube):
        """Test inserting a face diagonal."""
        f = cube.faces[0]
        a, _, c, _ = list(f)

        h = cube.insert_edge(f, a, c)

        assert h.face is f
        assert cube.size == (8, 13, 7)
        assert len(f) == 3
        cube.check()

        with pytest.raises(NonManifoldError):
            cube.insert_edge(f, a, c)

    def test_delete_faces_and_clean(self, grid):
        """Test that deleting the corner faces removes the corner vertex."""
        data = grid.add_property('v', 'old', dtype=int, default=-1)

        for v in grid.vertices:
            data[v] = v.index

        grid.delete_face(grid.faces[0])
        grid.delete_face(grid.faces[1])

        assert grid.vertices[0].deleted
        assert grid.garbage

        grid.clean()

        assert grid.size == (24, 53, 30)
        assert [v.index for v in grid.vertices] == list(range(24))
        np.testing.assert_array_equal(data, np.arange(1, 25))
        grid.check()

    def test_delete_vertex(self, hexagon):
        """Test that deleting the center removes all faces."""
        hexagon.delete_vertex(hexagon.vertices[0])
        hexagon.clean()

        assert hexagon.size[2] == 0

    def test_reverse_orientation(self, icosahedron):
        """Test that reversing orientation flips all face normals."""
        before = [np.cross(*(np.array(f)[1:] - np.array(f)[0]))
                  for f in icosahedron.faces]

        icosahedron.reverse_orientation()
        icosahedron.check(contains_test=True)

        after = [np.cross(*(np.array(f)[1:] - np.array(f)[0]))
                 for f in icosahedron.faces]

        for n0, n1 in zip(before, after):
            assert n0.dot(n1) < 0.0


class TestProperties:
    """Tests for the data block store."""

    def test_vertex_property(self, tetrahedron):
        """Test creating and growing a vertex data block."""
        data = tetrahedron.add_property('v', 'weight', default=2.0)

        assert data.shape == (4, )
        assert np.all(data == 2.0)

        tetrahedron.split_edge(next(iter(tetrahedron.halfedges.values())))
        data = tetrahedron.property('v', 'weight')

        assert data.shape == (5, )
        assert data[4] == 2.0

    def test_vector_property(self, cube):
        """Test a face data block of vectors."""
        data = cube.add_property('f', 'normal', shape=(3, ))
        assert data.shape == (6, 3)
        assert cube.properties('f') == ['normal']

    def test_duplicate_property(self, cube):
        """Test that data block names are unique per kind."""
        cube.add_property('v', 'x')

        with pytest.raises(ValueError):
            cube.add_property('v', 'x')

        cube.add_property('f', 'x')

    def test_invalid_kind(self, cube):
        """Test that unknown kinds are rejected."""
        with pytest.raises(ValueError):
            cube.add_property('q', 'x')

    def test_dtype_mismatch(self, cube):
        """Test that typed lookups check the value type."""
        cube.add_property('v', 'label', dtype=int)

        assert cube.property('v', 'label', dtype=int).dtype == np.dtype(int)

        with pytest.raises(PreconditionError):
            cube.property('v', 'label', dtype=float)

    def test_missing_property(self, cube):
        """Test lookups and removal of missing data blocks."""
        assert not cube.has_property('v', 'missing')

        with pytest.raises(KeyError):
            cube.property('v', 'missing')

        cube.add_property('v', 'present')
        cube.remove_property('v', 'present')

        assert not cube.has_property('v', 'present')

    def test_edge_property_is_shared(self, cube):
        """Test that edge values are visible from both halfedges."""
        data = cube.add_property('e', 'crease', dtype=bool, default=False)
        h = next(iter(cube.halfedges.values()))

        data[h] = True

        assert data[h.pair]
        assert not data[h.next]

    def test_copy_is_independent(self, cube):
        """Test that copies do not share coordinates or data blocks."""
        data = cube.add_property('v', 'w')
        other = cube.copy()

        other.points[0] = (5, 5, 5)
        other.property('v', 'w')[0] = 1.0

        np.testing.assert_allclose(cube.points[0], [0, 0, 0])
        assert data[0] == 0.0
        assert other.size == cube.size
        other.check()
