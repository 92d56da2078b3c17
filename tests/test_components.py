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

"""Tests for components, topology, and face labelling."""

import pytest

import surfmesh.enumerator as enumerator
import surfmesh.topology as topology

from surfmesh.components import extract_components
from surfmesh.topology import TopologyType


class TestComponents:
    """Tests for connected component extraction."""

    def test_single_component(self, icosahedron):
        components = extract_components(icosahedron)

        assert len(components) == 1

        c = components[0]
        assert (c.n_vertices, c.n_edges, c.n_faces) == (12, 30, 20)
        assert c.euler_characteristic == 2
        assert c.n_borders == 0
        assert c.largest_border_size == 0

    def test_two_squares(self, two_squares):
        """Test that components partition the faces."""
        components = extract_components(two_squares)

        assert [c.n_faces for c in components] == [2, 2]
        assert all(f in components[0] for f in two_squares.faces[:2])
        assert all(f in components[1] for f in two_squares.faces[2:])

        for c in components:
            assert c.area == pytest.approx(1.0)
            assert c.border_length == pytest.approx(4.0)
            assert c.largest_border_size == 4

    def test_borders(self, cylinder):
        c, = extract_components(cylinder)
        assert sorted(len(loop) for loop in c.borders) == [8, 8]


class TestTopology:
    """Tests for topological classification."""

    @pytest.mark.parametrize('name, kind', [
        ('icosahedron', TopologyType.SPHERE),
        ('cube', TopologyType.SPHERE),
        ('torus', TopologyType.TORUS),
        ('cylinder', TopologyType.CYLINDER),
        ('hexagon', TopologyType.DISC),
        ('grid', TopologyType.DISC),
    ])
    def test_classify(self, name, kind, request):
        mesh = request.getfixturevalue(name)
        assert topology.classify(mesh) is kind

    def test_predicates(self, icosahedron, torus, grid, cylinder):
        assert topology.is_sphere(icosahedron)
        assert topology.is_closed(torus)
        assert topology.is_torus(torus)
        assert topology.is_disc(grid)
        assert not topology.is_closed(grid)
        assert topology.is_cylinder(cylinder)

        assert topology.number_of_borders(cylinder) == 2
        assert topology.largest_border_size(grid) == 16

    def test_genus(self, icosahedron, torus, grid):
        assert topology.genus(icosahedron) == 0
        assert topology.genus(torus) == 1

        with pytest.raises(ValueError):
            topology.genus(grid)

    def test_unknown_open(self, make_grid):
        """Test discs with interior holes."""
        mesh = make_grid(7)
        faces = list(mesh.faces)

        mesh.delete_face(faces[14])
        mesh.delete_face(faces[15])

        assert topology.number_of_borders(mesh) == 2
        assert topology.classify(mesh) is TopologyType.CYLINDER

        mesh.delete_face(faces[42])
        mesh.delete_face(faces[43])

        assert topology.number_of_borders(mesh) == 3
        assert topology.classify(mesh) is TopologyType.UNKNOWN_OPEN

    def test_disconnected_mesh(self, two_squares):
        """Test that meshes need to be connected, components not."""
        with pytest.raises(ValueError):
            topology.classify(two_squares)

        report = topology.report(two_squares)
        assert [kind for _, kind in report] == [TopologyType.DISC] * 2


class TestEnumerator:
    """Tests for face labelling."""

    def test_connected_components(self, two_squares):
        assert enumerator.enumerate_connected_components(two_squares) == 2

        labels = two_squares.property('f', 'component', dtype=int)
        assert list(labels) == [0, 0, 1, 1]

    def test_planar_components(self, cube, octahedron, grid):
        assert enumerator.enumerate_planar_components(cube) == 6
        assert enumerator.enumerate_planar_components(octahedron) == 8
        assert enumerator.enumerate_planar_components(grid) == 1

    def test_relabel(self, grid):
        """Test that relabelling overwrites a previous result."""
        enumerator.enumerate_planar_components(grid, name='part', angle=0.1)

        grid.points[12, 2] = 1.0
        count = enumerator.enumerate_planar_components(grid, name='part',
                                                       angle=0.1)

        labels = grid.property('f', 'part', dtype=int)
        assert count > 1
        assert labels.min() == 0
        assert labels.max() == count - 1
