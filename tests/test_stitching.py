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

"""Tests for border stitching."""

import numpy as np
import pytest

import surfmesh.stitching as stitching
import surfmesh.topology as topology
import surfmesh.traits as traits

from surfmesh.config import StitchingConfig
from surfmesh.flags import FaceFlag, HalfedgeFlag
from surfmesh.hds import Mesh


def _squares(reverse=False, gap=0.0):
    """Two unit squares with duplicated vertices along x = 1."""
    points = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0),
              (1 + gap, 0, 0), (2, 0, 0), (2, 1, 0), (1 + gap, 1, 0)]
    right = [[4, 6, 5], [4, 7, 6]] if reverse else [[4, 5, 6], [4, 6, 7]]

    return Mesh(points, [[0, 1, 2], [0, 2, 3]] + right)


class TestStitchBorders:
    """Tests for merging coincident borders."""

    def test_coincident_edge(self):
        mesh = _squares()
        stitched, skipped = stitching.stitch_borders(mesh)

        mesh.check()
        assert (stitched, skipped) == (1, 0)
        assert mesh.size == (6, 9, 4)
        assert topology.is_disc(mesh)

        seams = [h for h in mesh.halfedges.values()
                 if HalfedgeFlag.SEAM in h.flags]
        assert len(seams) == 2
        assert {tuple(h.origin.point) for h in seams} == \
               {(1.0, 0.0, 0.0), (1.0, 1.0, 0.0)}

    def test_reversed_component(self):
        """Test that an inconsistently oriented piece is reversed."""
        mesh = _squares(reverse=True)
        stitched, skipped = stitching.stitch_borders(mesh)

        mesh.check()
        assert (stitched, skipped) == (1, 0)
        assert topology.is_disc(mesh)

        normals = traits.face_normals(mesh)
        np.testing.assert_allclose(normals, np.tile(normals[0], (4, 1)))

    def test_without_reorientation(self):
        """Test that faces which do not fit keep their vertices."""
        mesh = _squares(reverse=True)
        config = StitchingConfig(merge_reversible=False)

        stitched, skipped = stitching.stitch_borders(mesh, config)

        assert stitched == 0
        assert skipped > 0

    def test_tolerance(self):
        mesh = _squares(gap=0.01)

        assert stitching.stitch_borders(mesh) == (0, 0)
        assert mesh.size == (8, 10, 4)

        assert stitching.stitch_borders(
            mesh, StitchingConfig(tolerance=0.02)) == (1, 0)
        assert mesh.size == (6, 9, 4)

    def test_keeps_face_data(self, capsys):
        mesh = _squares()
        part = mesh.add_property('f', 'part', dtype=int)
        part[...] = [0, 0, 1, 1]
        mesh.faces[3].flags = FaceFlag.SELECTED

        stitching.stitch_borders(mesh, quiet=False)

        assert list(mesh.property('f', 'part', dtype=int)) == [0, 0, 1, 1]
        assert FaceFlag.SELECTED in mesh.faces[3].flags
        assert 'stitched 1 edges' in capsys.readouterr().out

    def test_closed_cube(self, cube):
        assert stitching.stitch_borders(cube) == (0, 0)
        assert cube.size == (8, 12, 6)


class TestMergeReversible:
    """Tests for reorientation of components."""

    def test_consistent(self):
        assert stitching.merge_reversible_connected_components(
            _squares()) == 0

    def test_reversed(self):
        mesh = _squares(reverse=True)
        assert stitching.merge_reversible_connected_components(mesh) == 1

        normals = traits.face_normals(mesh)
        assert normals[:, 2] == pytest.approx([1.0] * 4)

    def test_separate_pieces(self, two_squares):
        """Test that pieces without a common border are left alone."""
        assert stitching.merge_reversible_connected_components(
            two_squares) == 0
