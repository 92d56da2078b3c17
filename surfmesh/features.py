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

""" Feature edge detection.

Feature edges are marked with :attr:`~surfmesh.flags.HalfedgeFlag.CREASE`
on both halfedges, their endpoints with
:attr:`~surfmesh.flags.VertexFlag.FEATURE`. Remeshing and simplification
keep feature edges in place.
"""

import math

import surfmesh.traits as traits

from surfmesh.config import FeatureConfig
from surfmesh.flags import HalfedgeFlag, VertexFlag


def _mark(h):
    h.flags = h._flags | HalfedgeFlag.CREASE
    h._origin._flags |= VertexFlag.FEATURE
    h._target._flags |= VertexFlag.FEATURE


def clear(mesh):
    """ Remove all feature marks.
    """
    for v in mesh._viter():
        v._flags &= ~VertexFlag.FEATURE

    for h in mesh._hiter():
        h._flags &= ~HalfedgeFlag.CREASE


def detect_boundary(mesh):
    """ Mark boundary edges as features.

    Returns
    -------
    int
        Number of marked edges.
    """
    count = 0

    for h in mesh._eiter():
        if h.edge_boundary:
            _mark(h)
            count += 1

    return count


def detect_angle(mesh, angle=60.0):
    """ Mark sharp edges as features.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    angle : float, optional
        Edges whose dihedral angle (in degrees) exceeds this value are
        marked. Both convex and concave edges are considered.

    Returns
    -------
    int
        Number of marked edges.
    """
    threshold = math.radians(angle)
    count = 0

    for h in mesh._eiter():
        if h.edge_boundary:
            continue

        if abs(traits.dihedral_angle(h)) > threshold:
            _mark(h)
            count += 1

    return count


def detect(mesh, config=None):
    """ Clear and redetect features.

    Returns
    -------
    int
        Number of marked edges.
    """
    config = FeatureConfig() if config is None else config

    clear(mesh)
    count = detect_angle(mesh, config.angle)

    if config.boundary:
        count += detect_boundary(mesh)

    return count


def is_feature(h):
    """ Feature edge test.
    """
    return HalfedgeFlag.CREASE in h._flags
