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

""" Polygonization.

Turns a triangulated surface back into a polygon mesh. Adjacent faces
whose normals differ by less than a threshold are merged into larger
polygons by removing their common edge. Vertices left on straight sides
of the resulting polygons are removed afterwards.
"""

import math

import surfmesh.iterators as iterators
import surfmesh.linalg as linalg
import surfmesh.traits as traits

from surfmesh.config import PolygonizationConfig


def _mergeable(h, normals, cos_max):
    f, g = h._face, h._pair._face

    if f is None or g is None or f is g:
        return False

    if normals[f].dot(normals[g]) < cos_max:
        return False

    # The merged polygon has to be simple. Faces sharing more than the
    # edge itself would produce a polygon visiting a vertex twice.
    return set(f._viter()) & set(g._viter()) == {h._origin, h._target}


def _straight(v, tol):
    a, b = (w.point for w in v._viter())
    return linalg.angle(a - v.point, b - v.point) >= math.pi - tol


def polygonize(mesh, config=None):
    """ Merge coplanar faces.

    Parameters
    ----------
    mesh : Mesh
        Mesh to be modified in place.
    config : PolygonizationConfig, optional
        Angle threshold in degrees. Also used as the tolerance for
        straight polygon sides.

    Returns
    -------
    merged : int
        Number of removed edges.
    removed : int
        Number of removed vertices.
    """
    config = PolygonizationConfig() if config is None else config
    tol = math.radians(config.angle_threshold)
    cos_max = math.cos(tol)

    # Normals of the input faces. Merged faces keep the normal of the
    # surviving face, all faces of a region are compared to it.
    normals = {f: traits.face_normal(f) for f in mesh._fiter()}

    merged = 0

    for h in iterators.edges_frozen(mesh):
        if h._deleted or not _mergeable(h, normals, cos_max):
            continue

        mesh.delete_edge(h)
        merged += 1

    removed = 0

    for v in iterators.verts_frozen(mesh):
        if v._deleted or v.degree != 2 or not _straight(v, tol):
            continue

        for u in iterators.verts_frozen(v):
            h = mesh._halfs[u, v]

            if h._face is not None and h.collapsible:
                mesh.collapse_edge(h, check=False)
                removed += 1
                break

    mesh.clean()

    return merged, removed
