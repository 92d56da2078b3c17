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

""" Subdivision surfaces.

Three refinement schemes are provided:

* :func:`loop` for triangle meshes. Every triangle is split into four,
  the vertex count grows by the number of edges.
* :func:`catmull_clark` for general polygon meshes. Every face with
  :math:`k` vertices is split into :math:`k` quadrilaterals.
* :func:`sqrt3` for triangle meshes. One vertex is inserted per face and
  the original edges are flipped, the face count triples.

Boundary edges and crease edges (see :mod:`~surfmesh.features`) follow
the cubic B-spline curve rules. Vertices flagged
:attr:`~surfmesh.flags.VertexFlag.FIXED` or
:attr:`~surfmesh.flags.VertexFlag.CORNER`, vertices incident with more
than two creases, and non-manifold vertices keep their position.

Vertex data blocks do not survive :func:`loop` and
:func:`catmull_clark`, the mesh is rebuilt from scratch. Flags of
original vertices and edges are carried over.
"""

import math
import numpy as np

from surfmesh.flags import HalfedgeFlag, VertexFlag
from surfmesh.hds import Mesh, PreconditionError


def _sharp(h):
    return h.edge_boundary or HalfedgeFlag.CREASE in h._flags


def _vertex_rule(v):
    """ Classify an original vertex.

    Returns
    -------
    str
        One of 'smooth', 'crease', or 'corner'.
    list
        Endpoints of the two sharp edges for crease vertices.
    """
    if (v.isolated or not v.manifold or
            v._flags & (VertexFlag.FIXED | VertexFlag.CORNER)):
        return 'corner', None

    sharp = [h._target for h in v._hiter() if _sharp(h)]

    if not sharp:
        return 'smooth', None

    if len(sharp) == 2:
        return 'crease', sharp

    return 'corner', None


def _crease_point(v, ends):
    return 0.75 * v.point + 0.125 * (ends[0].point + ends[1].point)


def _edge_indices(mesh, offset):
    """ Number the edges of a mesh consecutively starting at `offset`.
    """
    index = dict()

    for k, h in enumerate(mesh._eiter()):
        index[h] = index[h._pair] = offset + k

    return index


def _rebuild(mesh, points, faces, edge_flags):
    """ Replace connectivity and coordinates of `mesh`.

    Original vertices keep their index and flags. `edge_flags` is a list
    of ``(a, b, flags)`` triples given by vertex indices.
    """
    vflags = [v._flags for v in mesh._verts]
    name = mesh._name

    mesh.clone(Mesh(points, faces))
    mesh._name = name

    for v, flags in zip(mesh._verts, vflags):
        v._flags = flags

    for a, b, flags in edge_flags:
        mesh._halfs[mesh._verts[a], mesh._verts[b]].flags = flags


def _prepare(mesh, triangles_only, name):
    if triangles_only and not mesh.is_triangle_mesh():
        raise PreconditionError(f'{name} subdivision requires a ' +
                                'triangle mesh')

    if mesh.garbage:
        mesh.clean()


def loop(mesh):
    """ Loop subdivision.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh, refined in place.

    Raises
    ------
    PreconditionError
        If `mesh` contains non-triangular faces. The mesh is left
        unchanged.
    """
    _prepare(mesh, True, 'Loop')

    if not mesh._faces:
        return

    n_verts = len(mesh._verts)
    edges = _edge_indices(mesh, n_verts)
    n_edges = len(edges) // 2

    points = np.empty((n_verts + n_edges, 3), dtype=float)

    # Updated positions of the original vertices.
    for v in mesh._verts:
        rule, ends = _vertex_rule(v)

        if rule == 'smooth':
            n = v.degree
            beta = (0.625 - (0.375 + 0.25 * math.cos(2.0 * math.pi / n))**2) / n
            points[v] = ((1.0 - n * beta) * v.point +
                         beta * sum(w.point for w in v._viter()))
        elif rule == 'crease':
            points[v] = _crease_point(v, ends)
        else:
            points[v] = v.point

    edge_flags = []

    for h in mesh._eiter():
        a, b = h._origin, h._target

        if _sharp(h):
            points[edges[h]] = 0.5 * (a.point + b.point)
        else:
            c = h._next._target
            d = h._pair._next._target
            points[edges[h]] = (0.375 * (a.point + b.point) +
                                0.125 * (c.point + d.point))

        if h._flags:
            edge_flags.append((a._idx, edges[h], h._flags))
            edge_flags.append((edges[h], b._idx, h._flags))

    faces = []

    for f in mesh._faces:
        h0 = f._halfedge
        h1 = h0._next
        h2 = h1._next

        a, b, c = h0._origin._idx, h1._origin._idx, h2._origin._idx
        ab, bc, ca = edges[h0], edges[h1], edges[h2]

        faces.extend([[a, ab, ca], [b, bc, ab], [c, ca, bc], [ab, bc, ca]])

    _rebuild(mesh, points, faces, edge_flags)


def catmull_clark(mesh):
    """ Catmull-Clark subdivision.

    Parameters
    ----------
    mesh : Mesh
        Polygon mesh, refined in place. The result is a pure
        quadrilateral mesh.
    """
    _prepare(mesh, False, 'Catmull-Clark')

    if not mesh._faces:
        return

    n_verts = len(mesh._verts)
    n_faces = len(mesh._faces)

    edges = _edge_indices(mesh, n_verts + n_faces)
    n_edges = len(edges) // 2

    points = np.empty((n_verts + n_faces + n_edges, 3), dtype=float)

    for f in mesh._faces:
        points[n_verts + f._idx] = f.barycenter

    def face_point(f):
        return points[n_verts + f._idx]

    edge_flags = []

    for h in mesh._eiter():
        a, b = h._origin, h._target

        if _sharp(h):
            points[edges[h]] = 0.5 * (a.point + b.point)
        else:
            points[edges[h]] = 0.25 * (a.point + b.point +
                                       face_point(h._face) +
                                       face_point(h._pair._face))

        if h._flags:
            edge_flags.append((a._idx, edges[h], h._flags))
            edge_flags.append((edges[h], b._idx, h._flags))

    for v in mesh._verts:
        rule, ends = _vertex_rule(v)

        if rule == 'smooth':
            n = v.degree
            fp = sum(face_point(f) for f in v._fiter()) / n
            mp = sum(0.5 * (v.point + w.point) for w in v._viter()) / n

            points[v] = (fp + 2.0 * mp + (n - 3.0) * v.point) / n
        elif rule == 'crease':
            points[v] = _crease_point(v, ends)
        else:
            points[v] = v.point

    faces = []

    for f in mesh._faces:
        c = n_verts + f._idx

        for h in f._hiter():
            faces.append([h._origin._idx, edges[h], c, edges[h._prev]])

    _rebuild(mesh, points, faces, edge_flags)


def sqrt3(mesh):
    """ :math:`\\sqrt{3}` subdivision (Kobbelt).

    Every triangle is split at its centroid, then all original interior
    edges are flipped. Original vertices are relaxed with the weight

    .. math::

        \\alpha_n = \\frac{4 - 2 \\cos(2 \\pi / n)}{9}.

    Applied twice, the scheme is a triadic refinement of each triangle.
    Boundary edges are not flipped and boundary vertices keep their
    position.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh, refined in place. Data blocks are kept, values of
        new items are initialized with the default values.

    Raises
    ------
    PreconditionError
        If `mesh` contains non-triangular faces. The mesh is left
        unchanged.
    """
    _prepare(mesh, True, 'sqrt3')

    relaxed = []

    for v in mesh._viter():
        rule, _ = _vertex_rule(v)

        if rule == 'smooth':
            n = v.degree
            alpha = (4.0 - 2.0 * math.cos(2.0 * math.pi / n)) / 9.0
            avg = sum(w.point for w in v._viter()) / n

            relaxed.append((v, (1.0 - alpha) * v.point + alpha * avg))

    interior = [h for h in mesh._eiter() if not _sharp(h)]

    for f in list(mesh._fiter()):
        mesh.split_face(f)

    for h in interior:
        mesh.flip_edge(h)

    for v, point in relaxed:
        v.point = point
