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

""" Polygon triangulation.

Every face with more than three vertices is split into triangles by
inserting diagonals. The diagonals are chosen per face by dynamic
programming over the sub-polygons :math:`(p_i, \\ldots, p_k)`:

* :attr:`~surfmesh.config.Objective.MIN_AREA` minimizes the sum of
  squared triangle areas. Non-planar polygons get flat triangulations,
  planar polygons get triangles of balanced size.
* :attr:`~surfmesh.config.Objective.MAX_ANGLE` maximizes the smallest
  interior angle.

Diagonals connecting vertices that are already adjacent in the mesh are
never inserted.
"""

import math

import surfmesh.linalg as linalg

from surfmesh.config import Objective


def _min_angle(a, b, c):
    return min(linalg.angle(b - a, c - a),
               linalg.angle(a - b, c - b),
               linalg.angle(a - c, b - c))


def _optimal_splits(mesh, verts, objective):
    """ Optimal middle vertex of each sub-polygon, None if impossible.
    """
    n = len(verts)
    points = [v.point for v in verts]

    if objective is Objective.MIN_AREA:
        def cost(i, m, k):
            return linalg.triangle_area(points[i], points[m], points[k])**2

        def combine(*values):
            return sum(values)

        base = 0.0
    else:
        def cost(i, m, k):
            return -_min_angle(points[i], points[m], points[k])

        combine = max
        base = -math.inf

    weight = {(i, i + 1): base for i in range(n - 1)}
    split = dict()

    for length in range(2, n):
        for i in range(n - length):
            k = i + length

            best = math.inf
            split[i, k] = None

            if length < n - 1 and (verts[i], verts[k]) in mesh._halfs:
                weight[i, k] = best
                continue

            for m in range(i + 1, k):
                w = combine(weight[i, m], weight[m, k], cost(i, m, k))

                if w < best:
                    best = w
                    split[i, k] = m

            weight[i, k] = best

    return split


def triangulate_face(mesh, face, objective=Objective.MIN_AREA):
    """ Triangulate a single face.

    Parameters
    ----------
    mesh : Mesh
        Parent mesh of `face`.
    face : Face
        Face to triangulate in place.
    objective : Objective, optional
        Optimization objective.

    Returns
    -------
    bool
        :obj:`False` if no valid triangulation exists. The face is left
        unchanged in this case.
    """
    objective = Objective(objective)
    verts = list(face._viter())

    if len(verts) <= 3:
        return True

    split = _optimal_splits(mesh, verts, objective)

    if split[0, len(verts) - 1] is None:
        return False

    def recurse(f, i, k):
        if k - i < 2:
            return

        m = split[i, k]
        rest = f

        if m > i + 1:
            # f keeps (i, ..., m), the new face holds (i, m, ..., k).
            rest = mesh.insert_edge(f, verts[m], verts[i])._pair._face
            recurse(f, i, m)

        if m < k - 1:
            mesh.insert_edge(rest, verts[k], verts[m])
            recurse(rest, m, k)

    recurse(face, 0, len(verts) - 1)

    return True


def triangulate(mesh, objective=Objective.MIN_AREA):
    """ Triangulate all faces of a mesh.

    Parameters
    ----------
    mesh : Mesh
        Polygon mesh, modified in place.
    objective : Objective, optional
        Optimization objective.

    Returns
    -------
    triangulated : int
        Number of polygons split into triangles.
    skipped : int
        Number of polygons without valid triangulation.
    """
    triangulated = skipped = 0

    for f in list(mesh._fiter()):
        if len(f) == 3:
            continue

        if triangulate_face(mesh, f, objective):
            triangulated += 1
        else:
            skipped += 1

    return triangulated, skipped
