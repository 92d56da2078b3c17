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

""" Hole filling.

Boundary loops are closed by the minimal weight triangulation of Liepa
(*Filling Holes in Meshes*, 2003). The weight of a triangulation is the
pair (maximal dihedral angle, total area), compared lexicographically,
which avoids folds and favors small patches. The patch is optionally
refined to match the density of the surrounding mesh and faired.

Faces created by hole filling are flagged
:attr:`~surfmesh.flags.FaceFlag.FILLED`.
"""

import math

from time import time

import surfmesh.fairing as fairing
import surfmesh.iterators as iterators
import surfmesh.linalg as linalg
import surfmesh.traits as traits

from surfmesh.config import FairingConfig, HoleFillingConfig
from surfmesh.flags import FaceFlag
from surfmesh.hds import DegenerateError, MeshError
from surfmesh.hds import NonManifoldError, PreconditionError


def _dihedral(n0, n1):
    """ Angle between two triangle normals.
    """
    return linalg.angle(n0, n1) if n0.any() and n1.any() else math.pi


def _triangulate(loop):
    """ Minimal weight triangulation of a boundary loop.

    Parameters
    ----------
    loop : list[Halfedge]
        Boundary halfedges of the hole in traversal order.

    Returns
    -------
    list[tuple[int, int, int]]
        Triangles as triples of loop indices, in an order that lets each
        triangle be attached to the mesh.
    """
    n = len(loop)
    verts = [h._origin for h in loop]
    points = [v.point for v in verts]

    # Existing edges between non-consecutive loop vertices cannot be
    # used as diagonals.
    mesh = verts[0]._mesh
    forbidden = {(i, k) for i in range(n) for k in range(i + 2, n)
                 if (verts[i], verts[k]) in mesh._halfs and
                 not (i == 0 and k == n - 1)}

    # Normals of the faces adjacent to the boundary edges.
    outer = [traits.face_normal(h._pair._face) for h in loop]

    def normal(i, m, k):
        return linalg.triangle_normal(points[i], points[m], points[k])

    inf = (math.inf, math.inf)
    weight = dict()
    split = dict()

    for i in range(n - 1):
        weight[i, i + 1] = (0.0, 0.0)

    def neighbor(i, k):
        """ Normal of the triangle on the far side of diagonal (i, k).
        """
        if k == i + 1:
            return outer[i]

        m = split[i, k]
        return normal(i, m, k)

    for length in range(2, n):
        for i in range(n - length):
            k = i + length

            best = inf
            best_m = None

            candidates = () if (i, k) in forbidden else range(i + 1, k)

            for m in candidates:
                w_left = weight[i, m]
                w_right = weight[m, k]

                if w_left == inf or w_right == inf:
                    continue

                nt = normal(i, m, k)
                angle = max(w_left[0], w_right[0],
                            _dihedral(nt, neighbor(i, m)),
                            _dihedral(nt, neighbor(m, k)))

                if i == 0 and k == n - 1:
                    angle = max(angle, _dihedral(nt, outer[n - 1]))

                area = (w_left[1] + w_right[1] +
                        linalg.triangle_area(points[i], points[m], points[k]))

                if (angle, area) < best:
                    best = (angle, area)
                    best_m = m

            weight[i, k] = best
            split[i, k] = best_m

    if weight[0, n - 1] == inf:
        raise DegenerateError('hole cannot be triangulated')

    triangles = []
    stack = [(0, n - 1, False)]

    # Children first, each triangle then shares two border edges with
    # the partially filled hole.
    while stack:
        i, k, expanded = stack.pop()

        if k - i < 2:
            continue

        m = split[i, k]

        if expanded:
            triangles.append((i, m, k))
        else:
            stack.append((i, k, True))
            stack.append((m, k, False))
            stack.append((i, m, False))

    return triangles


def _refine(mesh, patch, target):
    """ Split, flip, and relax the interior of a patch.

    Parameters
    ----------
    patch : set[Face]
        Faces of the patch, updated in place.
    target : float
        Desired edge length.

    Returns
    -------
    list[Vertex]
        Vertices inserted into the patch.
    """
    inserted = []

    def interior(h):
        return h._face in patch and h._pair._face in patch

    for _ in range(10):
        split = 0

        for h in [h for h in mesh._eiter() if interior(h)]:
            if h.length > 4.0 / 3.0 * target:
                v = mesh.split_edge(h)
                patch.update(v._fiter())
                inserted.append(v)
                split += 1

        for h in [h for h in mesh._eiter() if interior(h)]:
            if not h.flippable:
                continue

            # Flip if the sum of opposite angles exceeds pi, i.e. the
            # edge is not locally Delaunay.
            a, b = h._origin.point, h._target.point
            c, d = h._next._target.point, h._pair._next._target.point

            alpha = linalg.angle(a - c, b - c)
            beta = linalg.angle(a - d, b - d)

            if alpha + beta > math.pi + 1e-9:
                mesh.flip_edge(h, check=False)

        for v in inserted:
            v.point = sum(w.point for w in v._viter()) / v.degree

        if not split:
            break

    return inserted


def fill_hole(mesh, halfedge, config=None):
    """ Close a hole.

    Parameters
    ----------
    mesh : Mesh
        Mesh to be modified in place.
    halfedge : Halfedge
        Boundary halfedge of the hole.
    config : HoleFillingConfig, optional
        Size limit and post-processing options.

    Raises
    ------
    ValueError
        If `halfedge` is not a boundary halfedge.
    PreconditionError
        If the hole has more boundary halfedges than allowed.
    NonManifoldError
        If the hole touches a non-manifold vertex. The mesh is left
        unchanged.
    DegenerateError
        If no valid triangulation exists. The mesh is left unchanged.

    Returns
    -------
    list[Face]
        Faces of the patch.
    """
    config = HoleFillingConfig() if config is None else config

    if halfedge._deleted or halfedge._face is not None:
        raise ValueError('expected a boundary halfedge')

    loop = [halfedge]

    while loop[-1]._next is not halfedge:
        loop.append(loop[-1]._next)

    if len(loop) > config.max_hole_size:
        raise PreconditionError(f'hole with {len(loop)} edges exceeds ' +
                                f'limit {config.max_hole_size}')

    verts = [h._origin for h in loop]

    if len(set(verts)) != len(verts) or not all(v.manifold for v in verts):
        raise NonManifoldError('hole touches non-manifold vertex')

    target = sum(h.length for h in loop) / len(loop)
    triangles = _triangulate(loop)

    patch = set()

    for i, m, k in triangles:
        f = mesh.add_face(verts[i], verts[m], verts[k])
        f._flags |= FaceFlag.FILLED
        patch.add(f)

    if config.refine:
        inserted = _refine(mesh, patch, target)

        if config.fair and inserted:
            try:
                fairing.fair(mesh, FairingConfig(order=2), vertices=inserted)
            except DegenerateError:
                # The patch is already part of the mesh, it stays unfaired.
                pass

    return [f for f in mesh._fiter() if f in patch]


def fill_holes(mesh, config=None, quiet=True):
    """ Close all holes of a mesh.

    Holes exceeding the size limit and holes that cannot be filled are
    skipped.

    Parameters
    ----------
    mesh : Mesh
        Mesh to be modified in place.
    config : HoleFillingConfig, optional
        Size limit and post-processing options.
    quiet : bool, optional
        Suppress console output.

    Returns
    -------
    closed : int
        Number of filled holes.
    skipped : int
        Number of holes left open.
    """
    config = HoleFillingConfig() if config is None else config
    start = time()

    closed = skipped = 0

    for loop in list(iterators.borders(mesh)):
        try:
            fill_hole(mesh, loop[0], config)
        except MeshError:
            skipped += 1
        else:
            closed += 1

    if not quiet:
        CBOLD = '\33[1m'
        CEND = '\33[0m'

        print(f'filled {closed} holes of {CBOLD}{mesh.name}{CEND} ' +
              f'({time()-start:.3f} sec), skipped {skipped}')

    return closed, skipped
