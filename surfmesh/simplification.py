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

""" Mesh decimation.

Greedy edge collapse decimation driven by the quadric error metric of
Garland and Heckbert. Each vertex accumulates the squared distances to
the supporting planes of its incident triangles. Boundary edges add a
plane perpendicular to the incident triangle to keep borders in place.

Vertices are queued by the cost of their cheapest legal collapse. A
vertex :math:`v` collapses into a neighbor :math:`w`, i.e. :math:`v`
is removed and :math:`w` keeps its position. Collapses are rejected if
they

* change the topology of the mesh,
* remove a vertex flagged :attr:`~surfmesh.flags.VertexFlag.FIXED`,
* move a feature vertex off its crease or a boundary vertex off the
  boundary,
* fold over or turn a triangle by more than the normal deviation limit,
* create triangles exceeding the aspect ratio limit,
* create edges longer than the edge length limit,
* create vertices of valence larger than the valence limit,
* move the surface farther than the Hausdorff error from the original
  vertex positions.

All limits are disabled by a value of zero, see
:class:`~surfmesh.config.SimplificationConfig`.
"""

import math
import numpy as np

from time import time

import surfmesh.linalg as linalg
import surfmesh.traits as traits

from surfmesh.flags import HalfedgeFlag, VertexFlag
from surfmesh.heap import MinHeap
from surfmesh.hds import PreconditionError


def plane_quadric(normal, point):
    """ Fundamental error quadric of a plane.

    Parameters
    ----------
    normal : ~numpy.ndarray, shape (3, )
        Unit normal of the plane.
    point : ~numpy.ndarray, shape (3, )
        Point on the plane.

    Returns
    -------
    ~numpy.ndarray, shape (4, 4)
        Symmetric matrix :math:`Q` such that :math:`\\bar{x}^T Q \\bar{x}`
        is the squared distance of :math:`x` to the plane, where
        :math:`\\bar{x}` are homogeneous coordinates.
    """
    p = np.append(normal, -normal.dot(point))
    return np.outer(p, p)


def quadric_error(quadric, point):
    """ Evaluate an error quadric at a point.
    """
    x = np.append(point, 1.0)
    return max(float(x @ quadric @ x), 0.0)


def _closest_distance(point, triangles):
    return min(linalg.norm(linalg.closest_point_triangle(point, *t)[0] - point)
               for t in triangles)


class _Decimator:

    def __init__(self, mesh, config):
        self.mesh = mesh
        self.config = config

        self.heap = MinHeap()
        self.target = dict()
        self.quadrics = {v: np.zeros((4, 4)) for v in mesh._viter()}

        for f in mesh._fiter():
            n = traits.face_normal(f)
            q = plane_quadric(n, f._halfedge._origin.point)

            for v in f._viter():
                self.quadrics[v] += q

        for h in mesh._hiter():
            if h._face is not None:
                continue

            # Boundary constraint plane, contains the boundary edge and
            # is perpendicular to the adjacent triangle.
            n = linalg.unit(np.cross(h.vector, traits.face_normal(h._pair._face)))
            q = plane_quadric(n, h._origin.point)

            self.quadrics[h._origin] += q
            self.quadrics[h._target] += q

        # Original vertex positions, distributed over incident faces.
        self.samples = None

        if config.hausdorff_error > 0.0:
            self.samples = {f: [] for f in mesh._fiter()}

            for v in mesh._viter():
                for f in v._fiter():
                    self.samples[f].append(v.point.copy())
                    break

    def cost(self, v, w):
        return quadric_error(self.quadrics[v] + self.quadrics[w], w.point)

    def _collapse_halfedge(self, v, w):
        """ Halfedge that realizes the collapse of `v` into `w`.
        """
        h = self.mesh._halfs[w, v]
        return h if h._face is not None else h._pair

    def legal(self, v, w):
        config = self.config

        if VertexFlag.FIXED in v._flags:
            return False

        h = self.mesh._halfs[v, w]

        if VertexFlag.FEATURE in v._flags:
            if HalfedgeFlag.CREASE not in h._flags:
                return False

            creases = sum(1 for x in v._hiter()
                          if HalfedgeFlag.CREASE in x._flags)

            if creases != 2:
                return False

        if v.boundary and not h.edge_boundary:
            return False

        if not self._collapse_halfedge(v, w).collapsible:
            return False

        p = w.point
        neighbors = [x for x in v._viter() if x is not w]

        if config.edge_length > 0.0:
            for x in neighbors:
                if linalg.norm(x.point - p) > config.edge_length:
                    return False

        if config.max_valence > 0:
            ring = set(neighbors) | {x for x in w._viter() if x is not v}

            if len(ring) > config.max_valence:
                return False

        cos_max = math.cos(math.radians(config.normal_deviation))
        triangles = []

        for f in v._fiter():
            if w in f:
                continue

            before = [x.point for x in f._viter()]
            after = [p if x is v else x.point for x in f._viter()]

            n0 = linalg.triangle_normal(*before)
            n1 = linalg.triangle_normal(*after)

            if n0.dot(n1) <= 0.0:
                return False

            if config.normal_deviation > 0.0 and n0.dot(n1) < cos_max:
                return False

            if config.aspect_ratio > 0.0:
                ratio = linalg.aspect_ratio(*after)

                if (ratio > config.aspect_ratio and
                        ratio > linalg.aspect_ratio(*before)):
                    return False

            triangles.append(after)

        if self.samples is not None:
            for f in w._fiter():
                if v not in f:
                    triangles.append([x.point for x in f._viter()])

            if not triangles:
                return False

            for f in v._fiter():
                for q in self.samples[f]:
                    if _closest_distance(q, triangles) > config.hausdorff_error:
                        return False

        return True

    def update(self, v):
        """ Find the cheapest legal collapse of `v` and (re)queue it.
        """
        best = None

        if not v.isolated:
            for w in v._viter():
                if self.legal(v, w):
                    c = self.cost(v, w)

                    if best is None or c < best[0]:
                        best = (c, w)

        if best is None:
            self.target.pop(v, None)

            if v in self.heap:
                self.heap.remove(v)
        else:
            self.target[v] = best[1]
            self.heap.push(v, best[0])

    def collapse(self, v, w):
        """ Remove `v` by collapsing it into `w`.
        """
        mesh = self.mesh
        h = self._collapse_halfedge(v, w)

        if self.samples is not None:
            samples = [q for f in v._fiter() for q in self.samples.pop(f)]

        quadric = self.quadrics.pop(v) + self.quadrics.pop(w)
        flags = w._flags

        if h._origin is w:
            survivor = mesh.collapse_edge(h, check=False)
        else:
            # Only the boundary halfedge starts at w. The collapse keeps
            # v, which takes over position and flags of w.
            survivor = mesh.collapse_edge(h, w.point.copy(), check=False)
            survivor._flags = flags

        self.quadrics[survivor] = quadric

        if self.samples is not None:
            faces = list(survivor._fiter())

            for f in faces:
                samples.extend(self.samples.pop(f, []))
                self.samples[f] = []

            triangles = [[x.point for x in f._viter()] for f in faces]

            for q in samples:
                _, k = min((_closest_distance(q, [t]), k)
                           for k, t in enumerate(triangles))
                self.samples[faces[k]].append(q)

        removed = w if survivor is v else v

        if removed in self.heap:
            self.heap.remove(removed)

        self.target.pop(removed, None)

        return survivor

    def run(self, target_vertices):
        mesh = self.mesh

        for v in mesh._viter():
            self.update(v)

        n = sum(1 for _ in mesh._viter())

        while n > target_vertices and self.heap:
            v, _ = self.heap.pop()
            w = self.target.pop(v)

            if w._deleted or not self.legal(v, w):
                self.update(v)
                continue

            survivor = self.collapse(v, w)
            n -= 1

            for x in [survivor, *survivor._viter()]:
                self.update(x)

        mesh.clean()


def simplify(mesh, config, quiet=True):
    """ Decimate a triangle mesh.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh, modified in place.
    config : SimplificationConfig
        Target vertex count and quality limits.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    PreconditionError
        If `mesh` is not a triangle mesh.

    Note
    ----
    Decimation stops early when no legal collapse remains. The vertex
    count of the result may therefore exceed the target.
    """
    if not mesh.is_triangle_mesh():
        raise PreconditionError('simplification requires a triangle mesh')

    start = time()

    if mesh.garbage:
        mesh.clean()

    n_before = len(mesh.vertices)

    _Decimator(mesh, config).run(config.target_vertices)

    if not quiet:
        CBOLD = '\33[1m'
        CEND = '\33[0m'

        print(f'simplified {CBOLD}{mesh.name}{CEND} ' +
              f'({time()-start:.3f} sec): {n_before} -> ' +
              f'{len(mesh.vertices)} vertices')
