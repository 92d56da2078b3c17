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

""" Isotropic remeshing.

Incremental remeshing (Botsch and Kobbelt). Each iteration performs

    1. splits of edges longer than 4/3 of the target length,
    2. collapses of edges shorter than 4/5 of the target length,
    3. flips that equalize vertex valences,
    4. tangential relaxation followed by projection onto the input
       surface.

The target length is constant for :func:`uniform` remeshing. For
:func:`adaptive` remeshing it is derived per vertex from the maximal
absolute curvature :math:`\\kappa` and the approximation error
:math:`\\varepsilon` as

.. math::

    h = \\sqrt{6 \\varepsilon / \\kappa - 3 \\varepsilon^2},

clamped to the configured range.

Boundary vertices and vertices flagged
:attr:`~surfmesh.flags.VertexFlag.FIXED` are locked, edges between
locked vertices are never modified. Feature edges (see
:mod:`~surfmesh.features`) are split but neither flipped nor collapsed
across.
"""

import math
import numpy as np

from time import time

from scipy.spatial import cKDTree

import surfmesh.curvature as curvature
import surfmesh.iterators as iterators
import surfmesh.linalg as linalg
import surfmesh.traits as traits

from surfmesh.flags import HalfedgeFlag, VertexFlag
from surfmesh.hds import PreconditionError


class _Reference:
    """ Copy of the input surface used for projection.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh without deleted items.
    sizing : ~numpy.ndarray
        Target edge length per vertex.
    """

    def __init__(self, mesh, sizing):
        self._points = mesh.points.copy()
        self._sizing = np.asarray(sizing, dtype=float)
        self._normals = traits.vertex_normals(mesh)
        self._triangles = np.array([[v._idx for v in f] for f in mesh],
                                   dtype=int)

        # Faces incident with each vertex, candidates for the closest
        # point search.
        self._incident = [[] for _ in range(len(self._points))]

        for k, tri in enumerate(self._triangles):
            for i in tri:
                self._incident[i].append(k)

        self._tree = cKDTree(self._points)

    def project(self, point):
        """ Closest point on the reference surface.

        Returns
        -------
        point : ~numpy.ndarray
            Closest point found.
        normal : ~numpy.ndarray
            Interpolated vertex normal.
        size : float
            Interpolated target edge length.
        """
        k = min(8, len(self._points))
        _, idx = self._tree.query(point, k=k)

        candidates = set()

        for i in np.atleast_1d(idx):
            candidates.update(self._incident[i])

        best = (math.inf, None, None, None)

        for t in sorted(candidates):
            tri = self._triangles[t]
            a, b, c = self._points[tri]

            q, bary = linalg.closest_point_triangle(point, a, b, c)
            d = linalg.sqrd(q - point)

            if d < best[0]:
                best = (d, q, bary, tri)

        _, q, bary, tri = best

        normal = linalg.unit(bary @ self._normals[tri])
        size = float(bary @ self._sizing[tri])

        return q, normal, size


class _Remesher:
    """ State of one remeshing run.
    """

    def __init__(self, mesh, sizing, config):
        self.mesh = mesh
        self.config = config
        self.size = {v: sizing[v] for v in mesh._viter()}

        self.reference = _Reference(mesh, sizing)

    def locked(self, v):
        return v.boundary or VertexFlag.FIXED in v._flags

    def feature(self, v):
        return VertexFlag.FEATURE in v._flags

    def target(self, h):
        return 0.5 * (self.size[h._origin] + self.size[h._target])

    def project(self, v):
        point, _, size = self.reference.project(v.point)

        v.point = point
        self.size[v] = size

    def split_long_edges(self):
        mesh = self.mesh
        count = 0

        for h in iterators.edges_frozen(mesh):
            if h.deleted:
                continue

            u, w = h._origin, h._target

            if self.locked(u) and self.locked(w):
                continue

            if h.length <= 4.0 / 3.0 * self.target(h):
                continue

            crease = HalfedgeFlag.CREASE in h._flags
            size = self.target(h)

            v = mesh.split_edge(h)
            self.size[v] = size

            if crease:
                v._flags |= VertexFlag.FEATURE
            elif self.config.use_projection:
                self.project(v)

            count += 1

        return count

    def _removable(self, v, keep, edge):
        """ Can vertex `v` be collapsed into its neighbor `keep`?
        """
        if self.locked(v):
            return False

        if self.feature(v):
            if HalfedgeFlag.CREASE not in edge._flags:
                return False

            creases = sum(1 for h in v._hiter()
                          if HalfedgeFlag.CREASE in h._flags)

            if creases != 2:
                return False

        h = self.mesh.halfedges.get((keep, v))

        if h is None or not h.collapsible:
            return False

        limit = 4.0 / 3.0 * self.target(edge)
        p = keep.point

        for w in v._viter():
            if w is not keep and linalg.norm(w.point - p) > limit:
                return False

        # Collapses must not fold incident triangles over.
        for f in v._fiter():
            if keep in f:
                continue

            points = [p if x is v else x.point for x in f._viter()]
            before = traits.face_normal(f)
            after = linalg.triangle_normal(*points)

            if before.dot(after) <= 0.0:
                return False

        return True

    def collapse_short_edges(self):
        mesh = self.mesh
        count = 0

        for h in iterators.edges_frozen(mesh):
            if h.deleted:
                continue

            if h.length >= 4.0 / 5.0 * self.target(h):
                continue

            v0, v1 = h._origin, h._target

            remove0 = self._removable(v0, v1, h)
            remove1 = self._removable(v1, v0, h)

            if remove0 and remove1:
                # Remove the vertex of lower valence.
                if v1.degree < v0.degree:
                    remove0 = False
                else:
                    remove1 = False

            if remove0:
                mesh.collapse_edge(mesh.halfedges[v1, v0])
                count += 1
            elif remove1:
                mesh.collapse_edge(mesh.halfedges[v0, v1])
                count += 1

        return count

    def flip_edges(self):
        mesh = self.mesh
        count = 0

        def optimal(v):
            return 4 if v.boundary else 6

        for h in iterators.edges_frozen(mesh):
            if h.deleted or h.edge_boundary:
                continue

            if HalfedgeFlag.CREASE in h._flags:
                continue

            v0, v1 = h._origin, h._target

            if self.locked(v0) and self.locked(v1):
                continue

            if not h.flippable:
                continue

            v2 = h._next._target
            v3 = h._pair._next._target

            verts = (v0, v1, v2, v3)
            delta = (-1, -1, 1, 1)

            before = sum(abs(v.degree - optimal(v)) for v in verts)
            after = sum(abs(v.degree + d - optimal(v))
                        for v, d in zip(verts, delta))

            if after >= before:
                continue

            # The flipped triangles have to keep the orientation of the
            # original pair of triangles.
            n = traits.face_normal(h._face) + traits.face_normal(h._pair._face)

            n0 = linalg.triangle_normal(v0.point, v3.point, v2.point)
            n1 = linalg.triangle_normal(v1.point, v2.point, v3.point)

            if n0.dot(n) <= 0.0 or n1.dot(n) <= 0.0:
                continue

            mesh.flip_edge(h)
            count += 1

        return count

    def tangential_relaxation(self):
        mesh = self.mesh
        update = []

        for v in mesh._viter():
            if v.isolated or self.locked(v) or self.feature(v):
                continue

            neighbors = [w.point for w in v._viter()]
            centroid = sum(neighbors) / len(neighbors)

            n = traits.vertex_normal(v)
            u = centroid - v.point
            u = u - u.dot(n) * n

            update.append((v, v.point + u))

        for v, point in update:
            v.point = point

            if self.config.use_projection:
                self.project(v)

    def run(self):
        counts = np.zeros(3, dtype=int)

        for _ in range(self.config.iterations):
            step = (self.split_long_edges(),
                    self.collapse_short_edges(),
                    self.flip_edges())

            self.tangential_relaxation()
            counts += step

            # Converged, relaxation alone leaves the connectivity as is.
            if not any(step):
                break

        self.mesh.clean()

        return counts


def _prepare(mesh):
    if not mesh.is_triangle_mesh():
        raise PreconditionError('remeshing requires a triangle mesh')

    if mesh.garbage:
        mesh.clean()


def _report(name, mesh, counts, start):
    CBOLD = '\33[1m'
    CEND = '\33[0m'

    v, e, f = mesh.size
    print(f'{name} remeshing of {CBOLD}{mesh.name}{CEND} ' +
          f'({time()-start:.3f} sec): {counts[0]} splits, ' +
          f'{counts[1]} collapses, {counts[2]} flips, ' +
          f'{v} vertices, {f} faces')


def uniform(mesh, config, quiet=True):
    """ Uniform remeshing.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh, modified in place.
    config : RemeshingConfig
        Requires `edge_length`.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    PreconditionError
        If `mesh` is not a triangle mesh.
    ValueError
        If no target edge length is configured.
    """
    if config.edge_length is None:
        raise ValueError('uniform remeshing requires edge_length')

    _prepare(mesh)
    start = time()

    sizing = np.full(len(mesh.vertices), config.edge_length)
    counts = _Remesher(mesh, sizing, config).run()

    if not quiet:
        _report('uniform', mesh, counts, start)


def adaptive(mesh, config, quiet=True):
    """ Curvature adaptive remeshing.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh, modified in place.
    config : RemeshingConfig
        Requires `min_edge_length`, `max_edge_length`, and
        `approx_error`.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    PreconditionError
        If `mesh` is not a triangle mesh.
    ValueError
        If the sizing parameters are not configured.
    """
    if (config.min_edge_length is None or config.max_edge_length is None
            or config.approx_error is None):
        msg = ('adaptive remeshing requires min_edge_length, ' +
               'max_edge_length, and approx_error')
        raise ValueError(msg)

    _prepare(mesh)
    start = time()

    # Curvature is estimated on a scratch copy, the data blocks of the
    # input mesh are left alone.
    scratch = mesh.copy()
    curvature.analyze_tensor(scratch, post_smoothing_steps=2)
    kappa = curvature.max_abs_curvature(scratch)

    eps = config.approx_error
    sizing = np.full(len(mesh.vertices), config.max_edge_length)

    for v in mesh._viter():
        k = kappa[v]

        if k > 0.0:
            s = 6.0 * eps / k - 3.0 * eps * eps
            h = math.sqrt(s) if s > 0.0 else config.min_edge_length
            sizing[v] = linalg.clamp(h, config.min_edge_length,
                                     config.max_edge_length)

    counts = _Remesher(mesh, sizing, config).run()

    if not quiet:
        _report('adaptive', mesh, counts, start)
