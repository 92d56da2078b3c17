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

""" Geodesic distances.

Fast marching on triangle meshes (Kimmel and Sethian). A wavefront is
propagated from one or more seed vertices. Tentative distances of
vertices next to the front are kept in a :class:`~surfmesh.heap.MinHeap`
and updated from frozen neighbors by unfolded triangle updates. Vertices
whose angle in a triangle is obtuse look for a *virtual* neighbor by
unfolding adjacent triangles into the plane of the triangle.

Distances are written into the vertex data block ``'geodesic'``.
Vertices not reached by the front have distance ``inf``.
"""

import math
import numpy as np

import surfmesh.linalg as linalg

from surfmesh.config import GeodesicConfig
from surfmesh.heap import MinHeap


def _cross2(u, v):
    return u[0] * v[1] - u[1] * v[0]


def _triangle_update(ca, cb, ta, tb):
    """ Distance at the corner C of a triangle ABC.

    Parameters
    ----------
    ca, cb : ~numpy.ndarray
        Edge vectors A - C and B - C (2D or 3D).
    ta, tb : float
        Known distances of A and B.

    Returns
    -------
    float
        Planar wavefront arrival time at C, or the smaller of the two
        edge updates if the front does not pass through the triangle.
    """
    if ta > tb:
        ca, cb = cb, ca
        ta, tb = tb, ta

    b = linalg.norm(ca)
    a = linalg.norm(cb)

    if a == 0.0 or b == 0.0:
        return min(ta + b, tb + a)

    u = tb - ta
    cos = linalg.clamp(ca.dot(cb) / (a * b), -1.0, 1.0)
    sin2 = 1.0 - cos * cos

    qa = a * a + b * b - 2.0 * a * b * cos
    qb = 2.0 * b * u * (a * cos - b)
    qc = b * b * (u * u - a * a * sin2)

    disc = qb * qb - 4.0 * qa * qc

    if qa > 0.0 and disc >= 0.0:
        t = (-qb + math.sqrt(disc)) / (2.0 * qa)

        if t > u:
            r = b * (t - u) / t

            if a * cos < r and cos > 0.0 and r < a / cos:
                return ta + t

    return min(ta + b, tb + a)


def _virtual_update(c, h, dist, frozen, depth=8):
    """ Triangle update across unfolded neighbor triangles.

    Parameters
    ----------
    c : Vertex
        Vertex to be updated. Its angle in the triangle to the left of
        `h` is obtuse.
    h : Halfedge
        Halfedge opposite `c`.

    Returns
    -------
    float or None
        Distance estimate via a frozen virtual neighbor, if found.
    """
    C = c.point
    ca = h._origin.point - C
    cb = h._target.point - C

    la = linalg.norm(ca)
    normal = linalg.cross(ca, cb)

    if la == 0.0 or linalg.norm(normal) == 0.0:
        return None

    e1 = ca / la
    e2 = linalg.unit(linalg.cross(normal, ca))

    a2 = np.array([la, 0.0])
    b2 = np.array([cb.dot(e1), cb.dot(e2)])

    p, q = h._origin, h._target
    p2, q2 = a2, b2
    edge = h

    for _ in range(depth):
        g = edge._pair

        if g._face is None or len(g._face) != 3:
            return None

        d = g._next._target

        base = q2 - p2
        length = linalg.norm(base)

        if length == 0.0:
            return None

        dp = linalg.norm(d.point - p.point)
        dq = linalg.norm(d.point - q.point)

        x = (dp * dp - dq * dq + length * length) / (2.0 * length)
        y = math.sqrt(max(dp * dp - x * x, 0.0))

        # The unfolded vertex lies on the side of the edge opposite C,
        # which sits at the origin of the 2D frame.
        perp = np.array([-base[1], base[0]]) / length

        if perp.dot(-p2) > 0.0:
            perp = -perp

        d2 = p2 + x * base / length + y * perp

        if _cross2(a2, d2) > 0.0 and _cross2(d2, b2) > 0.0:
            if d not in frozen:
                return None

            t1 = _triangle_update(a2, d2, dist[h._origin], dist[d])
            t2 = _triangle_update(d2, b2, dist[d], dist[h._target])

            return min(t1, t2)

        if _cross2(a2, d2) <= 0.0:
            p, p2, edge = d, d2, g._prev
        else:
            q, q2, edge = d, d2, g._next

    return None


def _update(w, dist, frozen, use_virtual_edges):
    """ Tentative distance of a vertex from its frozen neighbors.
    """
    best = math.inf

    for h in w._hiter():
        a = h._target

        if a in frozen:
            best = min(best, dist[a] + linalg.norm(a.point - w.point))

        f = h._face

        if f is None or len(f) != 3:
            continue

        b = h._next._target

        if a not in frozen or b not in frozen:
            continue

        ca = a.point - w.point
        cb = b.point - w.point

        if use_virtual_edges and ca.dot(cb) < 0.0:
            t = _virtual_update(w, h._next, dist, frozen)

            if t is not None:
                best = min(best, t)
                continue

        best = min(best, _triangle_update(ca, cb, dist[a], dist[b]))

    return best


def compute(mesh, seeds, config=None):
    """ Geodesic distance to a set of seed vertices.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh. Polygonal faces only propagate along edges.
    seeds : iterable of Vertex or int
        Seed vertices, distance zero. Equal distances are resolved in
        seed order.
    config : GeodesicConfig, optional
        Stopping criteria.

    Raises
    ------
    ValueError
        If no seed is given.

    Returns
    -------
    dist : ~numpy.ndarray
        The vertex data block ``'geodesic'``.
    count : int
        Number of vertices whose distance was finalized.
    """
    config = GeodesicConfig() if config is None else config

    seeds = [mesh.vertices[s] for s in seeds]

    if not seeds:
        raise ValueError('at least one seed vertex is required')

    dist = mesh.get_or_add_property('v', 'geodesic', default=math.inf)
    dist[...] = math.inf

    frozen = set()
    queue = MinHeap()

    for s in seeds:
        assert not s.deleted
        dist[s] = 0.0
        queue.push(s, 0.0)

    while queue:
        v, d = queue.pop()

        if d > config.max_distance or len(frozen) >= config.max_vertices:
            break

        frozen.add(v)

        for w in v._viter():
            if w in frozen:
                continue

            t = _update(w, dist, frozen, config.use_virtual_edges)

            if t < dist[w]:
                dist[w] = t
                queue.push(w, t)

    # Tentative distances of vertices left in the queue are discarded.
    for v in mesh._viter():
        if v not in frozen:
            dist[v] = math.inf

    return dist, len(frozen)


def distance_to_texture_coordinates(mesh):
    """ Map geodesic distances to texture coordinates.

    The vertex data block ``'tex'`` receives ``(d / d_max, 0)`` where
    ``d_max`` is the largest finite distance. Unreached vertices get
    ``(1, 0)``.

    Raises
    ------
    KeyError
        If :func:`compute` has not been applied to the mesh.

    Returns
    -------
    ~numpy.ndarray
        The vertex data block ``'tex'``.
    """
    dist = mesh.property('v', 'geodesic')
    tex = mesh.get_or_add_property('v', 'tex', shape=(2, ))

    finite = np.isfinite(dist)
    d_max = dist[finite].max() if finite.any() else 0.0

    tex[...] = 0.0

    if d_max > 0.0:
        tex[finite, 0] = dist[finite] / d_max

    tex[~finite, 0] = 1.0

    return tex
