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

""" Surface parameterization.

Maps a disc shaped mesh to the plane. Texture coordinates are written
into the vertex data block ``'tex'`` of shape ``(2, )``.

:func:`harmonic` fixes the boundary on a circle and solves a Laplace
equation for the interior (Floater, Eck et al.). With non-negative
weights every interior vertex is a convex combination of its neighbors,
hence the map is a bijection onto the convex boundary polygon.

:func:`lscm` computes least squares conformal maps (Lévy et al.). The
boundary is free, two boundary vertices are pinned to ``(0, 0)`` and
``(1, 0)``.
"""

import math
import numpy as np

from scipy import sparse
from scipy.sparse.linalg import spsolve

import surfmesh.iterators as iterators
import surfmesh.laplace as laplace
import surfmesh.linalg as linalg
import surfmesh.topology as topology

from surfmesh.config import ParameterizationConfig
from surfmesh.hds import DegenerateError, PreconditionError


def _check_disc(mesh):
    try:
        kind = topology.classify(mesh)
    except ValueError as e:
        raise PreconditionError(str(e)) from e

    if kind is not topology.TopologyType.DISC:
        raise PreconditionError(f'expected a disc, got {kind.value}')


def _texture(mesh):
    tex = mesh.get_or_add_property('v', 'tex', shape=(2, ))
    tex[...] = 0.0

    return tex


def harmonic(mesh, config=None):
    """ Discrete harmonic map.

    Boundary vertices are distributed on the circle of radius 0.5
    centered at ``(0.5, 0.5)``, spaced by arc length. A boundary with
    :math:`n` equally long edges becomes a regular :math:`n`-gon.

    Parameters
    ----------
    mesh : Mesh
        Mesh with disc topology.
    config : ParameterizationConfig, optional
        Uniform or cotangent weights.

    Raises
    ------
    PreconditionError
        If the mesh is not a topological disc.
    DegenerateError
        If the linear system is singular.

    Returns
    -------
    ~numpy.ndarray
        The vertex data block ``'tex'``.
    """
    config = ParameterizationConfig() if config is None else config
    _check_disc(mesh)

    loop = next(iterators.borders(mesh))
    lengths = np.array([h.length for h in loop])
    total = lengths.sum()

    if total <= 0.0:
        raise DegenerateError('boundary has zero length')

    # Boundary halfedges run clockwise, positions along the reversed loop
    # keep the orientation of the surface.
    arc = np.concatenate(([0.0], np.cumsum(lengths[:-1]))) / total
    phi = -2.0 * math.pi * arc

    tex = _texture(mesh)

    for h, t in zip(loop, phi):
        tex[h._origin] = (0.5 + 0.5 * math.cos(t), 0.5 + 0.5 * math.sin(t))

    verts = [v for v in mesh._viter() if not v.isolated]
    index = {v: i for i, v in enumerate(verts)}

    free = [i for i, v in enumerate(verts) if not v.boundary]
    fixed = [i for i, v in enumerate(verts) if v.boundary]

    if not free:
        return tex

    L = laplace.laplace_matrix(mesh, config.uniform_weights, index)
    B = np.array([tex[verts[i]] for i in fixed])

    rhs = -(L[free][:, fixed] @ B)
    solution = spsolve(sparse.csc_matrix(L[free][:, free]), rhs)
    solution = np.asarray(solution).reshape(len(free), 2)

    if not np.all(np.isfinite(solution)):
        raise DegenerateError('harmonic map system is singular')

    for i, uv in zip(free, solution):
        tex[verts[i]] = uv

    return tex


def _pins(boundary):
    """ The two boundary vertices farthest apart.
    """
    points = np.array([v.point for v in boundary])
    d = np.sum((points[:, None, :] - points[None, :, :])**2, axis=-1)
    i, j = np.unravel_index(np.argmax(d), d.shape)

    return boundary[min(i, j)], boundary[max(i, j)]


def _local_frame(a, b, c):
    """ Planar coordinates of a triangle, `a` at the origin.
    """
    e = b - a
    x = linalg.unit(e)
    n = linalg.unit(np.cross(e, c - a))
    y = np.cross(n, x)

    return [(0.0, 0.0), (linalg.norm(e), 0.0), ((c - a).dot(x), (c - a).dot(y))]


def lscm(mesh, config=None):
    """ Least squares conformal map.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh with disc topology.
    config : ParameterizationConfig, optional
        Unused, accepted for a uniform interface.

    Raises
    ------
    PreconditionError
        If the mesh is not a triangle mesh or not a topological disc.
    DegenerateError
        If the linear system is singular.

    Returns
    -------
    ~numpy.ndarray
        The vertex data block ``'tex'``.
    """
    if not mesh.is_triangle_mesh():
        raise PreconditionError('LSCM requires a triangle mesh')

    _check_disc(mesh)

    verts = [v for v in mesh._viter() if not v.isolated]
    index = {v: i for i, v in enumerate(verts)}
    n = len(verts)

    boundary = [h._origin for h in next(iterators.borders(mesh))]
    p0, p1 = _pins(boundary)

    rows, cols, vals = [], [], []
    r = 0

    for f in mesh._fiter():
        tri = list(f._viter())
        local = _local_frame(*(v.point for v in tri))

        area2 = abs(local[1][0] * local[2][1])

        if area2 == 0.0:
            continue

        s = 1.0 / math.sqrt(area2)

        # Cauchy-Riemann residual sum_j W_j U_j with complex weights
        # W_j = p_{j+2} - p_{j+1}, split into real and imaginary rows.
        for j in range(3):
            xa, ya = local[(j + 1) % 3]
            xb, yb = local[(j + 2) % 3]

            a, b = s * (xb - xa), s * (yb - ya)
            k = index[tri[j]]

            rows += [r, r, r + 1, r + 1]
            cols += [k, n + k, k, n + k]
            vals += [a, -b, b, a]

        r += 2

    A = sparse.csr_matrix((vals, (rows, cols)), shape=(r, 2 * n))

    pinned = {index[p0]: 0.0, n + index[p0]: 0.0,
              index[p1]: 1.0, n + index[p1]: 0.0}

    free = [k for k in range(2 * n) if k not in pinned]
    fixed = sorted(pinned)

    x = np.array([pinned[k] for k in fixed])

    Af = A[:, free]
    rhs = -(Af.T @ (A[:, fixed] @ x))

    solution = spsolve(sparse.csc_matrix(Af.T @ Af), rhs)

    if not np.all(np.isfinite(solution)):
        raise DegenerateError('LSCM system is singular')

    uv = np.zeros(2 * n)
    uv[free] = solution
    uv[fixed] = x

    tex = _texture(mesh)

    for v, i in index.items():
        tex[v] = (uv[i], uv[n + i])

    return tex
