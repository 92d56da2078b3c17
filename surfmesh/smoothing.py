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

""" Laplacian smoothing.

Explicit smoothing moves every free vertex to the weighted average of
its neighbors, repeated for a number of iterations. Implicit smoothing
performs a single backward Euler step of the diffusion equation

.. math::

    (M - t L) x' = M x,

which is unconditionally stable (Desbrun et al.). Boundary vertices,
isolated vertices, and vertices flagged
:attr:`~surfmesh.flags.VertexFlag.FIXED` keep their position.
"""

import math
import numpy as np

from scipy import sparse
from scipy.sparse.linalg import spsolve

import surfmesh.laplace as laplace
import surfmesh.traits as traits

from surfmesh.config import SmoothingConfig
from surfmesh.flags import VertexFlag
from surfmesh.hds import DegenerateError


def _locked(v):
    return v.isolated or v.boundary or VertexFlag.FIXED in v._flags


def explicit(mesh, config=None):
    """ Explicit Laplacian smoothing.

    Parameters
    ----------
    mesh : Mesh
        Mesh to be smoothed in place.
    config : SmoothingConfig, optional
        Uses `iterations`, `uniform_laplace`, and `tangential`.
    """
    config = SmoothingConfig() if config is None else config

    verts = [v for v in mesh._viter() if not _locked(v)]

    # Tangential updates stay within the tangent planes of the input.
    if config.tangential:
        normals = [traits.vertex_normal(v) for v in verts]

    for _ in range(config.iterations):
        update = []

        for k, v in enumerate(verts):
            weights = laplace.vertex_weights(v, config.uniform_laplace)
            total = sum(weight for _, weight in weights)

            target = sum(weight * w.point for w, weight in weights) / total
            delta = target - v.point

            if config.tangential:
                n = normals[k]
                delta = delta - delta.dot(n) * n

            update.append(v.point + delta)

        for v, point in zip(verts, update):
            v.point = point


def implicit(mesh, config=None):
    """ Implicit Laplacian smoothing.

    Parameters
    ----------
    mesh : Mesh
        Mesh to be smoothed in place.
    config : SmoothingConfig, optional
        Uses `timestep`, `uniform_laplace`, and `rescale`.

    Raises
    ------
    DegenerateError
        If the linear system could not be solved. The mesh is left
        unchanged.

    Note
    ----
    Implicit smoothing shrinks closed surfaces. Without locked vertices
    and with `rescale` enabled, the smoothed mesh is scaled to its
    original surface area and translated to its original barycenter.
    """
    config = SmoothingConfig() if config is None else config

    verts, index = laplace.vertex_index(mesh)

    if not verts:
        return

    free = [i for i, v in enumerate(verts) if not _locked(v)]
    fixed = [i for i, v in enumerate(verts) if _locked(v)]

    if not free:
        return

    rescale = config.rescale and not fixed and mesh.size[2] > 0

    if rescale:
        area = traits.surface_area(mesh)
        center = laplace.barycenter(mesh)

    L = laplace.laplace_matrix(mesh, config.uniform_laplace, index)
    M = laplace.mass_matrix(mesh, config.uniform_laplace, index)

    A = (M - config.timestep * L).tocsr()
    X = np.array([v.point for v in verts])

    rhs = M @ X

    # Move locked vertices to the right hand side.
    if fixed:
        rhs = rhs[free] - A[free][:, fixed] @ X[fixed]
    else:
        rhs = rhs[free]

    solution = spsolve(sparse.csc_matrix(A[free][:, free]), rhs)
    solution = np.asarray(solution).reshape(len(free), 3)

    if not np.all(np.isfinite(solution)):
        raise DegenerateError('implicit smoothing system is singular')

    for i, point in zip(free, solution):
        verts[i].point = point

    if rescale:
        new_area = traits.surface_area(mesh)

        if new_area > 0.0:
            scale = math.sqrt(area / new_area)
            new_center = laplace.barycenter(mesh)

            for v in verts:
                v.point = center + scale * (v.point - new_center)
