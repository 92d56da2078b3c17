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

""" Surface fairing.

Minimizes the energy associated with the k-th power of the Laplace
operator by solving :math:`(M^{-1} L)^k x = 0` for the free vertices
(Desbrun et al., Botsch and Kobbelt). The order selects the
characteristic smoothness of the result:

=== =========================== ===========================
 k   energy                      boundary continuity
=== =========================== ===========================
 1   membrane (area)             C0
 2   thin plate (curvature)      C1
 3   curvature variation         C2
=== =========================== ===========================

Constraints are the vertices flagged
:attr:`~surfmesh.flags.VertexFlag.FIXED` if there are any. Otherwise the
boundary vertices and their k-1 rings are kept in place, which fixes
positional and derivative boundary data.
"""

import numpy as np

from scipy import sparse
from scipy.sparse.linalg import spsolve

import surfmesh.iterators as iterators
import surfmesh.laplace as laplace

from surfmesh.config import FairingConfig
from surfmesh.flags import VertexFlag
from surfmesh.hds import DegenerateError, PreconditionError


def _constraints(mesh, order):
    """ Set of constrained vertices.
    """
    fixed = {v for v in mesh._viter() if VertexFlag.FIXED in v._flags}

    if fixed:
        return fixed

    boundary = [v for v in mesh._viter() if not v.isolated and v.boundary]

    if not boundary:
        return set()

    constrained = set()

    for v in boundary:
        for w, _ in iterators.verts_bfs(v, stop=order - 1):
            constrained.add(w)

    return constrained


def fair(mesh, config=None, vertices=None):
    """ Fair a mesh.

    Parameters
    ----------
    mesh : Mesh
        Mesh to be modified in place.
    config : FairingConfig, optional
        Order and Laplace weights.
    vertices : iterable of Vertex, optional
        Restrict the modification to these vertices. All other vertices
        are constraints.

    Raises
    ------
    PreconditionError
        If there are no constraints, e.g. for a closed mesh without
        fixed vertices.
    DegenerateError
        If the linear system could not be solved. The mesh is left
        unchanged.
    """
    config = FairingConfig() if config is None else config
    k = config.order

    verts, index = laplace.vertex_index(mesh)

    if vertices is not None:
        movable = set(vertices)
        locked = {v for v in verts if v not in movable}
        locked.update(v for v in movable
                      if VertexFlag.FIXED in v._flags)
    else:
        locked = _constraints(mesh, k)

    locked.update(v for v in verts if v.isolated)

    if not locked or len(locked) == len(verts):
        if not locked:
            raise PreconditionError('fairing requires constrained vertices')

        return

    free = [i for i, v in enumerate(verts) if v not in locked]
    fixed = [i for i, v in enumerate(verts) if v in locked]

    op = laplace.laplace_beltrami(mesh, config.uniform_laplace, index)
    A = sparse.identity(len(verts), format='csr')

    for _ in range(k):
        A = op @ A

    A = A.tocsr()
    X = np.array([v.point for v in verts])

    rhs = -(A[free][:, fixed] @ X[fixed])

    solution = spsolve(sparse.csc_matrix(A[free][:, free]), rhs)
    solution = np.asarray(solution).reshape(len(free), 3)

    if not np.all(np.isfinite(solution)):
        raise DegenerateError('fairing system is singular')

    for i, point in zip(free, solution):
        verts[i].point = point


def minimize_area(mesh, uniform_laplace=False):
    """ Membrane fairing, order one.
    """
    fair(mesh, FairingConfig(order=1, uniform_laplace=uniform_laplace))


def minimize_curvature(mesh, uniform_laplace=False):
    """ Thin plate fairing, order two.
    """
    fair(mesh, FairingConfig(order=2, uniform_laplace=uniform_laplace))


def minimize_curvature_variation(mesh, uniform_laplace=False):
    """ Fairing of order three.
    """
    fair(mesh, FairingConfig(order=3, uniform_laplace=uniform_laplace))
