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

""" Discrete Laplace-Beltrami operator.

Assembly of the cotangent (or uniform) Laplace matrix and the lumped
mass matrix of a mesh as :mod:`scipy.sparse` matrices. Rows and columns
refer to the live vertices of a mesh in the order of
:attr:`~surfmesh.hds.Mesh.vertices`, see :func:`vertex_index`.

The operator :math:`M^{-1} L` applied to a vertex function :math:`f`
reads

.. math::

    (\\Delta f)_i = \\frac{1}{A_i} \\sum_j w_{ij} (f_j - f_i),
    \\qquad w_{ij} = \\tfrac{1}{2} (\\cot \\alpha_{ij} + \\cot \\beta_{ij}),

where :math:`A_i` is the mixed Voronoi area of vertex :math:`i`. The
uniform variant uses :math:`w_{ij} = 1` and :math:`A_i = \\deg(i)`.

Negative cotangent weights of obtuse configurations are clamped to zero.
Rows of vertices incident with degenerate or non-triangular faces, or
whose weights vanish, fall back to uniform weights.
"""

import math
import numpy as np

from scipy import sparse

import surfmesh.linalg as linalg
import surfmesh.traits as traits


def vertex_index(mesh):
    """ Numbering of live vertices.

    Parameters
    ----------
    mesh : Mesh
        A mesh.

    Returns
    -------
    verts : list[Vertex]
        Live vertices, row order of assembled matrices.
    index : dict
        Maps vertices to rows.
    """
    verts = list(mesh._viter())
    return verts, {v: i for i, v in enumerate(verts)}


def _opposite_cotan(h):
    """ Cotangent of the angle opposite `h` in its face.

    Returns :obj:`None` if the face is missing, not a triangle, or
    degenerate.
    """
    if h._face is None or len(h._face) != 3:
        return None

    a = h._origin.point
    b = h._target.point
    c = h._next._target.point

    area2 = linalg.norm(linalg.cross(b - a, c - a))
    scale = max(linalg.sqrd(b - a), linalg.sqrd(c - b), linalg.sqrd(a - c))

    if area2 <= 1e-12 * scale:
        return None

    return (a - c).dot(b - c) / area2


def cotan_weight(halfedge):
    """ Cotangent weight of an edge.

    Parameters
    ----------
    halfedge : Halfedge
        Either halfedge of the edge.

    Returns
    -------
    float or None
        Clamped weight :math:`\\max(0, (\\cot\\alpha + \\cot\\beta) / 2)`
        or :obj:`None` if an incident face is degenerate or not a
        triangle.
    """
    weight = 0.0

    for h in (halfedge, halfedge._pair):
        if h._face is None:
            continue

        cot = _opposite_cotan(h)

        if cot is None:
            return None

        weight += 0.5 * cot

    return max(weight, 0.0)


def vertex_weights(vertex, uniform=False):
    """ Laplace weights of the one-ring of a vertex.

    Parameters
    ----------
    vertex : Vertex
        Non-deleted mesh vertex.
    uniform : bool, optional
        Use uniform weights.

    Returns
    -------
    list[tuple[Vertex, float]]
        Neighbors and weights in counter-clockwise order.
    """
    neighbors = [h._target for h in vertex._hiter()]

    if uniform:
        return [(w, 1.0) for w in neighbors]

    weights = [cotan_weight(h) for h in vertex._hiter()]

    if any(w is None for w in weights) or not sum(weights) > 1e-12:
        return [(w, 1.0) for w in neighbors]

    return list(zip(neighbors, weights))


def laplace_matrix(mesh, uniform=False, index=None):
    """ Assemble Laplace matrix.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    uniform : bool, optional
        Use uniform weights.
    index : dict, optional
        Vertex numbering as returned by :func:`vertex_index`.

    Returns
    -------
    ~scipy.sparse.csr_matrix, shape (n, n)
        Matrix with off-diagonal entries :math:`w_{ij}` and rows summing
        to zero. Isolated vertices have zero rows.
    """
    if index is None:
        _, index = vertex_index(mesh)

    rows, cols, vals = [], [], []

    for v, i in index.items():
        total = 0.0

        for w, weight in vertex_weights(v, uniform):
            rows.append(i)
            cols.append(index[w])
            vals.append(weight)
            total += weight

        rows.append(i)
        cols.append(i)
        vals.append(-total)

    n = len(index)
    return sparse.csr_matrix((vals, (rows, cols)), shape=(n, n))


def mass_matrix(mesh, uniform=False, index=None):
    """ Assemble lumped mass matrix.

    Diagonal matrix of mixed Voronoi areas, or of vertex degrees for
    the uniform operator. Vanishing entries are replaced by the mean of
    all entries to keep the matrix invertible.

    Returns
    -------
    ~scipy.sparse.dia_matrix, shape (n, n)
    """
    if index is None:
        _, index = vertex_index(mesh)

    diag = np.zeros(len(index), dtype=float)

    for v, i in index.items():
        if uniform:
            diag[i] = v.degree
        else:
            diag[i] = traits.vertex_area(v)

    positive = diag > 0.0

    if not positive.all():
        diag[~positive] = diag[positive].mean() if positive.any() else 1.0

    return sparse.diags(diag)


def laplace_beltrami(mesh, uniform=False, index=None):
    """ Normalized Laplace-Beltrami operator.

    Returns
    -------
    ~scipy.sparse.csr_matrix
        The matrix :math:`M^{-1} L`.
    """
    if index is None:
        _, index = vertex_index(mesh)

    L = laplace_matrix(mesh, uniform, index)
    M = mass_matrix(mesh, uniform, index)

    return sparse.diags(1.0 / M.diagonal()) @ L


def mean_edge_length(mesh):
    """ Mean edge length, used to scale time steps.
    """
    lengths = [h.length for h in mesh._eiter()]
    return float(np.mean(lengths)) if lengths else 0.0


def barycenter(mesh):
    """ Area weighted barycenter of a mesh.
    """
    area = 0.0
    center = np.zeros(3, dtype=float)

    for f in mesh._fiter():
        a = traits.face_area(f)
        center += a * f.barycenter
        area += a

    if area == 0.0 or not math.isfinite(area):
        raise ValueError('barycenter of a mesh without area')

    return center / area
