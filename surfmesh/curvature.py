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

""" Discrete curvature.

Two estimators are provided. :func:`analyze` computes mean curvature
from the cotangent Laplacian of the vertex positions and Gaussian
curvature from the angle defect. :func:`analyze_tensor` fits a curvature
tensor from dihedral edge angles over a one or two ring neighborhood
(Cohen-Steiner and Morvan) and also yields principal directions.

Both write the principal curvatures into the vertex data blocks
``'curv_min'`` and ``'curv_max'``. Derived scalar fields are computed
from these blocks by :func:`mean_curvature`, :func:`gauss_curvature`,
and :func:`max_abs_curvature`. The mesh connectivity is never modified.
"""

import math
import numpy as np

import surfmesh.laplace as laplace
import surfmesh.linalg as linalg
import surfmesh.traits as traits

from surfmesh.hds import PreconditionError


def _smooth_field(mesh, values, steps):
    """ Uniform averaging of a vertex scalar field.

    Boundary values are left unchanged.
    """
    for _ in range(steps):
        smoothed = values.copy()

        for v in mesh._viter():
            if v.isolated or v.boundary:
                continue

            neighbors = [w._idx for w in v._viter()]
            smoothed[v] = np.mean(values[neighbors])

        values = smoothed

    return values


def _store(mesh, kmin, kmax):
    cmin = mesh.get_or_add_property('v', 'curv_min')
    cmax = mesh.get_or_add_property('v', 'curv_max')

    cmin[...] = kmin
    cmax[...] = kmax

    return cmin, cmax


def analyze(mesh, post_smoothing_steps=0):
    """ Mean and Gaussian curvature from discrete operators.

    Mean curvature :math:`H = -\\frac{1}{2}\\langle \\Delta x, n\\rangle`
    is obtained from the cotangent Laplace-Beltrami operator, Gaussian
    curvature :math:`K` from the angle defect divided by the mixed
    Voronoi area. Principal curvatures follow from
    :math:`\\kappa_{1,2} = H \\pm \\sqrt{\\max(H^2 - K, 0)}`.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh.
    post_smoothing_steps : int, optional
        Number of uniform averaging steps applied to the result.

    Returns
    -------
    cmin : ~numpy.ndarray
        The vertex data block ``'curv_min'``.
    cmax : ~numpy.ndarray
        The vertex data block ``'curv_max'``.

    Note
    ----
    Curvature of boundary and isolated vertices is set to zero.
    """
    n = len(mesh.vertices)
    kmin = np.zeros(n, dtype=float)
    kmax = np.zeros(n, dtype=float)

    for v in mesh._viter():
        if v.isolated or v.boundary:
            continue

        area = traits.vertex_area(v)

        if area <= 0.0:
            continue

        laplace_x = np.zeros(3, dtype=float)

        for w, weight in laplace.vertex_weights(v):
            laplace_x += weight * (w.point - v.point)

        laplace_x /= area

        H = -0.5 * laplace_x.dot(traits.vertex_normal(v))
        defect = traits.angle_defect(v)

        # Angle sums around flat vertices are exact up to roundoff.
        if abs(defect) < 1e-12:
            defect = 0.0

        K = defect / area

        s = math.sqrt(max(H * H - K, 0.0))

        kmin[v] = H - s
        kmax[v] = H + s

    kmin = _smooth_field(mesh, kmin, post_smoothing_steps)
    kmax = _smooth_field(mesh, kmax, post_smoothing_steps)

    return _store(mesh, kmin, kmax)


def _edge_tensor(h):
    """ Curvature tensor contribution of an edge.
    """
    e = h.vector
    length = linalg.norm(e)

    if length == 0.0:
        return np.zeros((3, 3))

    e = e / length
    beta = traits.dihedral_angle(h if h._face is not None else h._pair)

    return beta * length * np.outer(e, e)


def analyze_tensor(mesh, post_smoothing_steps=0, two_ring=True):
    """ Curvature tensor estimation.

    For each vertex, the tensor

    .. math::

        T = \\frac{1}{|B|} \\sum_{e} \\beta(e) \\, |e \\cap B| \\,
            \\bar{e} \\bar{e}^T

    is accumulated over the edges of the face neighborhood :math:`B`.
    The eigenvector closest to the vertex normal is discarded, the
    remaining eigenvalues are the principal curvatures. Principal
    directions are the eigenvectors of the respective *other*
    eigenvalue.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh.
    post_smoothing_steps : int, optional
        Number of uniform averaging steps applied to the curvature
        values. Directions are not smoothed.
    two_ring : bool, optional
        Use the two ring face neighborhood instead of the one ring.

    Returns
    -------
    cmin : ~numpy.ndarray
        The vertex data block ``'curv_min'``.
    cmax : ~numpy.ndarray
        The vertex data block ``'curv_max'``.

    Note
    ----
    Principal directions are written to the data blocks
    ``'curv_dir_min'`` and ``'curv_dir_max'``.
    """
    n = len(mesh.vertices)

    kmin = np.zeros(n, dtype=float)
    kmax = np.zeros(n, dtype=float)

    dmin = mesh.get_or_add_property('v', 'curv_dir_min', shape=(3, ))
    dmax = mesh.get_or_add_property('v', 'curv_dir_max', shape=(3, ))

    dmin[...] = 0.0
    dmax[...] = 0.0

    tensors = {h: _edge_tensor(h) for h in mesh._eiter()}

    for v in mesh._viter():
        if v.isolated:
            continue

        region = set(v._fiter())

        if two_ring:
            for w in list(v._viter()):
                region.update(w._fiter())

        area = sum(traits.face_area(f) for f in region)

        if area <= 0.0:
            continue

        T = np.zeros((3, 3))

        # Edges on the border of the region contribute half of their
        # length.
        seen = set()

        for f in region:
            for h in f._hiter():
                e = h if h._origin._idx < h._target._idx else h._pair

                if e in seen:
                    continue

                seen.add(e)
                inside = sum(1 for g in (e._face, e._pair._face)
                             if g is not None and g in region)

                T += 0.5 * inside * tensors[e]

        T /= area

        evals, evecs = np.linalg.eigh(T)
        normal = traits.vertex_normal(v)

        k = int(np.argmax(np.abs(evecs.T @ normal)))
        i, j = [m for m in range(3) if m != k]

        # Ascending eigenvalue order is kept by eigh.
        kmin[v], kmax[v] = evals[i], evals[j]
        dmin[v], dmax[v] = evecs[:, j], evecs[:, i]

    kmin = _smooth_field(mesh, kmin, post_smoothing_steps)
    kmax = _smooth_field(mesh, kmax, post_smoothing_steps)

    return _store(mesh, kmin, kmax)


def _principal(mesh):
    if not (mesh.has_property('v', 'curv_min') and
            mesh.has_property('v', 'curv_max')):
        raise PreconditionError('curvature has not been analyzed')

    return mesh.property('v', 'curv_min'), mesh.property('v', 'curv_max')


def mean_curvature(mesh):
    """ Mean curvature field.

    Stored in the vertex data block ``'curv_mean'``.

    Raises
    ------
    PreconditionError
        If neither :func:`analyze` nor :func:`analyze_tensor` has been
        applied to the mesh.
    """
    kmin, kmax = _principal(mesh)

    data = mesh.get_or_add_property('v', 'curv_mean')
    data[...] = 0.5 * (kmin + kmax)

    return data


def gauss_curvature(mesh):
    """ Gaussian curvature field.

    Stored in the vertex data block ``'curv_gauss'``.
    """
    kmin, kmax = _principal(mesh)

    data = mesh.get_or_add_property('v', 'curv_gauss')
    data[...] = kmin * kmax

    return data


def max_abs_curvature(mesh):
    """ Maximal absolute curvature field.

    Stored in the vertex data block ``'curv_max_abs'``.
    """
    kmin, kmax = _principal(mesh)

    data = mesh.get_or_add_property('v', 'curv_max_abs')
    data[...] = np.maximum(np.abs(kmin), np.abs(kmax))

    return data
