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

""" Geometric mesh traits.

Convenience functions to compute common and often used geometric mesh
traits like vertex and face normals, areas, and edge statistics.
Functions that take a mesh return arrays indexed by vertex or face
index. Entries of deleted items are undefined.
"""

import math
import numpy as np

import surfmesh.linalg as linalg


def bounds(points):
    r""" Bounding box vertices.

    Corner vertices of the axis-aligned bounding box.

    Parameters
    ----------
    points : array_like, shape (n, k)
        Coordinates of :math:`n` points in :math:`\mathbb{R}^k`,
        one point per row.

    Returns
    -------
    a : ~numpy.ndarray
        Holds the minimum value for each dimension.
    b : ~numpy.ndarray
        Holds the maximum value for each dimension.
    """
    return np.min(points, axis=0), np.max(points, axis=0)


def vector_area(face):
    """ Vector area of a polygon.

    Half the sum of cross products of consecutive vertex positions.
    Its length is the area of a planar polygon, its direction the
    polygon normal.

    Parameters
    ----------
    face : Face
        Face of a mesh.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
    """
    points = [v.point for v in face._viter()]
    vector = np.zeros(3, dtype=float)

    # Relative to the first point, avoids cancellation for polygons far
    # away from the origin.
    p = points[0]

    for a, b in zip(points[1:], points[2:]):
        vector += linalg.cross(a - p, b - p)

    return 0.5 * vector


def face_normal(face):
    """ Face normal.

    Unit normal of a face. For non-planar polygons this is the direction
    of the vector area.

    Parameters
    ----------
    face : Face
        Face of a mesh.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Unit normal vector, zero for degenerate faces.
    """
    return linalg.unit(vector_area(face))


def face_normals(mesh):
    """ Face normals.

    Parameters
    ----------
    mesh : Mesh
        Mesh with polygonal faces.

    Returns
    -------
    ~numpy.ndarray, shape (m, 3)
        Array of face normal vectors. Rows of deleted faces are zero.
    """
    normals = np.zeros((len(mesh.faces), 3), dtype=float)

    for f in mesh._fiter():
        normals[f] = face_normal(f)

    return normals


def face_area(face):
    """ Face area.

    Length of the vector area. Exact for planar polygons.
    """
    return linalg.norm(vector_area(face))


def face_areas(mesh):
    """ Face areas.

    Returns
    -------
    ~numpy.ndarray, shape (m, )
    """
    areas = np.zeros(len(mesh.faces), dtype=float)

    for f in mesh._fiter():
        areas[f] = face_area(f)

    return areas


def surface_area(mesh):
    """ Total surface area.
    """
    return float(sum(face_area(f) for f in mesh._fiter()))


def vertex_normal(vertex):
    """ Vertex normal.

    Compute vertex normal as angle weighted average of incident face
    normals. Incident triangles are defined by the planes spanned by
    consecutive edges in a counter-clockwise traversal of all incident
    edges.

    Parameters
    ----------
    vertex : Vertex
        Vertex of a mesh.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Unit normal vector.

    Note
    ----
    Vertex normals are not well defined for isolated vertices. The
    zero vector is returned in this case.
    """
    normal = np.zeros(3, dtype=float)

    for h in vertex._hiter():
        if h._face is not None:
            u = h.vector
            v = -h._prev.vector

            n = linalg.unit(linalg.cross(u, v))
            normal += linalg.angle(u, v) * n

    return linalg.unit(normal)


def vertex_normals(mesh):
    """ Vertex normals.

    Returns
    -------
    ~numpy.ndarray, shape (n, 3)
        Unit normal vectors for a mesh with n vertices.
    """
    normals = np.zeros((len(mesh.vertices), 3), dtype=float)

    for v in mesh._viter():
        normals[v] = vertex_normal(v)

    return normals


def edge_length(item):
    """ Edge length statistics.

    Minimal, maximal, and average edge length for a mesh or an
    individual face.

    Parameters
    ----------
    item : Face or Mesh
        Mesh or face of a mesh.

    Returns
    -------
    min : float
        Minimal edge length.
    max : float
        Maximal edge length.
    avg : float
        Average edge length.
    """
    min, max = np.inf, -np.inf
    avg, cnt = 0.0, 0

    for h in item._eiter():
        length = linalg.norm(h.vector)

        avg += length
        cnt += 1

        min = length if length < min else min
        max = length if length > max else max

    if cnt == 0:
        raise ValueError('edge length statistics of an empty mesh')

    return min, max, avg / cnt


def angle_defect(vertex):
    r""" Angle defect.

    For a vertex with :math:`k` incident angles :math:`\alpha_i`,
    the value :math:`2\pi - \sum_{i=1}^k \alpha_i` is called angular
    defect or discrete Gaussian curvature. Boundary vertices use
    :math:`\pi` instead of :math:`2\pi`.
    """
    defect = math.pi if vertex.boundary else 2.0 * math.pi

    for h in vertex._hiter():
        if h._face is not None:
            defect -= linalg.angle(h.vector, -h._prev.vector)

    return defect


def dihedral_angle(halfedge):
    """ Edge angle.

    Angle (in radians) between normals of adjacent faces. The angle
    is positive for convex edges and zero along the boundary.

    Note
    ----
    Our definition of a convex edge depends on the surface orientation.
    Typically one assumes outward normals.
    """
    if halfedge._face is None or halfedge._pair._face is None:
        return 0.0

    u = face_normal(halfedge._face)
    v = face_normal(halfedge._pair._face)

    alpha = math.acos(linalg.clamp(u.dot(v), -1.0, 1.0))

    # The vector orthogonal to both face normals (oriented according
    # to the right hand rule) determines the sign of alpha.
    if halfedge.vector.dot(linalg.cross(u, v)) < 0.0:
        alpha *= -1.0

    return alpha


def vertex_area(vertex):
    """ Mixed Voronoi area.

    Voronoi area restricted to incident triangles, using the barycentric
    fallback for obtuse triangles (Meyer et al.). Non-triangular faces
    contribute a share proportional to their valence.
    """
    a = vertex.point
    weight = 0.0
    val = 0.5 * math.pi

    for h in vertex._hiter():
        if h._face is None:
            continue

        if len(h._face) != 3:
            weight += face_area(h._face) / len(h._face)
            continue

        b = h._target.point
        c = h._next._target.point

        area = linalg.triangle_area(a, b, c)

        if area <= 0.0:
            continue

        angle_a = linalg.angle(b-a, c-a)
        angle_b = linalg.angle(c-b, a-b)
        angle_c = linalg.angle(a-c, b-c)

        if angle_a < val and angle_b < val and angle_c < val:
            weight += 0.125 * (  linalg.sqrd(b-a) * linalg.cotan(a-c, b-c)
                               + linalg.sqrd(c-a) * linalg.cotan(a-b, c-b))
        elif angle_a >= val:
            weight += 0.5 * area
        else:
            weight += 0.25 * area

    return weight


def vertex_areas(mesh):
    """ Mixed Voronoi areas of all vertices.
    """
    areas = np.zeros(len(mesh.vertices), dtype=float)

    for v in mesh._viter():
        areas[v] = vertex_area(v)

    return areas
