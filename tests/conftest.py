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

"""Shared mesh fixtures."""

import itertools
import math

import numpy as np
import pytest

import surfmesh.subdivision as subdivision

from surfmesh.hds import Mesh


def _outward(points, triangles):
    """Orient triangles of a convex solid centered at the origin."""
    faces = []

    for tri in triangles:
        a, b, c = (points[i] for i in tri)
        n = np.cross(b - a, c - a)

        if n.dot(a + b + c) < 0.0:
            tri = (tri[0], tri[2], tri[1])

        faces.append(list(tri))

    return faces


def _convex_triangles(points, edge_length):
    """Triangles formed by vertex triples at mutual distance edge_length."""
    n = len(points)
    triangles = []

    for tri in itertools.combinations(range(n), 3):
        lengths = [np.linalg.norm(points[i] - points[j])
                   for i, j in itertools.combinations(tri, 2)]

        if np.allclose(lengths, edge_length):
            triangles.append(tri)

    return _outward(points, triangles)


def grid_mesh(n=5, spacing=1.0):
    """Triangulated planar n x n vertex grid in the xy-plane."""
    points = [(i * spacing, j * spacing, 0.0)
              for j in range(n) for i in range(n)]
    faces = []

    for j in range(n - 1):
        for i in range(n - 1):
            a = j * n + i
            b = a + 1
            c = a + n + 1
            d = a + n
            faces.append([a, b, c])
            faces.append([a, c, d])

    return Mesh(points, faces)


def cylinder_mesh(m=8, levels=3, height=1.0):
    """Open cylinder of radius one around the z-axis."""
    points = [(math.cos(2 * math.pi * i / m), math.sin(2 * math.pi * i / m),
               height * j / (levels - 1))
              for j in range(levels) for i in range(m)]
    faces = []

    for j in range(levels - 1):
        for i in range(m):
            a = j * m + i
            b = j * m + (i + 1) % m
            c = (j + 1) * m + (i + 1) % m
            d = (j + 1) * m + i
            faces.append([a, b, c])
            faces.append([a, c, d])

    return Mesh(points, faces)


def torus_mesh(m=12, n=8, major=2.0, minor=0.5):
    """Triangulated torus around the z-axis."""
    points = []

    for j in range(n):
        phi = 2 * math.pi * j / n

        for i in range(m):
            theta = 2 * math.pi * i / m
            r = major + minor * math.cos(phi)
            points.append((r * math.cos(theta), r * math.sin(theta),
                           minor * math.sin(phi)))

    faces = []

    for j in range(n):
        for i in range(m):
            a = j * m + i
            b = j * m + (i + 1) % m
            c = ((j + 1) % n) * m + (i + 1) % m
            d = ((j + 1) % n) * m + i
            faces.append([a, b, c])
            faces.append([a, c, d])

    return Mesh(points, faces)


def hexagon_mesh():
    """Regular hexagon split into a fan around its center."""
    points = [(0.0, 0.0, 0.0)]
    points += [(math.cos(k * math.pi / 3), math.sin(k * math.pi / 3), 0.0)
               for k in range(6)]
    faces = [[0, k, k % 6 + 1] for k in range(1, 7)]

    return Mesh(points, faces)


@pytest.fixture
def tetrahedron():
    points = [(0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1)]
    faces = [[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]]
    return Mesh(points, faces)


@pytest.fixture
def cube():
    points = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0),
              (0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1)]
    faces = [[0, 3, 2, 1], [4, 5, 6, 7], [0, 1, 5, 4],
             [1, 2, 6, 5], [2, 3, 7, 6], [3, 0, 4, 7]]
    return Mesh(points, faces)


@pytest.fixture
def octahedron():
    points = np.array([(1, 0, 0), (-1, 0, 0), (0, 1, 0),
                       (0, -1, 0), (0, 0, 1), (0, 0, -1)], dtype=float)
    return Mesh(points, _convex_triangles(points, math.sqrt(2)))


@pytest.fixture
def icosahedron():
    phi = 0.5 * (1 + math.sqrt(5))
    points = []

    for s, t in itertools.product((-1, 1), repeat=2):
        points.append((0, s, t * phi))
        points.append((s, t * phi, 0))
        points.append((t * phi, 0, s))

    points = np.array(points, dtype=float)
    return Mesh(points, _convex_triangles(points, 2.0))


@pytest.fixture
def grid():
    return grid_mesh()


@pytest.fixture
def hexagon():
    return hexagon_mesh()


@pytest.fixture
def cylinder():
    return cylinder_mesh()


@pytest.fixture
def torus():
    return torus_mesh()


@pytest.fixture
def two_squares():
    points = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0),
              (3, 0, 0), (4, 0, 0), (4, 1, 0), (3, 1, 0)]
    faces = [[0, 1, 2], [0, 2, 3], [4, 5, 6], [4, 6, 7]]
    return Mesh(points, faces)


@pytest.fixture
def make_grid():
    return grid_mesh


@pytest.fixture
def make_cylinder():
    return cylinder_mesh


@pytest.fixture
def sphere(icosahedron):
    """Unit sphere approximated by a twice Loop subdivided icosahedron."""
    subdivision.loop(icosahedron)
    subdivision.loop(icosahedron)

    points = icosahedron.points
    icosahedron.points = points / np.linalg.norm(points, axis=1)[:, None]

    return icosahedron
