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

""" Basic vector math.

For basic computations, specialized non-vectorized functions offer better
performance than some NumPy functions when applied to single vectors in
3-space. All functions expect :class:`~numpy.ndarray` arguments.
"""

import math
import numpy as np


def angle(v, w, deg=False):
    r""" Angle between vectors.

    Unsigned angle between vectors :math:`\mathbf{v}` and
    :math:`\mathbf{w}` in the range :math:`[0, \pi]`.

    Parameters
    ----------
    v, w : ~numpy.ndarray, shape (3, )
        Vector in 3-space.
    deg : bool, optional
        Convert result from radians to degrees.

    Returns
    -------
    float
        Angle in degrees or radians. Zero if one of the vectors vanishes.
    """
    denom = norm(v) * norm(w)

    if denom == 0.0:
        return 0.0

    alpha = math.acos(clamp(v.dot(w) / denom, -1.0, 1.0))

    return math.degrees(alpha) if deg else alpha


def clamp(x, lo, hi):
    """ Clamp value to range.

    Clamp `x` to the closed interval [`lo`, `hi`].

    Parameters
    ----------
    x : float
        Value to clamp.
    lo : float
        Lower bound.
    hi : float
        Upper bound.

    Returns
    -------
    float
        Clamped value.
    """
    assert lo <= hi

    # The order of arguments guarantees that the data type does not
    # change if x is within bounds.
    return max(min(x, hi), lo)


def cross(u, v):
    r""" Cross product.

    Alternative to NumPy's vectorized :func:`~numpy.cross` function.

    Parameters
    ----------
    u, v : array_like, shape (3, )
        Vector in :math:`\mathbb{R}^3`.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Cross product of vectors :math:`\mathbf{u}` and :math:`\mathbf{v}`.
    """
    # Unpack the arrays. This will also catch any problem with array shape.
    u0, u1, u2 = u
    v0, v1, v2 = v

    return np.array([u1*v2 - u2*v1,
                     u2*v0 - u0*v2,
                     u0*v1 - u1*v0])


def norm(u):
    r""" Length of vector.

    Parameters
    ----------
    u : ~numpy.ndarray, shape (n, )
        Vector in :math:`\mathbb{R}^n`.

    Returns
    -------
    float
        Euclidean length of the vector :math:`\mathbf{u}`.
    """
    return math.sqrt(u.dot(u))


def sqrd(u):
    """ Squared length of vector.
    """
    return u.dot(u)


def unit(u):
    r""" Vector normalization.

    Parameters
    ----------
    u : ~numpy.ndarray, shape (3, )
        Vector in :math:`\mathbb{R}^3`.

    Returns
    -------
    ~numpy.ndarray, shape (3, )
        Normalized copy of input vector. The zero vector is returned
        unchanged.
    """
    length = norm(u)

    return u / length if length > 0.0 else u.copy()


def cotan(u, v):
    r""" Cotangent of angle between vectors.

    Computes :math:`\cot(\alpha) = \cos(\alpha) / \sin(\alpha)` from the
    dot and cross product of the vectors without evaluating
    trigonometric functions.

    Parameters
    ----------
    u, v : ~numpy.ndarray, shape (3, )
        Vector in 3-space.

    Returns
    -------
    float
        Cotangent of the enclosed angle, ``inf`` for parallel vectors.
    """
    sin_alpha = norm(cross(u, v))

    if sin_alpha == 0.0:
        return math.inf

    return u.dot(v) / sin_alpha


def triangle_area(a, b, c):
    """ Area of a triangle.

    Parameters
    ----------
    a, b, c : ~numpy.ndarray, shape (3, )
        Triangle corners.

    Returns
    -------
    float
        Non-negative triangle area.
    """
    return 0.5 * norm(cross(b - a, c - a))


def triangle_normal(a, b, c):
    """ Unit normal of a triangle.

    Orientation follows the right-hand rule for the corner sequence
    `a`, `b`, `c`. Degenerate triangles produce the zero vector.
    """
    return unit(cross(b - a, c - a))


def aspect_ratio(a, b, c):
    """ Triangle aspect ratio.

    Ratio of the longest edge to the smallest height of a triangle. An
    equilateral triangle has aspect ratio :math:`2 / \\sqrt{3}`.

    Returns
    -------
    float
        Aspect ratio, ``inf`` for degenerate triangles.
    """
    area2 = norm(cross(b - a, c - a))

    if area2 == 0.0:
        return math.inf

    longest = max(sqrd(b - a), sqrd(c - b), sqrd(a - c))

    # Smallest height belongs to the longest edge: h = 2A / l.
    return longest / area2


def closest_point_triangle(p, a, b, c):
    """ Closest point on a triangle.

    Region based closest point computation, see Ericson, *Real-Time
    Collision Detection*, section 5.1.5.

    Parameters
    ----------
    p : ~numpy.ndarray, shape (3, )
        Query point.
    a, b, c : ~numpy.ndarray, shape (3, )
        Triangle corners.

    Returns
    -------
    point : ~numpy.ndarray, shape (3, )
        Closest point on the triangle.
    bary : ~numpy.ndarray, shape (3, )
        Barycentric coordinates of `point` with respect to `a`, `b`, `c`.
    """
    ab = b - a
    ac = c - a
    ap = p - a

    d1 = ab.dot(ap)
    d2 = ac.dot(ap)

    if d1 <= 0.0 and d2 <= 0.0:
        return a.copy(), np.array([1.0, 0.0, 0.0])

    bp = p - b
    d3 = ab.dot(bp)
    d4 = ac.dot(bp)

    if d3 >= 0.0 and d4 <= d3:
        return b.copy(), np.array([0.0, 1.0, 0.0])

    vc = d1*d4 - d3*d2

    if vc <= 0.0 and d1 >= 0.0 and d3 <= 0.0:
        t = d1 / (d1 - d3)
        return a + t * ab, np.array([1.0 - t, t, 0.0])

    cp = p - c
    d5 = ab.dot(cp)
    d6 = ac.dot(cp)

    if d6 >= 0.0 and d5 <= d6:
        return c.copy(), np.array([0.0, 0.0, 1.0])

    vb = d5*d2 - d1*d6

    if vb <= 0.0 and d2 >= 0.0 and d6 <= 0.0:
        t = d2 / (d2 - d6)
        return a + t * ac, np.array([1.0 - t, 0.0, t])

    va = d3*d6 - d5*d4

    if va <= 0.0 and (d4 - d3) >= 0.0 and (d5 - d6) >= 0.0:
        t = (d4 - d3) / ((d4 - d3) + (d5 - d6))
        return b + t * (c - b), np.array([0.0, 1.0 - t, t])

    # Query point projects into the interior of the triangle.
    denom = 1.0 / (va + vb + vc)
    s = vb * denom
    t = vc * denom

    return a + s * ab + t * ac, np.array([1.0 - s - t, s, t])
