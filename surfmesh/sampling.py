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

""" Surface sampling.

Uniformly distributed random points on a mesh. Triangles are drawn with
probability proportional to their area, points inside a triangle are
placed with the square root parameterization of Osada et al.,

.. math::

    p = (1 - \\sqrt{r_1}) a + \\sqrt{r_1} (1 - r_2) b + \\sqrt{r_1} r_2 c,

where :math:`r_1, r_2` are uniform in :math:`[0, 1)`. Polygons are
sampled through a triangle fan.
"""

import numpy as np

from surfmesh.config import SamplingConfig


def _triangles(mesh):
    triangles = []

    for f in mesh._fiter():
        idx = [v._idx for v in f._viter()]

        for j in range(1, len(idx) - 1):
            triangles.append((idx[0], idx[j], idx[j + 1]))

    return np.array(triangles, dtype=int).reshape(-1, 3)


def sample(mesh, config):
    """ Random surface samples.

    Parameters
    ----------
    mesh : Mesh
        Mesh to sample.
    config : SamplingConfig or int
        Number of points and random seed. An integer is interpreted as
        the number of points.

    Raises
    ------
    ValueError
        If the mesh has no surface area.

    Returns
    -------
    points : ~numpy.ndarray, shape (n, 3)
        Sample points.
    normals : ~numpy.ndarray, shape (n, 3)
        Unit normals of the triangles the samples were drawn from.
    """
    if not isinstance(config, SamplingConfig):
        config = SamplingConfig(n_points=config)

    rng = np.random.default_rng(config.seed)

    triangles = _triangles(mesh)

    if not len(triangles):
        raise ValueError('cannot sample a mesh without faces')

    a, b, c = (mesh.points[triangles[:, k]] for k in range(3))

    cross = np.cross(b - a, c - a)
    areas = 0.5 * np.linalg.norm(cross, axis=1)
    total = areas.sum()

    if not total > 0.0:
        raise ValueError('cannot sample a mesh without surface area')

    picks = rng.choice(len(triangles), size=config.n_points, p=areas / total)

    r1 = np.sqrt(rng.random(config.n_points))[:, None]
    r2 = rng.random(config.n_points)[:, None]

    points = ((1.0 - r1) * a[picks] + r1 * (1.0 - r2) * b[picks] +
              r1 * r2 * c[picks])

    normals = cross[picks] / (2.0 * areas[picks])[:, None]

    return points, normals
