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

""" Face labelling.

Assign integer part numbers to faces and store them in a face data
block. Parts are numbered in discovery order starting at zero. Deleted
faces are labelled -1.
"""

import math

import surfmesh.traits as traits

from surfmesh.components import extract_components


def _label(mesh, name, components):
    labels = mesh.get_or_add_property('f', name, dtype=int, default=-1)
    labels[...] = -1

    for number, c in enumerate(components):
        for f in c.faces:
            labels[f] = number

    return len(components)


def enumerate_connected_components(mesh, name='component'):
    """ Label connected components.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    name : str, optional
        Name of the integer face data block.

    Returns
    -------
    int
        Number of components.
    """
    return _label(mesh, name, extract_components(mesh))


def enumerate_planar_components(mesh, name='planar', angle=1.0):
    """ Label planar regions.

    Adjacent faces belong to the same region if their normals enclose
    an angle below the threshold.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    name : str, optional
        Name of the integer face data block.
    angle : float, optional
        Threshold in degrees.

    Returns
    -------
    int
        Number of planar regions.
    """
    normals = traits.face_normals(mesh)
    cos_max = math.cos(math.radians(angle))

    def adjacent(h):
        return normals[h._face].dot(normals[h._pair._face]) >= cos_max

    return _label(mesh, name, extract_components(mesh, adjacent))
