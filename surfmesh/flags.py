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

""" Mesh item flags.

Flags are stored per mesh item and survive topological edits of other
items. Algorithms read them to decide which vertices and edges may be
moved, split, collapsed or flipped.

Note
----
Python enumerations cannot be subclassed. User defined flags are not
supported, use a data block instead (see :meth:`~surfmesh.hds.Mesh.add_property`).
"""

from enum import Flag
from enum import auto


class VertexFlag(Flag):
    """ Vertex flags enumeration.
    """

    FIXED = auto()
    """ Fixed flag.

    Indicates that algorithms should not change vertex coordinates
    when this flag is set. Smoothing and fairing treat fixed vertices
    as constraints."""

    CORNER = auto()
    """ Corner flag. """

    FEATURE = auto()
    """ Feature flag.

    Set for endpoints of crease edges by :mod:`~surfmesh.features`."""


class HalfedgeFlag(Flag):
    """ Halfedge flags enumeration.

    Edge flags are kept consistent on both halfedges of an edge.
    """

    CREASE = auto()
    """ Crease flag. Marks sharp feature edges. """

    SEAM = auto()
    """ Seam flag. Marks stitched or cut edges. """


class FaceFlag(Flag):
    """ Face flags enumeration.
    """

    SELECTED = auto()
    """ Selection flag. """

    FILLED = auto()
    """ Set for faces created by hole filling. """
