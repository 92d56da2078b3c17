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

""" Topological classification.

Components are classified by their Euler characteristic and number of
boundary loops:

=========== ======= =============
 borders     chi     type
=========== ======= =============
 0           2       sphere
 0           0       torus
 0           other   unknown closed
 1           1       disc
 2           0       cylinder
 other               unknown open
=========== ======= =============
"""

from enum import Enum

from surfmesh.components import Component, extract_components


class TopologyType(Enum):
    """ Surface types distinguished by :func:`classify`.
    """

    SPHERE = 'sphere'
    DISC = 'disc'
    CYLINDER = 'cylinder'
    TORUS = 'torus'
    UNKNOWN_CLOSED = 'unknown closed'
    UNKNOWN_OPEN = 'unknown open'


def _component(item):
    if isinstance(item, Component):
        return item

    components = extract_components(item)

    if len(components) != 1:
        msg = f'expected a connected mesh, found {len(components)} components'
        raise ValueError(msg)

    return components[0]


def classify(item):
    """ Classify a component.

    Parameters
    ----------
    item : Component or Mesh
        A component or a connected mesh.

    Raises
    ------
    ValueError
        If a mesh argument is not connected.

    Returns
    -------
    TopologyType
    """
    c = _component(item)

    chi = c.euler_characteristic
    borders = c.n_borders

    if borders == 0:
        if chi == 2:
            return TopologyType.SPHERE

        if chi == 0:
            return TopologyType.TORUS

        return TopologyType.UNKNOWN_CLOSED

    if borders == 1 and chi == 1:
        return TopologyType.DISC

    if borders == 2 and chi == 0:
        return TopologyType.CYLINDER

    return TopologyType.UNKNOWN_OPEN


def number_of_borders(item):
    """ Number of boundary loops of a component.
    """
    return _component(item).n_borders


def largest_border_size(item):
    """ Halfedge count of the longest boundary loop.
    """
    return _component(item).largest_border_size


def is_closed(item):
    return _component(item).n_borders == 0


def is_sphere(item):
    return classify(item) is TopologyType.SPHERE


def is_disc(item):
    return classify(item) is TopologyType.DISC


def is_cylinder(item):
    return classify(item) is TopologyType.CYLINDER


def is_torus(item):
    return classify(item) is TopologyType.TORUS


def genus(item):
    """ Genus of a closed orientable component.

    Raises
    ------
    ValueError
        If the component has a boundary.
    """
    c = _component(item)

    if c.n_borders:
        raise ValueError('genus is defined for closed components')

    return (2 - c.euler_characteristic) // 2


def report(mesh):
    """ Classify all components of a mesh.

    Returns
    -------
    list[tuple[Component, TopologyType]]
    """
    return [(c, classify(c)) for c in extract_components(mesh)]
