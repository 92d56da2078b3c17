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

""" Connected components.

A component is a maximal set of faces connected by shared edges. The
:class:`Component` view references items of its mesh, it does not copy
any data and becomes invalid when the mesh is modified.
"""

from collections import deque

import surfmesh.linalg as linalg
import surfmesh.traits as traits


class Component:
    """ Component view.

    Parameters
    ----------
    mesh : Mesh
        The parent mesh.
    faces : list[Face]
        Faces of the component in discovery order.
    """

    def __init__(self, mesh, faces):
        self._mesh = mesh
        self._faces = faces

        face_set = set(faces)
        self._face_set = face_set
        verts = dict()
        edges = dict()

        for f in faces:
            for h in f._hiter():
                verts.setdefault(h._origin, None)

                e = h if h._origin._idx < h._target._idx else h._pair
                edges.setdefault(e, None)

        self._verts = list(verts)
        self._edges = list(edges)

        # Boundary loops of the component. Halfedges whose pair belongs
        # to the component.
        borders = []
        visited = set()

        for e in self._edges:
            for h in (e, e._pair):
                if h._face is not None or h in visited:
                    continue

                if h._pair._face not in face_set:
                    continue

                loop = []
                hh = h

                while hh not in visited:
                    visited.add(hh)
                    loop.append(hh)
                    hh = hh._next

                borders.append(loop)

        self._borders = borders

    def __repr__(self):
        return (f'Component(faces={self.n_faces}, ' +
                f'vertices={self.n_vertices}, edges={self.n_edges})')

    def __contains__(self, face):
        return face in self._face_set

    @property
    def mesh(self):
        """ Parent mesh.

        :type: Mesh
        """
        return self._mesh

    @property
    def faces(self):
        """ Faces in discovery order.

        :type: list[Face]
        """
        return self._faces

    @property
    def vertices(self):
        """ Vertices in order of first appearance.

        :type: list[Vertex]
        """
        return self._verts

    @property
    def edges(self):
        """ Edge representatives.

        :type: list[Halfedge]
        """
        return self._edges

    @property
    def borders(self):
        """ Boundary loops.

        Each loop is a list of boundary halfedges in traversal order.

        :type: list[list[Halfedge]]
        """
        return self._borders

    @property
    def n_faces(self):
        return len(self._faces)

    @property
    def n_vertices(self):
        return len(self._verts)

    @property
    def n_edges(self):
        return len(self._edges)

    @property
    def n_borders(self):
        """ Number of boundary loops.

        :type: int
        """
        return len(self._borders)

    @property
    def largest_border_size(self):
        """ Number of halfedges of the longest boundary loop.

        Zero for closed components.

        :type: int
        """
        return max((len(loop) for loop in self._borders), default=0)

    @property
    def euler_characteristic(self):
        r""" Euler characteristic :math:`\chi = V - E + F`.

        :type: int
        """
        return self.n_vertices - self.n_edges + self.n_faces

    @property
    def area(self):
        """ Surface area.

        :type: float
        """
        return float(sum(traits.face_area(f) for f in self._faces))

    @property
    def border_length(self):
        """ Total length of all boundary loops.

        :type: float
        """
        return float(sum(linalg.norm(h.vector)
                         for loop in self._borders for h in loop))


def _flood_fill(seed, label, number, adjacent):
    """ Breadth-first face traversal.

    Parameters
    ----------
    seed : Face
        Start face, not labelled yet.
    label : dict
        Maps visited faces to component numbers, updated in place.
    number : int
        Number assigned to the faces reached from `seed`.
    adjacent : callable
        ``adjacent(h)`` decides whether the faces on both sides of an
        interior halfedge `h` belong to the same part.

    Returns
    -------
    list[Face]
        Faces reached from `seed` in discovery order.
    """
    label[seed] = number
    faces = [seed]
    queue = deque(faces)

    while queue:
        f = queue.popleft()

        for h in f._hiter():
            g = h._pair._face

            if g is None or g in label or not adjacent(h):
                continue

            label[g] = number
            faces.append(g)
            queue.append(g)

    return faces


def extract_components(mesh, adjacent=None):
    """ Split a mesh into connected components.

    Components are discovered by face adjacency flood fill, starting
    at the live face of lowest index not yet assigned to a component.
    The result is a partition of the live faces.

    Parameters
    ----------
    mesh : Mesh
        A mesh.
    adjacent : callable, optional
        Edge predicate, see :func:`_flood_fill`. All shared edges
        connect faces by default.

    Returns
    -------
    list[Component]
        Components in discovery order.
    """
    if adjacent is None:
        adjacent = lambda h: True

    label = dict()
    components = []

    for f in mesh._fiter():
        if f not in label:
            faces = _flood_fill(f, label, len(components), adjacent)
            components.append(Component(mesh, faces))

    return components
