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


""" Mesh traversal.

Neighborhood iterators around vertices and faces, mesh-wide item
iterators, and the enumeration of boundary loops. One-ring traversals
are counter-clockwise with respect to the mesh orientation.

Mesh-wide iterators skip items marked as deleted. Algorithms that
delete or collapse while iterating use the ``*_frozen`` variants, which
iterate over a snapshot taken when the iterator is created.
"""

from collections import deque


def verts(obj):
    """ Vertices around a mesh item.

    ============ ==============================================
    ``Vertex``   one-ring neighbors, counter-clockwise
    ``Face``     corners of the face, counter-clockwise
    ``Mesh``     live vertices in index order
    ============ ==============================================

    Parameters
    ----------
    obj : Vertex or Face or Mesh
        Center of the traversal.

    Yields
    ------
    Vertex
    """
    return obj._viter()


def verts_bfs(item, stop=None, start=0):
    """ Vertices ordered by edge distance.

    Parameters
    ----------
    item : Vertex or Halfedge or Face
        Seed. The vertices of an edge or a face are at distance zero.
    stop : int, optional
        Largest edge distance reported. Unbounded by default.
    start : int, optional
        Smallest edge distance reported.

    Yields
    ------
    Vertex
        Vertex in breadth-first order.
    int
        Its edge distance to `item`.
    """
    try:
        ring = list(item)
    except TypeError:
        ring = [item]

    dist = {v: 0 for v in ring}
    queue = deque(ring)

    while queue:
        v = queue.popleft()

        if stop is not None and dist[v] > stop:
            break

        if dist[v] >= start:
            yield v, dist[v]

        for w in v._viter():
            if w not in dist:
                dist[w] = dist[v] + 1
                queue.append(w)


def verts_frozen(obj):
    """ Snapshot of :func:`verts`.
    """
    return iter(list(obj._viter()))


def halfs(obj):
    """ Halfedges around a mesh item.

    ============ ==============================================
    ``Vertex``   outgoing halfedges, counter-clockwise
    ``Face``     halfedges of the face loop
    ``Mesh``     all live halfedges
    ============ ==============================================

    Parameters
    ----------
    obj : Vertex or Face or Mesh
        Center of the traversal.

    Yields
    ------
    Halfedge
    """
    return obj._hiter()


def halfs_frozen(obj):
    """ Snapshot of :func:`halfs`.
    """
    return iter(list(obj._hiter()))


def edges(mesh):
    """ One halfedge per edge.

    Parameters
    ----------
    mesh : Mesh or Face

    Yields
    ------
    Halfedge
        Representative of an edge, its pair is not reported.
    """
    return mesh._eiter()


def edges_frozen(mesh):
    """ Snapshot of :func:`edges`.
    """
    return iter(list(mesh._eiter()))


def faces(obj):
    """ Faces around a mesh item.

    ============ ==============================================
    ``Vertex``   incident faces, counter-clockwise
    ``Face``     faces sharing an edge with the face
    ``Mesh``     live faces in index order
    ============ ==============================================

    Parameters
    ----------
    obj : Vertex or Face or Mesh
        Center of the traversal.

    Yields
    ------
    Face
    """
    return obj._fiter()


def faces_frozen(obj):
    """ Snapshot of :func:`faces`.
    """
    return iter(list(obj._fiter()))


def borders(mesh):
    """ Boundary loop iterator.

    Each boundary loop is reported once, as the list of its boundary
    halfedges in traversal order. Loops are reported in the order
    their first halfedge appears in :attr:`~Mesh.halfedges`.

    Parameters
    ----------
    mesh : Mesh
        Mesh instance.

    Yields
    ------
    list[Halfedge]
    """
    visited = set()

    for h in list(mesh._hiter()):
        if h._face is not None or h in visited:
            continue

        loop = []
        hh = h

        while hh not in visited:
            visited.add(hh)
            loop.append(hh)
            hh = hh._next

        yield loop
