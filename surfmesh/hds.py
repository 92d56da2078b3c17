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

""" Halfedge data structure.

An oriented polygonal surface mesh (with or without boundary) is
described by three containers:

    - a list of :class:`Vertex` objects,
    - a list of :class:`Face` objects,
    - and a dictionary of :class:`Halfedge` objects keyed by their
      (origin, target) vertex pair.

These containers and the relations between their items are managed by
the :class:`Mesh` class. Vertices and faces implement
:meth:`~object.__index__` and can be used directly as indices into the
vertex coordinate array and into vertex and face data blocks.

Topological edits never free items. Removed items are marked as
deleted and stay in their containers until :meth:`Mesh.clean` compacts
the containers and renumbers vertex and face indices. Edits that only
create items (:meth:`~Mesh.split_edge`, :meth:`~Mesh.split_face`,
:meth:`~Mesh.insert_edge`, :meth:`~Mesh.flip_edge`) are safe while
iterating over a snapshot of a container. Code that collapses or deletes
while iterating has to skip items whose :attr:`deleted` attribute is
set.

Note
----
To ease debugging, this module relies on assertions which can slow down
script execution. You can disable assertions by running in optimized mode
via the "-O" command line argument.
"""

from copy import copy
from pathlib import Path

import numpy as np

import surfmesh.obj as obj
import surfmesh.flags as flags


class Mesh:
    """ Mesh kernel.

    The combinatorics of a mesh can be built by converting a sequence of
    vertex coordinates and a sequence of face definitions to its halfedge
    representation, or incrementally via :meth:`add_vertex` and
    :meth:`add_face`.

    Parameters
    ----------
    points : array_like, shape (n, 3), optional
        Vertex coordinates. Copied into an array owned by the mesh.
    faces : array_like, optional
        Face definitions, 0-based vertex indexing.
    name : str, optional
        Name tag.

    Raises
    ------
    NonManifoldError
        When a face cannot be inserted without breaking the halfedge
        structure.
    """

    def __init__(self, points=None, faces=None, *, name=None):
        CWHITERED = '\33[41m'               # white on red background
        CEND = '\33[0m'

        if points is None and faces is not None:
            msg = "face definitions require 'points' argument != None"
            raise ValueError(msg)

        # The mesh owns its coordinate buffer. This is required for
        # in-place resizing when vertices are added or removed.
        if points is not None and len(points):
            self._points = np.array(points, dtype=float)
            self._verts = [Vertex(i, parent=self)
                           for i in range(len(self._points))]
        else:
            self._points = None
            self._verts = []

        # Sets of outgoing halfedges per vertex. Used to detect and handle
        # non-manifold vertices and to keep adjacency queries cheap.
        self._vhout = {v: set() for v in self._verts}

        # User defined data blocks keyed on (kind, name) where kind is one
        # of 'v', 'h', 'e', or 'f'.
        self._props = dict()

        # A dictionary that maps pairs of vertices to halfedges. Useful
        # and efficient for checking if vertices are adjacent.
        self._halfs = dict()
        self._faces = []

        if faces is not None:
            for face in faces:
                self.add_face(face)

            if any(v.isolated for v in self._verts):
                print(f'{CWHITERED}there are isolated vertices{CEND}')

            if any(not v.manifold for v in self._verts):
                print(f'{CWHITERED}there are non-manifold vertices{CEND}')

        self.name = name

    def __iter__(self):
        """ Face iterator.

        The returned iterator visits all faces of a mesh that are **not**
        marked as deleted in order of ascending face indices.

        Yields
        ------
        Face
            Next face in insertion order traversal.
        """
        return (f for f in self._faces if not f._deleted)

    def __copy__(self):
        return self.copy()

    def __bool__(self):
        return True

    @property
    def points(self):
        """ Vertex coordinate array.

        Direct read and write access to vertex coordinates. Changing the
        size of the coordinate array is likely to break the halfedge data
        structure.

        :type: ~numpy.ndarray

        Note
        ----
        The vertex coordinate array contains coordinate entries of deleted
        vertices. Calling :meth:`clean` removes those entries.
        """
        return self._points

    @points.setter
    def points(self, value):
        value = np.array(value, dtype=float)

        if self._points is not None and value.shape != self._points.shape:
            raise ValueError(f'expected shape {self._points.shape}, ' +
                             f'got {value.shape}')

        self._points = value

    @property
    def vertices(self):
        """ Vertex list.

        Read access to the vertex list. This list should not be modified
        directly. It may contain deleted vertices.

        :type: list[Vertex]
        """
        return self._verts

    @property
    def faces(self):
        """ Face list.

        Read access to the face list. This list should not be modified
        directly. It may contain deleted faces.

        :type: list[Face]
        """
        return self._faces

    @property
    def halfedges(self):
        """ Halfedge dictionary.

        Dictionary that maps pairs of :class:`Vertex` objects to
        :class:`Halfedge` instances. Deleted halfedges are never part of
        this dictionary. To check whether two vertices are adjacent use

        .. code-block:: python

           (v, w) in mesh.halfedges

        :type: dict
        """
        return self._halfs

    @property
    def size(self):
        """ Mesh size.

        Mesh size **not** accounting for deleted vertices and faces. The
        attribute value :math:`(v, e, f)` holds the number of vertices,
        the number of edges, and the number of faces.

        :type: (int, int, int)
        """
        assert len(self._halfs) % 2 == 0

        return (sum(1 for _ in self._viter()),
                len(self._halfs) // 2,
                sum(1 for _ in self._fiter()))

    @property
    def euler_characteristic(self):
        r""" Euler characteristic.

        The value :math:`\chi = V - E + F` computed from :attr:`size`.

        :type: int
        """
        v, e, f = self.size
        return v - e + f

    @property
    def garbage(self):
        """ Deletion state.

        :obj:`True` if any vertex or face is marked as deleted, i.e., if
        :meth:`clean` would change the mesh containers.

        :type: bool
        """
        return (any(v._deleted for v in self._verts) or
                any(f._deleted for f in self._faces))

    @property
    def name(self):
        """ Name tag.

        :type: str or None
        """
        return self._name

    @name.setter
    def name(self, value):
        self._name = value if value is None else Path(value).stem

    def is_triangle_mesh(self):
        """ Check for pure triangle mesh.

        Returns
        -------
        bool
            :obj:`True` if all faces are triangles. An empty mesh is
            considered a triangle mesh.
        """
        return all(len(f) == 3 for f in self._fiter())

    def is_quad_mesh(self):
        """ Check for pure quadrilateral mesh.
        """
        return all(len(f) == 4 for f in self._fiter())

    def bounding_box(self):
        """ Axis-aligned bounding box of live vertices.

        Returns
        -------
        a : ~numpy.ndarray
            Holds the minimum value for each dimension.
        b : ~numpy.ndarray
            Holds the maximum value for each dimension.
        """
        idx = [v._idx for v in self._viter()]

        if not idx:
            raise ValueError('bounding box of an empty mesh')

        points = self._points[idx]
        return np.min(points, axis=0), np.max(points, axis=0)

    def add_vertex(self, point):
        """ Create and add new vertex.

        Parameters
        ----------
        point : array_like, shape (3, )
            Vertex coordinates.

        Raises
        ------
        ValueError
            If `point` has the wrong shape.

        Returns
        -------
        Vertex
            The newly created :class:`Vertex` instance.

        Note
        ----
        Vertex data blocks are extended by the default value specified
        when the data block was added.
        """
        # Copy, the argument may be a view of the coordinate array which
        # is invalidated by the resize below.
        point = np.array(point, dtype=float)

        if point.shape != (3, ):
            raise ValueError(f'expected point of shape (3,), ' +
                             f'got {point.shape}')

        self._points = obj._array_append(self._points, point)

        v = Vertex(len(self._verts), parent=self)

        self._verts.append(v)
        self._vhout[v] = set()
        self._add_prop_values('v')

        return v

    def add_face(self, face, *args):
        """ Create and add new face.

        Vertex identifiers used in the definition of a face have to
        refer to existing vertices of the mesh. Face insertion either
        succeeds or leaves the mesh unchanged.

        A face may close the gap between two fans of a vertex. Further
        fans around that vertex are moved to another border gap, which
        is how meshes get built in arbitrary face order.

        Parameters
        ----------
        face : list[int] or list[Vertex]
            Combinatorial face definition, counter-clockwise.
        *args
            Variable number of :class:`Vertex` or :class:`int` arguments.

        Raises
        ------
        NonManifoldError
            If the face would duplicate an interior halfedge, attach
            to an interior vertex, or close a gap for which no other
            gap around the vertex is left.
        IndexError
            If the given vertex indices are out of bounds.
        ValueError
            If the given arguments do not define a valid face.

        Returns
        -------
        Face
            The newly created :class:`Face` instance.
        """
        face = [face, *args] if len(args) else list(face)
        n = len(face)

        # Check for degeneracies: All vertices have to be topologically
        # different. If this test is passed there still need to be at
        # least three vertices. Duplicate coordinates are not a problem.
        if len(set(int(v) for v in face)) != n:
            raise ValueError('face contains duplicate vertices')

        if n < 3:
            raise ValueError('face has less than three vertices')

        # Resolve vertex identifiers first. This can raise an IndexError
        # before anything has been modified.
        verts = [self._verts[v] for v in face]

        # Dry run. halfs[k] is the existing halfedge from verts[k] to
        # verts[k+1] or None, free[k] an existing outgoing border
        # halfedge of verts[k] or None.
        halfs = []
        free = []

        for k in range(n):
            v = verts[k]
            w = verts[(k + 1) % n]

            assert not v._deleted or not self._vhout[v]

            h = self._halfs.get((v, w))

            if h is not None and h._face is not None:
                msg = f'edge ({v._idx}, {w._idx}) is non-manifold'
                raise NonManifoldError(msg)

            border = [hh for hh in self._vhout[v] if hh._face is None]

            if self._vhout[v] and not border:
                msg = f'vertex #{v._idx} is an interior vertex'
                raise NonManifoldError(msg)

            if not border:
                free.append(None)
            elif v._halfedge in border:
                free.append(v._halfedge)
            else:
                free.append(border[0])

            halfs.append(h)

        # Both border halfedges next to a vertex exist: they have to be
        # consecutive in the border loop. Otherwise the fans in between
        # are moved to another gap. Changes are logged and reverted when
        # no such gap exists.
        log = []

        def link(a, b):
            log.append((a, a._next, b, b._prev))
            a._next = b
            b._prev = a

        for k in range(n):
            inner_prev = halfs[k - 1]
            inner_next = halfs[k]

            if inner_prev is None or inner_next is None:
                continue

            if inner_prev._next is inner_next:
                continue

            # Rotate over the incoming halfedges of the vertex to find
            # a border gap other than the one the face closes.
            start = inner_next._pair
            hh = start

            while True:
                hh = hh._next._pair

                if hh._face is None and hh is not inner_prev:
                    break

                if hh is start:
                    hh = None
                    break

            if hh is None or hh._next is inner_next:
                for a, a_next, b, b_prev in reversed(log):
                    a._next = a_next
                    b._prev = b_prev

                msg = f'no free border gap at vertex #{verts[k]._idx}'
                raise NonManifoldError(msg)

            boundary_next = hh._next
            patch_start = inner_prev._next
            patch_end = inner_next._prev

            link(hh, patch_start)
            link(patch_end, boundary_next)
            link(inner_prev, inner_next)

        f = Face(len(self._faces))          # new face object
        new = [h is None for h in halfs]

        # Missing edges are created together with their border pair.
        for k in range(n):
            if new[k]:
                v = verts[k]
                w = verts[(k + 1) % n]

                halfs[k] = self._add_halfedge(v, w)
                self._add_halfedge(w, v)

        # Collect next pointers first, then update. Every case reads
        # pointers of halfedges that existed before.
        cache = []

        for k in range(n):
            inner_prev = halfs[k - 1]
            inner_next = halfs[k]

            outer_prev = inner_next._pair
            outer_next = inner_prev._pair

            if new[k - 1] and not new[k]:
                cache.append((inner_next._prev, outer_next))
            elif new[k] and not new[k - 1]:
                cache.append((outer_prev, inner_prev._next))
            elif new[k - 1] and new[k]:
                if free[k] is None:
                    cache.append((outer_prev, outer_next))
                else:
                    # New fan in an existing gap of the vertex.
                    cache.append((free[k]._prev, outer_next))
                    cache.append((outer_prev, free[k]))

            cache.append((inner_prev, inner_next))

        for a, b in cache:
            a._next = b
            b._prev = a

        for h in halfs:
            h._face = f

        self._faces.append(f)
        f._halfedge = halfs[0]

        # Boundary vertices keep a boundary halfedge as their outgoing
        # halfedge. Fan traversal then starts at the border.
        for v in verts:
            self._adjust_outgoing_halfedge(v)

        self._add_prop_values('f')

        return f

    def add_property(self, kind, name, dtype=float, default=0, shape=()):
        """ Add data block.

        Attach named data to all mesh items of one kind. Values for items
        created later are initialized with `default`.

        Parameters
        ----------
        kind : str
            One of 'v' (vertices), 'h' (halfedges), 'e' (edges), or
            'f' (faces).
        name : str
            Name of the data block.
        dtype : data-type, optional
            Value type, used to validate later lookups.
        default : object, optional
            Value of newly created items.
        shape : tuple, optional
            Shape of a single value, e.g. ``(3, )`` for vectors.

        Raises
        ------
        ValueError
            If a data block with the same kind and name already exists
            or `kind` is invalid.

        Returns
        -------
        ~numpy.ndarray or HalfedgeData
            The data block. Vertex and face data is stored in arrays
            indexed by vertices or faces, halfedge and edge data in
            dictionaries keyed by halfedges.


        To attach a vector to each vertex of a mesh we can do

        .. code-block:: python

            vecs = mesh.add_property('v', 'vecs', shape=(3, ))

            for v in mesh.vertices:
                vecs[v] = ...
        """
        if kind not in ('v', 'h', 'e', 'f'):
            raise ValueError(f"invalid data block kind '{kind}'")

        if (kind, name) in self._props:
            raise ValueError(f"data block '{kind}:{name}' already exists")

        dtype = np.dtype(dtype)

        if kind in ('v', 'f'):
            items = self._verts if kind == 'v' else self._faces
            data = np.empty((len(items), *shape), dtype=dtype)
            data[...] = default
        elif kind == 'h':
            data = HalfedgeData(dtype, default)
        else:
            data = EdgeData(dtype, default)

        self._props[kind, name] = (data, default)

        return data

    def property(self, kind, name, dtype=None):
        """ Access data block.

        Parameters
        ----------
        kind : str
            One of 'v', 'h', 'e', or 'f'.
        name : str
            Name of the data block.
        dtype : data-type, optional
            Expected value type.

        Raises
        ------
        KeyError
            If there is no such data block.
        PreconditionError
            If `dtype` does not match the value type of the data block.

        Returns
        -------
        ~numpy.ndarray or HalfedgeData
            The data block.
        """
        data, _ = self._props[kind, name]

        if dtype is not None and np.dtype(dtype) != data.dtype:
            msg = (f"data block '{kind}:{name}' stores {data.dtype}, " +
                   f"not {np.dtype(dtype)}")
            raise PreconditionError(msg)

        return data

    def has_property(self, kind, name):
        """ Data block existence test.
        """
        return (kind, name) in self._props

    def get_or_add_property(self, kind, name, dtype=float, default=0,
                            shape=()):
        """ Access data block, create it if missing.

        Used by algorithms that write their results into named data
        blocks. See :meth:`add_property` for parameters.
        """
        if (kind, name) in self._props:
            data = self.property(kind, name, dtype)

            if kind in ('v', 'f') and data.shape[1:] != tuple(shape):
                msg = (f"data block '{kind}:{name}' has value shape " +
                       f"{data.shape[1:]}, not {tuple(shape)}")
                raise PreconditionError(msg)

            return data

        return self.add_property(kind, name, dtype, default, shape)

    def remove_property(self, kind, name):
        """ Remove data block.

        Raises
        ------
        KeyError
            If there is no such data block.
        """
        del self._props[kind, name]

    def properties(self, kind):
        """ Names of all data blocks of one kind.
        """
        return [name for k, name in self._props if k == kind]

    def clear(self):
        """ Clear all mesh items.

        Data blocks are kept but emptied.
        """
        self._points = None

        # Lists and dictionary attributes are cleared in place instead of
        # resetting them to a new empty container.
        self._verts.clear()
        self._halfs.clear()
        self._faces.clear()
        self._vhout.clear()

        for data, _ in self._props.values():
            if isinstance(data, dict):
                data.clear()
            else:
                obj._array_shrink(data, [])

    def clean(self):
        """ Garbage collection.

        Removes all deleted mesh items from the respective containers and
        data blocks. Vertex and face indices are renumbered, references to
        deleted items become invalid.
        """
        if self._points is not None:
            assert len(self._points) == len(self._verts)

        # Invalidate all attributes of vertices to be removed from the
        # mesh. This should prevent accidental access by triggering
        # assertions and raising exceptions via outside references.
        for v in self._verts:
            if v._deleted:
                assert not self._vhout[v]
                del self._vhout[v]

        # Find the indices of items *not* marked for deletion.
        vidx = [i for i, v in enumerate(self._verts) if not v._deleted]
        fidx = [i for i, f in enumerate(self._faces) if not f._deleted]

        if self._points is not None:
            if vidx:
                obj._array_shrink(self._points, vidx)
            else:
                self._points = None

        # Data blocks have to be rearranged before changing the
        # corresponding mesh item containers.
        for (kind, _), (data, _) in self._props.items():
            if kind == 'v':
                obj._array_shrink(data, vidx)
            elif kind == 'f':
                obj._array_shrink(data, fidx)
            else:
                for key in [key for key in data if key._deleted]:
                    del data[key]

        for v in self._verts:
            if v._deleted:
                v._invalidate()

        for f in self._faces:
            if f._deleted:
                f._invalidate()

        self._verts[:] = (v for v in self._verts if not v._deleted)
        self._faces[:] = (f for f in self._faces if not f._deleted)

        for i, v in enumerate(self._verts):
            v._idx = i

        for i, f in enumerate(self._faces):
            f._idx = i

    def clone(self, mesh):
        """ In-place mesh copy.

        Implements assignment operator like behavior. Performs the same
        operation as :meth:`copy` but assigns the result to the mesh
        instance `self`.

        Parameters
        ----------
        mesh : Mesh
            Source mesh.

        Returns
        -------
        Mesh
            The mesh `self`.
        """
        vmap, hmap, fmap = self._clone_connectivity_from(mesh)

        self._points = None if mesh._points is None else mesh._points.copy()
        self._props = dict()

        for key, (data, default) in mesh._props.items():
            if isinstance(data, dict):
                data_copy = data.__class__(data.dtype, data.default)
                dict.update(data_copy, ((hmap[h], value)
                                        for h, value in data.items()
                                        if h in hmap))
            else:
                data_copy = data.copy()

            self._props[key] = (data_copy, default)

        self._name = mesh._name

        return self

    def copy(self):
        """ Return mesh copy.

        Duplicate combinatorics, vertex coordinates, flags, and data
        blocks of a mesh. Array data blocks do not share data buffers
        with data blocks of the copy.

        Returns
        -------
        Mesh
            Copy of the mesh.
        """
        return self.__class__().clone(self)

    def delete_vertex(self, vertex):
        """ Delete vertex.

        Deletes all faces incident with `vertex`. Vertices rendered
        isolated by this operation are marked as deleted.

        Parameters
        ----------
        vertex : Vertex or int
            Vertex identifier.
        """
        v = self._verts[vertex]
        assert not v._deleted

        # Collect all faces incident with vertex v. Use _vhout[v] to treat
        # non-manifold vertices correctly.
        faces = {h._face for h in self._vhout[v] if h._face is not None}

        for f in sorted(faces, key=lambda f: f._idx):
            self.delete_face(f)

        v._halfedge = None
        v._deleted = True

    def delete_face(self, face, del_isolated_verts=True):
        """ Delete face.

        Vertices of `face` rendered isolated by the combinatorial face
        removal can be kept as isolated vertices or be marked as deleted.

        Parameters
        ----------
        face : Face or int
            Face identifier.
        del_isolated_verts : bool, optional
            Mark isolated vertices for deletion.

        Note
        ----
        The deleted face is not removed from the mesh's face container
        immediately. It is marked as deleted and removed from the face
        container when calling :meth:`clean`.
        """
        f = self._faces[face]
        assert not f._deleted

        edge_loop = [h for h in f._hiter()]
        verts = [h._origin for h in edge_loop]

        # A boundary face gets merged with the adjacent boundary component.
        # Halfedges that connect the face with the boundary are deleted.
        for h in edge_loop:
            if h._deleted:
                continue

            if h._pair._face is None:
                self.delete_edge(h, del_isolated_verts)
            else:
                h._face = None

        f._deleted = True

        for v in verts:
            if not v._deleted:
                self._adjust_outgoing_halfedge(v)

    def delete_edge(self, halfedge, del_isolated_verts=True):
        """ Merge adjacent faces.

        Merges the incident faces of an edge. Merging across a boundary
        edge will delete the incident non-boundary face. Vertices of
        `halfedge` rendered isolated by the change in mesh combinatorics
        can be kept as isolated vertices or be marked as deleted.

        Parameters
        ----------
        halfedge : Halfedge
            The halfedge that spans the edge to be deleted.
        del_isolated_verts : bool, optional
            Mark isolated vertices for deletion.

        Raises
        ------
        NonManifoldError
            If the operation leads to invalid combinatorics.

        Returns
        -------
        Face
            The merged face or :obj:`None` when merging across the
            boundary. For interior `halfedge`, this is equal to the
            face to its right.

        Note
        ----
        This operation may create *dangling (half)edges*, i.e., halfedges
        where ``h.pair`` equals ``h.next``.
        """
        assert not halfedge._deleted

        # If halfedge is a boundary halfedge we replace it with its pair
        # if this is not at the boundary. In case of dangling edges both
        # halfedges can be boundary halfedges.
        if halfedge._face is None and halfedge._pair._face is not None:
            halfedge = halfedge._pair

        # The face to the left of halfedge gets merged with the face to
        # the right. Neither halfedge nor its pair may be used as the
        # halfedge attribute of this face.
        if halfedge._pair._face is not None:
            h = halfedge._pair._face._halfedge

            while h is halfedge or h is halfedge._pair:
                h = h._next

                if h is halfedge._pair._face._halfedge:
                    break

            if h is halfedge or h is halfedge._pair:
                raise NonManifoldError('halfedge deletion failed')

            halfedge._pair._face._halfedge = h

        # Make sure that the deleted halfedge is not stored as the
        # outgoing halfedge of its origin.
        v = halfedge._origin
        w = halfedge._pair._origin

        for u, hu in ((v, halfedge), (w, halfedge._pair)):
            for h in self._vhout[u]:
                if h is not hu:
                    u._halfedge = h
                    break

            # If no alternative outgoing halfedge could be found, vertex u
            # is a dangling vertex and becomes unused.
            if u._halfedge is hu:
                if del_isolated_verts:
                    u._deleted = True

                u._halfedge = None

        # The face that survives the merge operation. Can be None if a
        # boundary face gets deleted by the merge.
        face = halfedge._pair._face

        if halfedge._pair._face is not halfedge._face:
            halfedge._face._deleted = True
            h = halfedge._next

            # All halfedges of the face to the left get assigned to
            # the face on the right hand side of the halfedge.
            while h is not halfedge:
                h._face = face
                h = h._next

        # Remove the pair of halfedges from face defining halfedge loops.
        # Then pop from the halfedge dictionary.
        halfedge._prev._next = halfedge._pair._next
        halfedge._pair._next._prev = halfedge._prev

        halfedge._next._prev = halfedge._pair._prev
        halfedge._pair._prev._next = halfedge._next

        self._pop_halfedge(halfedge)
        self._pop_halfedge(halfedge._pair)

        for u in (v, w):
            if u._halfedge is not None:
                self._adjust_outgoing_halfedge(u)

        return face

    def collapse_edge(self, halfedge, point=None, *, check=True):
        """ Perform edge collapse.

        Collapse `halfedge` into its :attr:`~Halfedge.origin` vertex. The
        :attr:`~Halfedge.target` vertex of `halfedge` is marked as deleted.
        Triangles incident with the edge disappear, larger faces lose one
        vertex.

        Parameters
        ----------
        halfedge : Halfedge
            Halfedge to be contracted, not a boundary halfedge.
        point : array_like, optional
            Coordinates of collapse location.
        check : bool, optional
            Pass :obj:`False` to skip the collapsibility test.

        Raises
        ------
        NonManifoldError
            If the collapse would change the topology of the mesh. The
            mesh is left unchanged in this case.
        ValueError
            If `halfedge` is a boundary halfedge.

        Returns
        -------
        Vertex
            Reference to the :attr:`~Halfedge.origin` of `halfedge`.

        Note
        ----
        Skipping the check for an edge that is not
        :attr:`~Halfedge.collapsible` results in undefined behavior.
        """

        def prepare_he_loop(h, set_origin_halfedge=True):
            # The length of a face defining loop of halfedges. For a
            # boundary halfedge this is the length of the boundary.
            loop_len = h._compute_loop_len()

            # If the face to the left is a triangle it will disappear
            # during the halfedge collapse operation.
            if loop_len == 3:
                h._face._deleted = True

                # The vertex opposite the halfedge. Ensure its outgoing
                # halfedge is valid after the collapse.
                v = h._next._target
                v._halfedge = h._next._pair

                self._pop_halfedge(h._prev)
                self._pop_halfedge(h._next)
            elif h._face is not None and h._face._halfedge is h:
                h._face._halfedge = h._next

            self._pop_halfedge(h)

            # Ensure the outgoing halfedge of origin stays valid after
            # the halfedge is collapsed.
            if set_origin_halfedge:
                h._origin._halfedge = h._prev._pair

            return loop_len

        def glue_he_faces(h):
            # Glue previous and next halfedge of an edge of a triangle.
            h._prev._pair._pair = h._next._pair
            h._next._pair._pair = h._prev._pair

            # Edge flags of the surviving halfedges have to agree.
            h._prev._pair._flags |= h._next._pair._flags
            h._next._pair._flags = h._prev._pair._flags

        if halfedge._deleted:
            raise ValueError('halfedge is deleted')

        if halfedge._face is None:
            raise ValueError('boundary halfedge cannot be collapsed - ' +
                             'use its pair')

        if check and not halfedge.collapsible:
            msg = f'edge {halfedge} is not collapsible'
            raise NonManifoldError(msg)

        origin = halfedge._origin
        target = halfedge._target
        neighbors = [h._target for h in target._hiter()]

        lt_len = prepare_he_loop(halfedge)
        rt_len = prepare_he_loop(halfedge._pair, set_origin_halfedge=False)

        # All halfedges starting at target now start at origin. The
        # target vertex itself will be unused after the collapse.
        for h in list(self._vhout[target]):
            if lt_len > 3 or h is not halfedge._next:
                self._set_origin(h, origin)

        for w in neighbors:
            h = self._halfs.get((w, target))

            if h is not None and (rt_len > 3 or
                                  h is not halfedge._pair._prev):
                self._set_target(h, origin)

        # Now either glue two halfedges together to delete a neighboring
        # triangle or skip a halfedge in case of larger face valence.
        if lt_len == 3:
            glue_he_faces(halfedge)
        else:
            halfedge._prev._next = halfedge._next
            halfedge._next._prev = halfedge._prev

        if rt_len == 3:
            glue_he_faces(halfedge._pair)
        else:
            halfedge._pair._prev._next = halfedge._pair._next
            halfedge._pair._next._prev = halfedge._pair._prev

        target._deleted = True
        target._halfedge = None

        assert not self._vhout[target]

        if point is not None:
            origin.point = point

        for v in [origin, *neighbors]:
            if not v._deleted:
                self._adjust_outgoing_halfedge(v)

        return origin

    def flip_edge(self, halfedge, *, check=True):
        """ Flip edge.

        Only edges incident to two triangular faces can be flipped. The
        halfedge object is reused: after the flip it connects the
        vertices previously opposite the edge.

        Parameters
        ----------
        halfedge : Halfedge
            The halfedge to be flipped.
        check : bool, optional
            Pass :obj:`False` to skip the flippability test.

        Raises
        ------
        NonManifoldError
            If the edge is not :attr:`~Halfedge.flippable`. The mesh is
            left unchanged in this case.

        Returns
        -------
        Halfedge
            The halfedge resulting from the edge flip.
        """
        if check and not halfedge.flippable:
            msg = f'edge {halfedge} is not flippable'
            raise NonManifoldError(msg)

        v = halfedge._next._target
        w = halfedge._pair._next._target

        origin = halfedge._origin
        target = halfedge._target

        a, b = halfedge._next, halfedge._prev
        c, d = halfedge._pair._next, halfedge._pair._prev

        origin._halfedge = c
        target._halfedge = a

        self._set_vertices(halfedge, w, v)
        self._set_vertices(halfedge._pair, v, w)

        halfedge._next, halfedge._prev = b, c
        halfedge._pair._next, halfedge._pair._prev = d, a

        a._next, a._prev = halfedge._pair, d
        d._next, d._prev = a, halfedge._pair

        b._next, b._prev = c, halfedge
        c._next, c._prev = halfedge, b

        a._face = halfedge._pair._face
        c._face = halfedge._face

        halfedge._face._halfedge = halfedge
        halfedge._pair._face._halfedge = halfedge._pair

        for u in (origin, target):
            self._adjust_outgoing_halfedge(u)

        return halfedge

    def insert_edge(self, face, origin, target):
        """ Insert face diagonal.

        Splits `face` into two polygonal parts.

        Parameters
        ----------
        face : Face
            Polygonal face of a mesh.
        origin : Vertex
            Origin vertex, incident with `face`.
        target : Vertex
            Target vertex, incident with `face`, neither equal nor
            adjacent to `origin` along `face`.

        Raises
        ------
        ValueError
            In case of invalid input.
        NonManifoldError
            If the vertices are already connected by an edge.

        Returns
        -------
        Halfedge
            The newly inserted halfedge. The face to its left is equal
            to `face`.
        """
        if origin is target:
            raise ValueError('halfedge vertices have to be different')

        if origin not in face:
            msg = f'origin vertex {origin!r} is no vertex of {face!r}'
            raise ValueError(msg)

        if target not in face:
            msg = f'target vertex {target!r} is no vertex of {face!r}'
            raise ValueError(msg)

        if (origin, target) in self._halfs:
            msg = f'halfedge ({origin._idx}, {target._idx}) already exists'
            raise NonManifoldError(msg)

        h = self._add_halfedge(origin, target)
        hbar = self._add_halfedge(target, origin)

        # Find the next and previous halfedges of h and hbar among the
        # existing halfedges of face.
        h_next = next(x for x in face._hiter() if x._origin is target)
        hbar_next = next(x for x in face._hiter() if x._origin is origin)

        hbar_prev = h_next._prev
        h_prev = hbar_next._prev

        # The face to the left of h keeps its identifier. A new face is
        # created to the right of it.
        h._next = h_next
        h_next._prev = h
        h._prev = h_prev
        h_prev._next = h
        h._face = face

        face._halfedge = h

        fbar = Face(len(self._faces))
        fbar._halfedge = hbar
        fbar._flags = face._flags

        self._faces.append(fbar)
        self._add_prop_values('f', source=face)

        hbar._next = hbar_next
        hbar_next._prev = hbar
        hbar._prev = hbar_prev
        hbar_prev._next = hbar

        while True:
            hbar._face = fbar
            hbar = hbar._next

            if fbar._halfedge is hbar:
                break

        return h

    def split_edge(self, halfedge, point=None, triangulate=True):
        """ Split edge.

        Subdivides an edge by inserting a new vertex. The resulting
        polygonal faces to the left and right of the edge are
        triangulated on request by connecting the new vertex with the
        opposite vertices.

        Parameters
        ----------
        halfedge : Halfedge
            Halfedge to split.
        point : array_like, optional
            Coordinates of the inserted vertex. By default the halfedge's
            :attr:`~Halfedge.midpoint` is used.
        triangulate : bool, optional
            Connect the new vertex with the remaining vertices of the
            incident triangles.

        Returns
        -------
        Vertex
            The newly inserted vertex. Its :attr:`~Vertex.halfedge`
            points towards the original target of `halfedge`.
        """
        assert not halfedge._deleted

        if point is None:
            point = halfedge.midpoint

        u = halfedge._origin
        v = self.add_vertex(point)
        w = halfedge._target
        pair = halfedge._pair

        # New halfedge from v to w continues halfedge on its left side,
        # hh from v to u continues its pair on the right side.
        h = self._add_halfedge(v, w)
        h._face = halfedge._face
        h._prev = halfedge
        h._next = halfedge._next
        h._next._prev = h
        h._flags = halfedge._flags

        hh = self._add_halfedge(v, u)
        hh._face = pair._face
        hh._prev = pair
        hh._next = pair._next
        hh._next._prev = hh
        hh._flags = pair._flags

        # Since one of their endpoints changed, the original halfedge and
        # its pair are re-inserted into the dictionary with a new key.
        self._set_target(halfedge, v)
        self._set_target(pair, v)

        halfedge._pair, hh._pair = hh, halfedge
        pair._pair, h._pair = h, pair

        halfedge._next = h
        pair._next = hh

        v._halfedge = h if h._pair._face is not None else hh
        self._copy_edge_values(halfedge, h)

        # Optional triangulation of the incident faces. They are
        # quadrilaterals now if they were triangles before the split.
        if triangulate:
            if h._face is not None and len(h._face) > 3:
                self.insert_edge(h._face, v, h._next._target)

            if hh._face is not None and len(hh._face) > 3:
                self.insert_edge(hh._face, v, hh._next._target)

        self._adjust_outgoing_halfedge(v)

        return v

    def split_face(self, face, point=None):
        """ Split face into a triangle fan.

        Inserts a new vertex and connects it with all vertices of
        `face`. The original face object becomes the triangle incident
        with ``face.halfedge``.

        Parameters
        ----------
        face : Face or int
            Face identifier.
        point : array_like, optional
            Coordinates of the new vertex. Defaults to the face
            barycenter.

        Returns
        -------
        Vertex
            The newly inserted vertex.
        """
        f = self._faces[face]
        assert not f._deleted

        if point is None:
            point = f.barycenter

        loop = [h for h in f._hiter()]
        n = len(loop)

        v = self.add_vertex(point)

        # Spokes towards and away from the new center vertex. The pair
        # pointers are established by _add_halfedge.
        to_center = [self._add_halfedge(h._target, v) for h in loop]
        from_center = [self._add_halfedge(v, h._origin) for h in loop]

        faces = [f]

        for _ in range(n - 1):
            g = Face(len(self._faces))
            g._flags = f._flags
            self._faces.append(g)
            self._add_prop_values('f', source=f)
            faces.append(g)

        for i in range(n):
            a, b, c = loop[i], to_center[i], from_center[i]

            a._next, b._next, c._next = b, c, a
            a._prev, b._prev, c._prev = c, a, b
            a._face = b._face = c._face = faces[i]

            faces[i]._halfedge = a

        v._halfedge = from_center[0]

        return v

    def reverse_orientation(self, faces=None):
        """ Reverse face orientation.

        The connectivity is rebuilt from face definitions with reversed
        vertex order. Deleted items are removed first, see :meth:`clean`.

        Parameters
        ----------
        faces : iterable of Face, optional
            Faces to reverse. All faces by default. The set has to be
            closed under edge adjacency where an edge separates a
            reversed from a kept face.

        Raises
        ------
        NonManifoldError
            If the requested reversal does not result in a consistently
            oriented mesh. The mesh is left unchanged.

        Note
        ----
        References to vertices, halfedges, and faces of the mesh become
        invalid. Indices are preserved.
        """
        if self.garbage:
            self.clean()

        if not self._faces:
            return

        flipped = set(self._faces if faces is None else faces)

        loops = []

        for f in self._faces:
            loop = [v._idx for v in f._viter()]
            loops.append(loop[::-1] if f in flipped else loop)

        mesh = Mesh(self._points, loops)

        # Vertex and face indices agree. Flags and data blocks are carried
        # over, edge data is looked up by vertex pair.
        for v, w in zip(self._verts, mesh._verts):
            w._flags = v._flags

        for f, g in zip(self._faces, mesh._faces):
            g._flags = f._flags

        for (a, b), h in mesh._halfs.items():
            hh = self._halfs[self._verts[a._idx], self._verts[b._idx]]
            h._flags = hh._flags

        props = dict()

        for (kind, name), (data, default) in self._props.items():
            if kind in ('v', 'f'):
                props[kind, name] = (data, default)
                continue

            block = data.__class__(data.dtype, data.default)

            for (a, b), h in mesh._halfs.items():
                hh = self._halfs[self._verts[a._idx], self._verts[b._idx]]

                if hh in data:
                    dict.__setitem__(block, h, data[hh])

            props[kind, name] = (block, default)

        vmap, hmap, fmap = self._clone_connectivity_from(mesh)

        # The cloned connectivity references fresh halfedge objects.
        for key, (block, default) in props.items():
            if isinstance(block, dict):
                remapped = block.__class__(block.dtype, block.default)
                dict.update(remapped, ((hmap[h], value)
                                       for h, value in block.items()))
                props[key] = (remapped, default)

        self._props = props

    def check(self, contains_test=False):
        """ Perform sanity checks.

        Validates the invariants of the halfedge structure: involutive
        pair relation, consistent next/prev links, closed face loops,
        and consistent data block sizes.

        Parameters
        ----------
        contains_test : bool, optional
            Enable time consuming containment tests.

        Raises
        ------
        AssertionError
            If an invariant is violated.
        """
        halfs = set(self._halfs.values())

        for v, hout in self._vhout.items():
            if not hout:
                assert v._deleted or v._halfedge is None

            for h in hout:
                assert h in halfs
                assert h._origin is v

        for (v, w), h in self._halfs.items():
            assert h._origin is v
            assert h._target is w
            assert h._pair in halfs
            assert h in self._vhout[v]

            h._check(contains_test)

        for v in self._verts:
            assert self._verts[v._idx] is v

            if not v._deleted and v._halfedge is not None:
                assert v._halfedge in self._vhout[v]

            v._check(contains_test)

        for f in self._faces:
            assert self._faces[f._idx] is f
            f._check(contains_test)

        for (kind, _), (data, _) in self._props.items():
            if kind == 'v':
                assert len(data) == len(self._verts)
            elif kind == 'f':
                assert len(data) == len(self._faces)

    def _adjust_outgoing_halfedge(self, v):
        """ Prefer a boundary halfedge as outgoing halfedge.

        Boundary vertices store an outgoing boundary halfedge. Circulation
        around the vertex then covers the complete fan.
        """
        for h in self._vhout[v]:
            if h._face is None:
                v._halfedge = h
                return

        if v._halfedge is None or v._halfedge._deleted:
            v._halfedge = next(iter(self._vhout[v]), None)

    def _add_prop_values(self, kind, source=None):
        """ Extend data blocks of one kind for a newly created item.

        New items receive the default value of a data block, or the
        value of `source` if given.
        """
        for (k, _), (data, default) in self._props.items():
            if k == kind:
                value = default if source is None else np.copy(data[source])
                obj._array_append(data, value)

    def _copy_edge_values(self, src, dst):
        """ Copy edge data from edge `src` to edge `dst`.
        """
        for (kind, _), (data, _) in self._props.items():
            if kind == 'e' and (src in data or src._pair in data):
                data[dst] = data[src]
                data[src] = data[dst]

    def _add_halfedge(self, v, w):
        """ Create and add new halfedge.

        Generate new halfedge and take care of its :attr:`~Halfedge.origin`,
        :attr:`~Halfedge.target`, and :attr:`~Halfedge.pair` attributes. The
        :attr:`~Halfedge.next`, :attr:`~Halfedge.prev`, and
        :attr:`~Halfedge.face` attributes retain their default :obj:`None`
        values.

        Parameters
        ----------
        v : Vertex
            Origin vertex of the halfedge.
        w : Vertex
            Target vertex of the halfedge

        Raises
        ------
        NonManifoldError
            If there are topological issues adding the halfedge.

        Returns
        -------
        Halfedge
            Halfedge pointing from `v` to `w`. An existing boundary
            halfedge is returned as is.
        """
        assert isinstance(v, Vertex) and v._mesh is self
        assert isinstance(w, Vertex) and w._mesh is self

        if v is w:
            msg = f'topologically degenerate edge ({v._idx}, {w._idx})'
            raise NonManifoldError(msg)

        h = self._halfs.get((v, w))

        if h is not None:
            if h._face is not None:
                msg = f'edge ({v._idx}, {w._idx}) is non-manifold'
                raise NonManifoldError(msg)
        else:
            h = Halfedge(v, w)
            h._pair = self._halfs.get((w, v))

            # If the pair is mapped, also set its pair pointer to the
            # newly created halfedge. Edge flags are shared.
            if h._pair is not None:
                h._pair._pair = h
                h._flags = h._pair._flags

            self._halfs[v, w] = h
            self._vhout[v].add(h)

        # In case we are re-using previously deleted vertices.
        v._deleted = False
        w._deleted = False

        return h

    def _pop_halfedge(self, h):
        """ Remove halfedge from halfedge container.

        A valid halfedge structure **never** contains deleted
        halfedges in its halfedge dictionary. Combinatorial halfedge
        attributes are not changed.

        Raises
        ------
        KeyError
            If the halfedge could not be removed. This indicates a corrupted
            halfedge data structure or erroneous code.
        """
        assert not h._deleted

        h._deleted = True

        del self._halfs[h._origin, h._target]
        self._vhout[h._origin].remove(h)

    def _push_halfedge(self, h):
        """ Add halfedge to halfedge container.

        (Re)insert a halfedge previously removed by :meth:`_pop_halfedge`.
        """
        assert h._deleted

        v = h._origin
        w = h._target

        assert (v, w) not in self._halfs

        h._deleted = False

        self._halfs[v, w] = h
        self._vhout[v].add(h)

    def _set_origin(self, h, v):
        """ Set halfedge origin vertex.
        """
        assert not h._deleted

        u = h._origin
        w = h._target

        assert v is not w
        assert (v, w) not in self._halfs

        self._vhout[u].remove(h)
        self._vhout[v].add(h)

        del self._halfs[u, w]
        self._halfs[v, w] = h

        h._origin = v

    def _set_target(self, h, v):
        """ Set halfedge target vertex.
        """
        assert not h._deleted

        u = h._origin
        w = h._target

        assert v is not u
        assert (u, v) not in self._halfs

        del self._halfs[u, w]
        self._halfs[u, v] = h

        h._target = v

    def _set_vertices(self, h, v, w):
        """ Set halfedge vertices.

        No halfedge attributes except :attr:`~Halfedge.origin` and
        :attr:`~Halfedge.target` are changed.
        """
        assert v is not w

        self._pop_halfedge(h)

        h._origin = v
        h._target = w

        self._push_halfedge(h)

    def _clone_connectivity_from(self, other):
        """ Clone mesh connectivity.

        Parameters
        ----------
        other : Mesh
            Template mesh connectivity.

        Returns
        -------
        vmap : dict
            Maps vertices of `other` to `self`.
        hmap : dict
            Maps halfedges of `other` to `self`.
        fmap : dict
            Maps faces of `other` to `self`.
        """
        if self is other:
            msg = 'self cannot serve as template mesh connectivity'
            raise ValueError(msg)

        # Shallow copies keep indices, flags, and the deletion state.
        self._verts[:] = [copy(v) for v in other._verts]
        self._faces[:] = [copy(f) for f in other._faces]

        self._halfs.clear()
        self._vhout.clear()

        vmap = {v: w for v, w in zip(other._verts, self._verts)}
        fmap = {f: g for f, g in zip(other._faces, self._faces)}
        hmap = dict()

        for (v, w), h in other._halfs.items():
            assert not h._deleted

            h_new = Halfedge(vmap[v], vmap[w])
            h_new._flags = h._flags
            hmap[h] = h_new
            self._halfs[vmap[v], vmap[w]] = h_new

        for v in other._verts:
            v_new = vmap[v]
            v_new._mesh = self
            v_new._halfedge = (hmap[v._halfedge]
                               if v._halfedge is not None else None)
            self._vhout[v_new] = {hmap[h] for h in other._vhout.get(v, ())}

        for f in other._faces:
            f_new = fmap[f]
            f_new._halfedge = (hmap[f._halfedge]
                               if f._halfedge is not None and
                               not f._deleted else None)

        for h in other._halfs.values():
            h_new = hmap[h]
            h_new._next = hmap[h._next]
            h_new._prev = hmap[h._prev]
            h_new._pair = hmap[h._pair]
            h_new._face = fmap[h._face] if h._face is not None else None

        return vmap, hmap, fmap

    def _viter(self):
        """ Generator expression skipping deleted vertices.
        """
        return (v for v in self._verts if not v._deleted)

    def _fiter(self):
        """ Generator expression skipping deleted faces.
        """
        return (f for f in self._faces if not f._deleted)

    def _hiter(self):
        return iter(self._halfs.values())

    def _eiter(self):
        """ Generator expression.

        Yields the halfedge of each edge whose origin index is smaller
        than its target index.
        """
        return (h for h in self._halfs.values()
                if h._origin._idx < h._target._idx)


class HalfedgeData(dict):
    """ Halfedge data block.

    Dictionary keyed by halfedges that returns a default value for
    halfedges without an explicitly assigned value.

    Parameters
    ----------
    dtype : ~numpy.dtype
        Value type.
    default : object
        Value of halfedges not stored in the dictionary.
    """

    def __init__(self, dtype, default):
        super().__init__()

        self.dtype = dtype
        self.default = default

    def __missing__(self, key):
        return self.default


class EdgeData(HalfedgeData):
    """ Edge data block.

    Values are shared by both halfedges of an edge. Assigning a value
    via one halfedge also assigns it to the pair.
    """

    def __setitem__(self, key, value):
        super().__setitem__(key, value)
        super().__setitem__(key._pair, value)


class Vertex:
    """ Vertex base class.

    Vertices are considered as abstract topological entities. Vertex
    coordinates are assigned when a vertex becomes part of a mesh. Its
    coordinates can then be accessed via the :attr:`point` property .

    Parameters
    ----------
    index : int
        Vertex index.
    parent : Mesh, optional
        The parent mesh object.

    Note
    ----
    In addition to :attr:`index`, implementations of the special functions
    :meth:`~object.__int__` and :meth:`~object.__index__` are provided.
    The latter makes it possible to use vertex instances as list indices.
    """

    def __init__(self, index, parent=None):
        self._idx = index
        self._mesh = parent
        self._halfedge = None

        self._deleted = False
        self._flags = flags.VertexFlag(0)

    def __repr__(self):
        return f'Vertex({self._idx})'

    def __str__(self):
        if self._flags:
            return f'v {self._idx} {self.point} {self._flags}'

        return f'v {self._idx} {self.point}'

    def __index__(self):
        """ Vertex index.

        Vertices can be used directly as list and array indices, i.e.,
        one can write ``some_list[v]`` instead of the slightly longer
        ``some_list[v.index]`` expression.
        """
        return self._idx

    def __int__(self):
        return self._idx

    def __bool__(self):
        return True

    @property
    def index(self):
        """ Vertex index.

        Position of the vertex in the list :attr:`~Mesh.vertices` of all
        mesh vertices. Same as ``int(self)``.

        :type: int
        """
        return self._idx

    @property
    def point(self):
        """ Vertex coordinates.

        Read and write access to vertex coordinates. View of the
        vertex coordinate array. Requires a valid parent mesh.

        :type: ~numpy.ndarray
        """
        return self._mesh._points[self._idx, ...]

    @point.setter
    def point(self, value):
        self._mesh._points[self._idx, ...] = value

    @property
    def flags(self):
        """ Vertex flags.

        :type: VertexFlag
        """
        return self._flags

    @flags.setter
    def flags(self, value):
        self._flags = value

    @property
    def halfedge(self):
        """ Outward pointing halfedge.

        A halfedge that starts at the vertex or :obj:`None` for isolated
        vertices. For boundary vertices this is a boundary halfedge.

        :type: Halfedge
        """
        assert not self._deleted
        return self._halfedge

    @property
    def degree(self):
        """ Vertex degree.

        The number of incident edges, also called the valence of a
        vertex.

        :type: int
        """
        assert not self._deleted
        return len(self._mesh._vhout[self])

    @property
    def deleted(self):
        """ Internal state.

        Topological mesh modification (e.g., edge collapses) render
        vertices as deleted when they do no longer contribute to a mesh's
        combinatorics.

        :type: bool
        """
        return self._deleted

    @property
    def boundary(self):
        """ Topological state.

        A vertex is defined to be a boundary vertex if it is incident to
        a boundary halfedge.

        :type: bool
        """
        assert not self._deleted
        return any(h._face is None for h in self._mesh._vhout[self])

    @property
    def isolated(self):
        """ Topological state.

        A vertex is isolated if it is not incident with any edge.

        :type: bool
        """
        assert not self._deleted
        return not self._mesh._vhout[self]

    @property
    def manifold(self):
        """ Topological state.

        A vertex is manifold if its incident faces form a single fan
        with at most one border gap. Isolated vertices are considered
        manifold vertices as they don't break the halfedge structure.

        :type: bool
        """
        assert not self._deleted

        halfs = self._mesh._vhout[self]

        if not halfs:
            return True

        # Circulation from any outgoing halfedge has to visit all of
        # them. Several fans show up as outgoing halfedges that cannot
        # be reached, several gaps as more than one boundary halfedge.
        gaps = sum(1 for h in halfs if h._face is None)

        if gaps > 1:
            return False

        return sum(1 for _ in self._hiter()) == len(halfs)

    def _check(self, contains_test):
        """ Perform sanity checks.
        """
        if not self._deleted and self._halfedge is not None:
            assert not self._halfedge._deleted
            assert self._halfedge._origin is self

            if self._halfedge._face is not None:
                assert not self._halfedge._face._deleted

                if contains_test:
                    assert self in self._halfedge._face

    def _invalidate(self):
        """ Reset all combinatorial attributes.

        Called as a last step in garbage collection. This should make it
        easier to find bugs originating from using references to deleted
        objects.
        """
        assert self._deleted

        self._idx = None
        self._mesh = None
        self._halfedge = None

    def _viter(self):
        """ Adjacent vertex iterator.
        """
        for h in self._hiter():
            yield h._target

    def _fiter(self):
        """ Incident face iterator.
        """
        for h in self._hiter():
            if h._face is not None:
                yield h._face

    def _hiter(self):
        """ Outgoing halfedge iterator.

        Counter-clockwise rotation about the vertex, starting at
        :attr:`halfedge`.
        """
        assert not self._deleted
        h = self._halfedge

        if h is None:
            return

        while True:
            yield h
            h = h._prev._pair

            if h is self._halfedge:
                return


class Halfedge:
    """ Halfedge base class.

    Halfedges store references to their vertices, the successor, predecessor,
    and twin halfedge as well as the incident face -- the face to its left.
    A closed loop of halfedges defines a face and its orientation. Successor
    and predecessor refer to the next and previous halfedge in such a loop.

    Parameters
    ----------
    origin : Vertex
        Origin vertex of the halfedge.
    target : Vertex
        Target vertex of the halfedge.

    Note
    ----
    As halfedges are stored in a dictionary and not in a list, they do not
    have a canonical index value but a key that is formed by the pair of
    origin and target vertex.
    """

    def __init__(self, origin, target):
        self._origin = origin
        self._target = target

        self._next = None
        self._prev = None
        self._pair = None
        self._face = None

        self._deleted = False
        self._flags = flags.HalfedgeFlag(0)

    def __repr__(self):
        return f'Halfedge({self._origin!r}, {self._target!r})'

    def __str__(self):
        if self._flags:
            return (f'h ({self._origin._idx}, {self._target._idx})' +
                    f' {self._flags}')

        return f'h ({self._origin._idx}, {self._target._idx})'

    def __bool__(self):
        return True

    def __contains__(self, vertex):
        assert not self._deleted
        return (vertex is self._origin) or (vertex is self._target)

    def __iter__(self):
        """ Vertex iterator.

        Produces the origin and target vertex of a halfedge.
        """
        yield self.origin
        yield self.target

    @property
    def origin(self):
        """ Halfedge origin vertex.

        :type: Vertex
        """
        assert not self._deleted
        return self._origin

    @property
    def target(self):
        """ Halfedge target vertex.

        :type: Vertex
        """
        assert not self._deleted
        return self._target

    @property
    def vector(self):
        """ Halfedge direction vector.

        The vector ``self.target.point - self.origin.point``.

        :type: ~numpy.ndarray
        """
        assert not self._deleted
        return self._target.point - self._origin.point

    @property
    def length(self):
        """ Edge length.

        :type: float
        """
        vector = self.vector
        return float(np.sqrt(vector.dot(vector)))

    @property
    def midpoint(self):
        """ Halfedge midpoint.

        :type: ~numpy.ndarray
        """
        assert not self._deleted
        return 0.5 * (self._origin.point + self._target.point)

    @property
    def next(self):
        """ Successor halfedge.

        Next halfedge in a face (or boundary) defining halfedge loop.

        :type: Halfedge
        """
        assert not self._deleted
        return self._next

    @property
    def prev(self):
        """ Predecessor halfedge.

        :type: Halfedge
        """
        assert not self._deleted
        return self._prev

    @property
    def pair(self):
        """ Opposite halfedge.

        Halfedge pointing in the opposite direction. The relation is
        involutive, ``h.pair.pair is h``.

        :type: Halfedge
        """
        assert not self._deleted
        return self._pair

    @property
    def face(self):
        """ Incident face.

        The face to left of the halfedge or :py:obj:`None` in case of
        a boundary halfedge.

        :type: Face
        """
        assert not self._deleted
        return self._face

    @property
    def flags(self):
        """ Halfedge flags.

        Assigning flags also assigns them to the pair, edge flags are
        kept consistent.

        :type: HalfedgeFlag
        """
        return self._flags

    @flags.setter
    def flags(self, value):
        self._flags = value

        if self._pair is not None:
            self._pair._flags = value

    @property
    def deleted(self):
        """ Internal state.

        :type: bool
        """
        return self._deleted

    @property
    def boundary(self):
        """ Topological state.

        A halfedge is called a boundary halfedge if its :attr:`face`
        attribute evaluates to :obj:`None`.

        :type: bool
        """
        assert not self._deleted
        return self._face is None

    @property
    def edge_boundary(self):
        """ Topological state of the edge.

        :obj:`True` if either this halfedge or its pair is a boundary
        halfedge.

        :type: bool
        """
        return self._face is None or self._pair._face is None

    @property
    def collapsible(self):
        """ Topological state.

        A edge joining non-boundary vertices of a **triangle mesh** is
        collapsible if the neighborhoods of :attr:`origin` and :attr:`target`
        vertex intersect in the two vertices opposite the query edge. The
        test tries to handle meshes with higher valence faces.

        :type: bool

        Note
        ----
        For technical reasons, **boundary halfedges** are always classified
        as non-collapsible. Use their pair.
        """

        def one_sided_check(h):
            assert h._face is not None
            assert h._pair._face is None

            if h._pair._compute_loop_len() == 3:
                # The adjacent boundary loop has only three edges.
                # Collapsing the halfedge would change the topology.
                return False

            if len(h._face) == 3:
                return v_neigh.intersection(w_neigh) == {h._next._target}

            return not v_neigh.intersection(w_neigh)

        if self._deleted or self._face is None:
            return False

        v = self._origin
        w = self._target

        if not v.manifold or not w.manifold:
            return False

        # This should never be a problem for pure triangle meshes but
        # can happen for general polygonal meshes.
        v_faces = set(v._fiter()) - {self._face, self._pair._face}
        w_faces = set(w._fiter()) - {self._face, self._pair._face}

        if v_faces.intersection(w_faces):
            return False

        v_neigh = {x for x in v._viter() if x is not w}
        w_neigh = {x for x in w._viter() if x is not v}

        if self._pair._face is None:
            return one_sided_check(self)

        # Interior edge that connects boundaries is not collapsible.
        # Result would be a non-manifold mesh.
        if v.boundary and w.boundary:
            return False

        if len(self._face) == 3:
            p = self._next._target

            if len(self._pair._face) == 3:
                q = self._pair._next._target

                if p is q or v_neigh == w_neigh:
                    return False

                # Triangular faces to the left and right. One rings of
                # endpoints have to intersect in the vertices opposite
                # the query edge.
                return v_neigh.intersection(w_neigh) == {p, q}

            return v_neigh.intersection(w_neigh) == {p}

        if len(self._pair._face) == 3:
            q = self._pair._next._target
            return v_neigh.intersection(w_neigh) == {q}

        # There are n-gons to the left and to the right of the edge.
        return not v_neigh.intersection(w_neigh)

    @property
    def flippable(self):
        """ Topological state.

        A non-boundary edge of a triangle mesh can be flipped if the
        vertices opposite the edge are not adjacent.

        :type: bool
        """
        if self._deleted or self._face is None or self._pair._face is None:
            return False

        if len(self._face) != 3 or len(self._pair._face) != 3:
            return False

        v = self._next._target
        w = self._pair._next._target

        if v is w:
            return False

        # The opposite vertices are adjacent if one of the edge's
        # endpoints is of degree three.
        return (v, w) not in self._origin._mesh._halfs

    def _compute_loop_len(self):
        """ Length of halfedge loop.

        For a boundary halfedge this is the length of the corresponding
        boundary curve.
        """
        assert not self._deleted

        loop_len = 0
        h = self

        while True:
            loop_len += 1
            h = h._next

            if h is self:
                return loop_len

    def _check(self, contains_test):
        """ Perform sanity checks.
        """
        assert not self._deleted
        assert not self._pair._deleted
        assert not self._origin._deleted
        assert not self._target._deleted

        assert self._pair._pair is self
        assert self._pair._origin is self._target
        assert self._pair._target is self._origin

        assert self._next._prev is self
        assert self._next._origin is self._target

        assert self._prev._next is self
        assert self._prev._target is self._origin

        assert self._next._face is self._face

        if self._face is not None:
            assert not self._face._deleted

            if contains_test:
                assert self in self._face._hiter()

        assert not (self._face is None and self._pair._face is None)


class Face:
    """ Face base class.

    In a halfedge based mesh representation a face is defined by the
    closed loop of halfedges starting at the :attr:`halfedge` attribute.

    Parameters
    ----------
    index : int
        Face index.


    The vertices of a face are visited in counter-clockwise order by

    .. code-block:: python

        for v in f:
            print(v)
    """

    def __init__(self, index):
        self._idx = index
        self._halfedge = None

        self._deleted = False
        self._flags = flags.FaceFlag(0)

    def __repr__(self):
        return f'Face({self._idx})'

    def __str__(self):
        face = '[None]' if self._deleted else str([int(v) for v in self])

        if self._flags:
            return f'f {self._idx} {face} {self._flags}'

        return f'f {self._idx} {face}'

    def __index__(self):
        """ Face index.

        Faces can be used directly as list and array indices.
        """
        return self._idx

    def __int__(self):
        return self._idx

    def __len__(self):
        """ Face valence.

        The number of incident vertices.
        """
        assert not self._deleted
        return sum(1 for _ in self._hiter())

    def __bool__(self):
        return True

    def __array__(self, dtype=None, copy=None):
        """ Array of vertex coordinates.
        """
        return np.array([v.point for v in self], dtype=dtype)

    def __contains__(self, item):
        """ Vertex and halfedge containment test.
        """
        return (item in self._viter()) or (item in self._hiter())

    def __iter__(self):
        """ Vertex iterator.

        The returned :term:`iterator` visits the vertices of ``self``
        starting with the ``self.halfedge.origin`` vertex.
        """
        return self._viter()

    @property
    def index(self):
        """ Face index.

        :type: int
        """
        return self._idx

    @property
    def flags(self):
        """ Face flags.

        :type: FaceFlag
        """
        return self._flags

    @flags.setter
    def flags(self, value):
        self._flags = value

    @property
    def halfedge(self):
        """ Incident halfedge.

        :type: Halfedge
        """
        assert not self._deleted
        return self._halfedge

    @property
    def valence(self):
        """ Face valence.

        Number of incident vertices. Same as ``len(self)``.

        :type: int
        """
        return len(self)

    @property
    def deleted(self):
        """ Internal state.

        :type: bool
        """
        return self._deleted

    @property
    def boundary(self):
        """ Topological state.

        A face is a boundary face if one of its edges is a boundary
        edge. A face only incident with boundary vertices is **not**
        classified as a boundary face.

        :type: bool
        """
        return any(h._pair._face is None for h in self._hiter())

    @property
    def barycenter(self):
        """ Face barycenter.

        Arithmetic mean of vertex coordinates.

        :type: ~numpy.ndarray
        """
        points = [v.point for v in self._viter()]
        return sum(points) / len(points)

    def _check(self, contains_test):
        if not self._deleted:
            assert self._halfedge is not None
            assert not self._halfedge._deleted
            assert self._halfedge._face is self
            assert len(self) >= 3

            if contains_test:
                assert all(h._face is self for h in self._hiter())

    def _invalidate(self):
        assert self._deleted

        self._idx = None
        self._halfedge = None

    def _viter(self):
        """ Incident vertex iterator.
        """
        for h in self._hiter():
            yield h._origin

    def _hiter(self):
        """ Incident halfedge iterator.
        """
        assert not self._deleted
        assert self._halfedge is not None

        h = self._halfedge

        while True:
            yield h
            h = h._next

            if h is self._halfedge:
                return

    def _eiter(self):
        return (h if h._origin._idx < h._target._idx else h._pair
                for h in self._hiter())

    def _fiter(self):
        """ Edge-adjacent face iterator.

        This iterator defines two faces to be adjacent if they share
        a common edge.
        """
        for h in self._hiter():
            if h._pair._face is not None:
                yield h._pair._face


class MeshError(Exception):
    """ Mesh exception base class.
    """

    pass


class NonManifoldError(MeshError):
    """ Manifold exception.

    Raised if an operation would result in a topological configuration
    that violates the manifold condition. The operation is rejected
    before the mesh is modified.
    """

    pass


class DegenerateError(MeshError):
    """ Degenerate input exception.

    Raised when geometric degeneracies (vanishing areas, singular linear
    systems) cannot be handled by a fallback strategy.
    """

    pass


class PreconditionError(MeshError):
    """ Precondition exception.

    Raised when the input does not meet the requirements of an algorithm,
    e.g. a non-triangular mesh passed to Loop subdivision. The mesh is
    left unchanged.
    """

    pass
