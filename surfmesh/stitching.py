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

""" Border stitching.

Boundary vertices closer than a tolerance are merged and the mesh is
rebuilt from its face definitions. Pairs of boundary halfedges with
coincident endpoints become interior edges, flagged
:attr:`~surfmesh.flags.HalfedgeFlag.SEAM`.

Two pieces only stitch if their orientations agree. Components that
fit after reversal are reoriented first by
:func:`merge_reversible_connected_components`.
"""

import numpy as np

from time import time

from scipy import sparse
from scipy.sparse.csgraph import connected_components
from scipy.spatial import cKDTree

import surfmesh.components as components

from surfmesh.config import StitchingConfig
from surfmesh.flags import HalfedgeFlag
from surfmesh.hds import Mesh, NonManifoldError


def _tolerance(mesh, config):
    if config.tolerance is not None:
        return config.tolerance

    lo, hi = mesh.bounding_box()
    return 1e-6 * float(np.linalg.norm(hi - lo))


def _clusters(mesh, tol):
    """ Representatives of coincident boundary vertices.

    Returns
    -------
    dict
        Maps every live vertex to the boundary vertex of smallest index
        within its cluster, or to itself.
    """
    rep = {v: v for v in mesh._viter()}
    border = [v for v in mesh._viter() if not v.isolated and v.boundary]

    if len(border) < 2:
        return rep

    tree = cKDTree(np.array([v.point for v in border]))
    pairs = np.array(sorted(tree.query_pairs(tol)), dtype=int)

    if not len(pairs):
        return rep

    n = len(border)
    graph = sparse.coo_matrix((np.ones(len(pairs)), (pairs[:, 0], pairs[:, 1])),
                              shape=(n, n))
    _, labels = connected_components(graph, directed=False)

    first = dict()

    for v, label in zip(border, labels):
        if label not in first or v._idx < first[label]._idx:
            first[label] = v

    for v, label in zip(border, labels):
        rep[v] = first[label]

    return rep


def merge_reversible_connected_components(mesh, tol=None):
    """ Reorient components to make them stitchable.

    Components sharing a seam whose boundary halfedges run in the same
    direction are inconsistently oriented. Starting from the first
    component, neighbors are reversed whenever the majority of shared
    boundary halfedges conflict.

    Parameters
    ----------
    mesh : Mesh
        Mesh to be modified in place.
    tol : float, optional
        Vertex merge distance, see :class:`~surfmesh.config.StitchingConfig`.

    Returns
    -------
    int
        Number of reversed components.

    Note
    ----
    Item references become invalid if a component is reversed, see
    :meth:`~surfmesh.hds.Mesh.reverse_orientation`.
    """
    if mesh.garbage:
        mesh.clean()

    if not mesh._faces:
        return 0

    if tol is None:
        tol = _tolerance(mesh, StitchingConfig())

    parts = components.extract_components(mesh)
    label = {f: k for k, part in enumerate(parts) for f in part.faces}
    rep = _clusters(mesh, tol)

    # Boundary halfedges keyed on representative endpoints.
    keyed = dict()

    for h in mesh._hiter():
        if h._face is None:
            key = (rep[h._origin], rep[h._target])
            keyed.setdefault(key, []).append(label[h._pair._face])

    # votes[a][b] > 0 if a and b agree in orientation.
    votes = [dict() for _ in parts]

    for (a, b), labels in keyed.items():
        for i in labels:
            for j in labels:
                if i != j:
                    votes[i][j] = votes[i].get(j, 0) - 1

            for j in keyed.get((b, a), ()):
                if i != j:
                    votes[i][j] = votes[i].get(j, 0) + 1

    sign = [0] * len(parts)

    for seed in range(len(parts)):
        if sign[seed]:
            continue

        sign[seed] = 1
        stack = [seed]

        while stack:
            i = stack.pop()

            for j, vote in sorted(votes[i].items()):
                if sign[j] or vote == 0:
                    continue

                sign[j] = sign[i] if vote > 0 else -sign[i]
                stack.append(j)

    flipped = [f for k, part in enumerate(parts) if sign[k] < 0
               for f in part.faces]

    if flipped:
        mesh.reverse_orientation(flipped)

    return sum(1 for s in sign if s < 0)


def stitch_borders(mesh, config=None, quiet=True):
    """ Stitch coincident borders.

    Parameters
    ----------
    mesh : Mesh
        Mesh to be modified in place.
    config : StitchingConfig, optional
        Merge tolerance and reorientation switch.
    quiet : bool, optional
        Suppress console output.

    Returns
    -------
    stitched : int
        Number of seam edges created.
    skipped : int
        Number of faces that could not be attached with merged vertices.
        They keep their original vertices.

    Raises
    ------
    NonManifoldError
        If a face can be attached neither with merged nor with its
        original vertices. Apart from a possible reorientation of
        components the mesh is left unchanged.

    Note
    ----
    Item references become invalid. Vertex indices of merged vertices
    are reassigned when isolated duplicates are removed. Vertex and face
    flags as well as vertex and face data blocks are kept, halfedge and
    edge data blocks are dropped.
    """
    config = StitchingConfig() if config is None else config
    start = time()

    if mesh.garbage:
        mesh.clean()

    if not mesh._faces:
        return 0, 0

    tol = _tolerance(mesh, config)

    if config.merge_reversible:
        merge_reversible_connected_components(mesh, tol)

    rep = _clusters(mesh, tol)
    duplicates = {v._idx for v, r in rep.items() if r is not v}

    seams = set()

    for h in mesh._hiter():
        if h._face is not None and h._pair._face is None:
            seams.add((rep[h._origin]._idx, rep[h._target]._idx))

    result = Mesh(mesh._points)
    skipped = 0

    for f in mesh._faces:
        loop = [v._idx for v in f._viter()]
        merged = [rep[mesh._verts[i]]._idx for i in loop]

        try:
            result.add_face(merged)
        except (NonManifoldError, ValueError):
            skipped += 1
            result.add_face(loop)

    stitched = 0

    for a, b in seams:
        if a < b or (b, a) not in seams:
            continue

        h = result._halfs.get((result._verts[a], result._verts[b]))

        if h is not None and h._face is not None and h._pair._face is not None:
            h.flags = h._flags | HalfedgeFlag.SEAM
            stitched += 1

    for v, w in zip(mesh._verts, result._verts):
        w._flags = v._flags

    for f, g in zip(mesh._faces, result._faces):
        g._flags = f._flags

    props = {key: value for key, value in mesh._props.items()
             if key[0] in ('v', 'f')}

    mesh._clone_connectivity_from(result)
    mesh._props = props

    for v in list(mesh._viter()):
        if v.isolated and v._idx in duplicates:
            mesh.delete_vertex(v)

    mesh.clean()

    if not quiet:
        CBOLD = '\33[1m'
        CEND = '\33[0m'

        print(f'stitched {stitched} edges of {CBOLD}{mesh.name}{CEND} ' +
              f'({time()-start:.3f} sec), skipped {skipped} faces')

    return stitched, skipped
