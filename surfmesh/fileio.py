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

""" Mesh loading and saving.

Thin layer between the OBJ/OFF parsers of :mod:`~surfmesh.obj` and the
:class:`~surfmesh.hds.Mesh` kernel. The file format is selected by the
file name suffix. Low level errors are translated into the exception
types of this module, all of them derived from
:class:`~surfmesh.hds.MeshError`.
"""

from pathlib import Path
from time import time

import surfmesh.obj as obj

from surfmesh.hds import Mesh, MeshError, NonManifoldError


class MeshIOError(MeshError):
    """ Operating system level failure while reading or writing.
    """

    pass


class UnsupportedFormatError(MeshError):
    """ The file name suffix does not name a supported format.
    """

    pass


class MeshParseError(MeshError):
    """ File contents could not be interpreted as a mesh.
    """

    pass


_readers = {'.obj': obj.read_obj, '.off': obj.read_off}
_writers = {'.obj': obj.write_obj, '.off': obj.write_off}


def _suffix(path, table):
    suffix = Path(path).suffix.lower()

    if suffix not in table:
        msg = f"unsupported mesh file format '{suffix}'"
        raise UnsupportedFormatError(msg)

    return suffix


def load(path, skip_invalid=False, quiet=True):
    """ Read mesh from file.

    Parameters
    ----------
    path : str or ~pathlib.Path
        Name of an OBJ or OFF file.
    skip_invalid : bool, optional
        Skip faces that cannot be inserted into the halfedge structure
        instead of failing.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    UnsupportedFormatError
        If the file suffix is neither '.obj' nor '.off'.
    MeshIOError
        If the file could not be read.
    MeshParseError
        If the file contents are malformed or, unless `skip_invalid` is
        set, describe a non-manifold surface.

    Returns
    -------
    Mesh
        The mesh, named after the file.
    """
    CBOLD = '\33[1m'                    # bold text, white on black
    CWHITERED = '\33[41m'               # white on red background
    CEND = '\33[0m'

    reader = _readers[_suffix(path, _readers)]
    name = Path(path).name

    if not quiet:
        start = time()
        print(f'reading {CBOLD}{name}{CEND}', end=' ...')

    try:
        points, faces = reader(path)
    except OSError as error:
        raise MeshIOError(f'cannot read {name}: {error}') from error
    except ValueError as error:
        raise MeshParseError(f'{name}: {error}') from error

    mesh = Mesh(points, name=path)
    skipped = 0

    for k, face in enumerate(faces):
        try:
            mesh.add_face(face)
        except IndexError as error:
            msg = f'{name}: face #{k} references a missing vertex'
            raise MeshParseError(msg) from error
        except (ValueError, NonManifoldError) as error:
            if not skip_invalid:
                raise MeshParseError(f'{name}: face #{k}: {error}') from error

            skipped += 1

    if not quiet:
        v, e, f = mesh.size
        print(f' done ({time()-start:.3f} sec), ' +
              f'{v} vertices, {e} edges, {f} faces')

        if skipped:
            print(f'{CWHITERED}{skipped} faces skipped{CEND}')

    return mesh


def save(path, mesh, quiet=True):
    """ Write mesh to file.

    Deleted items are not written. Vertices are renumbered in the
    order of :attr:`~surfmesh.hds.Mesh.vertices`.

    Parameters
    ----------
    path : str or ~pathlib.Path
        Name of an OBJ or OFF file.
    mesh : Mesh
        Mesh to be written.
    quiet : bool, optional
        Suppress console output.

    Raises
    ------
    UnsupportedFormatError
        If the file suffix is neither '.obj' nor '.off'.
    MeshIOError
        If the file could not be written.
    """
    CBOLD = '\33[1m'
    CEND = '\33[0m'

    writer = _writers[_suffix(path, _writers)]

    verts = list(mesh._viter())
    index = {v: i for i, v in enumerate(verts)}

    points = [v.point for v in verts]
    faces = [[index[v] for v in f._viter()] for f in mesh._fiter()]

    if not quiet:
        start = time()
        print(f'writing {CBOLD}{Path(path).name}{CEND}', end=' ...')

    try:
        writer(path, points, faces)
    except OSError as error:
        raise MeshIOError(f'cannot write {path}: {error}') from error

    if not quiet:
        print(f' done ({time()-start:.3} sec)')
