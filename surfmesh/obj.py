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

""" OBJ and OFF file parsing.

Low-level functions to read and write polygon soup data. Only the subset
of the OBJ standard needed for polygonal surfaces ('v' and 'f' lines) and
the plain ASCII variant of OFF are supported. Array helpers that grow and
shrink NumPy arrays in place are shared with the mesh kernel.
"""

import numpy as np


def _array_append(array, item, dtype=float):
    """ Resize and append to array.

    Passing :obj:`None` as `item` will **not** initialize the newly
    added array entries. The `array` argument cannot be :obj:`None`
    in this case.

    Parameters
    ----------
    array : ~numpy.ndarray or None
        Array object to be augmented. A new array of shape
        ``(1, *item.shape)`` will be created if :obj:`None`.
    item : array_like or None
        Item to be added as new element of the first axis. The
        shapes ``array.shape[1:]`` and ``item.shape`` have to agree.
    dtype : data-type, optional
        Data type of a newly created array.

    Raises
    ------
    ValueError
        In case of dimension mismatch.

    Returns
    -------
    ~numpy.ndarray
        Reference to the enlarged array. This is a new array if the
        input array argument was :obj:`None`.
    """
    if isinstance(array, np.ndarray):
        if item is not None and array.shape[1:] != np.shape(item):
            msg = f'cannot add item with shape {np.shape(item)}'
            raise ValueError(msg)

        arr_shape = list(array.shape)
        arr_shape[0] += 1

        # In-place resize keeps the identity of the array object. Views
        # of the old data buffer become invalid.
        array.resize(arr_shape, refcheck=False)
    else:
        array = np.empty((1, *np.shape(item)), dtype=dtype)

    if item is not None:
        array[-1, ...] = item

    return array


def _array_shrink(array, idx):
    """ Compress first axis of array.

    Keep the rows listed in `idx` (in this order) and resize the array
    in place.

    Parameters
    ----------
    array : ~numpy.ndarray
        Array with at least one axis.
    idx : list[int]
        Row indices to keep.

    Returns
    -------
    ~numpy.ndarray
        The resized array.
    """
    shape = list(array.shape)
    shape[0] = len(idx)

    # The first assignment has no effect for an empty list of indices,
    # resize will then set the length of the first axis to zero.
    if len(idx):
        array[:len(idx), ...] = array[idx, ...]

    array.resize(shape, refcheck=False)

    return array


def read_obj(filename):
    """ Read OBJ file.

    Parameters
    ----------
    filename : str or ~pathlib.Path
        Name of an OBJ file.

    Raises
    ------
    ValueError
        If a line could not be parsed.
    OSError
        If the file could not be opened.

    Returns
    -------
    points : ~numpy.ndarray, shape (n, 3)
        Vertex coordinates.
    faces : list[list[int]]
        Face definitions, 0-based vertex indices.
    """
    points = []
    faces = []

    with open(filename, 'r') as file:
        for lineno, line in enumerate(file, start=1):
            # Extract runs of non-whitespace characters, the split()
            # method will also strip all whitespace ...
            blocks = line.split()

            # ... then process the contents of non-empty lines.
            if not blocks:
                continue

            try:
                if blocks[0] == 'v':
                    points.append([float(x) for x in blocks[1:4]])
                elif blocks[0] == 'f':
                    face = []

                    for block in blocks[1:]:
                        # Only the vertex index of a v/vt/vn triple is
                        # used. Negative indices are relative offsets.
                        v = int(block.split('/')[0])
                        face.append(len(points) + v if v < 0 else v - 1)

                    faces.append(face)
            except ValueError as error:
                msg = f'line {lineno}: {error}'
                raise ValueError(msg) from error

    if any(len(p) != 3 for p in points):
        raise ValueError('vertex definitions require three coordinates')

    return np.array(points, dtype=float).reshape(-1, 3), faces


def write_obj(filename, points, faces):
    """ Write OBJ file.

    Parameters
    ----------
    filename : str or ~pathlib.Path
        Name of output file.
    points : array_like, shape (n, 3)
        Vertex coordinates.
    faces : iterable
        Face definitions, 0-based vertex indices.
    """
    with open(filename, 'w') as file:
        for p in points:
            file.write(f'v {p[0]:.17g} {p[1]:.17g} {p[2]:.17g}\n')

        for face in faces:
            file.write('f')

            for v in face:
                file.write(f' {int(v) + 1}')

            file.write('\n')


def read_off(filename):
    """ Read ASCII OFF file.

    Raises
    ------
    ValueError
        If the header or an element definition could not be parsed.

    Returns
    -------
    points : ~numpy.ndarray, shape (n, 3)
        Vertex coordinates.
    faces : list[list[int]]
        Face definitions, 0-based vertex indices.
    """
    with open(filename, 'r') as file:
        # Comments start with '#' and can appear anywhere in the file.
        tokens = []

        for line in file:
            tokens.extend(line.split('#', 1)[0].split())

    if not tokens or not tokens[0].endswith('OFF'):
        raise ValueError("missing 'OFF' header")

    try:
        n_verts, n_faces = int(tokens[1]), int(tokens[2])
        pos = 4

        points = np.array(tokens[pos:pos + 3 * n_verts], dtype=float)
        points = points.reshape(n_verts, 3)
        pos += 3 * n_verts

        faces = []

        for _ in range(n_faces):
            n = int(tokens[pos])
            faces.append([int(v) for v in tokens[pos + 1:pos + 1 + n]])

            if len(faces[-1]) != n:
                raise ValueError('truncated face definition')

            pos += n + 1
    except (IndexError, ValueError) as error:
        raise ValueError(f'invalid OFF data: {error}') from error

    return points, faces


def write_off(filename, points, faces):
    """ Write ASCII OFF file.
    """
    faces = [[int(v) for v in face] for face in faces]

    with open(filename, 'w') as file:
        file.write('OFF\n')
        file.write(f'{len(points)} {len(faces)} 0\n')

        for p in points:
            file.write(f'{p[0]:.17g} {p[1]:.17g} {p[2]:.17g}\n')

        for face in faces:
            file.write(' '.join(str(v) for v in [len(face), *face]) + '\n')
