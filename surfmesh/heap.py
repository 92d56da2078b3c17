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

""" Addressable priority queue.

Array based binary heap, see **Algorithms in C**, *Parts 1--4* by Robert
Sedgewick. In contrast to the :py:mod:`heapq` module, queued objects can
be located, re-prioritized, and removed in logarithmic time. Front
propagation (geodesic distances) and greedy decimation rely on this.

Items of equal priority leave the queue in the order they were first
pushed. This makes every algorithm built on top of the queue
deterministic for a fixed input.
"""

from itertools import count


class MinHeap:
    """ Priority queue.

    Smaller priority values signify higher priority. The :attr:`top`
    element of a priority queue is the object of highest priority.

    Parameters
    ----------
    items : iterable, optional
        A sequence of `(object, priority)` pairs. Generically, `priority`
        is a numeric data type.

    Note
    ----
    Only `hashable <https://docs.python.org/3/glossary.html#term-hashable>`_
    objects can be added to a heap. All mesh items are hashable.
    """

    def __init__(self, items=None):
        # Internally the priority queue is modelled as a binary tree that
        # is stored in a list. _heap[0] is never used, it's only there to
        # simplify computing parent/child indices. Entries are triples
        # (object, priority, sequence number).
        self._heap = [None]
        self._hpos = dict()
        self._seq = count()

        if items is not None:
            for item in items:
                self.push(*item)

    def __bool__(self):
        return len(self._heap) > 1

    def __contains__(self, item):
        return item in self._hpos

    def __len__(self):
        return len(self._heap) - 1

    @property
    def top(self):
        """ Item of highest priority.

        :type: 2-tuple of `object` and `priority`.

        Raises
        ------
        IndexError
            When trying to access the top element of an empty queue.
        """
        if len(self._heap) == 1:
            raise IndexError('top of empty heap')

        data, priority, _ = self._heap[1]
        return data, priority

    def priority(self, data):
        """ Priority of a queued object.

        Raises
        ------
        KeyError
            If `data` is not queued.
        """
        return self._heap[self._hpos[data]][1]

    def pop(self):
        """ Remove item of highest priority.

        Returns
        -------
        data : object
            Object of highest priority.
        priority : float
            Object priority.

        Raises
        ------
        IndexError
            When trying to remove items from an empty queue.
        """
        if len(self._heap) == 1:
            raise IndexError('pop from empty heap')

        # Remove the top element by swapping it to the end. Then shorten
        # the list and dictionary and restore the heap property.
        self._swap(1, len(self._heap) - 1)
        data, priority, _ = self._heap.pop()
        del self._hpos[data]
        self._fixdown(1)

        return data, priority

    def push(self, data, priority):
        """ Add data object.

        Re-adding an already queued object will update the queued
        object's priority instead of adding a duplicate, see
        :meth:`update`.

        Parameters
        ----------
        data : object
            Object to be added to the priority queue.
        priority : float
            Priority of the data object.
        """
        if data in self._hpos:
            self.update(data, priority)
        else:
            self._hpos[data] = len(self._heap)
            self._heap.append((data, priority, next(self._seq)))
            self._fixup(len(self._heap) - 1)

    def update(self, data, priority):
        """ Update priority of a data object.

        The object keeps its original position in the order of
        insertion, used to break ties.

        Raises
        ------
        KeyError
            If `data` is not an element of the queue.
        """
        k = self._hpos[data]

        self._heap[k] = (data, priority, self._heap[k][2])

        self._fixup(k)
        self._fixdown(self._hpos[data])

    def remove(self, data):
        """ Remove data object from heap.

        Raises
        ------
        KeyError
            If `data` is not queued.

        Returns
        -------
        float
            Priority of the removed object.
        """
        k = self._hpos[data]

        # Swap item at position k with last item in the heap. Nothing
        # happens if k refers to the last item in the heap ordered list.
        self._swap(k, len(self._heap) - 1)

        removed = self._heap.pop()
        del self._hpos[removed[0]]

        # Always true unless we removed the final element of the heap.
        if k < len(self._heap):
            moved = self._heap[k][0]

            self._fixup(k)
            self._fixdown(self._hpos[moved])

        return removed[1]

    def _less(self, i, j):
        """ Compare heap entries by priority, then by sequence number.
        """
        a = self._heap[i]
        b = self._heap[j]

        return (a[1], a[2]) < (b[1], b[2])

    def _swap(self, i, j):
        """ Swap position of heap items.
        """
        self._hpos[self._heap[i][0]] = j
        self._hpos[self._heap[j][0]] = i

        self._heap[i], self._heap[j] = self._heap[j], self._heap[i]

    def _fixup(self, k):
        """ Restore heap property upwards from position `k`.
        """
        while k > 1 and self._less(k, k // 2):
            self._swap(k, k // 2)
            k = k // 2

    def _fixdown(self, k):
        """ Restore heap property downwards from position `k`.
        """
        # The largest index of any valid heap item.
        n = len(self._heap) - 1

        # Successors of the item with index k have index 2k and 2k+1.
        while 2 * k <= n:
            j = 2 * k

            if j < n and self._less(j + 1, j):
                j += 1

            if not self._less(j, k):
                break

            self._swap(j, k)
            k = j
