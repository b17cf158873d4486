# Copyright (c) 2013-2022 by Ron Frederick <ronf@timeheart.net> and others.
#
# This program and the accompanying materials are made available under
# the terms of the Eclipse Public License v2.0 which accompanies this
# distribution and is available at:
#
#     http://www.eclipse.org/legal/epl-2.0/
#
# This program may also be made available under the following secondary
# licenses when the conditions for such availability set forth in the
# Eclipse Public License v2.0 are satisfied:
#
#    GNU General Public License, Version 2.0, or any later versions of
#    that license
#
# SPDX-License-Identifier: EPL-2.0 OR GPL-2.0-or-later
#
# Contributors:
#     Ron Frederick - initial implementation, API, and documentation

"""Unbounded stream buffer between a channel and its reader"""

import asyncio

from .cancel import race
from .logging import logger as pkg_logger
from .misc import EndOfStream, ReadCancelled, plural


_DEFAULT_READ_SIZE = 65536


class _Segment:
    """A single link in the chain of data held by a stream buffer"""

    __slots__ = ('data', 'offset', 'next')

    def __init__(self, data=b''):
        self.data = data
        self.offset = 0
        self.next = None


class SSHStreamBuffer:
    """Unbounded buffer of data received on a channel

       Data is appended by a single producer, typically the task which
       delivers incoming channel data, and read by a single consumer.
       Appends never wait for the reader, so the buffer can grow without
       limit if the reader falls behind. Limiting how quickly data is
       delivered is left to the producer.

       Changes to the chain of segments are made only by a worker task
       owned by the buffer, which runs submitted commands in the order
       they were submitted. An append returns once the worker has linked
       its data, so a read issued after that is guaranteed to see it.
       Once :meth:`eof` is called, the worker finishes any commands
       already submitted and exits, after which the remaining data is
       read directly.

       Reads can be interrupted with a :class:`CancelToken`. When the
       token fires at the same time data becomes available, the data
       is returned and the cancellation is ignored.

    """

    def __init__(self, read_size=_DEFAULT_READ_SIZE, logger=None):
        segment = _Segment()

        self._head = segment
        self._tail = segment
        self._read_size = read_size
        self._logger = logger or pkg_logger

        self._ops = asyncio.Queue()
        self._worker = None
        self._drained = asyncio.Event()
        self._closed = False

        self._pending = None
        self._reading = False
        self._buffered = 0

    async def _run(self):
        """Run submitted commands in order until EOF is signaled"""

        while True:
            op = await self._ops.get()

            if op is None:
                break

            op()

        self._finish_pending()
        self._drained.set()

        self._logger.debug2('Stream buffer drained with %s unread',
                            plural(self._buffered, 'byte'))

    def _submit(self, op):
        """Submit a command to the worker, starting it if needed"""

        if not self._worker:
            self._worker = asyncio.ensure_future(self._run())

        self._ops.put_nowait(op)

    def _copy(self, dest):
        """Copy buffered data into dest, dropping exhausted segments"""

        n = 0

        while n < len(dest):
            head = self._head
            avail = len(head.data) - head.offset

            if avail:
                count = min(len(dest) - n, avail)
                end = head.offset + count

                dest[n:n+count] = memoryview(head.data)[head.offset:end]
                head.offset = end
                n += count
            elif head is not self._tail:
                self._head = head.next
            else:
                break

        self._buffered -= n
        return n

    def _unread(self, data):
        """Put data back at the front of the buffer"""

        segment = _Segment(bytes(data))
        segment.next = self._head

        self._head = segment
        self._buffered += len(segment.data)

    def _serve_pending(self):
        """Complete a read parked by the worker if data is available"""

        dest, waiter = self._pending

        if waiter.done():
            self._pending = None
        else:
            n = self._copy(dest)

            if n:
                self._pending = None
                waiter.set_result(n)

    def _finish_pending(self):
        """Wake up a parked read with no data"""

        if self._pending:
            _, waiter = self._pending
            self._pending = None

            if not waiter.done():
                waiter.set_result(0)

    def get_buffered_size(self):
        """Return the number of bytes written but not yet read"""

        return self._buffered

    def is_closed(self):
        """Return whether EOF has been signaled on this buffer"""

        return self._closed

    def at_eof(self):
        """Return whether the buffer is closed and all data was read"""

        return self._drained.is_set() and not self._buffered

    async def write(self, data):
        """Append data to the buffer

           This method is a coroutine which returns once the data is
           visible to readers. The data must not be modified after it
           is passed in, so mutable buffers are copied first.

           Writing after :meth:`eof` has been called is an error.

        """

        if self._closed:
            raise RuntimeError('write called after EOF')

        if not isinstance(data, bytes):
            data = bytes(data)

        done = asyncio.get_running_loop().create_future()

        def _append():
            """Link the new data onto the end of the buffer"""

            segment = _Segment(data)
            self._tail.next = segment
            self._tail = segment
            self._buffered += len(data)

            if self._pending:
                self._serve_pending()

            if not done.done():
                done.set_result(None)

        self._submit(_append)
        await done

    def eof(self):
        """Signal that no more data will be written

           Only the first call has any effect. Data already written
           remains available to be read, after which reads raise
           :exc:`EndOfStream`.

        """

        if self._closed:
            return

        self._closed = True

        if self._worker:
            self._ops.put_nowait(None)
        else:
            self._drained.set()

        self._logger.debug2('Stream buffer EOF with %s buffered',
                            plural(self._buffered, 'byte'))

    async def _read_open(self, dest, token):
        """Read from an open buffer through the worker"""

        waiter = asyncio.get_running_loop().create_future()

        def _read():
            """Copy available data or park the read until more arrives"""

            if not waiter.done():
                n = self._copy(dest)

                if n:
                    waiter.set_result(n)
                else:
                    self._pending = (dest, waiter)

        def _retract():
            """Withdraw a parked read after the token fired"""

            if self._pending and self._pending[1] is waiter:
                self._pending = None

            if not waiter.done():
                waiter.set_result(0)

        self._submit(_read)

        try:
            if not await race(waiter, token):
                # If EOF was signaled, shutting down the worker resolves
                # the read instead.
                if not self._closed:
                    self._submit(_retract)

                if not await waiter:
                    raise ReadCancelled('Read cancelled')

            return waiter.result()
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                self._unread(dest[:waiter.result()])
            else:
                waiter.cancel()

            raise

    async def _read_closed(self, dest, token):
        """Read directly from a closed buffer once the worker has exited"""

        if not self._drained.is_set():
            drained = asyncio.ensure_future(self._drained.wait())

            try:
                if not await race(drained, token):
                    raise ReadCancelled('Read cancelled')
            finally:
                drained.cancel()

        return self._copy(dest)

    async def readinto(self, buf, token=None):
        """Read available data into a buffer

           This method is a coroutine which waits until data is
           available and then copies as much of it as fits into `buf`,
           returning the number of bytes copied. Fewer bytes than
           requested may be returned, so callers needing more should
           read again.

           If `token` fires before any data is available,
           :exc:`ReadCancelled` is raised and the buffer is left
           unchanged. Once EOF has been signaled and all data has been
           read, :exc:`EndOfStream` is raised.

           Only one read may be outstanding on a buffer at a time.

        """

        dest = memoryview(buf).cast('B')

        if not dest:
            return 0

        if self._reading:
            raise RuntimeError('read called while another coroutine is '
                               'already waiting to read')

        self._reading = True

        try:
            while True:
                if self._closed:
                    n = await self._read_closed(dest, token)

                    if not n:
                        raise EndOfStream('End of stream')
                else:
                    n = await self._read_open(dest, token)

                if n:
                    return n
        finally:
            self._reading = False

    async def read(self, n=-1, token=None):
        """Read up to n bytes from the buffer

           This method is a coroutine which returns the available data,
           up to `n` bytes or the configured read size if `n` is
           negative. An empty bytes object is returned at end of
           stream. Cancellation is reported as in :meth:`readinto`.

        """

        if n < 0:
            n = self._read_size

        buf = bytearray(n)

        try:
            count = await self.readinto(buf, token)
        except EndOfStream:
            return b''

        return bytes(buf[:count])
