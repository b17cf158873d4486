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

"""Deadline support for cancelling blocking stream I/O

   Blocking reads and writes on a raw transport can't wait on a
   :class:`CancelToken` directly. Instead, a transport which supports
   deadlines can be interrupted by installing a deadline which has
   already passed, causing the blocked operation, or the next one
   started, to fail with :exc:`TimeoutError`.

   Deadlines are absolute :func:`time.monotonic` values, with `None`
   meaning no deadline. A stream supports read or write deadlines if
   it has a ``set_read_deadline`` or ``set_write_deadline`` method.

"""

import io
import selectors
import time

from .logging import logger
from .misc import DeadlineNotSupported


# A deadline which is always in the past
EXPIRED_DEADLINE = 0.0

_DEFAULT_POLL_INTERVAL = 0.05


def _get_deadline_setter(stream, name):
    """Return a stream's deadline setter, or `None` if it has none"""

    setter = getattr(stream, name, None)
    return setter if callable(setter) else None


class SSHBufferedReader(io.BufferedReader):
    """Buffered reader which passes read deadlines to its raw stream"""

    def __init__(self, raw, buffer_size=io.DEFAULT_BUFFER_SIZE):
        super().__init__(raw, buffer_size)

        self._set_deadline = _get_deadline_setter(raw, 'set_read_deadline')

    def can_set_read_deadline(self):
        """Return whether the raw stream supports read deadlines"""

        return self._set_deadline is not None

    def set_read_deadline(self, when):
        """Set the deadline for reads on the raw stream

           :raises: :exc:`DeadlineNotSupported` if the raw stream
                    doesn't support read deadlines

        """

        if not self._set_deadline:
            raise DeadlineNotSupported('Read deadline not supported by %s' %
                                       type(self.raw).__name__)

        self._set_deadline(when)


class SSHBufferedWriter(io.BufferedWriter):
    """Buffered writer which passes write deadlines to its raw stream"""

    def __init__(self, raw, buffer_size=io.DEFAULT_BUFFER_SIZE):
        super().__init__(raw, buffer_size)

        self._set_deadline = _get_deadline_setter(raw, 'set_write_deadline')

    def can_set_write_deadline(self):
        """Return whether the raw stream supports write deadlines"""

        return self._set_deadline is not None

    def set_write_deadline(self, when):
        """Set the deadline for writes on the raw stream

           :raises: :exc:`DeadlineNotSupported` if the raw stream
                    doesn't support write deadlines

        """

        if not self._set_deadline:
            raise DeadlineNotSupported('Write deadline not supported by %s' %
                                       type(self.raw).__name__)

        self._set_deadline(when)


class SSHDeadlineSocket(io.RawIOBase):
    """Raw stream over a connected socket with read and write deadlines

       The socket is switched to non-blocking mode and waits for it to
       become ready are done in slices of `poll_interval` seconds, so
       a deadline installed from another thread while an operation is
       blocked takes effect within one slice.

    """

    def __init__(self, sock, poll_interval=_DEFAULT_POLL_INTERVAL):
        super().__init__()

        sock.setblocking(False)

        self._sock = sock
        self._poll_interval = poll_interval
        self._read_deadline = None
        self._write_deadline = None

    def get_socket(self):
        """Return the socket this stream is reading and writing"""

        return self._sock

    def fileno(self):
        return self._sock.fileno()

    def readable(self):
        return True

    def writable(self):
        return True

    def set_deadline(self, when):
        """Set the deadline for both reads and writes"""

        self._read_deadline = when
        self._write_deadline = when

    def set_read_deadline(self, when):
        """Set the deadline for reads"""

        self._read_deadline = when

    def set_write_deadline(self, when):
        """Set the deadline for writes"""

        self._write_deadline = when

    def _check_deadline(self, deadline_attr, label):
        """Return time left before a deadline, or `None` if unset"""

        deadline = getattr(self, deadline_attr)

        if deadline is None:
            return None

        remaining = deadline - time.monotonic()

        if remaining <= 0:
            raise TimeoutError('%s deadline exceeded' % label)

        return remaining

    def _wait(self, events, deadline_attr, label):
        """Wait for the socket to become ready or a deadline to pass"""

        with selectors.DefaultSelector() as sel:
            sel.register(self._sock, events)

            while True:
                remaining = self._check_deadline(deadline_attr, label)
                timeout = self._poll_interval

                if remaining is not None:
                    timeout = min(timeout, remaining)

                if sel.select(timeout):
                    return

    def readinto(self, b):
        if self.closed:
            raise ValueError('I/O operation on closed socket')

        while True:
            self._check_deadline('_read_deadline', 'Read')

            try:
                return self._sock.recv_into(b)
            except BlockingIOError:
                self._wait(selectors.EVENT_READ, '_read_deadline', 'Read')

    def write(self, b):
        if self.closed:
            raise ValueError('I/O operation on closed socket')

        while True:
            self._check_deadline('_write_deadline', 'Write')

            try:
                return self._sock.send(b)
            except BlockingIOError:
                self._wait(selectors.EVENT_WRITE, '_write_deadline', 'Write')

    def close(self):
        if not self.closed:
            self._sock.close()

        super().close()


def try_cancel_reader(reader):
    """Try to interrupt a blocked read by expiring its deadline

       This is best effort: it causes a read blocked on `reader`, or
       the next one started, to fail with :exc:`TimeoutError`, but
       makes no promise about how quickly that happens.

       :raises: :exc:`DeadlineNotSupported` if the reader doesn't
                support read deadlines

    """

    setter = _get_deadline_setter(reader, 'set_read_deadline')

    if not setter:
        raise DeadlineNotSupported('Read deadline not supported by %s' %
                                   type(reader).__name__)

    setter(EXPIRED_DEADLINE)


def try_cancel_writer(writer):
    """Try to interrupt a blocked write by expiring its deadline

       :raises: :exc:`DeadlineNotSupported` if the writer doesn't
                support write deadlines

    """

    setter = _get_deadline_setter(writer, 'set_write_deadline')

    if not setter:
        raise DeadlineNotSupported('Write deadline not supported by %s' %
                                   type(writer).__name__)

    setter(EXPIRED_DEADLINE)


def cancel_on(token, reader=None, writer=None, fallback=None):
    """Interrupt blocking I/O on a stream when a cancel token fires

       When `token` fires, the read and write deadlines of `reader`
       and `writer` are expired. If either of them doesn't support
       deadlines, `fallback` is called instead, if set. A typical
       fallback is closing the underlying connection.

       Returns the callback registered on the token, which can be
       passed to :meth:`CancelToken.remove_callback` once the I/O
       it guards has finished.

    """

    def _cancel():
        """Expire deadlines, falling back if they aren't supported"""

        unsupported = False

        if reader is not None:
            try:
                try_cancel_reader(reader)
            except DeadlineNotSupported as exc:
                logger.debug1('%s', exc.reason)
                unsupported = True

        if writer is not None:
            try:
                try_cancel_writer(writer)
            except DeadlineNotSupported as exc:
                logger.debug1('%s', exc.reason)
                unsupported = True

        if unsupported and fallback:
            logger.debug1('Falling back to alternate cancellation')
            fallback()

    token.add_callback(_cancel)
    return _cancel


def wrap_socket(sock, buffer_size=io.DEFAULT_BUFFER_SIZE,
                poll_interval=_DEFAULT_POLL_INTERVAL):
    """Return a buffered reader and writer for a socket with deadlines

       Both share one :class:`SSHDeadlineSocket`, so closing either of
       them closes the socket.

    """

    raw = SSHDeadlineSocket(sock, poll_interval)

    return SSHBufferedReader(raw, buffer_size), \
           SSHBufferedWriter(raw, buffer_size)
