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

"""Unit tests for stream deadlines and cancellation triggers"""

import io
import os
import socket
import threading
import time
import unittest

from streamlocal import CancelToken, DeadlineNotSupported, EXPIRED_DEADLINE
from streamlocal import SSHBufferedReader, SSHBufferedWriter
from streamlocal import SSHDeadlineSocket
from streamlocal import cancel_on, try_cancel_reader, try_cancel_writer
from streamlocal import wrap_socket


class _TestUnsupported(unittest.TestCase):
    """Unit tests for streams which don't support deadlines"""

    def setUp(self):
        rfd, wfd = os.pipe()

        self._reader = SSHBufferedReader(io.FileIO(rfd, 'rb'))
        self._writer = SSHBufferedWriter(io.FileIO(wfd, 'wb'))

    def tearDown(self):
        self._writer.close()
        self._reader.close()

    def test_read_deadline(self):
        """Test setting a read deadline on a pipe"""

        self.assertFalse(self._reader.can_set_read_deadline())

        with self.assertRaises(DeadlineNotSupported):
            self._reader.set_read_deadline(time.monotonic())

        self._writer.write(b'hello')
        self._writer.flush()

        self.assertEqual(self._reader.read(5), b'hello')

    def test_write_deadline(self):
        """Test setting a write deadline on a pipe"""

        self.assertFalse(self._writer.can_set_write_deadline())

        with self.assertRaises(DeadlineNotSupported):
            self._writer.set_write_deadline(None)

        self._writer.write(b'still works')
        self._writer.flush()

        self.assertEqual(self._reader.read(11), b'still works')

    def test_try_cancel(self):
        """Test cancellation triggers on streams without deadlines"""

        for stream in (self._reader, io.BytesIO(), self._reader.raw):
            with self.assertRaises(DeadlineNotSupported):
                try_cancel_reader(stream)

        for stream in (self._writer, io.BytesIO()):
            with self.assertRaises(DeadlineNotSupported):
                try_cancel_writer(stream)

    def test_cancel_on_fallback(self):
        """Test falling back when a stream has no deadlines"""

        calls = []

        token = CancelToken()
        cancel_on(token, self._reader, self._writer,
                  fallback=lambda: calls.append('fallback'))

        self.assertEqual(calls, [])
        token.cancel()
        self.assertEqual(calls, ['fallback'])


class _TestDeadlineSocket(unittest.TestCase):
    """Unit tests for sockets with read and write deadlines"""

    def setUp(self):
        self._sock, self._peer = socket.socketpair()
        self._reader, self._writer = wrap_socket(self._sock,
                                                 poll_interval=0.01)

    def tearDown(self):
        self._writer.set_write_deadline(None)
        self._writer.close()
        self._reader.close()
        self._peer.close()

    def test_capability(self):
        """Test deadline support on socket streams"""

        self.assertTrue(self._reader.can_set_read_deadline())
        self.assertTrue(self._writer.can_set_write_deadline())
        self.assertIs(self._reader.raw, self._writer.raw)
        self.assertIs(self._reader.raw.get_socket(), self._sock)
        self.assertEqual(self._reader.raw.fileno(), self._sock.fileno())

    def test_read_write(self):
        """Test reading and writing without deadlines"""

        self._writer.write(b'ping')
        self._writer.flush()
        self.assertEqual(self._peer.recv(4), b'ping')

        self._peer.sendall(b'pong')
        self.assertEqual(self._reader.read(4), b'pong')

        self._peer.shutdown(socket.SHUT_WR)
        self.assertEqual(self._reader.read(), b'')

    def test_expired_read_deadline(self):
        """Test reading with an expired deadline"""

        try_cancel_reader(self._reader)

        self._peer.sendall(b'x')

        with self.assertRaises(TimeoutError):
            self._reader.read(1)

        self._reader.set_read_deadline(None)
        self.assertEqual(self._reader.read(1), b'x')

    def test_read_deadline(self):
        """Test a read which blocks until its deadline passes"""

        start = time.monotonic()
        self._reader.set_read_deadline(start + 0.05)

        with self.assertRaises(TimeoutError):
            self._reader.read(1)

        self.assertGreaterEqual(time.monotonic(), start + 0.05)

    def test_cancel_blocked_read(self):
        """Test interrupting a read blocked in another thread"""

        result = []

        def _read():
            """Read from the socket, recording the error raised"""

            try:
                self._reader.read(1)
            except TimeoutError as exc:
                result.append(exc)

        thread = threading.Thread(target=_read)
        thread.start()

        time.sleep(0.05)
        try_cancel_reader(self._reader)

        thread.join(2)

        self.assertFalse(thread.is_alive())
        self.assertEqual(len(result), 1)

    def test_expired_write_deadline(self):
        """Test writing with an expired deadline"""

        try_cancel_writer(self._writer.raw)

        with self.assertRaises(TimeoutError):
            self._writer.raw.write(b'x')

    def test_set_deadline(self):
        """Test setting read and write deadlines together"""

        raw = self._reader.raw
        raw.set_deadline(EXPIRED_DEADLINE)

        with self.assertRaises(TimeoutError):
            raw.readinto(bytearray(1))

        with self.assertRaises(TimeoutError):
            raw.write(b'x')

        raw.set_deadline(None)

        self.assertEqual(raw.write(b'x'), 1)
        self.assertEqual(self._peer.recv(1), b'x')

    def test_cancel_on(self):
        """Test cancelling socket I/O when a token fires"""

        calls = []

        token = CancelToken()
        callback = cancel_on(token, self._reader, self._writer,
                             fallback=lambda: calls.append('fallback'))

        token.cancel()

        self.assertEqual(calls, [])

        with self.assertRaises(TimeoutError):
            self._reader.read(1)

        token.remove_callback(callback)

    def test_closed(self):
        """Test I/O on a closed socket stream"""

        raw = SSHDeadlineSocket(socket.socket())
        raw.close()
        raw.close()

        with self.assertRaises(ValueError):
            raw.readinto(bytearray(1))

        with self.assertRaises(ValueError):
            raw.write(b'x')
