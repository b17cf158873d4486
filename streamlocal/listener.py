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

"""SSH listeners for forwarded UNIX domain socket connections"""

import asyncio

from .cancel import CancelToken, race
from .misc import ChannelListenError, EndOfStream, OperationCancelled
from .misc import ReadCancelled


class SSHForwardTable:
    """Table of remote listen paths and their pending connections

       Each listen path registered with :meth:`add` gets a queue of
       channels opened by the server for connections it accepted on
       that path. Removing the path ends the queue.

    """

    def __init__(self):
        self._queues = {}

    def __contains__(self, listen_path):
        return listen_path in self._queues

    def add(self, listen_path):
        """Register a listen path, returning its connection queue"""

        if listen_path in self._queues:
            raise ChannelListenError('Already listening on %s' % listen_path)

        queue = asyncio.Queue()
        self._queues[listen_path] = queue
        return queue

    def lookup(self, listen_path):
        """Return the connection queue for a listen path, or `None`"""

        return self._queues.get(listen_path)

    def remove(self, listen_path):
        """Unregister a listen path and end its connection queue"""

        queue = self._queues.pop(listen_path, None)

        if queue is not None:
            queue.put_nowait(None)

    def clear(self):
        """Unregister all listen paths"""

        for listen_path in list(self._queues):
            self.remove(listen_path)


class SSHUNIXClientListener:
    """Client listener used to accept inbound forwarded UNIX connections

       Forwarded connections are returned as :class:`SSHUNIXChannel`
       objects by :meth:`accept`. Calling :meth:`close` stops listening
       and asks the server to cancel the forwarding, after which
       :meth:`accept` reports end of stream.

    """

    def __init__(self, conn, listen_path, queue, accept_timeout=None):
        self._conn = conn
        self._listen_path = listen_path
        self._queue = queue
        self._accept_timeout = accept_timeout
        self._pushback = []
        self._eof = False
        self._close_exc = None
        self._close_event = asyncio.Event()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.close()
        await self.wait_closed()

    def get_path(self):
        """Return the remote path being listened on"""

        return self._listen_path

    async def _get(self, token):
        """Return the next queued channel unless the token fires first"""

        getter = asyncio.ensure_future(self._queue.get())

        try:
            if not await race(getter, token):
                raise ReadCancelled('Accept cancelled')
        except asyncio.CancelledError:
            # Keep a dequeued channel ahead of any which arrived after it
            if getter.done() and not getter.cancelled():
                self._pushback.append(getter.result())

            raise
        finally:
            if not getter.done():
                getter.cancel()

        return getter.result()

    async def accept(self, token=None):
        """Wait for and return the next forwarded connection

           This method is a coroutine which raises :exc:`ReadCancelled`
           if `token` fires before a connection arrives. If no token is
           given and an accept timeout was configured, a token which
           fires after that timeout is used. Once the listener is
           closed, :exc:`EndOfStream` is raised.

        """

        if self._eof:
            raise EndOfStream('Listener closed')

        if self._pushback:
            chan = self._pushback.pop(0)
        elif token is None and self._accept_timeout:
            timer = CancelToken.with_timeout(self._accept_timeout)

            try:
                chan = await self._get(timer)
            finally:
                timer.close()
        else:
            chan = await self._get(token)

        if chan is None:
            self._eof = True
            raise EndOfStream('Listener closed')

        return chan

    async def _close(self, conn, token):
        """Cancel the remote forwarding of this listener's path"""

        try:
            await conn.close_client_unix_listener(self._listen_path, token)
        except (ChannelListenError, OperationCancelled) as exc:
            self._close_exc = exc

    def _close_done(self, _task):
        """Wake up waiters once closing finishes or is cancelled"""

        self._close_event.set()

    def close(self, token=None):
        """Stop listening for new connections

           Connections already accepted remain open. If `token` fires
           before the server confirms the forwarding was cancelled,
           :meth:`wait_closed` raises :exc:`OperationCancelled`.

        """

        if self._conn:
            conn, self._conn = self._conn, None

            task = conn.create_task(self._close(conn, token))
            task.add_done_callback(self._close_done)

    async def wait_closed(self):
        """Wait for this listener to finish closing

           :raises: :exc:`ChannelListenError` if the server refused to
                    cancel the forwarding or :exc:`OperationCancelled`
                    if the token passed to :meth:`close` fired first

        """

        await self._close_event.wait()

        if self._close_exc:
            exc, self._close_exc = self._close_exc, None
            raise exc
