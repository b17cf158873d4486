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

"""Utility functions for unit tests"""

import asyncio
import functools
import os
import unittest

from streamlocal.constants import MSG_REQUEST_FAILURE, MSG_REQUEST_SUCCESS
from streamlocal.misc import ChannelOpenError
from streamlocal.packet import SSHPacket


# pylint: disable=ungrouped-imports, unused-import

try:
    import uvloop
    uvloop_available = True
except ImportError: # pragma: no cover
    uvloop_available = False

# pylint: enable=ungrouped-imports, unused-import


def asynctest(coro):
    """Decorator for async tests, for use with AsyncTestCase"""

    @functools.wraps(coro)
    def async_wrapper(self, *args, **kwargs):
        """Run a coroutine and wait for it to finish"""

        return self.loop.run_until_complete(coro(self, *args, **kwargs))

    return async_wrapper


class TransportStub:
    """Stub class used to replace the SSH connection under forwarding"""

    def __init__(self, allow_forward=True, allow_cancel=True,
                 open_error=None, stall_requests=(), stall_open=False):
        self._allow_forward = allow_forward
        self._allow_cancel = allow_cancel
        self._open_error = open_error
        self._stall_requests = stall_requests
        self._stall_open = stall_open

        self.requests = []
        self.opened = []
        self.sent = []
        self.eofs = []
        self.closed = []
        self.abandoned = 0

    async def _stall(self):
        """Wait forever, counting how often the wait is abandoned"""

        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.abandoned += 1
            raise

    async def make_global_request(self, request, payload):
        """Record a global request and return a canned response"""

        self.requests.append((request, payload))

        if request in self._stall_requests:
            await self._stall()

        if request.startswith(b'cancel-'):
            ok = self._allow_cancel
        else:
            ok = self._allow_forward

        return (MSG_REQUEST_SUCCESS if ok else MSG_REQUEST_FAILURE,
                SSHPacket(b''))

    async def open_channel(self, chan, chantype, payload):
        """Record a channel open, failing it if requested"""

        if self._stall_open:
            await self._stall()

        if self._open_error:
            raise ChannelOpenError(*self._open_error)

        self.opened.append((chan, chantype, payload))

    def send_channel_data(self, chan, data):
        """Record data sent on a channel"""

        self.sent.append((chan, data))

    def send_channel_eof(self, chan):
        """Record EOF sent on a channel"""

        self.eofs.append(chan)

    def close_channel(self, chan):
        """Record a channel close"""

        self.closed.append(chan)


class AsyncTestCase(unittest.TestCase):
    """Unit test class which supports tests using asyncio"""

    loop = None

    @classmethod
    def setUpClass(cls):
        """Set up event loop to run async tests"""

        super().setUpClass()

        use_uvloop = os.environ.get('USE_UVLOOP')

        if uvloop_available and use_uvloop: # pragma: no cover
            cls.loop = uvloop.new_event_loop()
        else:
            cls.loop = asyncio.new_event_loop()

        asyncio.set_event_loop(cls.loop)

    @classmethod
    def tearDownClass(cls):
        """Close event loop"""

        cls.loop.close()
        asyncio.set_event_loop(None)

        super().tearDownClass()
