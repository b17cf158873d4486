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

"""Cancel tokens for interrupting blocked reads"""

import asyncio

from .logging import logger


class CancelToken:
    """Token used to cancel a blocked read

       A cancel token is passed into reads which may block, letting
       the caller give up waiting on them. It fires either when
       :meth:`cancel` is called explicitly or when the deadline set
       by :meth:`with_deadline` or :meth:`with_timeout` passes.

       Firing a token only wakes up whoever is waiting on it. It never
       changes the state of the stream being read, so a new read can
       be issued right away, with a fresh token if needed.

       Callbacks registered with :meth:`add_callback` are run when the
       token fires. They are typically used to interrupt blocking I/O
       on a transport which can't wait on the token directly.

    """

    def __init__(self, loop=None):
        self._loop = loop
        self._cancelled = False
        self._waiter = None
        self._callbacks = []
        self._deadline = None
        self._timer = None

    @classmethod
    def with_deadline(cls, when, loop=None):
        """Return a token which fires at an event loop time"""

        token = cls(loop)
        token._deadline = when
        token._timer = token._get_loop().call_at(when, token.cancel)
        return token

    @classmethod
    def with_timeout(cls, delay, loop=None):
        """Return a token which fires after a delay in seconds"""

        if loop is None:
            loop = asyncio.get_running_loop()

        return cls.with_deadline(loop.time() + delay, loop)

    def _get_loop(self):
        """Return the event loop this token is bound to"""

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        return self._loop

    def _get_waiter(self):
        """Return a future which completes when this token fires"""

        if not self._waiter:
            self._waiter = self._get_loop().create_future()

            if self._cancelled:
                self._waiter.set_result(None)

        return self._waiter

    @property
    def deadline(self):
        """The event loop time this token fires at, or `None`"""

        return self._deadline

    def cancelled(self):
        """Return whether this token has fired"""

        return self._cancelled

    def cancel(self):
        """Fire this token

           Returns `True` the first time the token fires and `False`
           if it had already fired.

        """

        if self._cancelled:
            return False

        self._cancelled = True
        self.close()

        if self._waiter and not self._waiter.done():
            self._waiter.set_result(None)

        callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            self._run_callback(callback)

        return True

    def cancel_threadsafe(self):
        """Fire this token from a thread other than the event loop's"""

        if self._loop:
            self._loop.call_soon_threadsafe(self.cancel)
        else:
            self.cancel()

    def add_callback(self, callback):
        """Register a function to call when this token fires

           If the token has already fired, the callback is run
           immediately.

        """

        if self._cancelled:
            self._run_callback(callback)
        else:
            self._callbacks.append(callback)

    def remove_callback(self, callback):
        """Unregister a function previously passed to add_callback"""

        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    @staticmethod
    def _run_callback(callback):
        """Run a cancel callback, logging any error it raises"""

        try:
            callback()
        except Exception: # pylint: disable=broad-except
            logger.exception('Error running cancel callback')

    async def wait(self):
        """Wait for this token to fire"""

        await asyncio.shield(self._get_waiter())

    def close(self):
        """Stop the deadline timer without firing the token"""

        if self._timer:
            self._timer.cancel()
            self._timer = None


async def race(fut, token):
    """Wait for a future to finish or a cancel token to fire

       Returns `True` if the future finished. When both the future and
       the token are done by the time the caller wakes up, the future
       wins so that results which are already available aren't lost.

    """

    if token is None:
        await asyncio.wait({fut})
    elif not fut.done():
        await asyncio.wait({fut, token._get_waiter()},
                           return_when=asyncio.FIRST_COMPLETED)

    return fut.done()
