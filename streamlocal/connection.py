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

"""UNIX domain socket forwarding over an SSH connection"""

import asyncio

from .cancel import race
from .channel import SSHUNIXChannel
from .constants import CHAN_DIRECT_STREAMLOCAL, CHAN_FORWARDED_STREAMLOCAL
from .constants import MSG_REQUEST_SUCCESS
from .constants import OPEN_CONNECT_FAILED, OPEN_UNKNOWN_CHANNEL_TYPE
from .constants import REQ_CANCEL_STREAMLOCAL_FORWARD, REQ_STREAMLOCAL_FORWARD
from .deadline import wrap_socket
from .listener import SSHForwardTable, SSHUNIXClientListener
from .logging import logger
from .messages import decode_forwarded_streamlocal
from .messages import encode_direct_streamlocal, encode_streamlocal_forward
from .misc import ChannelListenError, ChannelOpenError, OperationCancelled
from .options import SSHStreamLocalOptions


class SSHStreamLocalClient:
    """Client side of OpenSSH UNIX domain socket forwarding

       This class sits on top of an SSH connection which takes care of
       the transport, key exchange, and channel handshakes. That
       connection is passed in as `transport` and must provide:

           ============================================ ================
           Method                                       Purpose
           ============================================ ================
           ``make_global_request(request, payload)``    Coroutine which
                                                        sends a global
                                                        request and
                                                        returns the
                                                        response type
                                                        and an
                                                        :class:`SSHPacket`
           ``open_channel(chan, chantype, payload)``    Coroutine which
                                                        opens `chan`
           ``send_channel_data(chan, data)``            Send data
           ``send_channel_eof(chan)``                   Send EOF
           ``close_channel(chan)``                      Close `chan`
           ============================================ ================

       The transport delivers data received on a channel by awaiting
       :meth:`SSHUNIXChannel.data_received` and reports EOF and close
       by calling :meth:`SSHUNIXChannel.eof_received` and
       :meth:`SSHUNIXChannel.connection_lost`. Inbound channel
       opens are passed to :meth:`process_channel_open`.

    """

    next_conn = 0

    def __init__(self, transport, options=None, **kwargs):
        self._transport = transport
        self._options = SSHStreamLocalOptions(options, **kwargs)
        self._forwards = SSHForwardTable()
        self._channels = {}
        self._next_recv_chan = 0
        self._tasks = set()

        self._logger = logger.get_child(context='conn=%d' %
                                        self._get_next_conn())

    @staticmethod
    def _get_next_conn():
        """Return the next available connection number (for logging)"""

        next_conn = SSHStreamLocalClient.next_conn
        SSHStreamLocalClient.next_conn += 1
        return next_conn

    @property
    def logger(self):
        """A logger associated with this connection"""

        return self._logger

    def get_options(self):
        """Return the forwarding options used by this connection"""

        return self._options

    def _reap_task(self, task):
        """Collect result of an async task, reporting errors"""

        self._tasks.discard(task)

        # pylint: disable=broad-except
        try:
            task.result()
        except asyncio.CancelledError:
            pass
        except Exception:
            self._logger.exception('Uncaught exception in task')

    def create_task(self, coro):
        """Create an asynchronous task which catches and reports errors"""

        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._reap_task)
        return task

    def add_channel(self, chan):
        """Add a new channel, returning its channel number"""

        if not self._transport:
            raise ChannelOpenError(OPEN_CONNECT_FAILED,
                                   'SSH connection closed')

        while self._next_recv_chan in self._channels: # pragma: no cover
            self._next_recv_chan = (self._next_recv_chan + 1) & 0xffffffff

        recv_chan = self._next_recv_chan
        self._next_recv_chan = (self._next_recv_chan + 1) & 0xffffffff

        self._channels[recv_chan] = chan
        return recv_chan

    def remove_channel(self, recv_chan):
        """Remove the channel with the specified channel number"""

        self._channels.pop(recv_chan, None)

    def send_channel_data(self, chan, data):
        """Send data on a channel"""

        if not self._transport:
            raise BrokenPipeError('SSH connection closed')

        self._transport.send_channel_data(chan, data)

    def send_channel_eof(self, chan):
        """Send EOF on a channel"""

        if self._transport:
            self._transport.send_channel_eof(chan)

    def close_channel(self, chan):
        """Close a channel"""

        if self._transport:
            self._transport.close_channel(chan)

        self.remove_channel(chan.get_recv_channel())

    def create_unix_channel(self):
        """Create a channel for a UNIX domain socket connection"""

        return SSHUNIXChannel(self, self._options)

    @staticmethod
    async def _wait_cancelable(coro, token, label):
        """Run a transport coroutine unless a cancel token fires first"""

        task = asyncio.ensure_future(coro)

        try:
            if not await race(task, token):
                raise OperationCancelled('%s cancelled' % label)
        finally:
            if not task.done():
                task.cancel()

        return task.result()

    async def _make_global_request(self, request, payload, token=None):
        """Send a global request and return whether it succeeded"""

        if not self._transport:
            return False

        self._logger.packet(request, payload, 'Sending global request')

        pkttype, packet = await self._wait_cancelable(
            self._transport.make_global_request(request, payload),
            token, request.decode('ascii'))

        packet.check_end()

        return pkttype == MSG_REQUEST_SUCCESS

    async def create_unix_connection(self, remote_path, token=None):
        """Create an SSH UNIX domain socket direct connection

           This method is a coroutine which asks the server to open a
           new outbound UNIX domain socket connection to `remote_path`.

           :returns: :class:`SSHUNIXChannel`

           :raises: | :exc:`ChannelOpenError` if the connection can't
                      be opened
                    | :exc:`OperationCancelled` if `token` fires before
                      the server responds

        """

        self._logger.info('Opening direct UNIX connection to %s', remote_path)

        chan = self.create_unix_channel()
        chan.set_outbound_peer_names(remote_path)

        try:
            await self._wait_cancelable(
                self._transport.open_channel(
                    chan, CHAN_DIRECT_STREAMLOCAL,
                    encode_direct_streamlocal(remote_path)),
                token, 'Channel open')
        except (ChannelOpenError, OperationCancelled):
            self.remove_channel(chan.get_recv_channel())
            raise

        return chan

    async def create_unix_server(self, listen_path, token=None):
        """Create a remote SSH UNIX domain socket listener

           This method is a coroutine which asks the server to listen on
           `listen_path` and forward incoming connections back over
           this connection.

           :returns: :class:`SSHUNIXClientListener`

           :raises: | :exc:`ChannelListenError` if the listener can't be
                      opened
                    | :exc:`OperationCancelled` if `token` fires before
                      the server responds

        """

        if listen_path in self._forwards:
            raise ChannelListenError('Already listening on %s' % listen_path)

        self._logger.info('Creating remote UNIX listener on %s', listen_path)

        payload = encode_streamlocal_forward(listen_path)

        if not await self._make_global_request(REQ_STREAMLOCAL_FORWARD,
                                               payload, token):
            self._logger.debug1('Failed to create remote UNIX listener')
            raise ChannelListenError('streamlocal-forward request denied '
                                     'by peer')

        queue = self._forwards.add(listen_path)

        return SSHUNIXClientListener(self, listen_path, queue,
                                     self._options.accept_timeout)

    async def close_client_unix_listener(self, listen_path, token=None):
        """Close a remote UNIX domain socket listener

           The path stops being forwarded locally right away, even if
           `token` fires before the server confirms the cancel.

        """

        self._forwards.remove(listen_path)

        if not self._transport:
            return

        if not await self._make_global_request(
                REQ_CANCEL_STREAMLOCAL_FORWARD,
                encode_streamlocal_forward(listen_path), token):
            raise ChannelListenError('cancel-streamlocal-forward failed')

        self._logger.info('Closed UNIX listener on %s', listen_path)

    def process_forwarded_streamlocal_open(self, payload):
        """Process an inbound forwarded UNIX domain channel open request

           Returns the new channel, which is also queued on the listener
           for the path the server accepted the connection on.

           :raises: :exc:`ProtocolError` if the payload is malformed or
                    :exc:`ChannelOpenError` if there's no listener

        """

        dest_path = decode_forwarded_streamlocal(payload)
        queue = self._forwards.lookup(dest_path)

        if queue is None:
            raise ChannelOpenError(OPEN_CONNECT_FAILED, 'No such listener')

        chan = self.create_unix_channel()
        chan.set_inbound_peer_names(dest_path)

        queue.put_nowait(chan)

        self._logger.info('Accepted remote UNIX connection on %s', dest_path)

        return chan

    def process_channel_open(self, chantype, payload):
        """Process an inbound channel open request

           Only forwarded UNIX domain socket channels are accepted.
           The transport is expected to report a :exc:`ChannelOpenError`
           raised here back to the server as an open failure.

        """

        try:
            if chantype == CHAN_FORWARDED_STREAMLOCAL:
                return self.process_forwarded_streamlocal_open(payload)
            else:
                raise ChannelOpenError(OPEN_UNKNOWN_CHANNEL_TYPE,
                                       'Unknown channel type')
        except ChannelOpenError as exc:
            self._logger.debug1('Open failed for channel type %s: %s',
                                chantype, exc.reason)
            raise

    def wrap_socket(self, sock):
        """Wrap a local socket in buffered streams with deadline support

           The returned reader and writer can be interrupted with
           :func:`cancel_on` while blocked in another thread.

        """

        return wrap_socket(sock, self._options.buffer_size,
                           self._options.poll_interval)

    def close(self):
        """Stop all forwarding on this connection

           Listeners stop accepting connections and channels which are
           still open report end of stream once their data is read.

        """

        self._forwards.clear()

        for chan in list(self._channels.values()):
            chan.connection_lost()

        self._transport = None

        for task in list(self._tasks):
            task.cancel()
