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

"""SSH UNIX domain socket channel"""

from .buffer import SSHStreamBuffer
from .misc import EndOfStream, ProtocolError
from .options import SSHStreamLocalOptions


class SSHUNIXChannel:
    """SSH UNIX domain socket channel

       Data delivered on the channel by the connection is queued in an
       :class:`SSHStreamBuffer` until the application reads it. The
       connection calls :meth:`data_received` for each data message and
       :meth:`eof_received` or :meth:`connection_lost` when no more data
       will arrive. Reads accept an optional :class:`CancelToken`.

    """

    def __init__(self, conn, options=None):
        self._conn = conn
        self._options = options or SSHStreamLocalOptions()
        self._extra = {'connection': conn}
        self._exception = None
        self._send_closed = False
        self._closing = False

        self._recv_chan = conn.add_channel(self)
        self._logger = conn.logger.get_child(context='chan=%d' %
                                             self._recv_chan)
        self._recv_buf = SSHStreamBuffer(self._options.read_size,
                                         self._logger)

    @property
    def logger(self):
        """A logger associated with this channel"""

        return self._logger

    def get_recv_channel(self):
        """Return the local channel number of this channel"""

        return self._recv_chan

    def get_extra_info(self, name, default=None):
        """Get additional information about the channel

           Supported values include ``'connection'`` to return the
           connection this channel is running over plus
           ``'local_peername'`` and ``'remote_peername'`` to return the
           local and remote socket paths. Since UNIX domain sockets
           provide no "source" address, only one of these will hold a
           real path.

        """

        return self._extra.get(name, default)

    def set_outbound_peer_names(self, dest_path):
        """Set local and remote peer names for outbound connections"""

        self._extra['local_peername'] = ''
        self._extra['remote_peername'] = dest_path

    def set_inbound_peer_names(self, dest_path):
        """Set local and remote peer names for inbound connections"""

        self._extra['local_peername'] = dest_path
        self._extra['remote_peername'] = '@'

    async def data_received(self, data):
        """Queue data received on the channel for the reader"""

        if self._recv_buf.is_closed():
            if self._closing:
                return

            raise ProtocolError('Data received after EOF')

        await self._recv_buf.write(data)

    def eof_received(self):
        """Handle an incoming end of file on the channel"""

        self._logger.debug2('Received EOF')
        self._recv_buf.eof()

    def connection_lost(self, exc=None):
        """Handle the channel closing, possibly because of an error

           Data already received can still be read. After that, reads
           raise `exc` if one was given or report end of stream.

        """

        if exc:
            self._logger.debug1('Channel closed: %s', exc)
            self._exception = exc

        self._send_closed = True
        self._recv_buf.eof()
        self._conn.remove_channel(self._recv_chan)

    def at_eof(self):
        """Return whether all data on the channel has been read"""

        return self._recv_buf.at_eof()

    async def readinto(self, buf, token=None):
        """Read available data on the channel into a buffer

           This method is a coroutine which returns the number of bytes
           copied into `buf` once at least one byte is available. It
           raises :exc:`ReadCancelled` if `token` fires first and
           :exc:`EndOfStream` once all data has been read.

        """

        try:
            return await self._recv_buf.readinto(buf, token)
        except EndOfStream:
            if self._exception:
                raise self._exception from None

            raise

    async def read(self, n=-1, token=None):
        """Read up to n bytes from the channel

           This method is a coroutine which returns available data, or
           an empty bytes object once all data has been read.

        """

        if n < 0:
            n = self._options.read_size

        buf = bytearray(n)

        try:
            count = await self.readinto(buf, token)
        except EndOfStream:
            return b''

        return bytes(buf[:count])

    def write(self, data):
        """Write data on the channel"""

        if self._send_closed:
            raise BrokenPipeError('Channel not open for sending')

        self._conn.send_channel_data(self, data)

    def write_eof(self):
        """Write EOF on the channel"""

        if not self._send_closed:
            self._send_closed = True
            self._conn.send_channel_eof(self)

    def close(self):
        """Close the channel

           No more data will be accepted on the channel, but data
           already received can still be read.

        """

        self._closing = True
        self._send_closed = True
        self._recv_buf.eof()
        self._conn.close_channel(self)
