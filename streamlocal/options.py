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

"""UNIX domain socket forwarding options"""

import io

from .misc import Options, parse_byte_count, parse_time_interval


_DEFAULT_READ_SIZE = 65536
_DEFAULT_POLL_INTERVAL = 0.05


class SSHStreamLocalOptions(Options):
    """UNIX domain socket forwarding options

       The following options control how data received on forwarded
       UNIX domain socket channels is buffered and read:

       :param read_size: (optional)
           The maximum number of bytes returned by a read when no size
           is given, defaulting to 64 KB. Strings with a k, m, or g
           suffix are accepted.
       :param buffer_size: (optional)
           The size of the read-ahead and write-behind buffers used
           when wrapping a raw transport to support deadlines.
       :param poll_interval: (optional)
           How often, in seconds, a blocked operation on a deadline
           socket checks whether its deadline has passed. Strings with
           an s, m, h, d, or w suffix are accepted.
       :param accept_timeout: (optional)
           How long to wait, in seconds, for a forwarded connection to
           arrive when accepting on a listener without a cancel token,
           or `None` to wait forever.
       :type read_size: `int` or `str`
       :type buffer_size: `int` or `str`
       :type poll_interval: `float` or `str`
       :type accept_timeout: `float`, `str`, or `None`

    """

    # pylint: disable=arguments-differ
    def prepare(self, read_size=_DEFAULT_READ_SIZE,
                buffer_size=io.DEFAULT_BUFFER_SIZE,
                poll_interval=_DEFAULT_POLL_INTERVAL, accept_timeout=None):
        """Prepare UNIX domain socket forwarding options"""

        if isinstance(read_size, str):
            read_size = parse_byte_count(read_size)

        if read_size <= 0:
            raise ValueError('Read size cannot be negative or zero')

        if isinstance(buffer_size, str):
            buffer_size = parse_byte_count(buffer_size)

        if buffer_size <= 0:
            raise ValueError('Buffer size cannot be negative or zero')

        if isinstance(poll_interval, str):
            poll_interval = parse_time_interval(poll_interval)

        if poll_interval <= 0:
            raise ValueError('Poll interval cannot be negative or zero')

        if isinstance(accept_timeout, str):
            accept_timeout = parse_time_interval(accept_timeout)

        if accept_timeout is not None and accept_timeout <= 0:
            raise ValueError('Accept timeout cannot be negative or zero')

        self.read_size = int(read_size)
        self.buffer_size = int(buffer_size)
        self.poll_interval = poll_interval
        self.accept_timeout = accept_timeout
