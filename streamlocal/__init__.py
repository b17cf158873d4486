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

"""Data delivery and cancellation for SSH UNIX domain socket forwarding"""

from .version import __author__, __author_email__, __version__

from .buffer import SSHStreamBuffer

from .cancel import CancelToken

from .channel import SSHUNIXChannel

from .connection import SSHStreamLocalClient

from .deadline import EXPIRED_DEADLINE
from .deadline import SSHBufferedReader, SSHBufferedWriter, SSHDeadlineSocket
from .deadline import cancel_on, try_cancel_reader, try_cancel_writer
from .deadline import wrap_socket

from .listener import SSHForwardTable, SSHUNIXClientListener

from .logging import logger, set_debug_level, set_log_level

from .misc import Error, DeadlineNotSupported, OperationCancelled
from .misc import ReadCancelled, EndOfStream
from .misc import ProtocolError, ChannelOpenError, ChannelListenError

from .options import SSHStreamLocalOptions

from .packet import PacketDecodeError
