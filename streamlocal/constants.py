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

"""SSH constants used by UNIX domain socket forwarding"""

# pylint: disable=bad-whitespace

# Default language for error messages
DEFAULT_LANG                        = 'en-US'

# SSH message codes
MSG_GLOBAL_REQUEST                  = 80
MSG_REQUEST_SUCCESS                 = 81
MSG_REQUEST_FAILURE                 = 82

# SSH channel open failure reason codes
OPEN_ADMINISTRATIVELY_PROHIBITED    = 1
OPEN_CONNECT_FAILED                 = 2
OPEN_UNKNOWN_CHANNEL_TYPE           = 3
OPEN_RESOURCE_SHORTAGE              = 4

# OpenSSH UNIX domain socket forwarding channel types
CHAN_DIRECT_STREAMLOCAL             = b'direct-streamlocal@openssh.com'
CHAN_FORWARDED_STREAMLOCAL          = b'forwarded-streamlocal@openssh.com'

# OpenSSH UNIX domain socket forwarding global requests
REQ_STREAMLOCAL_FORWARD             = b'streamlocal-forward@openssh.com'
REQ_CANCEL_STREAMLOCAL_FORWARD      = b'cancel-streamlocal-forward@openssh.com'
