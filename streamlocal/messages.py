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

"""OpenSSH UNIX domain socket forwarding messages

   These are the request and channel open payloads defined for UNIX
   domain socket forwarding in section 2.4 of OpenSSH's PROTOCOL file.

"""

from .misc import ProtocolError
from .packet import PacketDecodeError, SSHPacket, String, UInt32


def _decode_path(packet, label):
    """Decode a UTF-8 socket path from a packet"""

    try:
        return packet.get_string().decode('utf-8')
    except UnicodeDecodeError:
        raise ProtocolError('Invalid %s socket path' % label) from None


def _decode(payload, label, decoder):
    """Decode a payload, reporting malformed data as a protocol error"""

    packet = payload if isinstance(payload, SSHPacket) else \
        SSHPacket(payload)

    try:
        result = decoder(packet)
        packet.check_end()
    except PacketDecodeError as exc:
        raise ProtocolError('Invalid %s: %s' % (label, exc)) from None

    return result


def encode_direct_streamlocal(socket_path):
    """Encode a direct-streamlocal channel open payload

       OpenSSH expects reserved originator fields to follow the path,
       though it ignores their values.

    """

    return String(socket_path) + String('') + UInt32(0)


def decode_direct_streamlocal(payload):
    """Decode a direct-streamlocal channel open payload"""

    def _decoder(packet):
        """Extract the socket path and skip the reserved fields"""

        socket_path = _decode_path(packet, 'direct streamlocal')
        _ = packet.get_string()                         # reserved
        _ = packet.get_uint32()                         # reserved
        return socket_path

    return _decode(payload, 'direct streamlocal open', _decoder)


def encode_forwarded_streamlocal(socket_path):
    """Encode a forwarded-streamlocal channel open payload"""

    return String(socket_path) + String('')


def decode_forwarded_streamlocal(payload):
    """Decode a forwarded-streamlocal channel open payload"""

    def _decoder(packet):
        """Extract the socket path and skip the reserved field"""

        socket_path = _decode_path(packet, 'forwarded streamlocal')
        _ = packet.get_string()                         # reserved
        return socket_path

    return _decode(payload, 'forwarded streamlocal open', _decoder)


def encode_streamlocal_forward(socket_path):
    """Encode a streamlocal-forward or cancel request payload"""

    return String(socket_path)


def decode_streamlocal_forward(payload):
    """Decode a streamlocal-forward or cancel request payload"""

    def _decoder(packet):
        """Extract the socket path"""

        return _decode_path(packet, 'streamlocal forward')

    return _decode(payload, 'streamlocal forward request', _decoder)
