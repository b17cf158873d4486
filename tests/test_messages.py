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

"""Unit tests for UNIX domain socket forwarding messages"""

import codecs
import unittest

from streamlocal import PacketDecodeError, ProtocolError
from streamlocal.messages import decode_direct_streamlocal
from streamlocal.messages import decode_forwarded_streamlocal
from streamlocal.messages import decode_streamlocal_forward
from streamlocal.messages import encode_direct_streamlocal
from streamlocal.messages import encode_forwarded_streamlocal
from streamlocal.messages import encode_streamlocal_forward
from streamlocal.packet import SSHPacket, String, UInt32


class _TestMessages(unittest.TestCase):
    """Unit tests for UNIX domain socket forwarding messages"""

    tests = [
        (encode_direct_streamlocal, decode_direct_streamlocal,
         '/tmp/sock', '000000092f746d702f736f636b0000000000000000'),
        (encode_forwarded_streamlocal, decode_forwarded_streamlocal,
         '/tmp/sock', '000000092f746d702f736f636b00000000'),
        (encode_streamlocal_forward, decode_streamlocal_forward,
         '/tmp/sock', '000000092f746d702f736f636b')
    ]

    def test_encode(self):
        """Test encoding of forwarding messages"""

        for encode, _, path, data in self.tests:
            with self.subTest(encode=encode.__name__):
                self.assertEqual(encode(path), codecs.decode(data, 'hex'))

    def test_decode(self):
        """Test decoding of forwarding messages"""

        for _, decode, path, data in self.tests:
            with self.subTest(decode=decode.__name__):
                payload = codecs.decode(data, 'hex')

                self.assertEqual(decode(payload), path)
                self.assertEqual(decode(SSHPacket(payload)), path)

    def test_decode_errors(self):
        """Test decoding malformed forwarding messages"""

        for _, decode, path, data in self.tests:
            with self.subTest(decode=decode.__name__):
                payload = codecs.decode(data, 'hex')

                with self.assertRaises(ProtocolError):
                    decode(payload[:-1])

                with self.assertRaises(ProtocolError):
                    decode(payload + b'\0')

    def test_non_utf8_path(self):
        """Test decoding a socket path which isn't valid UTF-8"""

        payload = String(b'\xff\xfe') + String('') + UInt32(0)

        with self.assertRaises(ProtocolError):
            decode_direct_streamlocal(payload)

    def test_unicode_path(self):
        """Test a socket path containing non-ASCII characters"""

        path = '/tmp/s\xf6ck'
        payload = encode_forwarded_streamlocal(path)

        self.assertEqual(decode_forwarded_streamlocal(payload), path)


class _TestPacket(unittest.TestCase):
    """Unit tests for SSH packet decoding"""

    def test_packet(self):
        """Test decoding values from a packet"""

        packet = SSHPacket(UInt32(0x12345678) + String(b'abc'))

        self.assertTrue(packet)
        self.assertEqual(packet.get_uint32(), 0x12345678)
        self.assertEqual(packet.get_string(), b'abc')
        self.assertFalse(packet)
        packet.check_end()

        self.assertEqual(packet.get_full_payload(),
                         codecs.decode('1234567800000003616263', 'hex'))

    def test_errors(self):
        """Test decoding errors"""

        with self.assertRaises(PacketDecodeError):
            SSHPacket(b'\0\0\0').get_uint32()

        with self.assertRaises(PacketDecodeError):
            SSHPacket(String(b'abc')[:-1]).get_string()

        with self.assertRaises(PacketDecodeError):
            SSHPacket(b'\0').check_end()
