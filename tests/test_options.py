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

"""Unit tests for UNIX domain socket forwarding options"""

import io
import unittest

from streamlocal import SSHStreamLocalOptions
from streamlocal.misc import parse_byte_count, parse_time_interval, plural


class _TestOptions(unittest.TestCase):
    """Unit tests for UNIX domain socket forwarding options"""

    def test_defaults(self):
        """Test default option values"""

        options = SSHStreamLocalOptions()

        self.assertEqual(options.read_size, 65536)
        self.assertEqual(options.buffer_size, io.DEFAULT_BUFFER_SIZE)
        self.assertEqual(options.poll_interval, 0.05)
        self.assertIsNone(options.accept_timeout)

    def test_strings(self):
        """Test options given as strings with units"""

        options = SSHStreamLocalOptions(read_size='16k', buffer_size='1m',
                                        poll_interval='0.5s',
                                        accept_timeout='1m30s')

        self.assertEqual(options.read_size, 16384)
        self.assertEqual(options.buffer_size, 1024*1024)
        self.assertEqual(options.poll_interval, 0.5)
        self.assertEqual(options.accept_timeout, 90)

    def test_copy(self):
        """Test building options on top of other options"""

        base = SSHStreamLocalOptions(read_size=1024)
        options = SSHStreamLocalOptions(base, accept_timeout=5)

        self.assertEqual(options.read_size, 1024)
        self.assertEqual(options.accept_timeout, 5)
        self.assertIsNone(base.accept_timeout)

        options.update({'read_size': 2048})
        self.assertEqual(options.read_size, 2048)

        with self.assertRaises(TypeError):
            SSHStreamLocalOptions({'read_size': 1024})

    def test_invalid(self):
        """Test invalid option values"""

        for kwargs in ({'read_size': 0}, {'read_size': 'abc'},
                       {'buffer_size': -1}, {'poll_interval': 0},
                       {'poll_interval': '1x'}, {'accept_timeout': 0}):
            with self.subTest(**kwargs):
                with self.assertRaises(ValueError):
                    SSHStreamLocalOptions(**kwargs)

    def test_units(self):
        """Test parsing values with units"""

        self.assertEqual(parse_byte_count('1k512'), 1536)
        self.assertEqual(parse_byte_count('2G'), 2*1024*1024*1024)
        self.assertEqual(parse_time_interval('1h'), 3600)
        self.assertEqual(parse_time_interval('1w1d'), 8*24*60*60)

    def test_plural(self):
        """Test pluralizing labels"""

        self.assertEqual(plural(1, 'byte'), '1 byte')
        self.assertEqual(plural(0, 'byte'), '0 bytes')
        self.assertEqual(plural(2, 'byte'), '2 bytes')
