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

"""Miscellaneous utility classes and functions"""

import re

from .constants import DEFAULT_LANG


_unit_pattern = re.compile(r'([A-Za-z])')
_byte_units = {'': 1, 'k': 1024, 'm': 1024*1024, 'g': 1024*1024*1024}
_time_units = {'': 1, 's': 1, 'm': 60, 'h': 60*60,
               'd': 24*60*60, 'w': 7*24*60*60}


def plural(length, label, suffix='s'):
    """Return a label with an optional plural suffix"""

    return '%d %s%s' % (length, label, suffix if length != 1 else '')


def _parse_units(value, suffixes, label):
    """Parse a series of integers followed by unit suffixes"""

    matches = _unit_pattern.split(value)

    if matches[-1]:
        matches.append('')
    else:
        matches.pop()

    try:
        return sum(float(matches[i]) * suffixes[matches[i+1].lower()]
                   for i in range(0, len(matches), 2))
    except KeyError:
        raise ValueError('Invalid ' + label) from None


def parse_byte_count(value):
    """Parse a byte count with optional k, m, or g suffixes"""

    return _parse_units(value, _byte_units, 'byte count')


def parse_time_interval(value):
    """Parse a time interval with optional s, m, h, d, or w suffixes"""

    return _parse_units(value, _time_units, 'time interval')


class Options:
    """Container for configuration options"""

    def __init__(self, options=None, **kwargs):
        if options:
            if not isinstance(options, type(self)):
                raise TypeError('Invalid %s, got %s' %
                                (type(self).__name__, type(options).__name__))

            self.kwargs = options.kwargs.copy()
        else:
            self.kwargs = {}

        self.kwargs.update(kwargs)
        self.prepare(**self.kwargs)

    def prepare(self):
        """Pre-process configuration options"""

    def update(self, kwargs):
        """Update options based on keyword parameters passed in"""

        self.kwargs.update(kwargs)
        self.prepare(**self.kwargs)


class Error(Exception):
    """General streamlocal error"""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class DeadlineNotSupported(Error):
    """Deadline not supported

       This exception is raised when a read or write deadline is
       requested on a stream which has no way to set one. It is
       never fatal, but the caller needs to fall back to some other
       way of interrupting blocked I/O, such as closing the stream.

       :param reason:
           Details about the unsupported request
       :type reason: `str`

    """


class OperationCancelled(Error):
    """Operation cancelled

       This exception is raised when the cancel token passed into a
       forwarding request, channel open, or listener close fires
       before the server responds. The request may still take effect
       on the server.

       :param reason:
           Details about the cancellation
       :type reason: `str`

    """


class ReadCancelled(OperationCancelled):
    """Read cancelled

       This exception is raised when the cancel token passed into a
       read fires before any data could be returned. No data is lost
       and a new read can be issued right away.

       :param reason:
           Details about the cancellation
       :type reason: `str`

    """


class EndOfStream(Error, EOFError):
    """End of stream

       This exception is raised when reading from a stream which has
       received end of file and has no buffered data left. No more
       data will ever be returned from the stream.

       :param reason:
           Details about the end of the stream
       :type reason: `str`

    """


class ProtocolError(Error):
    """SSH protocol error

       This exception is raised when a malformed UNIX domain socket
       forwarding request or channel open payload is received.

       :param reason:
           Details about the protocol error
       :type reason: `str`

    """


class ChannelOpenError(Error):
    """SSH channel open error

       This exception is raised by connection handlers to report
       channel open failures.

       :param code:
           Channel open failure reason, taken from :ref:`channel open
           failure reason codes <ChannelOpenFailureReasons>`
       :param reason:
           A human-readable reason for the channel open failure
       :param lang:
           The language the reason is in
       :type code: `int`
       :type reason: `str`
       :type lang: `str`

    """

    def __init__(self, code, reason, lang=DEFAULT_LANG):
        super().__init__(reason)
        self.code = code
        self.lang = lang


class ChannelListenError(Error):
    """SSH channel listen error

       This exception is raised to report failures in setting up
       or tearing down remote UNIX domain socket listeners.

       :param reason:
           Details of the listen failure
       :type reason: `str`

    """
