#!/usr/bin/env python3

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

"""streamlocal: Data delivery and cancellation for SSH UNIX socket forwarding

streamlocal provides the buffering and cancellation layer used by SSH
channels which forward UNIX domain socket connections, built on the
Python asyncio framework.

"""

from os import path
from setuptools import setup

base_dir = path.abspath(path.dirname(__file__))

doclines = __doc__.split('\n', 1)

with open(path.join(base_dir, 'streamlocal', 'version.py')) as version:
    exec(version.read())

setup(name = 'streamlocal',
      version = __version__,
      author = __author__,
      author_email = __author_email__,
      license = 'Eclipse Public License v2.0',
      description = doclines[0],
      long_description = doclines[1],
      platforms = 'Any',
      python_requires = '>= 3.10',
      extras_require = {
          'test':   ['pytest >= 7.0'],
          'uvloop': ['uvloop >= 0.17.0']
      },
      packages = ['streamlocal'],
      scripts = [],
      test_suite = 'tests',
      classifiers = [
          'Development Status :: 4 - Beta',
          'Environment :: Console',
          'Intended Audience :: Developers',
          'License :: OSI Approved',
          'Operating System :: POSIX',
          'Programming Language :: Python :: 3.10',
          'Programming Language :: Python :: 3.11',
          'Programming Language :: Python :: 3.12',
          'Topic :: Internet',
          'Topic :: Software Development :: Libraries :: Python Modules',
          'Topic :: System :: Networking'])
