#!/usr/bin/env python3
#
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

import asyncio, streamlocal

async def produce(buf):
    for word in ('hello', ' ', 'world'):
        await buf.write(word.encode())
        await asyncio.sleep(0.5)

    buf.eof()

async def run():
    buf = streamlocal.SSHStreamBuffer()
    producer = asyncio.ensure_future(produce(buf))

    while True:
        token = streamlocal.CancelToken.with_timeout(0.2)

        try:
            data = await buf.read(token=token)
        except streamlocal.ReadCancelled:
            print('Still waiting...')
            continue

        if not data:
            break

        print('Received %r' % data)

    await producer

asyncio.run(run())
