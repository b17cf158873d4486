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

import asyncio, socket, streamlocal

async def run():
    sock, peer = socket.socketpair()
    reader, writer = streamlocal.wrap_socket(sock)

    token = streamlocal.CancelToken.with_timeout(1)
    streamlocal.cancel_on(token, reader, writer, fallback=sock.close)

    try:
        await asyncio.to_thread(reader.read, 1)
    except TimeoutError:
        print('Blocked read cancelled')
    finally:
        writer.close()
        peer.close()

asyncio.run(run())
