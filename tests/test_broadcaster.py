import asyncio

from webserve.broadcaster import RELOAD_MESSAGE, ReloadBroadcaster


async def test_broadcast_reaches_every_channel():
    broadcaster = ReloadBroadcaster()
    channels = [await broadcaster.join() for _ in range(3)]

    assert await broadcaster.broadcast() == 3
    for channel in channels:
        assert await channel.next_message() == RELOAD_MESSAGE


async def test_channel_ids_are_unique():
    broadcaster = ReloadBroadcaster()
    channels = await asyncio.gather(*(broadcaster.join() for _ in range(50)))
    assert len({c.id for c in channels}) == 50
    assert len(broadcaster) == 50


async def test_join_then_leave_leaves_nobody_to_notify():
    broadcaster = ReloadBroadcaster()
    channel = await broadcaster.join()
    await broadcaster.leave(channel.id)

    assert await broadcaster.broadcast() == 0
    assert len(broadcaster) == 0
    assert channel.closed


async def test_leave_is_idempotent():
    broadcaster = ReloadBroadcaster()
    keep = await broadcaster.join()
    gone = await broadcaster.join()

    assert await broadcaster.leave(gone.id) is True
    assert await broadcaster.leave(gone.id) is False
    assert await broadcaster.leave("never-joined") is False
    assert len(broadcaster) == 1
    assert await broadcaster.broadcast() == 1
    assert await keep.next_message() == RELOAD_MESSAGE


async def test_full_channel_is_dropped_without_affecting_others():
    broadcaster = ReloadBroadcaster(queue_size=1)
    slow = await broadcaster.join()
    fast = await broadcaster.join()

    assert await broadcaster.broadcast() == 2
    assert await fast.next_message() == RELOAD_MESSAGE

    # slow never drained its queue
    assert await broadcaster.broadcast() == 1
    assert slow.closed
    assert len(broadcaster) == 1
    assert await fast.next_message() == RELOAD_MESSAGE


async def test_closed_channel_counts_as_failed_send():
    broadcaster = ReloadBroadcaster()
    channel = await broadcaster.join()
    channel.close()

    assert await broadcaster.broadcast() == 0
    assert len(broadcaster) == 0


async def test_late_joiner_gets_no_replay():
    broadcaster = ReloadBroadcaster()
    await broadcaster.broadcast()
    late = await broadcaster.join()

    assert late.offer("ping")
    assert await late.next_message() == "ping"


async def test_one_message_per_broadcast():
    broadcaster = ReloadBroadcaster()
    channel = await broadcaster.join()
    await broadcaster.broadcast()

    assert await channel.next_message() == RELOAD_MESSAGE
    await broadcaster.leave(channel.id)
    assert await channel.next_message() is None


async def test_close_wakes_waiting_reader():
    broadcaster = ReloadBroadcaster()
    channel = await broadcaster.join()
    reader = asyncio.create_task(channel.next_message())
    await asyncio.sleep(0)

    await broadcaster.leave(channel.id)
    assert await asyncio.wait_for(reader, timeout=1) is None


async def test_concurrent_leave_during_broadcast():
    broadcaster = ReloadBroadcaster()
    channels = [await broadcaster.join() for _ in range(20)]

    results = await asyncio.gather(
        broadcaster.broadcast(),
        *(broadcaster.leave(c.id) for c in channels[::2]),
    )
    # broadcast snapshots before any leave gets the lock
    assert results[0] == 20
    assert len(broadcaster) == 10

    left = channels[::2]
    kept = channels[1::2]
    assert all(r is True for r in results[1:])
    for channel in left:
        assert channel.closed
        assert await channel.next_message() is None
    for channel in kept:
        assert not channel.closed
        assert await channel.next_message() == RELOAD_MESSAGE

    assert await broadcaster.broadcast() == 10


async def test_close_all():
    broadcaster = ReloadBroadcaster()
    channels = [await broadcaster.join() for _ in range(3)]
    await broadcaster.close_all()

    assert len(broadcaster) == 0
    assert all(c.closed for c in channels)
    assert await broadcaster.broadcast() == 0
