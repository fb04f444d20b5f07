# tests/test_notifier.py
import asyncio

from brandsync.notifications import ChangeNotifier, InMemoryChangeTransport


def test_publish_reaches_only_subscribers_of_the_tenant(notifier):
    async def scenario():
        calls = []

        async def on_a():
            calls.append("a")

        async def on_b():
            calls.append("b")

        notifier.subscribe("tenant-a", on_a)
        notifier.subscribe("tenant-b", on_b)

        await notifier.publish("tenant-a")
        return calls

    assert asyncio.run(scenario()) == ["a"]


def test_failing_subscriber_does_not_affect_others(notifier):
    async def scenario():
        calls = []

        async def broken():
            raise RuntimeError("renderer exploded")

        async def healthy():
            calls.append("healthy")

        notifier.subscribe("tenant-a", broken)
        notifier.subscribe("tenant-a", healthy)

        await notifier.publish("tenant-a")
        return calls

    assert asyncio.run(scenario()) == ["healthy"]


def test_unsubscribe_is_idempotent_and_scoped(notifier):
    async def scenario():
        calls = []

        async def handler():
            calls.append("x")

        first = notifier.subscribe("tenant-a", handler)
        notifier.subscribe("tenant-a", handler)
        assert notifier.subscriber_count("tenant-a") == 2

        first()
        first()
        assert notifier.subscriber_count("tenant-a") == 1

        await notifier.publish("tenant-a")
        return calls

    assert asyncio.run(scenario()) == ["x"]


def test_channel_names_use_prefix():
    notifier = ChangeNotifier(InMemoryChangeTransport(), channel_prefix="brandsync:tokens")

    assert notifier.channel_for("shop-42") == "brandsync:tokens:shop-42"


def test_publish_without_subscribers_is_a_no_op(notifier):
    asyncio.run(notifier.publish("nobody-listens"))

    assert notifier.subscriber_count("nobody-listens") == 0
