"""CancellationToken tests: cascading, idempotence and awaiting."""

from __future__ import annotations

import asyncio

from llm_gateway.base.cancellation import CancellationToken


def test_cancel_cascades_to_children_and_is_idempotent():
    root = CancellationToken()
    child = root.child()
    grandchild = child.child()

    assert root.cancel("disconnect") is True  # nosec B101
    assert root.cancel("again") is False  # nosec B101
    assert child.cancelled and grandchild.cancelled  # nosec B101
    assert grandchild.reason == "disconnect"  # nosec B101

def test_child_cancel_does_not_affect_parent_or_siblings():
    root = CancellationToken()
    first, second = root.child(), root.child()

    first.cancel()

    assert not root.cancelled and not second.cancelled  # nosec B101

def test_linking_to_cancelled_parent_cancels_child():
    root = CancellationToken()
    root.cancel("gone")

    child = root.child()

    assert child.cancelled and child.reason == "gone"  # nosec B101

def test_unlinked_child_no_longer_cascades():
    root = CancellationToken()
    child = root.child()
    root.unlink_child(child)
    root.unlink_child(child)

    root.cancel()

    assert not child.cancelled  # nosec B101

async def test_wait_resumes_on_cancel():
    token = CancellationToken()
    waiter = asyncio.create_task(token.wait())
    await asyncio.sleep(0)
    assert not waiter.done()  # nosec B101

    token.cancel()

    await asyncio.wait_for(waiter, timeout=1)
