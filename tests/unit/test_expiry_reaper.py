"""Unit tests for ExpiryReaper."""

import asyncio
from datetime import timedelta

import pytest

from accessgate.infrastructure.scheduling.expiry_reaper import ExpiryReaper

from tests.conftest import make_grant, make_permission


class FlakyStore:
    """Store whose first sweep fails."""

    def __init__(self) -> None:
        self.calls = 0

    async def revoke_expired(self) -> int:
        self.calls += 1
        if self.calls == 1:
            raise RuntimeError("boom")
        return 0


def test_interval_must_be_positive(store) -> None:
    with pytest.raises(ValueError):
        ExpiryReaper(store, interval_seconds=0)


@pytest.mark.asyncio
async def test_run_once_removes_expired(store, uow) -> None:
    perm = make_permission("stock:item:read")
    uow.permissions.add(perm)
    uow.direct_grants.add(make_grant("u1", perm, expires_in=timedelta(minutes=-1)))
    uow.direct_grants.add(make_grant("u2", perm))

    reaper = ExpiryReaper(store, interval_seconds=60)
    assert await reaper.run_once() == 1
    assert await store.count_by_permission_id(perm.id) == 1


@pytest.mark.asyncio
async def test_start_and_stop(store) -> None:
    reaper = ExpiryReaper(store, interval_seconds=60)
    assert not reaper.running
    await reaper.start()
    assert reaper.running
    await reaper.start()
    await reaper.stop()
    assert not reaper.running
    await reaper.stop()


@pytest.mark.asyncio
async def test_loop_survives_failed_sweep() -> None:
    flaky = FlakyStore()
    reaper = ExpiryReaper(flaky, interval_seconds=0.01)
    await reaper.start()
    for _ in range(100):
        if flaky.calls >= 2:
            break
        await asyncio.sleep(0.01)
    await reaper.stop()
    assert flaky.calls >= 2
