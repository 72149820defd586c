from supertx.account.nonces import NonceManager
from tests.conftest import FakeDeployment


async def test_plain_read():
    manager = NonceManager()
    deployment = FakeDeployment(1, nonce=4)

    assert await manager.acquire(deployment) == 4
    assert await manager.acquire(deployment) == 4
    assert manager.reserved(1) == []


async def test_reservations_are_consecutive():
    manager = NonceManager()
    deployment = FakeDeployment(1, nonce=4)

    assert [await manager.acquire(deployment, reserve=True) for _ in range(3)] == [4, 5, 6]
    assert manager.reserved(1) == [4, 5, 6]


async def test_reservations_are_per_chain():
    manager = NonceManager()

    assert await manager.acquire(FakeDeployment(1, nonce=4), reserve=True) == 4
    assert await manager.acquire(FakeDeployment(10, nonce=4), reserve=True) == 4


async def test_release_last_reservation():
    manager = NonceManager()
    deployment = FakeDeployment(1, nonce=4)
    nonce = await manager.acquire(deployment, reserve=True)

    manager.release(1, nonce)

    assert await manager.acquire(deployment, reserve=True) == 4


async def test_released_gap_is_reused():
    manager = NonceManager()
    deployment = FakeDeployment(1, nonce=5)
    first = await manager.acquire(deployment, reserve=True)
    second = await manager.acquire(deployment, reserve=True)

    manager.release(1, first)

    assert (first, second) == (5, 6)
    assert await manager.acquire(deployment, reserve=True) == 5
    assert await manager.acquire(deployment, reserve=True) == 7


async def test_consumed_reservations_are_dropped():
    manager = NonceManager()
    deployment = FakeDeployment(1, nonce=5)
    await manager.acquire(deployment, reserve=True)
    await manager.acquire(deployment, reserve=True)

    deployment.nonce = 6

    assert await manager.acquire(deployment, reserve=True) == 7
    assert manager.reserved(1) == [6, 7]


async def test_clear():
    manager = NonceManager()
    deployment = FakeDeployment(1, nonce=4)
    await manager.acquire(deployment, reserve=True)

    manager.clear()

    assert manager.reserved(1) == []
