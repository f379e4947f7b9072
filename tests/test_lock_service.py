import threading
import time
from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.domain.errors import MutationBusy, RemoteFailure
from storefront.services.lock_service import LocalLockService, RedisLockService


def test_local_lock_serializes_same_user():
    locks = LocalLockService(wait_timeout=5)
    events = []

    def worker(name):
        with locks.hold("user-1"):
            events.append(f"{name}:in")
            time.sleep(0.02)
            events.append(f"{name}:out")

    threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    # no interleaving: every "in" is directly followed by its own "out"
    assert events[0].split(":")[0] == events[1].split(":")[0]
    assert events[2].split(":")[0] == events[3].split(":")[0]


def test_local_lock_times_out_while_held():
    locks = LocalLockService(wait_timeout=0.05)
    with locks.hold("user-1"):
        with pytest.raises(MutationBusy):
            with locks.hold("user-1"):
                pass


def test_local_lock_is_per_user():
    locks = LocalLockService(wait_timeout=0.05)
    with locks.hold("user-1"):
        with locks.hold("user-2"):
            pass


def test_local_lock_released_after_error():
    locks = LocalLockService(wait_timeout=0.05)
    with pytest.raises(ValueError):
        with locks.hold("user-1"):
            raise ValueError("boom")
    with locks.hold("user-1"):
        pass


def test_redis_lock_sets_and_releases_key():
    client = MagicMock()
    client.set.return_value = True
    client.eval.return_value = 1
    locks = RedisLockService(client=client, ttl=30)

    with locks.hold("user-1"):
        pass

    kwargs = client.set.call_args.kwargs
    assert kwargs["name"] == "cart:user-1:lock"
    assert kwargs["nx"] is True
    assert kwargs["ex"] == 30
    token = kwargs["value"]
    client.eval.assert_called_once()
    assert client.eval.call_args.args[1:] == (1, "cart:user-1:lock", token)


def test_redis_lock_waits_then_gives_up():
    client = MagicMock()
    client.set.return_value = None
    locks = RedisLockService(client=client, wait_timeout=0.1, poll_interval=0.01)

    with pytest.raises(MutationBusy):
        with locks.hold("user-1"):
            pass
    assert client.set.call_count > 1
    client.eval.assert_not_called()


def test_redis_lock_acquires_once_free():
    client = MagicMock()
    client.set.side_effect = [None, None, True]
    locks = RedisLockService(client=client, wait_timeout=1, poll_interval=0.01)

    with locks.hold("user-1"):
        pass
    assert client.set.call_count == 3


def test_redis_unavailable_is_a_remote_failure():
    client = MagicMock()
    client.set.side_effect = RedisConnectionError("down")
    locks = RedisLockService(client=client, wait_timeout=0.1)

    with pytest.raises(RemoteFailure):
        with locks.hold("user-1"):
            pass
    # tenacity tried three times before giving up
    assert client.set.call_count == 3
