from coachdesk.sessions import MemorySessionStore


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_create_get_destroy():
    store = MemorySessionStore()
    sid = store.create({"user_id": 3})
    assert store.get(sid) == {"user_id": 3}
    store.destroy(sid)
    assert store.get(sid) is None


def test_sessions_expire_after_ttl():
    clock = FakeClock()
    store = MemorySessionStore(ttl=60, clock=clock)
    sid = store.create({"user_id": 1})
    clock.now = 59
    assert store.get(sid) is not None
    clock.now = 60
    assert store.get(sid) is None


def test_expired_sessions_are_pruned_periodically():
    clock = FakeClock()
    store = MemorySessionStore(ttl=10, check_period=100, clock=clock)
    store.create({"user_id": 1})
    store.create({"user_id": 2})
    clock.now = 50
    store.create({"user_id": 3})
    assert len(store) == 3
    clock.now = 100
    store.create({"user_id": 4})
    assert len(store) == 1


def test_returned_data_is_a_copy():
    store = MemorySessionStore()
    sid = store.create({"user_id": 1})
    store.get(sid)["user_id"] = 99
    assert store.get(sid) == {"user_id": 1}
