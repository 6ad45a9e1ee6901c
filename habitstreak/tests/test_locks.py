"""Per-user serialization of ledger read-modify-write."""

import threading

from habitstreak.core.locks import KeyedLocks

D1 = "2024-03-10"


def test_same_key_returns_same_lock():
    locks = KeyedLocks()
    with locks.user("u1"):
        with locks.user("u1"):
            pass
    with locks.group("u1"):
        pass
    assert len(locks) == 2


def test_concurrent_completions_credit_exactly_once(streaks, store, add_habit):
    add_habit("u1", "h1")
    barrier = threading.Barrier(8)
    errors = []

    def worker():
        try:
            barrier.wait()
            streaks.on_habit_completion_changed("h1", [D1])
        except Exception as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    ledger = store.find_ledger("u1")
    assert ledger.streak_count == 1
    assert ledger.history == [D1]


def test_concurrent_group_credits_count_once(streaks, store, add_user, add_habit):
    from habitstreak.models.group import Group

    for uid in ("a", "b", "c"):
        add_user(uid)
        add_habit(uid, f"h-{uid}")
    store.save_group(Group(id="g1", name="Trio", creator_id="a", members=["a", "b", "c"]))
    barrier = threading.Barrier(3)

    def worker(uid):
        barrier.wait()
        streaks.on_habit_completion_changed(f"h-{uid}", [D1])

    threads = [threading.Thread(target=worker, args=(uid,)) for uid in ("a", "b", "c")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert store.find_group("g1").group_streak == 1
