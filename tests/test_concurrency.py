"""
Concurrent callers against one store: races between cascades and writes
that reference the rows being deleted.
"""

import threading

from campaign_store.core.errors import MissingReferenceError
from campaign_store.store import RelationalStore


def _race(*targets):
    barrier = threading.Barrier(len(targets))
    errors = []

    def wrap(target):
        def run():
            barrier.wait()
            try:
                target()
            except Exception as exc:  # collected for the assertions below
                errors.append(exc)
        return run

    threads = [threading.Thread(target=wrap(t)) for t in targets]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return errors


def test_delete_user_races_create_campaign(store):
    outcomes = {"created": 0, "rejected": 0}

    for user_id in range(1, 21):
        store.create_user(f"user{user_id}", f"u{user_id}@x.com", user_id=user_id)
        campaign_id = f"C{user_id}"

        def create():
            try:
                store.create_campaign("Race", "L1", user_id, campaign_id=campaign_id)
                outcomes["created"] += 1
            except MissingReferenceError:
                outcomes["rejected"] += 1

        errors = _race(lambda: store.delete_user(user_id), create)

        assert errors == []
        # Either the cascade removed it or it was never created.
        assert store.get_campaign(campaign_id) is None
        assert store.get_user(user_id) is None

    assert outcomes["created"] + outcomes["rejected"] == 20
    assert store.check_integrity().ok


def test_delete_campaign_races_add_member(store, test_user):
    for n in range(10):
        campaign = store.create_campaign("Race", "L1", test_user.id, campaign_id=f"C{n}")

        def add():
            try:
                store.add_member("r@x.com", "Bob", campaign.id)
            except MissingReferenceError:
                pass

        errors = _race(lambda: store.delete_campaign(campaign.id), add)

        assert errors == []
        assert store.list_members_by_campaign(campaign.id) == []

    assert store.check_integrity().ok


def test_concurrent_member_inserts_are_all_kept(store, test_campaign):
    def add(n):
        return lambda: store.add_member(f"m{n}@x.com", f"Member {n}", test_campaign.id)

    errors = _race(*(add(n) for n in range(8)))

    assert errors == []
    assert len(store.list_members_by_campaign(test_campaign.id)) == 8


def test_concurrent_renames_to_same_id_only_one_wins(store):
    store.create_user("a", "a@x.com", user_id=1)
    store.create_user("b", "b@x.com", user_id=2)
    store.create_campaign("A", "L1", 1, campaign_id="CA")
    store.create_campaign("B", "L1", 2, campaign_id="CB")

    errors = _race(lambda: store.update_user_id(1, 3), lambda: store.update_user_id(2, 3))

    assert len(errors) == 1
    assert type(errors[0]).__name__ == "ConflictError"
    winner = store.get_user(3)
    assert winner is not None
    assert {c.id for c in store.list_campaigns_by_user(3)} == {"CA" if winner.username == "a" else "CB"}
    assert store.check_integrity().ok


def test_in_memory_store_is_shared_across_threads():
    with RelationalStore.from_url("sqlite://") as store:
        store.create_user("alice", "a@x.com", user_id=1)
        campaign = store.create_campaign("Launch", "L1", 1, campaign_id="C1")
        seen = []

        errors = _race(lambda: seen.append(store.get_user(1)))

        assert errors == []
        assert seen[0] is not None and seen[0].username == "alice"

        def add(n):
            return lambda: store.add_member(f"m{n}@x.com", f"Member {n}", campaign.id)

        errors = _race(*(add(n) for n in range(6)), lambda: store.get_campaign(campaign.id))

        assert errors == []
        assert len(store.list_members_by_campaign(campaign.id)) == 6
        assert store.check_integrity().ok
