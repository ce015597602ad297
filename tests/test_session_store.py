"""Tests for the per-call session store."""

import threading
import time

from delivery_agent.conversation.session_store import SessionStore
from delivery_agent.schemas.session_schema import ConversationStage


class TestLifecycle:
    def test_checkout_creates_session(self, store):
        with store.checkout("CA1") as (session, created):
            assert created is True
            assert session.call_id == "CA1"
            assert session.stage == ConversationStage.VERIFY_ORDER
            assert session.offer_index == 0
            assert session.order is None
        assert "CA1" in store

    def test_second_checkout_reuses_session(self, store):
        with store.checkout("CA1") as (session, _):
            session.stage = ConversationStage.AFTER_DELIVERY
        with store.checkout("CA1") as (session, created):
            assert created is False
            assert session.stage == ConversationStage.AFTER_DELIVERY

    def test_get_returns_copy(self, store):
        with store.checkout("CA1") as (session, _):
            session.offer_index = 1
        snapshot = store.get("CA1")
        snapshot.offer_index = 99
        assert store.get("CA1").offer_index == 1

    def test_get_never_creates(self, store):
        assert store.get("nope") is None
        assert len(store) == 0

    def test_delete(self, store):
        with store.checkout("CA1"):
            pass
        assert store.delete("CA1") is True
        assert store.get("CA1") is None

    def test_delete_unknown_is_noop(self, store):
        assert store.delete("never-seen") is False


class TestIdleEviction:
    def test_idle_session_evicted(self, store, clock):
        with store.checkout("CA1"):
            pass
        clock.advance(901)
        assert store.evict_idle() == 1
        assert "CA1" not in store

    def test_recent_session_kept(self, store, clock):
        with store.checkout("CA1"):
            pass
        clock.advance(899)
        assert store.evict_idle() == 0
        assert "CA1" in store

    def test_activity_refreshes_idle_timer(self, store, clock):
        with store.checkout("CA1"):
            pass
        clock.advance(600)
        with store.checkout("CA1"):
            pass
        clock.advance(600)
        assert store.evict_idle() == 0

    def test_sweep_runs_on_checkout(self, store, clock):
        with store.checkout("OLD"):
            pass
        clock.advance(1000)
        with store.checkout("NEW"):
            pass
        assert "OLD" not in store
        assert "NEW" in store

    def test_checked_out_session_not_evicted(self, store, clock):
        with store.checkout("CA1"):
            clock.advance(5000)
            assert store.evict_idle() == 0
        assert "CA1" in store


class TestConcurrency:
    def test_same_call_updates_are_serialized(self):
        store = SessionStore()
        workers = 8
        increments = 50

        def bump():
            for _ in range(increments):
                with store.checkout("CA1") as (session, _):
                    current = session.offer_index
                    time.sleep(0)
                    session.offer_index = current + 1

        threads = [threading.Thread(target=bump) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get("CA1").offer_index == workers * increments

    def test_distinct_calls_do_not_block_each_other(self):
        store = SessionStore()
        inside = threading.Event()
        release = threading.Event()

        def hold():
            with store.checkout("SLOW"):
                inside.set()
                release.wait(timeout=5)

        holder = threading.Thread(target=hold)
        holder.start()
        assert inside.wait(timeout=5)
        try:
            with store.checkout("FAST") as (session, created):
                assert created is True
        finally:
            release.set()
            holder.join()
