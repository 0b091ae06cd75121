"""Tests for background saving with retry."""

from heartbeat.store.autosave import Autosaver
from tests.unit.fakes import FlakyStore, MemoryStore, NoSleep


def test_schedule_saves_in_background(memory_store: MemoryStore) -> None:
    saver = Autosaver(memory_store)
    saver.schedule("doc", {"id": "root", "text": "R", "children": []})

    assert saver.flush()
    assert not saver.has_unsaved_changes
    assert memory_store.documents["doc"]["text"] == "R"
    saver.close()


def test_saves_reach_the_store_in_order(memory_store: MemoryStore) -> None:
    saver = Autosaver(memory_store)
    for i in range(5):
        saver.schedule("doc", {"n": i})
    saver.close()

    assert [data["n"] for _key, data in memory_store.saves] == [0, 1, 2, 3, 4]
    assert memory_store.documents["doc"] == {"n": 4}


def test_failed_save_is_retried_with_backoff() -> None:
    store = FlakyStore(failures=2)
    sleep = NoSleep()
    saver = Autosaver(store, max_retries=3, base_delay=0.5, sleep=sleep)

    future = saver.schedule("doc", {"n": 1})

    assert future.result() is True
    assert store.attempts == 3
    assert sleep.delays == [0.5, 1.0]
    assert saver.last_error is None
    saver.close()


def test_giving_up_keeps_unsaved_flag_and_error() -> None:
    store = FlakyStore(failures=10)
    sleep = NoSleep()
    saver = Autosaver(store, max_retries=1, sleep=sleep)

    saver.schedule("doc", {"n": 1})

    assert not saver.flush()
    assert saver.has_unsaved_changes
    assert saver.last_error is not None
    assert store.attempts == 2

    # A later successful save clears the flag
    store.failures = 0
    saver.schedule("doc", {"n": 2})
    assert saver.flush()
    assert not saver.has_unsaved_changes
    assert store.documents["doc"] == {"n": 2}
    saver.close()
