import threading
import time

from slscore.lock import RWLock


def test_readers_share_the_lock():
    lock = RWLock()
    with lock.read_lock():
        with lock.try_read_lock() as acquired:
            assert acquired is True


def test_reader_excludes_writer():
    lock = RWLock()
    with lock.read_lock():
        with lock.try_write_lock() as acquired:
            assert acquired is False


def test_writer_excludes_everyone():
    lock = RWLock()
    with lock.write_lock():
        with lock.try_read_lock() as read_ok:
            assert read_ok is False
        with lock.try_write_lock() as write_ok:
            assert write_ok is False


def test_lock_is_released_after_block():
    lock = RWLock()
    with lock.write_lock():
        pass
    with lock.read_lock():
        pass
    with lock.try_write_lock() as acquired:
        assert acquired is True


def test_released_after_exception():
    lock = RWLock()
    try:
        with lock.write_lock():
            raise RuntimeError("fail")
    except RuntimeError:
        pass
    with lock.try_write_lock() as acquired:
        assert acquired is True


def test_failed_try_does_not_release_others():
    lock = RWLock()
    with lock.read_lock():
        with lock.try_write_lock() as acquired:
            assert acquired is False
        with lock.try_write_lock() as again:
            assert again is False
    with lock.try_write_lock() as finally_ok:
        assert finally_ok is True


def test_writer_waits_for_reader():
    lock = RWLock()
    events = []
    entered = threading.Event()

    def writer():
        entered.set()
        with lock.write_lock():
            events.append("write")

    with lock.read_lock():
        thread = threading.Thread(target=writer)
        thread.start()
        entered.wait()
        time.sleep(0.05)
        with lock.try_write_lock() as blocked:
            assert blocked is False
        events.append("read-done")
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert events == ["read-done", "write"]
    with lock.try_write_lock() as acquired:
        assert acquired is True