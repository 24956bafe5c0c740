import threading

from slscore.http_role_list import HttpRoleList


class FakeClient:
    def __init__(self, name):
        self.name = name
        self.closed = 0

    def close(self):
        self.closed += 1


def test_pop_on_empty_returns_none():
    roles = HttpRoleList()
    assert roles.pop() is None
    assert len(roles) == 0


def test_push_and_pop_are_fifo():
    roles = HttpRoleList()
    clients = [FakeClient(name) for name in ("a", "b", "c")]
    for client in clients:
        roles.push(client)
    assert len(roles) == len(clients)
    popped = [roles.pop() for _ in clients]
    assert popped == clients
    assert roles.pop() is None


def test_push_none_is_ignored():
    roles = HttpRoleList()
    roles.push(None)
    assert len(roles) == 0


def test_erase_closes_every_client_and_empties():
    roles = HttpRoleList()
    clients = [FakeClient(name) for name in ("x", "y")]
    for client in clients:
        roles.push(client)
    roles.erase()
    assert len(roles) == 0
    assert [c.closed for c in clients] == [1, 1]
    assert roles.pop() is None


def test_concurrent_pushes_are_all_kept():
    roles = HttpRoleList()
    per_thread = 200
    thread_count = 4

    def worker():
        for i in range(per_thread):
            roles.push(FakeClient(i))

    threads = [threading.Thread(target=worker) for _ in range(thread_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(roles) == per_thread * thread_count