import pytest

from slscore.map_publisher import PublisherExistsError, PublisherMap


class FakeRole:
    role_name = "publisher"


def test_lookups_on_empty_map():
    pm = PublisherMap()
    assert pm.get_uplive("host/live") == ""
    assert pm.get_conf("host/uplive") is None
    assert pm.get_publisher("host/uplive/stream") is None


def test_live_to_uplive_round_trip():
    pm = PublisherMap()
    pm.set_live_to_uplive("host/live", "host/uplive")
    assert pm.get_uplive("host/live") == "host/uplive"
    assert pm.get_uplive("host/uplive") == ""


def test_conf_round_trip():
    pm = PublisherMap()
    conf = {"app_player": "live", "app_publisher": "uplive"}
    pm.set_conf("host/uplive", conf)
    assert pm.get_conf("host/uplive") is conf


def test_set_publisher_and_get():
    pm = PublisherMap()
    role = FakeRole()
    pm.set_publisher("host/uplive/s1", role)
    assert pm.get_publisher("host/uplive/s1") is role


def test_second_publisher_is_refused():
    pm = PublisherMap()
    first = FakeRole()
    pm.set_publisher("host/uplive/s1", first)
    with pytest.raises(PublisherExistsError):
        pm.set_publisher("host/uplive/s1", FakeRole())
    assert pm.get_publisher("host/uplive/s1") is first


def test_none_publisher_is_rejected():
    pm = PublisherMap()
    with pytest.raises(ValueError):
        pm.set_publisher("host/uplive/s1", None)


def test_remove_registered_role():
    pm = PublisherMap()
    role = FakeRole()
    pm.set_publisher("host/uplive/s1", role)
    assert pm.remove(role) is True
    assert pm.get_publisher("host/uplive/s1") is None
    assert pm.remove(role) is False


def test_remove_unknown_role_returns_false():
    pm = PublisherMap()
    pm.set_publisher("host/uplive/s1", FakeRole())
    assert pm.remove(FakeRole()) is False


def test_remove_takes_only_first_entry_in_key_order():
    pm = PublisherMap()
    role = FakeRole()
    pm.set_publisher("host/uplive/b", role)
    pm.set_publisher("host/uplive/a", role)
    assert pm.remove(role) is True
    assert pm.get_publisher("host/uplive/a") is None
    assert pm.get_publisher("host/uplive/b") is role


def test_stream_can_be_republished_after_remove():
    pm = PublisherMap()
    old, new = FakeRole(), FakeRole()
    pm.set_publisher("host/uplive/s1", old)
    pm.remove(old)
    pm.set_publisher("host/uplive/s1", new)
    assert pm.get_publisher("host/uplive/s1") is new


def test_clear_forgets_everything():
    pm = PublisherMap()
    pm.set_conf("host/uplive", {"k": 1})
    pm.set_live_to_uplive("host/live", "host/uplive")
    pm.set_publisher("host/uplive/s1", FakeRole())
    pm.clear()
    assert pm.get_conf("host/uplive") is None
    assert pm.get_uplive("host/live") == ""
    assert pm.get_publisher("host/uplive/s1") is None