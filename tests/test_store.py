import pytest

from ipamcontroller.store import (
    REFERENCE_LENGTH,
    DBStore,
    IPStatus,
    StoreError,
    new_store,
)


@pytest.fixture
def store():
    db = DBStore()
    yield db
    db.close()


def test_inserted_ips_are_available(store):
    store.insert_ips(["10.0.0.1", "10.0.0.2"], "dev")
    rows = store.display_ip_records()
    assert [row[0] for row in rows] == ["10.0.0.1", "10.0.0.2"]
    for _, status, label, reference in rows:
        assert status == IPStatus.AVAILABLE
        assert label == "dev"
        assert len(reference) == REFERENCE_LENGTH


def test_duplicate_ip_is_not_inserted_twice(store):
    store.insert_ips(["10.0.0.1"], "dev")
    store.insert_ips(["10.0.0.1"], "test")
    rows = store.display_ip_records()
    assert len(rows) == 1
    assert rows[0][2] == "dev"


def test_allocate_picks_lowest_text_order(store):
    store.insert_ips(["10.0.0.2", "10.0.0.10"], "dev")
    assert store.allocate_ip("dev", "foo.com") == "10.0.0.10"
    assert store.allocate_ip("dev", "bar.com") == "10.0.0.2"
    assert store.allocate_ip("dev", "baz.com") is None


def test_allocate_unknown_label(store):
    store.insert_ips(["10.0.0.1"], "dev")
    assert store.allocate_ip("prod", "foo.com") is None


def test_reference_lookup_and_release(store):
    store.insert_ips(["10.0.0.1", "10.0.0.2"], "dev")
    ip = store.allocate_ip("dev", "foo.com")
    assert store.get_ip_address_from_reference("dev", "foo.com") == ip
    assert store.get_ip_address_from_reference("test", "foo.com") is None
    store.release_ip(ip)
    assert store.get_ip_address_from_reference("dev", "foo.com") is None
    assert store.allocate_ip("dev", "bar.com") == ip


def test_duplicate_reference_keeps_first_allocation(store):
    store.insert_ips(["10.0.0.1", "10.0.0.2"], "dev")
    first = store.allocate_ip("dev", "foo.com")
    second = store.allocate_ip("dev", "foo.com")
    assert first == "10.0.0.1"
    assert second == "10.0.0.2"
    assert store.get_ip_address_from_reference("dev", "foo.com") == first
    statuses = {row[0]: row[1] for row in store.display_ip_records()}
    assert statuses["10.0.0.2"] == IPStatus.AVAILABLE


def test_a_record_lookup_requires_allocation(store):
    store.insert_ips(["10.0.0.1"], "dev")
    assert store.create_a_record("foo.com", "10.0.0.1") is True
    assert store.get_ip_address_from_a_record("dev", "foo.com") is None
    store.allocate_ip("dev", "foo.com")
    assert store.get_ip_address_from_a_record("dev", "foo.com") == "10.0.0.1"
    assert store.get_ip_address_from_a_record("prod", "foo.com") is None
    assert store.delete_a_record("foo.com", "10.0.0.1") is True
    assert store.get_ip_address_from_a_record("dev", "foo.com") is None


def test_label_map_add_and_remove(store):
    assert store.add_label("dev", "10.0.0.1-10.0.0.4") is True
    assert store.add_label("prod", "10.0.1.1-10.0.1.4") is True
    assert store.get_label_map() == {
        "dev": "10.0.0.1-10.0.0.4",
        "prod": "10.0.1.1-10.0.1.4",
    }
    assert store.remove_label("dev") is True
    assert store.get_label_map() == {"prod": "10.0.1.1-10.0.1.4"}


def test_clean_up_label_removes_everything_for_label(store):
    store.add_label("dev", "10.0.0.1-10.0.0.2")
    store.add_label("prod", "10.0.1.1-10.0.1.1")
    store.insert_ips(["10.0.0.1", "10.0.0.2"], "dev")
    store.insert_ips(["10.0.1.1"], "prod")
    store.allocate_ip("dev", "foo.com")
    store.allocate_ip("prod", "bar.com")
    store.create_a_record("foo.com", "10.0.0.1")
    store.create_a_record("bar.com", "10.0.1.1")

    store.clean_up_label("dev")

    assert store.get_label_map() == {"prod": "10.0.1.1-10.0.1.1"}
    assert [row[0] for row in store.display_ip_records()] == ["10.0.1.1"]
    assert store.get_ip_address_from_a_record("prod", "bar.com") == "10.0.1.1"
    store.insert_ips(["10.0.0.1"], "dev")
    store.allocate_ip("dev", "other")
    assert store.get_ip_address_from_a_record("dev", "foo.com") is None


def test_create_tables_is_idempotent(store):
    store.add_label("dev", "10.0.0.1-10.0.0.1")
    store.create_tables()
    assert store.get_label_map() == {"dev": "10.0.0.1-10.0.0.1"}


def test_new_store_creates_file_and_persists(tmp_path):
    path = tmp_path / "ipam.sqlite3"
    with new_store(path) as first:
        first.add_label("dev", "10.0.0.1-10.0.0.1")
        first.insert_ips(["10.0.0.1"], "dev")
        first.allocate_ip("dev", "foo.com")
    assert path.exists()
    with new_store(path) as second:
        assert second.get_label_map() == {"dev": "10.0.0.1-10.0.0.1"}
        assert second.get_ip_address_from_reference("dev", "foo.com") == "10.0.0.1"


def test_new_store_in_missing_directory_fails(tmp_path):
    with pytest.raises(StoreError):
        new_store(tmp_path / "missing" / "ipam.sqlite3")


def test_dbstore_in_missing_directory_fails(tmp_path):
    with pytest.raises(StoreError):
        DBStore(tmp_path / "missing" / "ipam.sqlite3")