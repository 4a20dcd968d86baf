import pytest

from ipamcontroller.provider import (
    IPAMProvider,
    ProviderError,
    expand_ip_range,
    new_provider,
)
from ipamcontroller.store import DBStore


@pytest.fixture
def store():
    db = DBStore()
    yield db
    db.close()


def _init(store, ip_range):
    prov = IPAMProvider(store)
    prov.init(ip_range)
    return prov


@pytest.mark.parametrize(
    "ip_range",
    [
        '"test":"172.16.1.1-172.16.1.5", "prod":"172.16.1.50-172.16.1.55"',
        '{"test":"172.16.1.1/24", "prod":"172.16.1.50-172.16.1.55"}',
        '{"test":"172.16.1.300-172.16.1.3"}',
        '{"test":"172.16.1.1-172.16.1.300"}',
    ],
)
def test_invalid_ranges_are_rejected(store, ip_range):
    with pytest.raises(ProviderError):
        _init(store, ip_range)


def test_same_start_and_end(store):
    prov = _init(store, '{"test":"172.16.1.1-172.16.1.1"}')
    assert prov.ipam_labels == {"test"}
    assert [row[0] for row in store.display_ip_records()] == ["172.16.1.1"]


def test_multiple_ranges_for_same_label(store):
    prov = _init(store, '{"test":"172.16.1.1-172.16.1.10,172.16.1.21-172.16.1.30"}')
    ips = {row[0] for row in store.display_ip_records()}
    assert len(ips) == 20
    assert "172.16.1.10" in ips and "172.16.1.21" in ips
    assert "172.16.1.15" not in ips
    assert prov.ipam_labels == {"test"}


@pytest.mark.parametrize(
    "ip_range, labels",
    [
        (
            '{"test":"172.16.1.1-172.16.1.10,172.16.1.21-172.16.1.30",'
            ' "prod":"172.16.1.50-172.16.1.55"}',
            {"test", "prod"},
        ),
        (
            '{"default":"172.16.2.50-172.16.2.55",'
            '"test":"172.16.1.1-172.16.1.10,172.16.1.21-172.16.1.30",'
            ' "prod":"172.16.1.50-172.16.1.55"}',
            {"default", "test", "prod"},
        ),
    ],
)
def test_combined_labels(store, ip_range, labels):
    prov = _init(store, ip_range)
    assert prov.ipam_labels == labels
    assert set(store.get_label_map()) == labels


def test_changing_ip_range_cleans_up(store):
    existing = {
        "dev": "192.168.1.10-192.168.1.15",
        "test": "192.168.1.1-192.168.1.5",
        "prod": "172.16.1.50-172.16.1.55",
    }
    for label, ip_range in existing.items():
        store.add_label(label, ip_range)
        store.insert_ips(expand_ip_range(ip_range), label)
    store.allocate_ip("prod", "keep.com")

    prov = _init(
        store,
        '{"test":"172.16.1.1-172.16.1.5", "prod":"172.16.1.50-172.16.1.55"}',
    )

    assert store.get_label_map() == {
        "test": "172.16.1.1-172.16.1.5",
        "prod": "172.16.1.50-172.16.1.55",
    }
    labels = {row[0]: row[2] for row in store.display_ip_records()}
    assert "192.168.1.10" not in labels
    assert "192.168.1.1" not in labels
    assert labels["172.16.1.1"] == "test"
    assert prov.get_ip_address_from_reference("prod", "keep.com") == "172.16.1.50"


def test_store_functions(store):
    prov = _init(store, '{"dev":"10.0.0.1-10.0.0.2"}')

    ip = prov.allocate_next_ip_address("dev", "foo.com")
    assert ip == "10.0.0.1"
    assert prov.get_ip_address_from_reference("dev", "foo.com") == ip

    assert prov.create_a_record("foo.com", ip) is True
    assert prov.get_ip_address_from_a_record("dev", "foo.com") == ip
    prov.delete_a_record("foo.com", ip)
    assert prov.get_ip_address_from_a_record("dev", "foo.com") is None

    prov.release_addr(ip)
    assert prov.get_ip_address_from_reference("dev", "foo.com") is None

    assert prov.allocate_next_ip_address("invalid", "invalid") is None
    assert prov.get_ip_address_from_reference("invalid", "") is None
    assert prov.get_ip_address_from_a_record("invalid", "foo.com") is None


def test_reinit_with_same_range_keeps_allocations(store):
    prov = _init(store, '{"dev":"10.0.0.1-10.0.0.2"}')
    ip = prov.allocate_next_ip_address("dev", "foo.com")
    again = _init(store, '{"dev":"10.0.0.1-10.0.0.2"}')
    assert again.get_ip_address_from_reference("dev", "foo.com") == ip
    assert len(store.display_ip_records()) == 2


def test_expand_ip_range_crosses_octet_boundary():
    assert expand_ip_range("10.0.0.254-10.0.1.1") == [
        "10.0.0.254",
        "10.0.0.255",
        "10.0.1.0",
        "10.0.1.1",
    ]


@pytest.mark.parametrize(
    "ip_range",
    ["10.0.0.5-10.0.0.1", "10.0.0.1-2000::1", "10.0.0.1", "10.0.0.1-10.0.0.2-10.0.0.3"],
)
def test_expand_ip_range_rejects_bad_ranges(ip_range):
    with pytest.raises(ProviderError):
        expand_ip_range(ip_range)


def test_new_provider_with_store(store):
    prov = new_provider('{"dev":"10.0.0.1-10.0.0.3"}', store)
    assert prov.allocate_next_ip_address("dev", "foo.com") == "10.0.0.1"


def test_new_provider_rejects_invalid_range(store):
    with pytest.raises(ProviderError):
        new_provider('{"dev":"10.0.0.1"}', store)