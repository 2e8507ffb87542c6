"""Unit tests for client IP allocation."""

from wg_manager.core.ipam import (
    FALLBACK_CLIENT_IP,
    allocate_client_ip,
    get_used_octets,
    host_octet,
    network_prefix,
)


class TestHelpers:
    """Tests for address parsing helpers."""

    def test_host_octet_ignores_prefix_length(self):
        assert host_octet("10.0.0.17/32") == 17
        assert host_octet("10.0.0.1") == 1

    def test_host_octet_rejects_malformed(self):
        assert host_octet("10.0.1/24") is None
        assert host_octet("10.0.0.x/32") is None
        assert host_octet("") is None

    def test_host_octet_reads_leading_digits(self):
        assert host_octet("10.0.0.5abc/32") == 5
        assert host_octet("10.0.0. 7/32") == 7

    def test_network_prefix(self):
        assert network_prefix("192.168.7.1/24") == "192.168.7"
        assert network_prefix("fd00::1/64") is None

    def test_leading_digit_address_blocks_its_octet(self):
        assert allocate_client_ip("10.0.0.1/24", ["10.0.0.2x/32"]) == "10.0.0.3/32"

    def test_used_octets_include_server_and_clients(self):
        used = get_used_octets("10.0.0.1/24", ["10.0.0.2/32", "10.0.0.9/32", "bogus"])
        assert used == {1, 2, 9}


class TestAllocateClientIP:
    """Tests for allocate_client_ip."""

    def test_first_client_gets_dot_two(self):
        assert allocate_client_ip("10.0.0.1/24", []) == "10.0.0.2/32"

    def test_skips_addresses_in_use(self):
        result = allocate_client_ip("10.0.0.1/24", ["10.0.0.2/32", "10.0.0.3/32"])
        assert result == "10.0.0.4/32"

    def test_fills_gaps_left_by_deleted_clients(self):
        result = allocate_client_ip("10.0.0.1/24", ["10.0.0.2/32", "10.0.0.4/32"])
        assert result == "10.0.0.3/32"

    def test_avoids_server_host_octet(self):
        result = allocate_client_ip("10.8.0.3/24", ["10.8.0.2/32"])
        assert result == "10.8.0.4/32"

    def test_uses_server_prefix(self):
        assert allocate_client_ip("172.16.5.1/24", []) == "172.16.5.2/32"

    def test_result_disjoint_from_existing(self):
        existing = [f"10.0.0.{i}/32" for i in (2, 3, 5, 8, 13)]
        result = allocate_client_ip("10.0.0.1/24", existing)

        assert result not in existing
        assert result != "10.0.0.1/32"
        assert 2 <= host_octet(result) <= 254

    def test_unparseable_server_address_falls_back(self):
        assert allocate_client_ip("not-an-ip", []) == FALLBACK_CLIENT_IP
        assert allocate_client_ip("fd00::1/64", ["fd00::2/128"]) == "10.0.0.2/32"

    def test_exhausted_pool_uses_count_fallback(self):
        clients = [f"10.0.0.{i}/32" for i in range(2, 255)]
        assert len(clients) == 253

        result = allocate_client_ip("10.0.0.1/24", clients)

        assert result == "10.0.0.255/32"

    def test_deterministic_for_same_state(self):
        clients = ["10.0.0.2/32", "10.0.0.7/32"]
        assert allocate_client_ip("10.0.0.1/24", clients) == allocate_client_ip("10.0.0.1/24", clients)
