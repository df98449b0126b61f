import pytest

from asa.config.models import PortAllocationMode, PortConfiguration, ServerConfig
from asa.core.ports import allocate, find_port_conflicts, port_increment, preview_ports
from asa.core.servers import generate_servers
from conftest import island_cluster


def test_sequential_offsets_are_constant():
    for i in range(25):
        ports = allocate(7777, 27015, 32330, "sequential", i)
        assert ports.game_port == 7777 + i
        assert ports.query_port - ports.game_port == 27015 - 7777
        assert ports.rcon_port - ports.game_port == 32330 - 7777


def test_even_mode_uses_six_port_blocks():
    previous = allocate(7777, 27015, 32330, PortAllocationMode.EVEN, 0)
    for i in range(1, 25):
        ports = allocate(7777, 27015, 32330, PortAllocationMode.EVEN, i)
        assert ports.game_port - previous.game_port == 6
        assert ports.query_port == ports.game_port + 2
        assert ports.rcon_port == ports.game_port + 4
        previous = ports


def test_even_mode_ignores_query_and_rcon_bases():
    assert allocate(7777, 1, 2, "even", 0).as_tuple() == (7777, 7779, 7781)


def test_no_upper_bound_on_index():
    assert allocate(7777, 27015, 32330, "sequential", 100_000).game_port == 107_777


def test_negative_index_rejected():
    with pytest.raises(ValueError):
        allocate(7777, 27015, 32330, "sequential", -1)


def test_island_three_servers_sequential():
    servers = generate_servers(island_cluster(count=3))
    assert [s.ports.as_tuple() for s in servers] == [
        (7777, 27015, 32330),
        (7778, 27016, 32331),
        (7779, 27017, 32332),
    ]


def test_island_three_servers_even():
    servers = generate_servers(island_cluster(count=3, mode=PortAllocationMode.EVEN))
    assert [s.ports.as_tuple() for s in servers] == [
        (7777, 7779, 7781),
        (7783, 7785, 7787),
        (7789, 7791, 7793),
    ]


def test_custom_bases_are_used():
    data = island_cluster(
        count=2,
        base_port=30000,
        port_configuration=PortConfiguration(base_port=30000, query_port_base=31000, rcon_port_base=32000),
    )
    servers = generate_servers(data)
    assert servers[1].ports.as_tuple() == (30001, 31001, 32001)


def test_zero_bases_pass_through():
    data = island_cluster(
        count=2,
        base_port=0,
        port_configuration=PortConfiguration(base_port=0, query_port_base=0, rcon_port_base=0),
    )
    servers = generate_servers(data)
    assert [s.ports.as_tuple() for s in servers] == [(0, 0, 0), (1, 1, 1)]


def test_port_increment():
    assert port_increment("sequential") == 1
    assert port_increment(PortAllocationMode.EVEN) == 6


def test_preview_limits_to_five():
    ports, remaining = preview_ports(island_cluster(count=8))
    assert len(ports) == 5
    assert remaining == 3
    assert ports[4].game_port == 7781


def test_preview_small_cluster():
    ports, remaining = preview_ports(island_cluster(count=2))
    assert len(ports) == 2
    assert remaining == 0


def test_even_mode_has_no_conflicts():
    servers = generate_servers(island_cluster(count=20, mode=PortAllocationMode.EVEN))
    assert find_port_conflicts(servers) == []


def test_overlapping_bases_conflict():
    data = island_cluster(
        count=2,
        port_configuration=PortConfiguration(query_port_base=7778),
    )
    conflicts = find_port_conflicts(generate_servers(data))
    assert len(conflicts) == 1
    assert "7778" in conflicts[0]


def test_duplicate_game_port_reported():
    servers = [
        ServerConfig(name="a", map="TheIsland_WP", game_port=7777, query_port=27015, rcon_port=32330),
        ServerConfig(name="b", map="TheIsland_WP", game_port=7777, query_port=27016, rcon_port=32331),
    ]
    assert find_port_conflicts(servers) == ["Port 7777 is used by a (game), b (game)"]
