import pytest

from asa.config.models import ServerConfigMode, ServerOverride, WizardData, WizardStep
from asa.core.steps import STEP_SEQUENCE, coerce_step, next_step, previous_step, validate_step
from conftest import island_cluster


def test_sequence_order():
    assert [s.value for s in STEP_SEQUENCE] == [
        "welcome",
        "cluster-basic",
        "map-selection",
        "server-config",
        "individual-servers",
        "game-settings",
        "mods",
        "review",
        "creating",
    ]


@pytest.mark.parametrize(
    ("mode", "branch"),
    [
        (ServerConfigMode.GLOBAL, WizardStep.SERVER_CONFIG),
        (ServerConfigMode.INDIVIDUAL, WizardStep.INDIVIDUAL_SERVERS),
    ],
)
def test_branch_follows_server_config_mode(mode, branch):
    data = WizardData(server_config_mode=mode)
    assert next_step(WizardStep.MAP_SELECTION, data) == branch
    assert previous_step(WizardStep.GAME_SETTINGS, data) == branch
    assert next_step(branch, data) == WizardStep.GAME_SETTINGS
    assert previous_step(branch, data) == WizardStep.MAP_SELECTION


def test_ends_of_the_sequence():
    data = WizardData()
    assert previous_step(WizardStep.WELCOME, data) is None
    assert next_step(WizardStep.CREATING, data) is None
    assert previous_step(WizardStep.CREATING, data) is None
    assert next_step(WizardStep.REVIEW, data) == WizardStep.CREATING


def test_coerce_step():
    assert coerce_step("mods") == WizardStep.MODS
    with pytest.raises(ValueError, match="Unknown wizard step"):
        coerce_step("deploy")


def test_cluster_basic_requires_name():
    assert validate_step(WizardStep.CLUSTER_BASIC, WizardData()) == ["Please enter a cluster name"]
    assert validate_step(WizardStep.CLUSTER_BASIC, WizardData(cluster_name="A")) == []


@pytest.mark.parametrize("count", [0, 51])
def test_cluster_basic_server_count_range(count):
    issues = validate_step(WizardStep.CLUSTER_BASIC, WizardData(cluster_name="A", server_count=count))
    assert issues == ["Number of servers must be between 1 and 50"]


def test_cluster_basic_port_range():
    issues = validate_step(WizardStep.CLUSTER_BASIC, WizardData(cluster_name="A", base_port=70000))
    assert issues == ["Base port must be between 1 and 65535"]


def test_map_selection_requires_a_map():
    assert validate_step(WizardStep.MAP_SELECTION, WizardData()) == ["Please select at least one map"]
    assert validate_step(WizardStep.MAP_SELECTION, island_cluster(count=1)) == []


def test_servers_out_of_range():
    data = island_cluster(count=2, base_port=65535)
    issues = validate_step(WizardStep.SERVER_CONFIG, data)
    assert issues == ["TheIsland_WP-2: game port 65536 is out of range"]


def test_review_reports_port_conflicts():
    data = island_cluster(count=2, server_configs=[ServerOverride(), ServerOverride(game_port=7777)])
    issues = validate_step(WizardStep.REVIEW, data)
    assert any("Port 7777" in issue for issue in issues)


def test_review_reports_duplicate_names():
    data = island_cluster(count=2, server_configs=[ServerOverride(name="same"), ServerOverride(name="same")])
    assert "Server name 'same' is used more than once" in validate_step(WizardStep.REVIEW, data)


def test_review_of_valid_cluster():
    assert validate_step(WizardStep.REVIEW, island_cluster(count=3)) == []


def test_steps_without_checks():
    assert validate_step(WizardStep.WELCOME, WizardData()) == []
    assert validate_step(WizardStep.MODS, WizardData()) == []
