import pytest

from asa.config.models import ConfigImportError, PortAllocationMode, PortConfiguration
from asa.core.importer import import_config, import_text, load_import_file


def test_minimal_document_gets_defaults():
    result = import_config({"name": "X"})

    assert result.success
    draft = result.draft
    assert draft["cluster_name"] == "X"
    assert draft["description"] == ""
    assert draft["base_port"] == 7777
    assert draft["port_allocation_mode"] == PortAllocationMode.SEQUENTIAL
    assert draft["selected_maps"] == []
    assert draft["server_count"] == 1
    assert draft["server_configs"] == []
    assert draft["global_mods"] == []


@pytest.mark.parametrize("document", [{}, {"name": ""}, {"name": "   "}, {"name": None}, {"name": 5}])
def test_missing_name(document):
    result = import_config(document)
    assert not result.success
    assert result.error == ConfigImportError.MISSING_NAME
    assert result.draft == {}


@pytest.mark.parametrize("document", [[], "cluster", 42, None])
def test_non_object_document(document):
    result = import_config(document)
    assert result.error == ConfigImportError.PARSE_FAILURE


def test_wrong_field_shape_is_parse_failure():
    result = import_config({"name": "X", "basePort": "abc"})
    assert result.error == ConfigImportError.PARSE_FAILURE
    assert "basePort" in result.message


def test_bad_mod_id_is_parse_failure():
    result = import_config({"name": "X", "globalMods": ["111", "not-a-mod"]})
    assert result.error == ConfigImportError.PARSE_FAILURE


def test_null_fields_count_as_absent():
    result = import_config({"name": "X", "basePort": None, "maps": None})
    assert result.success
    assert result.draft["base_port"] == 7777


def test_maps_become_selections():
    result = import_config({"name": "X", "maps": ["TheIsland_WP", "Amissa_WP"], "basePort": 30000})

    selections = result.draft["selected_maps"]
    assert [(s.map, s.count, s.enabled) for s in selections] == [
        ("TheIsland_WP", 1, True),
        ("Amissa_WP", 1, True),
    ]
    assert [s.display_name for s in selections] == ["The Island", "Amissa_WP"]
    assert result.draft["server_count"] == 2
    assert result.draft["port_configuration"] == PortConfiguration(base_port=30000)


def test_servers_supersede_maps_and_leave_mode_unset():
    result = import_config(
        {
            "name": "X",
            "maps": ["Ragnarok_WP"],
            "portAllocationMode": "even",
            "servers": [
                {"name": "a", "map": "TheIsland_WP", "port": 7777, "queryPort": 27015, "rconPort": 32330},
                {"name": "b", "map": "TheIsland_WP", "gamePort": 7778, "queryPort": 27016, "rconPort": 32331},
            ],
        }
    )

    assert result.success
    draft = result.draft
    assert "port_allocation_mode" not in draft
    assert draft["selected_maps"] == []
    assert [s.game_port for s in draft["servers"]] == [7777, 7778]
    assert draft["server_count"] == 2


def test_game_settings_merge_over_defaults():
    result = import_config({"name": "X", "gameSettings": {"xpMultiplier": 10, "serverHardcore": True}})
    settings = result.draft["game_settings"]
    assert settings.xp_multiplier == 10
    assert settings.server_hardcore is True
    assert settings.harvest_multiplier == 3.0


def test_unknown_keys_are_ignored():
    result = import_config({"name": "X", "discordWebhook": "https://example.invalid", "version": 3})
    assert result.success
    assert "discordWebhook" not in result.draft


def test_numeric_mod_ids_and_server_mods():
    result = import_config(
        {
            "name": "X",
            "globalMods": [1005639, "731604991"],
            "serverMods": {"TheIsland_WP-1": {"additionalMods": [111], "excludeSharedMods": True}},
        }
    )
    assert result.draft["global_mods"] == ["1005639", "731604991"]
    override = result.draft["server_mods"]["TheIsland_WP-1"]
    assert override.additional_mods == ["111"]
    assert override.exclude_shared_mods is True


def test_ini_blobs_copied_through():
    result = import_config({"name": "X", "gameIni": "[/script/shootergame.shootergamemode]\n"})
    assert result.draft["game_ini"].startswith("[/script/")
    assert result.draft["game_user_settings_ini"] == ""


def test_load_import_file(import_file):
    path = import_file({"name": "From File", "maps": ["Ragnarok_WP"]})
    result = load_import_file(path)
    assert result.success
    assert result.draft["cluster_name"] == "From File"


def test_load_missing_file(tmp_path):
    result = load_import_file(tmp_path / "missing.json")
    assert result.error == ConfigImportError.PARSE_FAILURE


def test_invalid_json_text():
    result = import_text("{not json")
    assert result.error == ConfigImportError.PARSE_FAILURE


def test_import_text_accepts_bytes():
    assert import_text(b'{"name": "Bytes"}').success
