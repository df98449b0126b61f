"""
ASA Cluster - Deployment Plan

The hand-off to provisioning: the draft plus its derived server list,
rendered into the cluster creation request.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from asa.config.models import GAME_INI, GAME_USER_SETTINGS, ServerConfig, WizardData
from asa.config.settings import DEFAULT_CLUSTER_OWNER, EVEN_QUERY_OFFSET, EVEN_RCON_OFFSET
from asa.core.ports import port_increment
from asa.core.servers import generate_servers


@dataclass
class DeploymentPlan:
    """Draft and derived servers at submission time"""

    data: WizardData
    servers: list[ServerConfig]
    created: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def cluster_id(self) -> str:
        return self.data.cluster_name

    def cluster_settings(self) -> dict[str, Any]:
        return {
            "clusterId": self.cluster_id,
            "clusterName": self.data.cluster_name,
            "clusterDescription": self.data.description,
            "clusterPassword": self.data.cluster_password,
            "clusterOwner": DEFAULT_CLUSTER_OWNER,
        }

    def port_configuration(self) -> dict[str, Any]:
        """Port bases and per-server increments of the draft's allocation mode"""
        data = self.data
        increment = port_increment(data.port_allocation_mode)
        if increment == 1:
            query_base = data.port_configuration.query_port_base
            rcon_base = data.port_configuration.rcon_port_base
        else:
            query_base = data.base_port + EVEN_QUERY_OFFSET
            rcon_base = data.base_port + EVEN_RCON_OFFSET

        return {
            "basePort": data.base_port,
            "portAllocationMode": data.port_allocation_mode.value,
            "portIncrement": increment,
            "queryPortBase": query_base,
            "queryPortIncrement": increment,
            "rconPortBase": rcon_base,
            "rconPortIncrement": increment,
        }

    def settings_sections(
        self,
        *,
        max_players: int,
        session_name: str,
        server_password: str,
        admin_password: str,
    ) -> dict[str, dict[str, dict[str, Any]]]:
        """gameUserSettings/gameIni sections for one server (or the cluster)"""
        rendered = self.data.game_settings.to_ini_sections()
        user_settings = rendered[GAME_USER_SETTINGS]
        user_settings.setdefault("ServerSettings", {})["MaxPlayers"] = max_players
        user_settings["MultiHome"] = {"MultiHome": ""}
        user_settings.setdefault("SessionSettings", {}).update(
            {
                "SessionName": session_name,
                "ServerPassword": server_password,
                "ServerAdminPassword": admin_password,
            }
        )
        return rendered

    def server_entry(self, server: ServerConfig) -> dict[str, Any]:
        sections = self.settings_sections(
            max_players=server.max_players,
            session_name=server.session_name or server.name,
            server_password=server.server_password,
            admin_password=server.admin_password,
        )
        return {
            "name": server.name,
            "map": server.map,
            "port": server.game_port,
            "queryPort": server.query_port,
            "rconPort": server.rcon_port,
            "maxPlayers": server.max_players,
            "password": server.server_password,
            "adminPassword": server.admin_password,
            "sessionName": server.session_name,
            "mods": list(server.mods),
            "launchFlags": self.data.game_settings.launch_flags(),
            "clusterId": self.cluster_id,
            "clusterName": self.data.cluster_name,
            "clusterPassword": self.data.cluster_password,
            "clusterOwner": DEFAULT_CLUSTER_OWNER,
            GAME_USER_SETTINGS: sections[GAME_USER_SETTINGS],
            GAME_INI: sections[GAME_INI],
        }

    def to_payload(self) -> dict[str, Any]:
        """Render the cluster creation request"""
        data = self.data
        global_sections = self.settings_sections(
            max_players=data.game_settings.max_players,
            session_name=data.global_session_name.strip() or data.cluster_name,
            server_password=data.server_password,
            admin_password=data.admin_password,
        )
        return {
            "name": data.cluster_name,
            "description": data.description,
            "basePort": data.base_port,
            "serverCount": len(self.servers),
            "selectedMaps": [m.model_dump(by_alias=True) for m in data.selected_maps],
            "globalMods": list(data.global_mods),
            "customDynamicConfigUrl": data.custom_dynamic_config_url,
            "servers": [self.server_entry(s) for s in self.servers],
            "created": self.created.isoformat(),
            "globalSettings": global_sections,
            "clusterSettings": self.cluster_settings(),
            "portConfiguration": self.port_configuration(),
            "gameIniText": data.game_ini,
            "gameUserSettingsIniText": data.game_user_settings_ini,
            "foreground": data.foreground,
        }


def build_deployment_plan(data: WizardData) -> DeploymentPlan:
    """Snapshot the draft and derive its servers"""
    snapshot = data.model_copy(deep=True)
    return DeploymentPlan(data=snapshot, servers=generate_servers(snapshot))
