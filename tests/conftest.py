"""
Pytest configuration and fixtures.
"""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from asa.config.models import MapSelection, PortAllocationMode, WizardData
from asa.core.wizard import WizardStateStore


def island_cluster(
    count: int = 3,
    mode: PortAllocationMode = PortAllocationMode.SEQUENTIAL,
    **fields,
) -> WizardData:
    """Draft with one TheIsland selection of `count` servers"""
    return WizardData(
        cluster_name="Test Cluster",
        port_allocation_mode=mode,
        selected_maps=[MapSelection(map="TheIsland_WP", count=count, display_name="The Island")],
        server_count=count,
        **fields,
    )


@pytest.fixture
def store() -> WizardStateStore:
    return WizardStateStore()


@pytest.fixture
def island_store() -> WizardStateStore:
    return WizardStateStore(island_cluster(count=2))


@pytest.fixture
def import_file(tmp_path: Path):
    """Write an import document to a temp file and return its path"""

    def _write(document, name: str = "cluster.json") -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def client():
    from asa.services.api import app

    with TestClient(app) as test_client:
        yield test_client
