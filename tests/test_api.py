import json


def command(client, payload):
    return client.post("/wizard/commands", json=payload)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["step"] == "welcome"


def test_initial_wizard_state(client):
    body = client.get("/wizard").json()
    assert body["step"] == "welcome"
    assert body["data"]["clusterName"] == ""
    assert body["data"]["basePort"] == 7777
    assert body["servers"] == []


def test_command_failure_is_400(client):
    response = command(client, {"type": "add_global_mod", "mod_id": "abc"})
    assert response.status_code == 400

    response = command(client, {"type": "not_a_command"})
    assert response.status_code == 400


def test_walk_through_the_wizard(client):
    assert client.post("/wizard/next").json()["step"] == "cluster-basic"

    blocked = client.post("/wizard/next")
    assert blocked.status_code == 400
    assert blocked.json()["detail"] == ["Please enter a cluster name"]

    command(client, {"type": "set_cluster_name", "name": "My Cluster"})
    assert client.post("/wizard/next").json()["step"] == "map-selection"
    assert client.post("/wizard/next").status_code == 400

    command(client, {"type": "toggle_map", "map": "TheIsland_WP"})
    command(client, {"type": "set_map_count", "map": "TheIsland_WP", "count": 2})
    body = client.post("/wizard/next").json()
    assert body["step"] == "server-config"
    assert [s["name"] for s in body["servers"]] == ["TheIsland_WP-1", "TheIsland_WP-2"]
    assert body["servers"][1]["gamePort"] == 7778

    assert client.post("/wizard/back").json()["step"] == "map-selection"


def test_individual_branch_initializes_overrides(client):
    command(client, {"type": "toggle_map", "map": "Ragnarok_WP"})
    command(client, {"type": "set_server_config_mode", "mode": "individual"})
    body = client.post("/wizard/step", json={"step": "individual-servers"}).json()
    assert body["step"] == "individual-servers"
    assert len(body["data"]["serverConfigs"]) == 1


def test_unknown_step_is_422(client):
    assert client.post("/wizard/step", json={"step": "launch"}).status_code == 422


def test_back_from_welcome(client):
    assert client.post("/wizard/back").status_code == 400


def test_port_preview(client):
    command(client, {"type": "toggle_map", "map": "TheIsland_WP"})
    command(client, {"type": "set_map_count", "map": "TheIsland_WP", "count": 7})
    command(client, {"type": "set_port_allocation_mode", "mode": "even"})

    body = client.get("/wizard/ports/preview").json()
    assert body["remaining"] == 2
    assert len(body["ports"]) == 5
    assert body["ports"][1] == {"gamePort": 7783, "queryPort": 7785, "rconPort": 7787}


def test_maps(client):
    maps = {m["name"]: m for m in client.get("/wizard/maps").json()}
    assert maps["TheIsland_WP"]["displayName"] == "The Island"
    assert maps["BobsMissions_WP"]["requiredMods"] == ["1005639"]
    assert maps["Genesis_WP"]["available"] is False


def test_import_upload(client):
    document = {"name": "Imported", "maps": ["TheIsland_WP", "Ragnarok_WP"], "globalMods": ["111"]}
    response = client.post(
        "/wizard/import",
        files={"file": ("cluster.json", json.dumps(document), "application/json")},
    )
    assert response.status_code == 200

    servers = client.get("/wizard/servers").json()
    assert [s["name"] for s in servers] == ["TheIsland_WP-1", "Ragnarok_WP-1"]
    assert servers[0]["mods"] == ["111"]


def test_import_without_name_is_rejected(client):
    command(client, {"type": "set_cluster_name", "name": "Before"})
    response = client.post(
        "/wizard/import",
        files={"file": ("cluster.json", "{}", "application/json")},
    )
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "missing_name"
    assert client.get("/wizard").json()["data"]["clusterName"] == "Before"


def test_mods_router(client):
    assert len(client.get("/mods/popular").json()) == 6

    command(client, {"type": "toggle_map", "map": "TheIsland_WP"})
    command(client, {"type": "set_map_count", "map": "TheIsland_WP", "count": 2})

    assert client.post("/mods/global/111").status_code == 200
    assert client.post("/mods/global/abc").status_code == 400
    assert client.post("/mods/servers/TheIsland_WP-2/222").status_code == 200
    assert client.post("/mods/servers/TheIsland_WP-2/exclude-shared").status_code == 200

    assert client.get("/mods/effective").json() == {
        "TheIsland_WP-1": ["111"],
        "TheIsland_WP-2": ["222"],
    }

    assert client.delete("/mods/global/111").status_code == 200
    assert client.delete("/mods/servers/TheIsland_WP-2/222").status_code == 200
    assert client.get("/mods/effective").json() == {"TheIsland_WP-1": [], "TheIsland_WP-2": []}


def test_plan(client):
    command(client, {"type": "set_cluster_name", "name": "Planned"})
    command(client, {"type": "toggle_map", "map": "TheIsland_WP"})
    plan = client.get("/wizard/plan").json()
    assert plan["name"] == "Planned"
    assert plan["servers"][0]["port"] == 7777


def _submit(client):
    command(client, {"type": "set_cluster_name", "name": "Ready"})
    command(client, {"type": "toggle_map", "map": "TheIsland_WP"})
    response = client.post("/wizard/submit")
    assert response.status_code == 200
    return response.json()["jobId"]


def test_submit_incomplete_draft(client):
    response = client.post("/wizard/submit")
    assert response.status_code == 400
    assert "Please enter a cluster name" in response.json()["detail"]


def test_submit_and_complete(client):
    job_id = _submit(client)
    assert client.get("/wizard").json()["step"] == "creating"

    progress = client.post(
        f"/jobs/{job_id}/progress",
        json={"progress": 40, "message": "Installing", "step": "Installing ASA server files"},
    ).json()
    assert progress["snapshot"]["percent"] == 40
    assert progress["steps"][1] == {"name": "Installing ASA server files", "state": "current"}

    client.post(f"/jobs/{job_id}/progress", json={"progress": 100, "message": "Done", "status": "completed"})

    state = client.get("/wizard").json()
    assert state["step"] == "welcome"
    assert state["data"]["clusterName"] == ""
    assert client.get(f"/jobs/{job_id}/progress").json()["finished"] is True


def test_failed_job_returns_to_review(client):
    job_id = _submit(client)
    body = client.post(
        f"/jobs/{job_id}/progress",
        json={"progress": 10, "message": "Failed", "status": "failed", "error": "disk full"},
    ).json()
    assert body["snapshot"]["error"] == "disk full"

    state = client.get("/wizard").json()
    assert state["step"] == "review"
    assert state["data"]["clusterName"] == "Ready"


def test_unknown_job(client):
    assert client.get("/jobs/nope/progress").status_code == 404
    assert client.post("/jobs/nope/progress", json={"progress": 1}).status_code == 404


def test_reset(client):
    command(client, {"type": "set_cluster_name", "name": "Gone"})
    assert client.post("/wizard/reset").status_code == 200
    assert client.get("/wizard").json()["data"]["clusterName"] == ""


def test_repeated_completion_keeps_new_draft(client):
    job_id = _submit(client)
    done = {"progress": 100, "message": "Done", "status": "completed"}
    client.post(f"/jobs/{job_id}/progress", json=done)

    command(client, {"type": "set_cluster_name", "name": "Second"})
    response = client.post(f"/jobs/{job_id}/progress", json=done)
    assert response.status_code == 200
    assert response.json()["finished"] is True

    assert client.get("/wizard").json()["data"]["clusterName"] == "Second"


def test_late_failure_after_completion_is_ignored(client):
    job_id = _submit(client)
    client.post(f"/jobs/{job_id}/progress", json={"progress": 100, "status": "completed"})
    command(client, {"type": "set_cluster_name", "name": "Second"})

    body = client.post(
        f"/jobs/{job_id}/progress",
        json={"progress": 0, "status": "failed", "error": "late"},
    ).json()
    assert body["snapshot"]["status"] == "completed"

    state = client.get("/wizard").json()
    assert state["step"] == "welcome"
    assert state["data"]["clusterName"] == "Second"
