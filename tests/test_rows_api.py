import json

from rowstore.api.models.responses import CreateResponse, DeleteResponse, ErrorResponse, UpdateResponse


def _create(client, body, **params):
    r = client.post("/exec", params=params, content=json.dumps(body), headers={"Content-Type": "text/plain"})
    assert r.status_code == 200, r.text
    return r.json()


def test_read_empty_table_returns_empty_data(client):
    r = client.get("/exec")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"data": []}


def test_create_single_record(client, grid):
    j = _create(client, {"name": "Widget", "value": 5})
    CreateResponse.model_validate(j)
    assert j["status"] == "success"
    assert j["message"] == "1 row(s) appended"
    assert len(j["createdIds"]) == 1

    row = grid.read_rows(2, 1, 6)[0]
    assert row[0] is True
    assert row[1:3] == ["Widget", 5]
    assert row[3] == j["createdIds"][0]
    assert row[4] and row[4].endswith("Z")
    assert row[5] == row[4]


def test_create_batch_keeps_input_order(client):
    j = _create(client, [{"name": "a", "id": 1}, {"name": "b", "id": "two"}, {"name": "c"}])
    assert j["message"] == "3 row(s) appended"
    assert j["createdIds"][:2] == ["1", "two"]
    assert len(j["createdIds"][2]) > 10

    data = client.get("/exec").json()["data"]
    assert [d["name"] for d in data] == ["a", "b", "c"]


def test_update_changes_only_patched_fields(client):
    rid = _create(client, {"name": "Widget", "value": 5})["createdIds"][0]

    j = _create(client, {"id": rid, "value": 9}, method="PUT")
    UpdateResponse.model_validate(j)
    assert j == {"status": "success", "message": "Row updated", "updatedFields": ["value"], "id": rid}

    rec = client.get("/exec").json()["data"][0]
    assert rec["value"] == 9
    assert rec["name"] == "Widget"


def test_update_method_alias(client):
    rid = _create(client, {"name": "Widget"})["createdIds"][0]
    j = _create(client, {"id": rid, "name": "Gadget"}, method="UPDATE")
    assert j["updatedFields"] == ["name"]


def test_soft_delete_hides_record_and_is_repeatable(client):
    keep = _create(client, {"name": "keep"})["createdIds"][0]
    gone = _create(client, {"name": "gone"})["createdIds"][0]

    j = _create(client, {"id": gone}, method="DELETE")
    DeleteResponse.model_validate(j)
    assert j == {"status": "success", "message": "Row soft deleted (is_enabled=false)", "id": gone}

    ids = [d["id"] for d in client.get("/exec").json()["data"]]
    assert ids == [keep]

    again = _create(client, {"id": gone}, method="DELETE")
    assert again["status"] == "success"


def test_action_parameter_is_alias_of_method(client):
    rid = _create(client, {"name": "x"})["createdIds"][0]
    j = _create(client, {"id": rid}, action="DELETE")
    assert j["message"].startswith("Row soft deleted")


def test_update_unknown_id(client):
    _create(client, {"name": "Widget"})
    j = _create(client, {"id": "does-not-exist"}, method="PUT")
    ErrorResponse.model_validate(j)
    assert j == {"error": "ID not found: does-not-exist"}


def test_update_on_empty_table(client):
    j = _create(client, {"id": "x", "value": 1}, method="PUT")
    assert j == {"error": "No data to update"}


def test_update_without_id(client):
    _create(client, {"name": "Widget"})
    j = _create(client, {"value": 1}, method="PUT")
    assert j == {"error": 'Update requires an "id" field'}


def test_invalid_json_reports_debug(client):
    r = client.post("/exec", content="{not json", headers={"Content-Type": "text/plain"})
    assert r.status_code == 200
    j = r.json()
    assert j["error"] == "Invalid JSON"
    assert j["debug"]

    r2 = client.post("/exec", params={"method": "DELETE"}, content="nope")
    assert r2.json()["error"] == "Invalid JSON for delete"


def test_empty_batch_is_not_an_error(client):
    j = _create(client, [])
    assert j == {"message": "No data to insert"}


def test_unknown_sheet(client):
    r = client.get("/exec", params={"sheet": "Nope"})
    assert r.status_code == 200
    assert r.json() == {"error": 'Sheet "Nope" not found'}

    j = _create(client, {"name": "x"}, sheet="Nope")
    assert j == {"error": 'Sheet "Nope" not found'}


def test_named_sheet_is_used(client, workbook):
    workbook.create_table("Other", ["id", "label"], {})
    j = _create(client, {"label": "hello"}, sheet="Other")
    assert j["status"] == "success"

    assert client.get("/exec").json() == {"data": []}
    data = client.get("/exec", params={"sheet": "Other"}).json()["data"]
    assert data == [{"id": j["createdIds"][0], "label": "hello"}]


def test_projection_always_includes_id_and_never_is_enabled(client):
    _create(client, {"name": "Widget", "value": 5})

    data = client.get("/exec", params={"fields": "name"}).json()["data"]
    assert set(data[0]) == {"id", "name"}

    data = client.get("/exec", params={"fields": "is_enabled value"}).json()["data"]
    assert set(data[0]) == {"id", "value"}

    full = client.get("/exec").json()["data"][0]
    assert "is_enabled" not in full
    assert list(full) == ["name", "value", "id", "created_at", "updated_at"]


def test_versioned_prefix_serves_same_handlers(client):
    j = client.post("/api/v1/exec", json={"name": "v1"}).json()
    assert j["status"] == "success"
    data = client.get("/api/v1/exec").json()["data"]
    assert data[0]["name"] == "v1"


def test_invalid_utf8_body_is_rejected(client, grid):
    r = client.post("/exec", content=b'{"name": "\xff"}', headers={"Content-Type": "text/plain"})
    assert r.json()["error"] == "Invalid JSON"
    assert grid.last_row() == 1


def test_openapi_describes_envelopes(client):
    spec = client.get("/openapi.json").json()
    schemas = spec["components"]["schemas"]
    for name in ("ReadResponse", "CreateResponse", "UpdateResponse", "DeleteResponse", "ErrorResponse"):
        assert name in schemas

    post = spec["paths"]["/exec"]["post"]["responses"]["200"]["content"]["application/json"]["schema"]
    refs = {item["$ref"].rsplit("/", 1)[-1] for item in post["anyOf"]}
    assert refs == {"CreateResponse", "UpdateResponse", "DeleteResponse", "ErrorResponse"}
