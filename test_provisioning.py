"""Tests for the startup provisioning sequence and the search endpoint."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from kraicklist.backend.server import create_app
from kraicklist.indexer.exceptions import DocumentImportError, MissingIdentifierError, SchemaError
from kraicklist.indexer.initialization import ProvisioningPipeline, ProvisioningState, synonym_rules_from_settings
from kraicklist.indexer.synonyms import DEFAULT_SYNONYMS


def run_pipeline(engine, settings, recorded_sleep):
    pipeline = ProvisioningPipeline(engine, settings, sleep=recorded_sleep)
    return pipeline, asyncio.run(pipeline.run())


def test_full_provisioning(engine, settings, recorded_sleep):
    pipeline, result = run_pipeline(engine, settings, recorded_sleep)

    assert result.state == ProvisioningState.VERIFIED
    assert pipeline.state == ProvisioningState.VERIFIED
    assert result.documents_loaded == 3
    assert result.lines_skipped == 1
    assert result.import_report.num_documents == 3
    assert result.import_report.batches == 2
    assert sorted(engine.documents) == ["1", "2", "abc"]
    assert {item["id"] for item in result.synonyms} == {rule.id for rule in DEFAULT_SYNONYMS}


def test_provisioning_replaces_existing_collection(engine, settings, recorded_sleep):
    run_pipeline(engine, settings, recorded_sleep)
    _, result = run_pipeline(engine, settings, recorded_sleep)

    assert result.state == ProvisioningState.VERIFIED
    assert result.import_report.failed == 0
    assert list(engine.collections) == ["ads"]


def test_missing_id_fails_before_any_import(engine, settings, recorded_sleep, data_file):
    data_file.write_text('{"id": 1, "title": "a"}\n{"title": "no id"}\n', encoding="utf-8")
    pipeline = ProvisioningPipeline(engine, settings, sleep=recorded_sleep)

    with pytest.raises(MissingIdentifierError):
        asyncio.run(pipeline.run())

    assert pipeline.state == ProvisioningState.FAILED
    assert engine.import_calls == []


def test_schema_failure_stops_provisioning(engine, settings, recorded_sleep):
    engine.fail_create = True
    pipeline = ProvisioningPipeline(engine, settings, sleep=recorded_sleep)

    with pytest.raises(SchemaError):
        asyncio.run(pipeline.run())

    assert pipeline.state == ProvisioningState.FAILED
    assert engine.import_calls == []
    assert engine.synonyms == {}


def test_import_exhaustion_is_fatal(engine, settings, recorded_sleep):
    engine.import_failures = 100
    pipeline = ProvisioningPipeline(engine, settings, sleep=recorded_sleep)

    with pytest.raises(DocumentImportError) as exc_info:
        asyncio.run(pipeline.run())

    assert exc_info.value.attempts == 3
    assert pipeline.state == ProvisioningState.FAILED
    assert engine.synonyms == {}


def test_unverified_import_still_seeds_synonyms(engine, settings, recorded_sleep):
    engine.fail_retrieve = True

    _, result = run_pipeline(engine, settings, recorded_sleep)

    assert result.state == ProvisioningState.UNVERIFIED
    assert engine.synonyms


def test_synonyms_file_setting(settings, tmp_path):
    path = tmp_path / "synonyms.yaml"
    path.write_text("- id: bikes\n  synonyms: [bike, bicycle]\n", encoding="utf-8")

    rules = synonym_rules_from_settings(settings.model_copy(update={"synonyms_file": str(path)}))

    assert [rule.id for rule in rules] == ["bikes"]


def test_search_endpoint_envelope(engine, settings):
    engine.search_response = {"results": [{"found": 1, "hits": [{"document": {"id": "1"}}]}]}

    with TestClient(create_app(settings, client=engine)) as client:
        response = client.get("/api/v1/search", params={"q": "car", "perPage": 5, "page": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["data"]["found"] == 1
    assert isinstance(body["ts"], int)
    search = engine.search_calls[-1]["searches"][0]
    assert (search["q"], search["per_page"], search["page"]) == ("car", 5, 2)


def test_search_endpoint_defaults_and_empty_result(engine, settings):
    engine.search_response = {"results": []}

    with TestClient(create_app(settings, client=engine)) as client:
        response = client.get("/api/v1/search")

    assert response.json()["data"] is None
    search = engine.search_calls[-1]["searches"][0]
    assert (search["q"], search["per_page"], search["page"]) == ("*", 9, 1)


def test_search_endpoint_maps_query_errors(engine, settings):
    engine.search_response = {"results": [{"code": 400, "error": "bad filter"}]}

    with TestClient(create_app(settings, client=engine)) as client:
        response = client.get("/api/v1/search", params={"q": "car"})

    assert response.status_code == 400


def test_startup_fails_when_provisioning_fails(engine, settings):
    engine.fail_create = True

    with pytest.raises(SchemaError):
        with TestClient(create_app(settings, client=engine)):
            pass

    assert engine.closed


def test_search_health_reports_provisioning_state(engine, settings):
    with TestClient(create_app(settings, client=engine)) as client:
        body = client.get("/api/v1/search/health").json()

    assert body["status"] == "ok"
    assert body["provisioning"] == "verified"


def test_search_before_startup_is_unavailable(settings):
    client = TestClient(create_app(settings))

    assert client.get("/api/v1/search").status_code == 503


def test_health_endpoint(engine, settings):
    with TestClient(create_app(settings, client=engine)) as client:
        body = client.get("/health").json()

    assert body["status"] == "ok"
    assert engine.closed


def test_configured_page_size_applies_to_search_endpoint(engine, settings):
    app = create_app(settings.model_copy(update={"default_per_page": 12}), client=engine)

    with TestClient(app) as client:
        client.get("/api/v1/search", params={"q": "car"})

    assert engine.search_calls[-1]["searches"][0]["per_page"] == 12


@pytest.mark.parametrize("params", [{"perPage": 0}, {"page": 0}, {"perPage": 251}, {"perPage": -3}])
def test_invalid_pagination_is_a_bad_request(engine, settings, params):
    with TestClient(create_app(settings, client=engine)) as client:
        response = client.get("/api/v1/search", params=params)

    assert response.status_code == 400
    assert engine.search_calls == []


def test_static_front_end_is_served(engine, settings, tmp_path):
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<h1>KraickList</h1>", encoding="utf-8")
    app = create_app(settings.model_copy(update={"static_dir": str(static_dir)}), client=engine)

    with TestClient(app) as client:
        page = client.get("/")
        health = client.get("/health")

    assert page.status_code == 200
    assert "KraickList" in page.text
    assert health.json()["status"] == "ok"
