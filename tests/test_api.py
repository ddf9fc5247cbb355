"""
tests/test_api.py

HTTP surface of the analysis, mapping and processing routers, wired to the
file-backed SQLite database and an inline executor.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from app.api.routers import csv_analysis_router, dimension_mapping_router, processing_router
from app.services.dimension_mapping_service import DimensionMappingService, get_dimension_mapping_service
from app.services.processing_job_service import (
    ProcessingJobService,
    ProcessingTaskExecutor,
    get_processing_executor,
    get_processing_job_service,
)
from app.services.structure_analysis_service import (
    StructureAnalysisService,
    get_structure_analysis_service,
)
from db.models.dimensions import Indicator
from db.session import get_db

CSV_BYTES = (
    b"Indicator,Year,Country,Value\n"
    b"GDP,2020,Germany,1.5\n"
    b"GDP,2021,Germany,2.5\n"
    b"CPI,2020,France,n/a\n"
    b"CPI,2021,France,3\n"
)

COLUMN_ROLES = ("INDICATOR_NAME", "TIME", "LOCATION", "INDICATOR_VALUE")


def _build_app(
    *,
    session_factory: sessionmaker[Session],
    structure_service: StructureAnalysisService,
    mapping_service: DimensionMappingService,
    job_service: ProcessingJobService,
    executor: ProcessingTaskExecutor,
) -> FastAPI:
    app = FastAPI()
    app.include_router(csv_analysis_router)
    app.include_router(dimension_mapping_router)
    app.include_router(processing_router)

    def _get_db() -> Iterator[Session]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_structure_analysis_service] = lambda: structure_service
    app.dependency_overrides[get_dimension_mapping_service] = lambda: mapping_service
    app.dependency_overrides[get_processing_job_service] = lambda: job_service
    app.dependency_overrides[get_processing_executor] = lambda: executor
    return app


@pytest.fixture()
def client(
    session_factory: sessionmaker[Session],
    structure_service: StructureAnalysisService,
    mapping_service: DimensionMappingService,
    job_service: ProcessingJobService,
    inline_executor: ProcessingTaskExecutor,
) -> Iterator[TestClient]:
    app = _build_app(
        session_factory=session_factory,
        structure_service=structure_service,
        mapping_service=mapping_service,
        job_service=job_service,
        executor=inline_executor,
    )
    with TestClient(app) as test_client:
        yield test_client


def _upload(client: TestClient, upload_job_id: uuid.UUID, content: bytes = CSV_BYTES) -> dict:
    response = client.post(
        f"/uploads/{upload_job_id}/csv-analysis",
        files={"file": ("indicators.csv", content, "text/csv")},
    )
    assert response.status_code == 200, response.text
    return response.json()


def _map_all(client: TestClient, analysis_id: str) -> None:
    for column_index, role in enumerate(COLUMN_ROLES):
        response = client.put(
            f"/csv-analysis/{analysis_id}/mappings/{column_index}",
            json={"dimension_type": role},
        )
        assert response.status_code == 200, response.text


# ---------------------------------------------------------------------------
# CSV analysis
# ---------------------------------------------------------------------------


def test_upload_analyses_structure_and_reuses_cache(client: TestClient, upload_job_id: uuid.UUID) -> None:
    first = _upload(client, upload_job_id)
    second = _upload(client, upload_job_id)

    assert first["reused"] is False
    assert second["reused"] is True
    assert first["analysis_id"] == second["analysis_id"]
    assert first["row_count"] == 4
    assert first["headers"] == ["Indicator", "Year", "Country", "Value"]
    assert first["delimiter"] == ","
    assert [column["index"] for column in first["columns"]] == [0, 1, 2, 3]

    listed = client.get(f"/uploads/{upload_job_id}/csv-analysis").json()
    assert [item["analysis_id"] for item in listed["analyses"]] == [first["analysis_id"]]

    fetched = client.get(f"/csv-analysis/{first['analysis_id']}")
    assert fetched.status_code == 200
    assert fetched.json()["file_checksum"] == first["file_checksum"]


def test_preview_is_bounded(client: TestClient, upload_job_id: uuid.UUID) -> None:
    analysis = _upload(client, upload_job_id)

    response = client.get(f"/csv-analysis/{analysis['analysis_id']}/preview", params={"limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["headers"] == ["Indicator", "Year", "Country", "Value"]
    assert body["rows"] == [["GDP", "2020", "Germany", "1.5"], ["GDP", "2021", "Germany", "2.5"]]
    assert body["total_rows"] == 4


def test_non_csv_upload_is_rejected(client: TestClient, upload_job_id: uuid.UUID) -> None:
    response = client.post(
        f"/uploads/{upload_job_id}/csv-analysis",
        files={"file": ("report.pdf", b"%PDF-1.4", "application/pdf")},
    )

    assert response.status_code == 400


def test_empty_upload_is_a_structural_error(client: TestClient, upload_job_id: uuid.UUID) -> None:
    response = client.post(
        f"/uploads/{upload_job_id}/csv-analysis",
        files={"file": ("empty.csv", b"", "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error_type"] == "EMPTY_FILE"


def test_unknown_analysis_is_404(client: TestClient) -> None:
    missing = uuid.uuid4()

    assert client.get(f"/csv-analysis/{missing}").status_code == 404
    assert client.get(f"/csv-analysis/{missing}/preview").status_code == 404
    assert client.get(f"/csv-analysis/{missing}/mapping-suggestions").status_code == 404


# ---------------------------------------------------------------------------
# Dimension mapping
# ---------------------------------------------------------------------------


def test_dimension_types_are_listed(client: TestClient) -> None:
    body = client.get("/dimension-types").json()

    roles = {item["dimension_type"]: item for item in body["dimension_types"]}
    assert len(roles) == 8
    assert roles["INDICATOR_NAME"]["required"] is True
    assert roles["INDICATOR_VALUE"]["required"] is True
    assert roles["TIME"]["required"] is False


def test_suggestions_apply_and_validate(client: TestClient, upload_job_id: uuid.UUID) -> None:
    content = b"Indicator,Year,Country,Value\nGDP growth,2020,Germany,1.5\nGDP growth,2021,France,2.25\n"
    analysis_id = _upload(client, upload_job_id, content)["analysis_id"]

    suggestions = client.get(f"/csv-analysis/{analysis_id}/mapping-suggestions").json()["suggestions"]
    assert client.get(f"/csv-analysis/{analysis_id}/mappings").json()["mappings"] == []

    applied = client.post(f"/csv-analysis/{analysis_id}/mapping-suggestions/apply").json()["mappings"]
    validation = client.get(f"/csv-analysis/{analysis_id}/mappings/validation").json()

    assert [item["dimension_type"] for item in applied] == [item["dimension_type"] for item in suggestions]
    assert all(item["is_auto_detected"] for item in applied)
    assert validation["is_valid"] is True
    assert validation["missing_mappings"] == []


def test_manual_mapping_and_axes(client: TestClient, upload_job_id: uuid.UUID) -> None:
    analysis_id = _upload(client, upload_job_id)["analysis_id"]
    _map_all(client, analysis_id)

    mappings = client.get(f"/csv-analysis/{analysis_id}/mappings").json()["mappings"]
    orientation = client.get(f"/csv-analysis/{analysis_id}/orientation").json()
    axes = client.get(f"/csv-analysis/{analysis_id}/multi-dimensional-analysis").json()

    assert [item["dimension_type"] for item in mappings] == list(COLUMN_ROLES)
    assert all(item["confidence_score"] == 1.0 and not item["is_auto_detected"] for item in mappings)
    assert orientation["orientation"] == "ROWS"
    assert axes["is_complete"] is True
    assert set(axes["indicator_values"]) == {"GDP", "CPI"}


def test_invalid_mapping_requests_are_400(client: TestClient, upload_job_id: uuid.UUID) -> None:
    analysis_id = _upload(client, upload_job_id)["analysis_id"]

    bad_type = client.put(f"/csv-analysis/{analysis_id}/mappings/0", json={"dimension_type": "COLOUR"})
    bad_index = client.put(f"/csv-analysis/{analysis_id}/mappings/9", json={"dimension_type": "TIME"})

    assert bad_type.status_code == 400
    assert bad_type.json()["detail"]["field"] == "dimension_type"
    assert bad_index.status_code == 400
    assert bad_index.json()["detail"]["field"] == "column_index"


# ---------------------------------------------------------------------------
# Processing
# ---------------------------------------------------------------------------


def test_processing_flow(
    client: TestClient,
    session_factory: sessionmaker[Session],
    upload_job_id: uuid.UUID,
) -> None:
    analysis_id = _upload(client, upload_job_id)["analysis_id"]
    _map_all(client, analysis_id)

    accepted = client.post(f"/uploads/{upload_job_id}/processing", json={"batch_size": 2})
    assert accepted.status_code == 202, accepted.text
    job_id = accepted.json()["job_id"]
    assert accepted.json()["analysis_id"] == analysis_id

    status_body = client.get(f"/processing-jobs/{job_id}").json()
    assert status_body["status"] == "COMPLETED"
    assert status_body["progress_percentage"] == 100.0
    assert status_body["records_processed"] == 5
    assert status_body["batch_size"] == 2

    errors = client.get(f"/processing-jobs/{job_id}/errors").json()
    assert errors["error_count"] == 1
    assert [(item["row_number"], item["error_type"]) for item in errors["errors"]] == [
        (4, "INVALID_NUMERIC_VALUE")
    ]

    quality = client.get(f"/processing-jobs/{job_id}/quality-report").json()
    assert quality["status"] == "COMPLETED"
    assert quality["report"]["quality_score"] == 1.0

    listed = client.get("/processing-jobs", params={"upload_job_id": str(upload_job_id), "status": "completed"})
    assert [item["job_id"] for item in listed.json()["jobs"]] == [job_id]

    with session_factory() as db:
        gdp_id = db.scalars(select(Indicator.id).where(Indicator.name == "GDP")).one()
    values = client.get(f"/indicators/{gdp_id}/values", params={"include_aggregated": "false"}).json()["values"]
    assert [(item["time_value"], item["location_value"], float(item["value"])) for item in values] == [
        ("2020", "Germany", 1.5),
        ("2021", "Germany", 2.5),
    ]

    retry = client.post(f"/processing-jobs/{job_id}/retry")
    assert retry.status_code == 409
    assert retry.json()["detail"]["status"] == "COMPLETED"


def test_processing_without_mappings_is_422(client: TestClient, upload_job_id: uuid.UUID) -> None:
    _upload(client, upload_job_id)

    response = client.post(f"/uploads/{upload_job_id}/processing")

    assert response.status_code == 422
    assert response.json()["detail"]["validation"]["is_valid"] is False


def test_processing_unknown_upload_is_404(client: TestClient) -> None:
    response = client.post(f"/uploads/{uuid.uuid4()}/processing")

    assert response.status_code == 404


def test_processing_rejects_invalid_batch_size(client: TestClient, upload_job_id: uuid.UUID) -> None:
    response = client.post(f"/uploads/{upload_job_id}/processing", json={"batch_size": 0})

    assert response.status_code == 422


def test_unknown_job_is_404(client: TestClient) -> None:
    missing = uuid.uuid4()

    assert client.get(f"/processing-jobs/{missing}").status_code == 404
    assert client.get(f"/processing-jobs/{missing}/errors").status_code == 404
    assert client.get(f"/processing-jobs/{missing}/quality-report").status_code == 404
    assert client.post(f"/processing-jobs/{missing}/retry").status_code == 404


def test_concurrent_start_is_409(
    session_factory: sessionmaker[Session],
    structure_service: StructureAnalysisService,
    mapping_service: DimensionMappingService,
    job_service: ProcessingJobService,
    deferred_executor,
    upload_job_id: uuid.UUID,
) -> None:
    app = _build_app(
        session_factory=session_factory,
        structure_service=structure_service,
        mapping_service=mapping_service,
        job_service=job_service,
        executor=deferred_executor,
    )
    with TestClient(app) as deferred_client:
        analysis_id = _upload(deferred_client, upload_job_id)["analysis_id"]
        _map_all(deferred_client, analysis_id)

        first = deferred_client.post(f"/uploads/{upload_job_id}/processing")
        second = deferred_client.post(f"/uploads/{upload_job_id}/processing")

        assert first.status_code == 202
        assert first.json()["status"] == "PENDING"
        assert second.status_code == 409
        assert second.json()["detail"]["job_id"] == first.json()["job_id"]

        deferred_executor.run_all()
        assert deferred_client.get(f"/processing-jobs/{first.json()['job_id']}").json()["status"] == "COMPLETED"
