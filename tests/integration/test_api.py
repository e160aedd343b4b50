"""Integration tests for creative_design.api.main — FastAPI REST API endpoints.

All tests use the FastAPI TestClient against an app built from a temporary
configuration.  The default app uses the echo backend, which returns the
reference image as the generated design.  Tests cover every endpoint:

- ``GET /api/config`` — Styles, aspect ratios and limits.
- ``POST /api/designs/generate`` — Generation, persistence, draft clearing.
- ``GET|PUT|DELETE /api/designs[/{id}]`` — Design management.
- ``GET /api/artifacts/{id}/designs`` — Per-artifact listing.
- ``GET /api/stats`` — Design counts.
- ``GET|PUT|DELETE /api/drafts/{artifact_id}`` — Draft persistence.
- ``GET /api/rate-limit`` and ``POST /api/rate-limit/reset``.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from creative_design.api.main import create_app


def _generate_payload(reference_image: str, **overrides) -> dict:
    """Build a valid generate request payload with optional overrides.

    Args:
        reference_image: Data URL of the screenshot.
        **overrides: Fields to override in the inner generation request.

    Returns:
        Dictionary suitable for ``POST /api/designs/generate``.
    """
    request = {"reference_image": reference_image, "prompt": "modern poster"}
    request.update(overrides)
    return {"artifact_id": "art-1", "artifact_title": "Vase", "request": request}


# ---------------------------------------------------------------------------
# Configuration endpoint tests.
# ---------------------------------------------------------------------------


class TestGetConfig:
    """Test GET /api/config — generation options."""

    def test_config_returns_styles(self, test_client):
        resp = test_client.get("/api/config")
        assert resp.status_code == 200
        data = resp.json()
        assert [s["id"] for s in data["styles"]] == [
            "modern",
            "traditional",
            "abstract",
            "minimalist",
            "watercolor",
            "vintage",
        ]
        assert all(s["description"] for s in data["styles"])

    def test_config_returns_limits(self, test_client):
        data = test_client.get("/api/config").json()
        assert data["prompt_max_length"] == 500
        assert data["default_aspect_ratio"] == "1:1"
        assert data["default_style"] == "modern"
        assert "version" in data


# ---------------------------------------------------------------------------
# Generation endpoint tests.
# ---------------------------------------------------------------------------


class TestGenerate:
    """Test POST /api/designs/generate."""

    def test_generate_success(self, test_client, png_data_url):
        resp = test_client.post("/api/designs/generate", json=_generate_payload(png_data_url))
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"].startswith("design_")
        assert data["style"] == "modern"
        assert data["owner_artifact_id"] == "art-1"
        assert data["owner_artifact_title"] == "Vase"
        assert data["metadata"]["aspect_ratio"] == "1:1"
        assert data["metadata"]["width"] == 64
        assert data["metadata"]["height"] == 32

    def test_generated_design_is_stored(self, test_client, png_data_url):
        design = test_client.post(
            "/api/designs/generate", json=_generate_payload(png_data_url)
        ).json()

        resp = test_client.get(f"/api/designs/{design['id']}")
        assert resp.status_code == 200
        assert resp.json() == design

    def test_generate_clears_draft(self, test_client, png_data_url):
        test_client.put("/api/drafts/art-1", json={"prompt": "modern poster"})
        test_client.post("/api/designs/generate", json=_generate_payload(png_data_url))
        assert test_client.get("/api/drafts/art-1").json() == {"draft": None}

    def test_empty_prompt_returns_400(self, test_client, png_data_url):
        resp = test_client.post(
            "/api/designs/generate", json=_generate_payload(png_data_url, prompt="  ")
        )
        assert resp.status_code == 400
        body = resp.json()
        assert body["kind"] == "INVALID_PROMPT"
        assert body["retryable"] is False
        assert test_client.get("/api/rate-limit").json()["remaining"] == 3

    def test_unsupported_image_returns_400(self, test_client):
        resp = test_client.post(
            "/api/designs/generate",
            json=_generate_payload("data:image/gif;base64,AAAA"),
        )
        assert resp.status_code == 400
        assert resp.json()["kind"] == "SCREENSHOT_FAILED"

    def test_missing_artifact_id_returns_422(self, test_client, png_data_url):
        payload = _generate_payload(png_data_url)
        del payload["artifact_id"]
        assert test_client.post("/api/designs/generate", json=payload).status_code == 422

    def test_rate_limit_returns_429(self, test_client, png_data_url):
        for _ in range(3):
            ok = test_client.post("/api/designs/generate", json=_generate_payload(png_data_url))
            assert ok.status_code == 200

        resp = test_client.post("/api/designs/generate", json=_generate_payload(png_data_url))

        assert resp.status_code == 429
        assert resp.json()["kind"] == "RATE_LIMIT_EXCEEDED"
        assert int(resp.headers["Retry-After"]) >= 1
        assert len(test_client.get("/api/designs").json()["designs"]) == 3


class TestGenerateBackendFailures:
    """Backend failures map onto HTTP status codes."""

    @pytest.mark.parametrize(
        "failure, status, kind",
        [
            (RuntimeError("API key not valid"), 401, "AUTHENTICATION_ERROR"),
            (RuntimeError("blocked by safety filters"), 422, "CONTENT_POLICY_ERROR"),
            (RuntimeError("quota exceeded"), 429, "QUOTA_EXCEEDED"),
            (ConnectionError("connection reset"), 502, "NETWORK_ERROR"),
        ],
    )
    def test_failure_status(
        self, test_config, scripted_client, png_data_url, failure, status, kind
    ):
        app = create_app(test_config, generation_client=scripted_client(failure))
        with TestClient(app) as client:
            resp = client.post("/api/designs/generate", json=_generate_payload(png_data_url))
            assert resp.status_code == status
            assert resp.json()["kind"] == kind
            assert client.get("/api/designs").json()["total"] == 0


# ---------------------------------------------------------------------------
# Design management tests.
# ---------------------------------------------------------------------------


class TestDesigns:
    """Test the /api/designs collection and items."""

    def _generate(self, client, reference_image, artifact_id="art-1") -> dict:
        payload = _generate_payload(reference_image)
        payload["artifact_id"] = artifact_id
        return client.post("/api/designs/generate", json=payload).json()

    def test_list_empty(self, test_client):
        assert test_client.get("/api/designs").json() == {"total": 0, "designs": []}

    def test_list_oldest_first(self, test_client, png_data_url):
        first = self._generate(test_client, png_data_url)
        second = self._generate(test_client, png_data_url)
        ids = [d["id"] for d in test_client.get("/api/designs").json()["designs"]]
        assert ids == [first["id"], second["id"]]

    def test_get_unknown_returns_404(self, test_client):
        assert test_client.get("/api/designs/missing").status_code == 404

    def test_update_design(self, test_client, png_data_url):
        design = self._generate(test_client, png_data_url)
        design["prompt"] = "revised"

        resp = test_client.put(f"/api/designs/{design['id']}", json=design)

        assert resp.status_code == 200
        assert test_client.get(f"/api/designs/{design['id']}").json()["prompt"] == "revised"

    def test_update_id_mismatch_returns_400(self, test_client, png_data_url):
        design = self._generate(test_client, png_data_url)
        assert test_client.put("/api/designs/other", json=design).status_code == 400

    def test_delete_design(self, test_client, png_data_url):
        design = self._generate(test_client, png_data_url)
        resp = test_client.delete(f"/api/designs/{design['id']}")
        assert resp.status_code == 200
        assert test_client.get(f"/api/designs/{design['id']}").status_code == 404

    def test_delete_unknown_returns_404(self, test_client):
        assert test_client.delete("/api/designs/missing").status_code == 404

    def test_clear_designs(self, test_client, png_data_url):
        self._generate(test_client, png_data_url)
        assert test_client.delete("/api/designs").status_code == 200
        assert test_client.get("/api/designs").json()["total"] == 0

    def test_designs_by_artifact(self, test_client, png_data_url):
        a1 = self._generate(test_client, png_data_url, "art-1")
        self._generate(test_client, png_data_url, "art-2")
        a2 = self._generate(test_client, png_data_url, "art-1")

        data = test_client.get("/api/artifacts/art-1/designs").json()

        assert data["total"] == 2
        assert [d["id"] for d in data["designs"]] == [a1["id"], a2["id"]]

    def test_stats(self, test_client, png_data_url):
        self._generate(test_client, png_data_url, "art-1")
        self._generate(test_client, png_data_url, "art-2")
        self._generate(test_client, png_data_url, "art-1")

        data = test_client.get("/api/stats").json()

        assert data == {"total_designs": 3, "artifact_counts": {"art-1": 2, "art-2": 1}}


# ---------------------------------------------------------------------------
# Draft tests.
# ---------------------------------------------------------------------------


class TestDrafts:
    """Test /api/drafts/{artifact_id}."""

    def test_no_draft(self, test_client):
        assert test_client.get("/api/drafts/art-1").json() == {"draft": None}

    def test_save_and_restore(self, test_client):
        resp = test_client.put(
            "/api/drafts/art-1", json={"prompt": "poster", "style": "watercolor"}
        )
        assert resp.status_code == 200

        draft = test_client.get("/api/drafts/art-1").json()["draft"]
        assert draft["prompt"] == "poster"
        assert draft["style"] == "watercolor"
        assert draft["owner_artifact_id"] == "art-1"

    def test_other_artifact_sees_no_draft(self, test_client):
        test_client.put("/api/drafts/art-1", json={"prompt": "poster"})
        assert test_client.get("/api/drafts/art-2").json() == {"draft": None}

    def test_delete_draft(self, test_client):
        test_client.put("/api/drafts/art-1", json={"prompt": "poster"})
        assert test_client.delete("/api/drafts/art-1").status_code == 200
        assert test_client.get("/api/drafts/art-1").json() == {"draft": None}

    def test_invalid_style_returns_422(self, test_client):
        assert test_client.put("/api/drafts/art-1", json={"style": "baroque"}).status_code == 422


# ---------------------------------------------------------------------------
# Rate limit tests.
# ---------------------------------------------------------------------------


class TestRateLimit:
    def test_initial_status(self, test_client):
        assert test_client.get("/api/rate-limit").json() == {
            "remaining": 3,
            "max_requests": 3,
            "window_ms": 60_000,
            "time_until_reset_ms": 0,
        }

    def test_reset(self, test_client, png_data_url):
        test_client.post("/api/designs/generate", json=_generate_payload(png_data_url))
        assert test_client.get("/api/rate-limit").json()["remaining"] == 2

        assert test_client.post("/api/rate-limit/reset").status_code == 200
        assert test_client.get("/api/rate-limit").json()["remaining"] == 3
