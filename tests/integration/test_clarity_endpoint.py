"""
Integration tests for POST /v1/clarity and POST /v1/clarity/batch.

These tests use the FastAPI TestClient against an app built from explicit
test settings (auth disabled and rate limiting off unless noted).
"""

from __future__ import annotations

from typing import Callable

import pytest
from fastapi.testclient import TestClient

import clarity_api.services.clarity_service as clarity_service
from clarity_api.core.errors import ComputationFailureError


@pytest.fixture
def flat_image(flat_rgba: Callable[..., bytes], b64: Callable[[bytes], str]) -> dict:
    return {"data": b64(flat_rgba(24, 24)), "width": 24, "height": 24}


@pytest.fixture
def sharp_image(
    checkerboard_rgba: Callable[[int, int], bytes], b64: Callable[[bytes], str]
) -> dict:
    return {"data": b64(checkerboard_rgba(24, 24)), "width": 24, "height": 24}


# ------------------------------------------------------------------ #
# Single image endpoint
# ------------------------------------------------------------------ #

class TestClaritySingle:
    def test_flat_image_returns_blurred(self, client: TestClient, flat_image: dict) -> None:
        response = client.post(
            "/v1/clarity",
            json={"image": {**flat_image, "image_id": "test_001"}},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["api_version"] == "1.0"
        result = body["result"]
        assert result["image_id"] == "test_001"
        assert result["width_px"] == 24
        assert result["height_px"] == 24
        assert result["raw_clarity_score"] == 0.0
        assert result["clarity_score"] == pytest.approx(0.1192, abs=1e-4)
        assert result["is_blurred"] is True
        assert result["block_size"] == 32
        assert result["blur_threshold"] == 0.5
        assert result["error"] is None

    def test_sharp_image_returns_sharp(self, client: TestClient, sharp_image: dict) -> None:
        response = client.post("/v1/clarity", json={"image": sharp_image})
        assert response.status_code == 200
        result = response.json()["result"]
        assert result["is_blurred"] is False
        assert result["clarity_score"] > 0.99

    def test_overrides_are_applied(self, client: TestClient, flat_image: dict) -> None:
        response = client.post(
            "/v1/clarity",
            json={"image": flat_image, "block_size": 4, "blur_threshold": 0.1},
        )
        assert response.status_code == 200
        result = response.json()["result"]
        assert result["block_size"] == 4
        assert result["blur_threshold"] == 0.1
        assert result["is_blurred"] is False   # 0.119 >= 0.1

    def test_wrong_buffer_length_returns_invalid_input(
        self, client: TestClient, b64: Callable[[bytes], str]
    ) -> None:
        response = client.post(
            "/v1/clarity",
            json={"image": {"data": b64(bytes(4 * 4 * 4 - 1)), "width": 4, "height": 4}},
        )
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_input"

    def test_invalid_base64_returns_422(self, client: TestClient) -> None:
        response = client.post(
            "/v1/clarity",
            json={"image": {"data": "abc", "width": 1, "height": 1}},
        )
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.parametrize(
        "overrides",
        [{"width": 0}, {"height": -1}],
    )
    def test_non_positive_dimensions_return_422(
        self, client: TestClient, flat_image: dict, overrides: dict
    ) -> None:
        response = client.post("/v1/clarity", json={"image": {**flat_image, **overrides}})
        assert response.status_code == 422

    @pytest.mark.parametrize(
        "options",
        [{"blur_threshold": 1.5}, {"blur_threshold": -0.5}, {"block_size": 0}],
    )
    def test_out_of_range_options_return_422(
        self, client: TestClient, flat_image: dict, options: dict
    ) -> None:
        response = client.post("/v1/clarity", json={"image": flat_image, **options})
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_missing_image_field_returns_422(self, client: TestClient) -> None:
        response = client.post("/v1/clarity", json={"block_size": 8})
        assert response.status_code == 422

    def test_thumbnail_with_default_block_size_returns_200(
        self, client: TestClient, checkerboard_rgba: Callable[[int, int], bytes],
        b64: Callable[[bytes], str],
    ) -> None:
        response = client.post(
            "/v1/clarity",
            json={"image": {"data": b64(checkerboard_rgba(16, 16)), "width": 16, "height": 16}},
        )
        assert response.status_code == 200
        result = response.json()["result"]
        assert result["block_size"] == 32
        assert result["is_blurred"] is False

    def test_stage_failure_returns_computation_failure(
        self, client: TestClient, flat_image: dict, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def cancelled(*args: object) -> float:
            raise ComputationFailureError("block_variance", "tile weights sum to zero.")

        monkeypatch.setattr(clarity_service, "weighted_block_variance", cancelled)

        response = client.post("/v1/clarity", json={"image": flat_image})
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "computation_failure"
        assert body["message"].startswith("block_variance")

    def test_buffer_over_limit_returns_413(
        self, limited_client: TestClient, flat_image: dict
    ) -> None:
        response = limited_client.post("/v1/clarity", json={"image": flat_image})
        assert response.status_code == 413
        assert response.json()["error"] == "pixel_buffer_too_large"


# ------------------------------------------------------------------ #
# Batch endpoint
# ------------------------------------------------------------------ #

class TestClarityBatch:
    def test_batch_two_images_returns_200(
        self, client: TestClient, flat_image: dict, sharp_image: dict
    ) -> None:
        response = client.post(
            "/v1/clarity/batch",
            json={
                "images": [
                    {**flat_image, "image_id": "p1"},
                    {**sharp_image, "image_id": "p2"},
                ],
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["succeeded"] == 2
        assert body["failed"] == 0
        assert [r["image_id"] for r in body["results"]] == ["p1", "p2"]
        assert [r["is_blurred"] for r in body["results"]] == [True, False]

    def test_bad_image_is_isolated(
        self, client: TestClient, flat_image: dict, b64: Callable[[bytes], str]
    ) -> None:
        response = client.post(
            "/v1/clarity/batch",
            json={
                "images": [
                    {**flat_image, "image_id": "good"},
                    {"data": b64(bytes(7)), "width": 2, "height": 2, "image_id": "bad"},
                ],
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["succeeded"] == 1
        assert body["failed"] == 1
        bad = body["results"][1]
        assert bad["image_id"] == "bad"
        assert bad["clarity_score"] is None
        assert bad["error"].startswith("invalid_input")

    def test_empty_batch_returns_422(self, client: TestClient) -> None:
        response = client.post("/v1/clarity/batch", json={"images": []})
        assert response.status_code == 422

    def test_batch_too_large_returns_422(self, client: TestClient, flat_image: dict) -> None:
        images = [flat_image] * 25   # exceeds default MAX_BATCH_SIZE=20
        response = client.post("/v1/clarity/batch", json={"images": images})
        assert response.status_code == 422
        assert response.json()["error"] == "batch_too_large"

    def test_configured_batch_limit(
        self, limited_client: TestClient, b64: Callable[[bytes], str]
    ) -> None:
        tiny = {"data": b64(bytes(16)), "width": 2, "height": 2}
        response = limited_client.post("/v1/clarity/batch", json={"images": [tiny] * 3})
        assert response.status_code == 422
        assert response.json()["error"] == "batch_too_large"


# ------------------------------------------------------------------ #
# Authentication tests
# ------------------------------------------------------------------ #

class TestAuthentication:
    def test_missing_key_returns_401(self, authed_client: TestClient, flat_image: dict) -> None:
        response = authed_client.post("/v1/clarity", json={"image": flat_image})
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_wrong_key_returns_401(self, authed_client: TestClient, flat_image: dict) -> None:
        response = authed_client.post(
            "/v1/clarity",
            json={"image": flat_image},
            headers={"X-Api-Key": "wrong-key"},
        )
        assert response.status_code == 401

    def test_correct_key_returns_200(self, authed_client: TestClient, flat_image: dict) -> None:
        response = authed_client.post(
            "/v1/clarity",
            json={"image": flat_image},
            headers={"X-Api-Key": "test-secret"},
        )
        assert response.status_code == 200


# ------------------------------------------------------------------ #
# Rate limiting
# ------------------------------------------------------------------ #

class TestRateLimiting:
    def test_second_request_in_window_returns_429(
        self, rate_limited_client: TestClient, flat_image: dict
    ) -> None:
        first = rate_limited_client.post("/v1/clarity", json={"image": flat_image})
        assert first.status_code == 200

        second = rate_limited_client.post("/v1/clarity", json={"image": flat_image})
        assert second.status_code == 429
