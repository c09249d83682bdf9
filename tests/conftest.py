"""
Shared pytest fixtures.

Strategy: pixel buffers are synthesised with numpy so every test is
deterministic. API tests build the app from an explicit Settings object
instead of patching the environment, so the open and authenticated clients
never share configuration.
"""

from __future__ import annotations

import base64
from typing import Callable, Iterator

import numpy as np
import pytest
from fastapi.testclient import TestClient

from clarity_api.core.config import Settings
from clarity_api.main import create_app


# ------------------------------------------------------------------ #
# Pixel buffer factories
# ------------------------------------------------------------------ #

def _flat_rgba(width: int, height: int, value: int = 128) -> bytes:
    arr = np.full((height, width, 4), value, dtype=np.uint8)
    arr[:, :, 3] = 255
    return arr.tobytes()


def _checkerboard_rgba(width: int, height: int) -> bytes:
    """Single-pixel checkerboard: maximal local contrast."""
    ys, xs = np.indices((height, width))
    on = ((xs + ys) % 2 == 0).astype(np.uint8) * 255
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[:, :, 0] = on
    arr[:, :, 1] = on
    arr[:, :, 2] = on
    arr[:, :, 3] = 255
    return arr.tobytes()


@pytest.fixture
def flat_rgba() -> Callable[..., bytes]:
    return _flat_rgba


@pytest.fixture
def checkerboard_rgba() -> Callable[[int, int], bytes]:
    return _checkerboard_rgba


@pytest.fixture
def b64() -> Callable[[bytes], str]:
    return lambda raw: base64.b64encode(raw).decode("ascii")


# ------------------------------------------------------------------ #
# Test client fixtures
# ------------------------------------------------------------------ #

def make_test_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "api_key": "",
        "rate_limit_enabled": False,
        "log_json": False,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(scope="session")
def client() -> Iterator[TestClient]:
    """TestClient with authentication disabled (open mode)."""
    test_app = create_app(make_test_settings())
    with TestClient(test_app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture(scope="session")
def authed_client() -> Iterator[TestClient]:
    """TestClient with API_KEY=test-secret enforced."""
    test_app = create_app(make_test_settings(api_key="test-secret"))
    with TestClient(test_app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def limited_client() -> Iterator[TestClient]:
    """TestClient with a tiny pixel buffer limit and batch size."""
    test_app = create_app(make_test_settings(max_pixel_buffer_bytes=64, max_batch_size=2))
    with TestClient(test_app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def rate_limited_client() -> Iterator[TestClient]:
    """TestClient with slowapi rate limiting at one request per minute."""
    test_app = create_app(make_test_settings(rate_limit_enabled=True, rate_limit_per_minute=1))
    with TestClient(test_app, raise_server_exceptions=False) as c:
        yield c
