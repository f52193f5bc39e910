from fastapi.testclient import TestClient

from activation import metrics
from activation.config import AggregatedConfig
from activation.model import Module
from activation.modules import ActivationManager
from actuator.api.app import create_app


def _client() -> TestClient:
    mm = ActivationManager(AggregatedConfig(), catalog=[Module("Only")])
    return TestClient(create_app(manager=mm))


def test_health_ok():
    r = _client().get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_request_metrics_recorded():
    metrics.reset_for_tests()
    client = _client()
    client.get("/health")
    client.get("/autoconfig/Nope")
    client.get("/autoconfig/Other")
    assert metrics.get_counter(
        "api_request_total", {"route": "/health", "method": "GET"}
    ) == 1
    assert metrics.get_counter(
        "api_request_errors_total",
        {"route": "/autoconfig/{module}", "method": "GET", "status": 404},
    ) == 2
    assert metrics.get_counter(
        "api_request_total", {"route": "/autoconfig/Nope", "method": "GET"}
    ) == 0
