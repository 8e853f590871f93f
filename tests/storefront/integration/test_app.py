"""Smoke tests for the assembled application."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def app_client():
    from app import app

    return TestClient(app)


@pytest.mark.fast
def test_health(app_client):
    response = app_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "domain": "storefront"}


def test_orders_are_served(app_client):
    response = app_client.get("/order/all")

    assert response.status_code == 200
    assert response.json() == []
