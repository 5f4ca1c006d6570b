"""Shared pytest fixtures for registration unit tests."""

from unittest.mock import MagicMock

import pytest

from register_mgmt_cluster.utils.kubernetes import KubernetesAPIs
from tests.fixtures.fake_cluster import FakeCluster, make_fake_apis

CA_DATA = b"-----BEGIN CERTIFICATE-----\nMIIBfake\n-----END CERTIFICATE-----\n"


@pytest.fixture
def mock_apis():
    """KubernetesAPIs holder whose API groups are MagicMocks."""
    apis = KubernetesAPIs(k8s_client=MagicMock())
    apis.k8s_client.configuration.host = "https://10.96.0.1:443"
    apis._core_v1 = MagicMock()
    apis._rbac_v1 = MagicMock()
    apis._custom_objects = MagicMock()
    return apis


@pytest.fixture
def fake_cluster():
    """Empty in-memory cluster."""
    return FakeCluster()


@pytest.fixture
def fake_apis(fake_cluster):
    """KubernetesAPIs holder backed by the in-memory cluster."""
    return make_fake_apis(fake_cluster)


@pytest.fixture
def ca_data():
    return CA_DATA
