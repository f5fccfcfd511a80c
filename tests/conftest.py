# conftest.py
"""
Shared test fixtures for the context guardian admission webhook tests
"""

import copy

import pytest

from guardian.admission.admission_controller import AdmissionController
from guardian.admission.pipeline import AdmissionPipeline
from guardian.config import AdmissionConfig

CONFIG_ENV_VARS = [
    "BIND_ADDRESS",
    "PORT",
    "UDS_PATH",
    "TLS_CERT_PATH",
    "TLS_KEY_PATH",
    "DEBUG",
    "DEFAULT_RUN_AS_USER",
    "DEFAULT_RUN_AS_GROUP",
    "REQUEST_TIMEOUT",
    "CONFIG_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the host environment out of configuration."""
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config() -> AdmissionConfig:
    return AdmissionConfig()


@pytest.fixture
def pipeline(config) -> AdmissionPipeline:
    return AdmissionPipeline.from_config(config)


@pytest.fixture
def admission_controller(config) -> AdmissionController:
    """Create admission controller instance for testing."""
    return AdmissionController(config)


@pytest.fixture
def bare_pod():
    """Pod without labels, annotations or security contexts."""
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": {
            "name": "test-pod",
            "namespace": "default",
        },
        "spec": {
            "containers": [
                {
                    "name": "app",
                    "image": "registry.local/app:latest",
                },
                {
                    "name": "sidecar",
                    "image": "registry.local/sidecar:latest",
                    "securityContext": {
                        "privileged": True,
                        "allowPrivilegeEscalation": True,
                        "capabilities": {"add": ["NET_ADMIN"], "drop": ["MKNOD"]},
                    },
                },
            ]
        },
    }


@pytest.fixture
def labelled_pod(bare_pod):
    """Pod requesting a specific user through labels."""
    pod = copy.deepcopy(bare_pod)
    pod["metadata"]["labels"] = {"app": "test", "uds/user": "2000"}
    return pod


@pytest.fixture
def root_label_pod():
    """Pod asking to run as uid 0 through a label."""
    return {
        "kind": "Pod",
        "metadata": {"name": "root-pod", "labels": {"uds/user": "0"}},
        "spec": {"containers": [{"name": "app", "image": "registry.local/app:latest"}]},
    }


@pytest.fixture
def explicit_root_pod():
    """Pod whose submitter explicitly disabled runAsNonRoot."""
    return {
        "kind": "Pod",
        "metadata": {"name": "explicit-root-pod"},
        "spec": {
            "securityContext": {"runAsNonRoot": False},
            "containers": [{"name": "app", "image": "registry.local/app:latest"}],
        },
    }


@pytest.fixture
def service_resource():
    """Create a service resource for testing."""
    return {
        "kind": "Service",
        "metadata": {"name": "test-service"},
        "spec": {"selector": {"app": "test"}},
    }


def create_request(resource_object, uid="test-uid-123", operation="CREATE", kind=None, dry_run=False):
    """Helper function to create an AdmissionReview request."""
    return {
        "apiVersion": "admission.k8s.io/v1",
        "kind": "AdmissionReview",
        "request": {
            "uid": uid,
            "kind": {"group": "", "version": "v1", "kind": kind or resource_object.get("kind", "Pod")},
            "operation": operation,
            "dryRun": dry_run,
            "object": resource_object,
        },
    }
