import pytest

from guardian.exceptions import MalformedInput
from guardian.policies.containers import containers


def test_yields_one_ref_per_container(bare_pod):
    refs = list(containers(bare_pod))

    assert [ref.name for ref in refs] == ["app", "sidecar"]
    assert refs[0].security_context is None
    assert refs[1].security_context["privileged"] is True


def test_sequence_is_restartable(bare_pod):
    view = containers(bare_pod)

    assert len(list(view)) == 2
    assert len(list(view)) == 2


def test_overwriting_security_context_edits_the_pod(bare_pod):
    ref = next(iter(containers(bare_pod)))
    ref.security_context = {"runAsUser": 5}

    assert bare_pod["spec"]["containers"][0]["securityContext"] == {"runAsUser": 5}


def test_only_primary_containers():
    pod = {
        "spec": {
            "initContainers": [{"name": "init"}],
            "ephemeralContainers": [{"name": "debug"}],
            "containers": [{"name": "app"}],
        }
    }

    assert [ref.name for ref in containers(pod)] == ["app"]


def test_no_containers_is_empty():
    assert list(containers({})) == []
    assert list(containers({"spec": {}})) == []
    assert list(containers({"spec": {"containers": None}})) == []


def test_non_object_container_is_malformed():
    with pytest.raises(MalformedInput, match=r"spec.containers\[1\]"):
        list(containers({"spec": {"containers": [{"name": "app"}, "sidecar"]}}))


def test_non_list_containers_is_malformed():
    with pytest.raises(MalformedInput):
        list(containers({"spec": {"containers": {"name": "app"}}}))
