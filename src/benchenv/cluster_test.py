from unittest.mock import MagicMock

from benchenv.cluster import KubernetesClusterApi
from benchenv.tools.types import Manifest


def test__KubernetesClusterApi__list__returns_items() -> None:
    client = MagicMock()
    client.get.return_value.to_dict.return_value = {"items": [{"metadata": {"name": "a"}}]}
    api = KubernetesClusterApi(client)

    assert api.list("apps/v1", "Deployment", "bench-42") == [{"metadata": {"name": "a"}}]
    client.resources.get.assert_called_once_with(api_version="apps/v1", kind="Deployment")
    client.get.assert_called_once_with(client.resources.get.return_value, namespace="bench-42")


def test__KubernetesClusterApi__update__replaces_object() -> None:
    client = MagicMock()
    client.replace.return_value.to_dict.return_value = {"kind": "ConfigMap"}
    body = Manifest({"kind": "ConfigMap", "metadata": {"name": "settings"}})

    assert KubernetesClusterApi(client).update("v1", "ConfigMap", "settings", body, "default") == {"kind": "ConfigMap"}
    client.replace.assert_called_once_with(
        client.resources.get.return_value, body=body, name="settings", namespace="default"
    )


def test__KubernetesClusterApi__delete__propagates_in_foreground() -> None:
    client = MagicMock()

    KubernetesClusterApi(client).delete("v1", "Namespace", "bench-42", None)

    client.delete.assert_called_once_with(
        client.resources.get.return_value,
        name="bench-42",
        namespace=None,
        body={"apiVersion": "v1", "kind": "DeleteOptions", "propagationPolicy": "Foreground"},
    )
