"""Tests for the Kubernetes client wrapper."""

from unittest.mock import patch

import pytest
from kubernetes.config import ConfigException

from balancer.infra.kubernetes import KubernetesClient


class TestKubernetesClient:
    def test_lazy_loading(self) -> None:
        with patch("balancer.infra.kubernetes.config") as mock_config:
            KubernetesClient("ns")
            mock_config.load_incluster_config.assert_not_called()

    def test_falls_back_to_kubeconfig(self) -> None:
        with (
            patch("balancer.infra.kubernetes.config") as mock_config,
            patch("balancer.infra.kubernetes.client") as mock_client,
        ):
            mock_config.ConfigException = ConfigException
            mock_config.load_incluster_config.side_effect = ConfigException("not in cluster")

            k8s = KubernetesClient("ns")
            _ = k8s.apps_v1

            mock_config.load_kube_config.assert_called_once()
            mock_client.AppsV1Api.assert_called_once()

    def test_in_cluster_forced(self) -> None:
        with (
            patch("balancer.infra.kubernetes.config") as mock_config,
            patch("balancer.infra.kubernetes.client"),
        ):
            mock_config.load_incluster_config.side_effect = ConfigException("not in cluster")

            with pytest.raises(ConfigException):
                _ = KubernetesClient("ns", in_cluster=True).core_v1

            mock_config.load_kube_config.assert_not_called()

    def test_close_resets(self) -> None:
        with (
            patch("balancer.infra.kubernetes.config"),
            patch("balancer.infra.kubernetes.client") as mock_client,
        ):
            k8s = KubernetesClient("ns")
            _ = k8s.core_v1
            k8s.close()
            _ = k8s.core_v1

            assert mock_client.ApiClient.call_count == 2
            assert k8s.namespace == "ns"
