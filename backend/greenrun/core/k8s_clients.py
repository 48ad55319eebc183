import os
from dataclasses import dataclass

import structlog
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config

SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


@dataclass(frozen=True)
class K8sClients:
    api_client: k8s_client.ApiClient
    v1: k8s_client.CoreV1Api


def create_k8s_clients(
    logger: structlog.stdlib.BoundLogger, kubeconfig_path: str | None = None, in_cluster: bool | None = None
) -> K8sClients:
    if in_cluster is None:
        in_cluster = os.path.exists(SERVICE_ACCOUNT_DIR)

    if in_cluster:
        k8s_config.load_incluster_config()
    elif kubeconfig_path and os.path.exists(os.path.expanduser(kubeconfig_path)):
        k8s_config.load_kube_config(config_file=os.path.expanduser(kubeconfig_path))
    else:
        k8s_config.load_kube_config()

    configuration = k8s_client.Configuration.get_default_copy()
    logger.info("Kubernetes client configured", host=configuration.host, in_cluster=in_cluster)

    api_client = k8s_client.ApiClient(configuration)
    return K8sClients(api_client=api_client, v1=k8s_client.CoreV1Api(api_client))


def close_k8s_clients(clients: K8sClients) -> None:
    close = getattr(clients.api_client, "close", None)
    if callable(close):
        close()
