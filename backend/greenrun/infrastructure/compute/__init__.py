from greenrun.infrastructure.compute.base import ComputeHost, HostConfig
from greenrun.infrastructure.compute.bootstrap import render_bootstrap_script
from greenrun.infrastructure.compute.kubernetes import ComputeHostError, KubernetesComputeHost
from greenrun.infrastructure.compute.pod_builder import NotebookHostPodBuilder, PodResources

__all__ = [
    "ComputeHost",
    "ComputeHostError",
    "HostConfig",
    "KubernetesComputeHost",
    "NotebookHostPodBuilder",
    "PodResources",
    "render_bootstrap_script",
]
