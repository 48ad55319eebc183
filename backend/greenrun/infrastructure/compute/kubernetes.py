import structlog
from kubernetes import client as k8s_client
from kubernetes.client.rest import ApiException

from greenrun.domain.enums.execution import HostStatus
from greenrun.domain.exceptions import InfrastructureError
from greenrun.infrastructure.compute.base import HostConfig
from greenrun.infrastructure.compute.pod_builder import NotebookHostPodBuilder


class ComputeHostError(InfrastructureError):
    """A compute-host lifecycle call was rejected by the provider."""

    pass


_PHASE_TO_STATUS = {
    "Pending": HostStatus.CREATING,
    "Running": HostStatus.IN_SERVICE,
    "Succeeded": HostStatus.STOPPED,
    "Failed": HostStatus.FAILED,
    "Unknown": HostStatus.UNKNOWN,
}


class KubernetesComputeHost:
    """Compute hosts as single-container pods whose on-start script comes from a ConfigMap.

    A pod cannot be paused, so `stop` deletes the pod and keeps its ConfigMap;
    `delete` removes both.
    """

    def __init__(
        self,
        v1: k8s_client.CoreV1Api,
        pod_builder: NotebookHostPodBuilder,
        logger: structlog.stdlib.BoundLogger,
        stop_grace_seconds: int = 30,
    ) -> None:
        self._v1 = v1
        self._builder = pod_builder
        self._namespace = pod_builder.namespace
        self._logger = logger
        self._stop_grace_seconds = stop_grace_seconds

    def create_and_start(self, config: HostConfig) -> str:
        config_map = self._builder.build_config_map(config.execution_id, config.bootstrap_script)
        pod = self._builder.build_pod_manifest(config.execution_id, config.env)

        try:
            self._v1.create_namespaced_config_map(namespace=self._namespace, body=config_map)
            self._logger.debug("Created ConfigMap", name=config_map.metadata.name)
        except ApiException as e:
            if e.status != 409:  # Already exists
                raise ComputeHostError(f"Failed to create ConfigMap {config_map.metadata.name}: {e.reason}") from e
            self._logger.warning("ConfigMap already exists", name=config_map.metadata.name)

        try:
            self._v1.create_namespaced_pod(namespace=self._namespace, body=pod)
            self._logger.info("Created host pod", name=pod.metadata.name, execution_id=config.execution_id)
        except ApiException as e:
            if e.status != 409:
                raise ComputeHostError(f"Failed to create pod {pod.metadata.name}: {e.reason}") from e
            self._logger.warning("Pod already exists", name=pod.metadata.name)

        return str(pod.metadata.name)

    def describe(self, handle: str) -> HostStatus:
        try:
            pod = self._v1.read_namespaced_pod(name=handle, namespace=self._namespace)
        except ApiException as e:
            if e.status == 404:
                return HostStatus.STOPPED
            raise ComputeHostError(f"Failed to read pod {handle}: {e.reason}") from e

        if pod.metadata is not None and pod.metadata.deletion_timestamp is not None:
            return HostStatus.STOPPING

        phase = pod.status.phase if pod.status else None
        status = _PHASE_TO_STATUS.get(phase or "", HostStatus.UNKNOWN)
        if status is HostStatus.IN_SERVICE and not self._containers_ready(pod):
            return HostStatus.CREATING
        return status

    def stop(self, handle: str) -> None:
        try:
            self._v1.delete_namespaced_pod(
                name=handle,
                namespace=self._namespace,
                grace_period_seconds=self._stop_grace_seconds,
            )
            self._logger.info("Stopping host pod", name=handle)
        except ApiException as e:
            if e.status != 404:
                raise ComputeHostError(f"Failed to stop pod {handle}: {e.reason}") from e
            self._logger.info("Host pod already gone", name=handle)

    def delete(self, handle: str) -> None:
        self.stop(handle)
        execution_id = handle.removeprefix("notebook-")
        name = self._builder.config_map_name(execution_id)
        try:
            self._v1.delete_namespaced_config_map(name=name, namespace=self._namespace)
        except ApiException as e:
            if e.status != 404:
                raise ComputeHostError(f"Failed to delete ConfigMap {name}: {e.reason}") from e

    @staticmethod
    def _containers_ready(pod: k8s_client.V1Pod) -> bool:
        statuses = (pod.status.container_statuses if pod.status else None) or []
        return bool(statuses) and all(cs.ready for cs in statuses)
