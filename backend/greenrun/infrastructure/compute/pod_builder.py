from dataclasses import dataclass

from kubernetes import client as k8s_client

from greenrun.domain.execution.paths import BOOTSTRAP_FILE_NAME
from greenrun.settings import Settings


@dataclass(frozen=True)
class PodResources:
    cpu_request: str
    cpu_limit: str
    memory_request: str
    memory_limit: str


class NotebookHostPodBuilder:
    """Builds the ConfigMap and Pod that make up one notebook compute host"""

    BOOTSTRAP_MOUNT = "/bootstrap"
    WORKDIR_VOLUME = "workdir-volume"

    def __init__(
            self,
            namespace: str,
            image: str,
            resources: PodResources,
            workdir: str,
            instance_env: str,
            service_account: str | None = None,
            priority_class_name: str | None = None,
    ):
        self.namespace = namespace
        self.image = image
        self.resources = resources
        self.workdir = workdir
        self.instance_env = instance_env
        self.service_account = service_account
        self.priority_class_name = priority_class_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotebookHostPodBuilder":
        return cls(
            namespace=settings.K8S_NAMESPACE,
            image=settings.K8S_EXECUTOR_IMAGE,
            resources=PodResources(
                cpu_request=settings.K8S_POD_CPU_REQUEST,
                cpu_limit=settings.K8S_POD_CPU_LIMIT,
                memory_request=settings.K8S_POD_MEMORY_REQUEST,
                memory_limit=settings.K8S_POD_MEMORY_LIMIT,
            ),
            workdir=settings.EXECUTOR_WORKDIR,
            instance_env=settings.HOST_INSTANCE_ENV,
            service_account=settings.K8S_SERVICE_ACCOUNT,
            priority_class_name=settings.K8S_POD_PRIORITY_CLASS_NAME,
        )

    @staticmethod
    def pod_name(execution_id: str) -> str:
        return f"notebook-{execution_id}"

    @staticmethod
    def config_map_name(execution_id: str) -> str:
        return f"bootstrap-{execution_id}"

    def build_config_map(self, execution_id: str, bootstrap_script: str) -> k8s_client.V1ConfigMap:
        """Build ConfigMap carrying the on-start bootstrap script"""

        return k8s_client.V1ConfigMap(
            api_version="v1",
            kind="ConfigMap",
            metadata=k8s_client.V1ObjectMeta(
                name=self.config_map_name(execution_id),
                namespace=self.namespace,
                labels=self._labels(execution_id, component="bootstrap"),
            ),
            data={BOOTSTRAP_FILE_NAME: bootstrap_script},
        )

    def build_pod_manifest(self, execution_id: str, env: dict[str, str]) -> k8s_client.V1Pod:
        """Build the host pod; it runs the bootstrap script on start and never restarts"""

        container = self._build_container(execution_id, env)
        return k8s_client.V1Pod(
            api_version="v1",
            kind="Pod",
            metadata=k8s_client.V1ObjectMeta(
                name=self.pod_name(execution_id),
                namespace=self.namespace,
                labels=self._labels(execution_id, component="notebook-host"),
            ),
            spec=k8s_client.V1PodSpec(
                containers=[container],
                restart_policy="Never",
                service_account_name=self.service_account,
                priority_class_name=self.priority_class_name,
                volumes=[
                    k8s_client.V1Volume(
                        name="bootstrap-volume",
                        config_map=k8s_client.V1ConfigMapVolumeSource(
                            name=self.config_map_name(execution_id),
                            default_mode=0o755,
                        ),
                    ),
                    k8s_client.V1Volume(
                        name=self.WORKDIR_VOLUME,
                        empty_dir=k8s_client.V1EmptyDirVolumeSource(),
                    ),
                ],
                security_context=k8s_client.V1PodSecurityContext(
                    run_as_non_root=True,
                    run_as_user=1000,
                    run_as_group=1000,
                    fs_group=1000,
                ),
                enable_service_links=False,
            ),
        )

    def _build_container(self, execution_id: str, env: dict[str, str]) -> k8s_client.V1Container:
        env_vars = [
            # The executor stops its own host by name
            k8s_client.V1EnvVar(
                name=self.instance_env,
                value_from=k8s_client.V1EnvVarSource(
                    field_ref=k8s_client.V1ObjectFieldSelector(field_path="metadata.name")
                ),
            ),
            k8s_client.V1EnvVar(name="EXECUTION_ID", value=execution_id),
        ]
        env_vars.extend(k8s_client.V1EnvVar(name=name, value=value) for name, value in sorted(env.items()))

        return k8s_client.V1Container(
            name="executor",
            image=self.image,
            command=["/bin/bash", f"{self.BOOTSTRAP_MOUNT}/{BOOTSTRAP_FILE_NAME}"],
            working_dir=self.workdir,
            env=env_vars,
            volume_mounts=[
                k8s_client.V1VolumeMount(name="bootstrap-volume", mount_path=self.BOOTSTRAP_MOUNT),
                k8s_client.V1VolumeMount(name=self.WORKDIR_VOLUME, mount_path=self.workdir),
            ],
            resources=k8s_client.V1ResourceRequirements(
                requests={"cpu": self.resources.cpu_request, "memory": self.resources.memory_request},
                limits={"cpu": self.resources.cpu_limit, "memory": self.resources.memory_limit},
            ),
            security_context=k8s_client.V1SecurityContext(
                allow_privilege_escalation=False,
                capabilities=k8s_client.V1Capabilities(drop=["ALL"]),
            ),
        )

    @staticmethod
    def _labels(execution_id: str, component: str) -> dict[str, str]:
        return {"app": "greenrun", "component": component, "execution-id": execution_id}
