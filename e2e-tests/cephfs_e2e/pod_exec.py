"""Run shell commands in the Rook toolbox pod or a node plugin pod."""

import logging

from .errors import TransportError
from .k8s_client import K8sClient
from .models import ExecResult

logger = logging.getLogger(__name__)


class PodExecutor:
    """Locate execution targets and run commands in them via kubectl exec."""

    def __init__(self, k8s: K8sClient, toolbox_label: str = "app=rook-ceph-tools"):
        """Initialize the executor.

        Args:
            k8s: K8sClient instance
            toolbox_label: Label selector of the toolbox pod
        """
        self.k8s = k8s
        self.toolbox_label = toolbox_label

    def _first_pod_name(self, pods: list[dict], what: str) -> str:
        if not pods:
            raise TransportError(f"no pod found for {what}")
        return pods[0]["metadata"]["name"]

    def _exec(
        self, pod: str, command: str, namespace: str, container: str | None = None
    ) -> ExecResult:
        logger.debug("exec in %s/%s: %s", namespace, pod, command)
        return self.k8s.exec_in_pod(
            pod, ["sh", "-c", command], container=container, namespace=namespace
        )

    def exec_in_toolbox_pod(self, command: str, namespace: str) -> ExecResult:
        """Run an administrative command in the toolbox pod.

        Args:
            command: Shell command line
            namespace: Namespace of the toolbox pod

        Returns:
            ExecResult of the command

        Raises:
            TransportError: No toolbox pod is running
        """
        pods = self.k8s.list_resources(
            "pods", namespace=namespace, label_selector=self.toolbox_label
        )
        pod = self._first_pod_name(pods, f"toolbox ({self.toolbox_label}) in {namespace}")
        return self._exec(pod, command, namespace)

    def exec_in_daemonset_pod(
        self,
        command: str,
        daemonset: str,
        node: str,
        container: str,
        namespace: str,
    ) -> ExecResult:
        """Run a command in the daemonset pod scheduled on a given node.

        Args:
            command: Shell command line
            daemonset: Daemonset name
            node: Node name the pod must run on
            container: Container to exec into
            namespace: Namespace of the daemonset

        Returns:
            ExecResult of the command

        Raises:
            TransportError: Daemonset or its pod on the node not found
        """
        ds = self.k8s.get_daemonset(daemonset, namespace=namespace)
        if not ds:
            raise TransportError(f"daemonset {namespace}/{daemonset} not found")

        match_labels = ds.get("spec", {}).get("selector", {}).get("matchLabels", {})
        selector = ",".join(f"{k}={v}" for k, v in sorted(match_labels.items()))
        pods = self.k8s.list_resources(
            "pods",
            namespace=namespace,
            label_selector=selector,
            field_selector=f"spec.nodeName={node}",
        )
        pod = self._first_pod_name(pods, f"{daemonset} on node {node}")
        return self._exec(pod, command, namespace, container=container)
