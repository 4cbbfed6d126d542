"""Looking up cluster details through kubectl."""

from __future__ import annotations

import sys

from ..commands import CommandError, command, output

KUBECTL = "kubectl"


def _exec_and_result(name: str, *args: str) -> str:
    """Run a command and return its whole standard output."""
    cmd = command(name, *args)
    cmd.stderr = sys.stderr
    return output(cmd).decode(errors="replace")


def api_server_url() -> str:
    """Return the URL of the current context's API server, as kubectl reports it."""
    try:
        kube_context = _exec_and_result(
            KUBECTL, "config", "view", "-o", 'jsonpath="{.current-context}"'
        )
    except CommandError as exc:
        raise RuntimeError(f"Could not get kube context: {exc}") from exc

    try:
        cluster_name = _exec_and_result(
            KUBECTL, "config", "view", "-o",
            f'jsonpath="{{.contexts[?(@.name == {kube_context})].context.cluster}}"',
        )
    except CommandError as exc:
        raise RuntimeError(f"Could not get cluster name: {exc}") from exc

    return _exec_and_result(
        KUBECTL, "config", "view", "-o",
        f"jsonpath={{.clusters[?(@.name == {cluster_name})].cluster.server}}",
    )