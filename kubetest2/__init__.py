"""Kubernetes end-to-end test tooling: root command, exec tester, flags and run metadata."""

__version__ = "0.1.0"