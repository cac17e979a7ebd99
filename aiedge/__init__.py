"""Edge model image tooling backed by a model registry and Tekton."""

__version__ = "0.1.0"
