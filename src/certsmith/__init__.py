"""certsmith: self-signed TLS certificates as Kubernetes resources."""

__version__ = "0.1.0"
