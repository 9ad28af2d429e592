"""
Benchenv provisions and tears down ephemeral benchmark environments. It renders templated Kubernetes manifests with
caller-supplied variables and reconciles the resulting resources against a cluster, one resource at a time and in the
order in which they are declared.
"""

__version__ = "0.1.0"
