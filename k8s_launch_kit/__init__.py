"""
k8s-launch-kit: discover a Kubernetes cluster's networking hardware, select a
deployment profile and generate NVIDIA Network Operator manifests.
"""

__version__ = "0.1.0"
