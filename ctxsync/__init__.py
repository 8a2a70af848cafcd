"""ctxsync - keep kube contexts and AWS profiles in sync"""

__version__ = "0.1.0"
