"""taintgate - trust-based shell command gating for autonomous agents."""

__version__ = "0.1.0"
