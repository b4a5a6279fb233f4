"""USB transfer primitives: SETUP packets, buffers, completions, transfer handles and queues."""

__version__ = "0.1.0"
__all__ = ["buffer", "completion", "control", "internal", "queue"]