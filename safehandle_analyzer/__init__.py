"""safehandle-analyzer: explain why leaked SafeHandle objects are still alive."""

__version__ = "0.1.0"
