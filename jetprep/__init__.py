"""jetprep — idempotent Jetson host preparation for a CUDA toolchain."""

__version__ = "0.1.0"
