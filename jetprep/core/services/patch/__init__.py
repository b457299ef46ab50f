"""CUDA 10.x compatibility patch for ggml's CUDA backend."""

from jetprep.core.services.patch.inserter import PatchResult, insert_patch, locate_target

__all__ = [
    "PatchResult",
    "insert_patch",
    "locate_target",
]
