"""
The CUDA 10.x compatibility block for ggml's CUDA backend.

cuBLAS on CUDA 10.2 has no ``cublasComputeType_t`` and names its
compute types after the data types. The block maps the CUDA 11 names
onto the 10.x ones, only when building against CUDA < 11.
"""

from __future__ import annotations

MARKER = "JETPREP_CUDA10_COMPAT"

TARGET_FILENAME = "common.cuh"

# Relative to each search root, most specific first
CANDIDATE_PATHS: tuple[str, ...] = (
    "ggml/src/ggml-cuda/common.cuh",
    "ggml-cuda/common.cuh",
    "src/ggml-cuda/common.cuh",
    "common.cuh",
)

COMPAT_BLOCK = f"""\
// {MARKER}: cuBLAS names missing from CUDA 10.x (Jetson, JetPack 4)
#if defined(CUDART_VERSION) && CUDART_VERSION < 11000
#ifndef CUBLAS_COMPUTE_16F
#define CUBLAS_COMPUTE_16F CUDA_R_16F
#endif
#ifndef CUBLAS_COMPUTE_32F
#define CUBLAS_COMPUTE_32F CUDA_R_32F
#endif
#ifndef CUBLAS_TF32_TENSOR_OP_MATH
#define CUBLAS_TF32_TENSOR_OP_MATH CUBLAS_TENSOR_OP_MATH
#endif
#ifndef cublasComputeType_t
#define cublasComputeType_t cudaDataType_t
#endif
#endif // CUDART_VERSION < 11000
"""
