from .client import ModelClient, build_lm, is_transient_error, strip_code_fences

__all__ = [
    "ModelClient",
    "build_lm",
    "is_transient_error",
    "strip_code_fences",
]
