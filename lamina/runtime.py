from enum import Enum
from typing import Final


class RuntimeType(Enum):
    NODE = "node"
    PYTHON = "python"
    UNSUPPORTED = "unsupported"


_RUNTIME_PREFIXES: Final[tuple[tuple[str, RuntimeType], ...]] = (
    ("nodejs", RuntimeType.NODE),
    ("python", RuntimeType.PYTHON),
)


def classify_runtime(runtime: str | None) -> RuntimeType:
    """Map a Lambda runtime identifier to its runtime family.

    For "nodejs12.x" → NODE
    For "python3.8" → PYTHON
    For "go1.10", "" or None → UNSUPPORTED
    """
    if not runtime:
        return RuntimeType.UNSUPPORTED
    for prefix, runtime_type in _RUNTIME_PREFIXES:
        if runtime.startswith(prefix):
            return runtime_type
    return RuntimeType.UNSUPPORTED
