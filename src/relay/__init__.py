"""
Relay - callback-style async coordination primitives.

``relay.coordination`` holds the kernel (``AsyncChain``, ``AsyncGroup``);
``relay.core`` holds the ambient layer (errors, logging, settings);
``relay.ops`` holds operations built on the kernel (shell commands).
"""

__version__ = "0.1.0"

from relay.coordination import (  # noqa: E402
    AsyncCall,
    AsyncChain,
    AsyncGroup,
    ChainControl,
    ErrorPolicy,
    RunStatus,
)

__all__ = [
    "__version__",
    "AsyncCall",
    "AsyncChain",
    "AsyncGroup",
    "ChainControl",
    "ErrorPolicy",
    "RunStatus",
]
