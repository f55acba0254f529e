"""ipfsdag - verified retrieval of UnixFS files from dag-pb merkle DAGs."""

from __future__ import annotations

__version__ = "0.1.0"

from ipfsdag.core.resolver import DagResolver
from ipfsdag.exceptions import IpfsDagError

__all__ = ["DagResolver", "IpfsDagError", "__version__"]
