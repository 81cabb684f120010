"""Services that talk to the ledger on behalf of the read model."""

from .metadata import MetadataResolver
from .bootstrap import BootstrapPipeline, BootstrapResult

__all__ = [
    "MetadataResolver",
    "BootstrapPipeline",
    "BootstrapResult",
]
