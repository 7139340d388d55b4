"""Publishing: EPUB assembly, versioning and atomic delivery."""

from bookpub.publishing.assembler import ArtifactAssembler
from bookpub.publishing.publisher import PublishCoordinator
from bookpub.publishing.versioning import get_next_version, next_version

__all__ = ["ArtifactAssembler", "PublishCoordinator", "get_next_version", "next_version"]
