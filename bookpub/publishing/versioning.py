"""Published version numbering."""

from bookpub.storage.content_store import NodeRef
from bookpub.storage.repository import TitleRepository

FIRST_VERSION = "1.0"


def next_version(current: str | None) -> str:
    """Return the version following ``current``.

    Only the major component counts: ``"1.0"`` becomes ``"2.0"`` and
    ``"10.3"`` becomes ``"11.0"``. A missing or blank version gives
    ``"1.0"``.

    Raises:
        ValueError: If the major component is not a number.
    """
    if current is None or not current.strip():
        return FIRST_VERSION
    major = current.strip().split(".", 1)[0]
    return f"{int(major) + 1}.0"


def get_next_version(repository: TitleRepository, title_ref: NodeRef) -> str:
    """Return the version the next publish of a title will get."""
    return next_version(repository.get_published_version(title_ref))
