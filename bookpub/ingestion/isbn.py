"""ISBN-13 title key validation."""

import logging
import re

from bookpub.errors import InvalidTitleKeyError

logger = logging.getLogger(__name__)

ISBN_NUMBER_LENGTH = 13
ISBN_PATTERN = re.compile(r"(978|979)[0-9]{10}")


def is_isbn(value: str) -> bool:
    """Return True if ``value`` is exactly a 978/979-prefixed ISBN-13."""
    return ISBN_PATTERN.fullmatch(value) is not None


def extract_isbn(filename: str) -> str:
    """Extract the ISBN from the start of a filename.

    Only the first 13 characters of the trimmed filename are considered,
    an ISBN anywhere else in the name is not looked for.

    Args:
        filename: A filename such as ``9780486282145-Chapter-001.xhtml``.

    Returns:
        The 13 digit ISBN.

    Raises:
        InvalidTitleKeyError: If the filename does not start with an ISBN.
    """
    isbn = filename.strip()[:ISBN_NUMBER_LENGTH]
    if not is_isbn(isbn):
        logger.error("Could not extract ISBN number from [%s]", filename)
        raise InvalidTitleKeyError(f"Could not extract ISBN number from [{filename}]")
    return isbn
