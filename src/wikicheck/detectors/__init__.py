"""Built-in detectors; importing this package registers every one of them."""

from wikicheck.detectors.ascii_arrow import AsciiArrowDetector
from wikicheck.detectors.duplicate_heading import DuplicateHeadingDetector
from wikicheck.detectors.duplicate_reference import DuplicateReferenceDetector
from wikicheck.detectors.heading_close import HeadingCloseDetector
from wikicheck.detectors.ref_name_conflict import RefNameConflictDetector
from wikicheck.detectors.unclosed_tags import UnclosedTagsDetector

__all__ = [
    "AsciiArrowDetector",
    "DuplicateHeadingDetector",
    "DuplicateReferenceDetector",
    "HeadingCloseDetector",
    "RefNameConflictDetector",
    "UnclosedTagsDetector",
]
