"""Read-only analysis facade over one immutable document snapshot.

Each construct family is indexed lazily on first access and cached for the
lifetime of the snapshot. Build order is leaves first:

  comment  →  tag  →  template / links / title

and each builder only reaches the families it depends on through this
facade. Editing the text never patches an index: ``with_text`` returns a new
analysis.
"""
from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from wikicheck.comment_index import build_comment_index
from wikicheck.elements import (
    FAMILIES,
    VERBATIM_TAGS,
    Category,
    Comment,
    ExternalLink,
    Family,
    InternalLink,
    InterwikiLink,
    LanguageLink,
    Tag,
    Template,
    TemplateParameter,
    Title,
    normalize_template_name,
)
from wikicheck.interval import ElementIndex, Interval
from wikicheck.link_index import LinkScan, scan_links
from wikicheck.tag_index import TagIndex, build_tag_index
from wikicheck.template_index import build_template_index
from wikicheck.title_index import build_title_index

# ---------------------------------------------------------------------------
# Page metadata (supplied by the document repository, never fetched here)
# ---------------------------------------------------------------------------

NS_MAIN = 0
NS_TALK = 1
NS_USER = 2
NS_PROJECT = 4
NS_FILE = 6
NS_TEMPLATE = 10
NS_HELP = 12
NS_CATEGORY = 14


@dataclass(frozen=True, slots=True)
class PageMetadata:
    """Minimal page description needed by detectors."""

    title: str = ""
    namespace: int = NS_MAIN

    @property
    def is_talk_page(self) -> bool:
        return self.namespace % 2 == 1

    @property
    def is_main_namespace(self) -> bool:
        return self.namespace == NS_MAIN


# ---------------------------------------------------------------------------
# DocumentAnalysis
# ---------------------------------------------------------------------------

_LINK_FAMILIES: frozenset[str] = frozenset({
    "internal", "external", "interwiki", "language", "category",
})


class DocumentAnalysis:
    """Facade answering positional queries over one text snapshot.

    All queries are pure functions of the snapshot. Index construction is
    serialized by a lock so that detectors running in parallel threads can
    share one analysis; once built, indices are read without locking.
    """

    __slots__ = ("_text", "_metadata", "_cache", "_lock")

    def __init__(self, text: str, metadata: PageMetadata | None = None) -> None:
        if not isinstance(text, str):
            raise TypeError(f"document text must be str, got {type(text).__name__}")
        self._text = text
        self._metadata = metadata if metadata is not None else PageMetadata()
        self._cache: dict[str, Any] = {}
        self._lock = threading.RLock()

    # -- snapshot ------------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def metadata(self) -> PageMetadata:
        return self._metadata

    def with_text(self, text: str) -> DocumentAnalysis:
        """New analysis over edited text; this one is left untouched."""
        return DocumentAnalysis(text, self._metadata)

    def substring(self, interval: Interval) -> str:
        return self._text[interval.begin:interval.end]

    # -- page predicates -----------------------------------------------------

    def is_article_namespace(self) -> bool:
        return self._metadata.is_main_namespace

    def is_main_namespace(self) -> bool:
        return self._metadata.is_main_namespace

    @property
    def namespace(self) -> int:
        return self._metadata.namespace

    @property
    def page_title(self) -> str:
        return self._metadata.title

    # -- lazy index construction --------------------------------------------

    def _cached[V](self, key: str, build: Callable[[], V]) -> V:
        value = self._cache.get(key)
        if value is not None:
            return value
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                value = build()
                self._cache[key] = value
            return value

    def built_families(self) -> tuple[str, ...]:
        """Index keys built so far (diagnostics and tests)."""
        return tuple(sorted(self._cache))

    def _comment_index(self) -> ElementIndex[Comment]:
        return self._cached("comment", lambda: build_comment_index(self._text))

    def _tag_index(self) -> TagIndex:
        return self._cached(
            "tag", lambda: build_tag_index(self._text, self._comment_index()),
        )

    def _template_index(self) -> ElementIndex[Template]:
        return self._cached(
            "template",
            lambda: build_template_index(
                self._text, self._comment_index(), self._tag_index(),
                self.is_in_verbatim,
            ),
        )

    def _link_scan(self) -> LinkScan:
        return self._cached(
            "links",
            lambda: scan_links(self._text, self._comment_index(), self._is_link_excluded),
        )

    def _link_index(self, family: str) -> ElementIndex[Any]:
        return self._cached(
            family, lambda: ElementIndex(getattr(self._link_scan(), family)),
        )

    def _title_index(self) -> ElementIndex[Title]:
        return self._cached(
            "title",
            lambda: build_title_index(
                self._text, self._comment_index(), self._tag_index(),
                self.is_in_verbatim,
            ),
        )

    def _index(self, family: Family) -> ElementIndex[Any]:
        if family == "comment":
            return self._comment_index()
        if family == "tag":
            return self._tag_index().tags
        if family == "template":
            return self._template_index()
        if family == "title":
            return self._title_index()
        if family in _LINK_FAMILIES:
            return self._link_index(family)
        raise ValueError(f"unknown construct family {family!r}; expected one of {FAMILIES}")

    # -- generic queries -----------------------------------------------------

    def elements_of(self, family: Family) -> tuple[Any, ...]:
        """All elements of ``family`` in document order."""
        return self._index(family).all()

    def element_at(self, family: Family, offset: int) -> Any | None:
        """Innermost element of ``family`` whose range contains ``offset``."""
        return self._index(family).at(offset)

    def enclosing_of(self, family: Family, offset: int) -> Any | None:
        """Nearest element of ``family`` strictly containing ``offset``."""
        return self._index(family).enclosing(offset)

    # -- family accessors ----------------------------------------------------

    def comments(self) -> ElementIndex[Comment]:
        return self._comment_index()

    def tag_index(self) -> TagIndex:
        return self._tag_index()

    def tags(self, tag_type: str | None = None) -> tuple[Tag, ...]:
        index = self._tag_index()
        return index.all() if tag_type is None else index.of_type(tag_type)

    def complete_tags(self, tag_type: str) -> tuple[Tag, ...]:
        """Opening (or self-closing) tags of ``tag_type``, one per construct.

        Close tags are left out; an unclosed open tag is kept (incomplete).
        """
        return tuple(t for t in self._tag_index().of_type(tag_type) if t.role != "close")

    def matching_tag(self, tag: Tag) -> Tag | None:
        return self._tag_index().matching(tag)

    def templates(self, name: str | None = None) -> tuple[Template, ...]:
        templates = self._template_index().all()
        if name is None:
            return templates
        wanted = normalize_template_name(name)
        return tuple(t for t in templates if t.name == wanted)

    def internal_links(self) -> tuple[InternalLink, ...]:
        return self.elements_of("internal")

    def external_links(self) -> tuple[ExternalLink, ...]:
        return self.elements_of("external")

    def interwiki_links(self) -> tuple[InterwikiLink, ...]:
        return self.elements_of("interwiki")

    def language_links(self) -> tuple[LanguageLink, ...]:
        return self.elements_of("language")

    def categories(self) -> tuple[Category, ...]:
        return self.elements_of("category")

    def titles(self) -> tuple[Title, ...]:
        return self._title_index().all()

    # -- composite queries ---------------------------------------------------

    def is_in_comment(self, offset: int) -> bool:
        return self._comment_index().at(offset) is not None

    def comment_at(self, offset: int) -> Comment | None:
        return self._comment_index().at(offset)

    def tag_at(self, offset: int) -> Tag | None:
        """Tag whose own ``<...>`` text contains ``offset``."""
        return self._tag_index().tags.at(offset)

    def surrounding_tag(self, tag_type: str, offset: int) -> Tag | None:
        """Nearest complete ``tag_type`` construct whose whole range contains offset."""
        return self._tag_index().surrounding(tag_type, offset)

    def surrounding_any(self, tag_types: Iterable[str], offset: int) -> Tag | None:
        wanted = frozenset(tag_types)
        for tag in reversed(self._tag_index().pairs.covering(offset)):
            if tag.tag_type in wanted:
                return tag
        return None

    def is_in_verbatim(self, offset: int, tag_types: Iterable[str] = VERBATIM_TAGS) -> bool:
        """True when ``offset`` lies inside a verbatim tag's content."""
        wanted = frozenset(tag_types)
        for tag in self._tag_index().pairs.covering(offset):
            if tag.tag_type in wanted and tag.value_begin <= offset < tag.value_end:
                return True
        return False

    def _is_link_excluded(self, offset: int) -> bool:
        return self.tag_at(offset) is not None or self.is_in_verbatim(offset)

    def template_at(self, offset: int) -> Template | None:
        return self._template_index().at(offset)

    def template_parameter_at(
        self, template_name: str, offset: int,
    ) -> tuple[Template, TemplateParameter] | None:
        """Parameter of the nearest ``template_name`` template containing offset."""
        wanted = normalize_template_name(template_name)
        for template in reversed(self._template_index().covering(offset)):
            if template.name == wanted:
                param = template.parameter_at(offset)
                if param is not None:
                    return template, param
        return None

    def internal_link_at(self, offset: int) -> InternalLink | None:
        return self.element_at("internal", offset)

    def category_at(self, offset: int) -> Category | None:
        return self.element_at("category", offset)

    def title_at(self, offset: int) -> Title | None:
        return self._title_index().at(offset)

    def titles_reliable(self) -> bool:
        """False when a heading line sits inside an unclosed construct.

        An unterminated comment or an unclosed verbatim tag makes the title
        scan unreliable for whole-document rewrites.
        """
        if any(not c.complete for c in self._comment_index()):
            return False
        for tag in self._tag_index().all():
            if tag.role == "open" and not tag.complete and tag.tag_type in VERBATIM_TAGS:
                return False
        return True
