"""Structural element types for every construct family.

Every element is an ``Interval`` (global char offsets) plus the fields its
family needs. Elements are frozen; relations between elements (an open tag
and its close tag) are plain indices into the owning index, never object
references.

Family vocabulary:
  comment     ``<!-- ... -->``
  tag         ``<name attr="v">``, ``</name>``, ``<name />``
  template    ``{{Name|a|b=c}}``
  internal    ``[[Target#anchor|text]]``
  external    ``[http://x text]`` or bare ``http://x``
  interwiki   ``[[prefix:Target|text]]`` for configured wiki prefixes
  language    ``[[fr:Cible]]`` inter-language links
  category    ``[[Category:Name|sort]]``
  title       ``== Heading ==`` lines
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from wikicheck.interval import Interval

type Family = Literal[
    "comment", "tag", "template", "internal", "external",
    "interwiki", "language", "category", "title",
]
type TagRole = Literal["open", "close", "full"]

FAMILIES: tuple[Family, ...] = (
    "comment", "tag", "template", "internal", "external",
    "interwiki", "language", "category", "title",
)

# ---------------------------------------------------------------------------
# Tag vocabulary
# ---------------------------------------------------------------------------

# Wiki-only pseudo tags (parser extension tags)
WIKI_TAGS: frozenset[str] = frozenset({
    "ce", "chem", "gallery", "graph", "hiero", "imagemap", "includeonly",
    "indicator", "inputbox", "mapframe", "math", "noinclude", "nowiki",
    "onlyinclude", "poem", "pre", "ref", "references", "score", "section",
    "source", "syntaxhighlight", "templatedata", "templatestyles",
    "timeline",
})

HTML_TAGS: frozenset[str] = frozenset({
    "a", "abbr", "b", "bdi", "bdo", "big", "blockquote", "br", "caption",
    "center", "cite", "code", "data", "dd", "del", "dfn", "div", "dl", "dt",
    "em", "font", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "ins",
    "kbd", "li", "mark", "ol", "p", "q", "rb", "rp", "rt", "rtc", "ruby",
    "s", "samp", "small", "span", "strike", "strong", "sub", "sup", "table",
    "td", "th", "time", "tr", "tt", "u", "ul", "var", "wbr",
})

# Tags whose content is not parsed as markup: nothing inside them is a tag,
# a template or a link.
VERBATIM_TAGS: frozenset[str] = frozenset({
    "chem", "ce", "graph", "hiero", "math", "nowiki", "pre", "score",
    "source", "syntaxhighlight", "templatedata", "timeline",
})

# HTML void elements: an open tag never expects a close tag.
VOID_TAGS: frozenset[str] = frozenset({"br", "hr", "wbr"})

KNOWN_TAGS: frozenset[str] = WIKI_TAGS | HTML_TAGS


def normalize_tag_name(name: str) -> str:
    return name.strip().lower()


def tag_type_for(name: str) -> str | None:
    """Return the vocabulary entry for a tag name, or None when unknown."""
    normalized = normalize_tag_name(name)
    return normalized if normalized in KNOWN_TAGS else None


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Comment(Interval):
    """An HTML comment. Unterminated comments run to end of text."""

    complete: bool = True


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TagParameter:
    """One ``name="value"`` attribute inside a tag."""

    name: str
    value: str | None
    name_interval: Interval
    value_interval: Interval | None


@dataclass(frozen=True, slots=True)
class Tag(Interval):
    """A single ``<...>`` tag occurrence.

    For an open tag paired with a close tag, ``match_index`` is the position
    of the close tag in the owning ``TagIndex`` (and the other way round).
    ``complete_begin``/``complete_end`` span the whole ``<x>...</x>`` pair;
    ``value_begin``/``value_end`` span the content between them.
    """

    name: str = ""
    tag_type: str | None = None
    role: TagRole = "open"
    parameters: tuple[TagParameter, ...] = ()
    match_index: int = -1
    complete: bool = False
    complete_begin: int = -1
    complete_end: int = -1
    value_begin: int = -1
    value_end: int = -1

    @property
    def is_full_tag(self) -> bool:
        return self.role == "full"

    @property
    def is_end_tag(self) -> bool:
        return self.role == "close"

    @property
    def complete_interval(self) -> Interval:
        if self.complete_begin < 0:
            return Interval(self.begin, self.end)
        return Interval(self.complete_begin, self.complete_end)

    def parameter(self, name: str) -> TagParameter | None:
        wanted = name.lower()
        for param in self.parameters:
            if param.name.lower() == wanted:
                return param
        return None

    def is_type(self, *types: str) -> bool:
        return self.tag_type is not None and self.tag_type in types


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TemplateParameter(Interval):
    """One ``|name=value`` or ``|value`` argument.

    The interval starts at the pipe and ends before the next pipe or the
    closing braces. ``computed_name`` is the explicit name, or the 1-based
    positional number for unnamed arguments.
    """

    name: str | None = None
    computed_name: str = ""
    name_interval: Interval | None = None
    value: str = ""
    value_interval: Interval = field(default_factory=lambda: Interval(0, 0))

    @property
    def pipe_index(self) -> int:
        return self.begin


@dataclass(frozen=True, slots=True)
class Template(Interval):
    """A ``{{...}}`` transclusion with its ordered parameters."""

    name: str = ""
    name_interval: Interval = field(default_factory=lambda: Interval(0, 0))
    parameters: tuple[TemplateParameter, ...] = ()

    @property
    def pipe_offsets(self) -> tuple[int, ...]:
        return tuple(p.pipe_index for p in self.parameters)

    def parameter(self, name: str) -> TemplateParameter | None:
        for param in self.parameters:
            if param.computed_name == name:
                return param
        return None

    def parameter_at(self, offset: int) -> TemplateParameter | None:
        for param in self.parameters:
            if param.begin <= offset < param.end:
                return param
        return None


def normalize_template_name(name: str) -> str:
    """First letter upper-cased, underscores as spaces, runs collapsed."""
    cleaned = " ".join(name.replace("_", " ").split())
    if not cleaned:
        return ""
    return cleaned[0].upper() + cleaned[1:]


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class InternalLink(Interval):
    """``[[Target#anchor|display]]``."""

    target: str = ""
    target_interval: Interval = field(default_factory=lambda: Interval(0, 0))
    anchor: str | None = None
    anchor_interval: Interval | None = None
    display: str | None = None
    display_interval: Interval | None = None

    @property
    def full_target(self) -> str:
        if self.anchor is None:
            return self.target
        return f"{self.target}#{self.anchor}"

    @property
    def displayed_text(self) -> str:
        return self.display if self.display is not None else self.full_target


@dataclass(frozen=True, slots=True)
class ExternalLink(Interval):
    """``[http://url display]`` or a bare URL (``bracketed=False``)."""

    url: str = ""
    url_interval: Interval = field(default_factory=lambda: Interval(0, 0))
    display: str | None = None
    display_interval: Interval | None = None
    bracketed: bool = True


@dataclass(frozen=True, slots=True)
class InterwikiLink(Interval):
    """``[[wikt:word|display]]`` pointing at a sister project."""

    prefix: str = ""
    target: str = ""
    target_interval: Interval = field(default_factory=lambda: Interval(0, 0))
    display: str | None = None
    display_interval: Interval | None = None


@dataclass(frozen=True, slots=True)
class LanguageLink(Interval):
    """``[[fr:Titre]]`` inter-language link (no display text)."""

    language: str = ""
    target: str = ""
    target_interval: Interval = field(default_factory=lambda: Interval(0, 0))


@dataclass(frozen=True, slots=True)
class Category(Interval):
    """``[[Category:Name|sort key]]``."""

    name: str = ""
    name_interval: Interval = field(default_factory=lambda: Interval(0, 0))
    sort_key: str | None = None
    sort_key_interval: Interval | None = None


# ---------------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Title(Interval):
    """A section heading line.

    ``first_level``/``second_level`` are the lengths of the opening and
    closing ``=`` runs; they may differ. ``after_interval`` covers whatever
    follows the closing run on the line (whitespace, comments, refs).
    """

    first_level: int = 0
    second_level: int = 0
    title: str = ""
    title_interval: Interval = field(default_factory=lambda: Interval(0, 0))
    after_interval: Interval = field(default_factory=lambda: Interval(0, 0))
    multiline: bool = False

    @property
    def level(self) -> int:
        return min(self.first_level, self.second_level)

    @property
    def coherent(self) -> bool:
        return self.first_level == self.second_level

    @property
    def after_title_index(self) -> int:
        return self.after_interval.begin
