"""Link scanner: every ``[[...]]`` flavor plus external links.

One pass over ``[[`` classifies each bracketed link by its prefix:

  ``[[Category:X|key]]``   category (unless written ``[[:Category:X]]``)
  ``[[fr:Titre]]``         inter-language link
  ``[[wikt:word]]``        interwiki link (also ``[[:fr:Titre]]``)
  anything else            internal link, ``#anchor`` and ``|display`` split

A second pass finds external links: ``[scheme://url display]`` and bare URLs
outside any bracketed link or tag.
"""
from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from wikicheck.elements import (
    Category,
    Comment,
    ExternalLink,
    InternalLink,
    InterwikiLink,
    LanguageLink,
)
from wikicheck.interval import ElementIndex, Interval, drop_crossing

CATEGORY_PREFIXES: frozenset[str] = frozenset({"category"})

LANGUAGE_CODES: frozenset[str] = frozenset({
    "ar", "ca", "cs", "da", "de", "el", "en", "eo", "es", "et", "eu", "fa",
    "fi", "fr", "he", "hu", "id", "it", "ja", "ko", "la", "lt", "ms", "nl",
    "nn", "no", "pl", "pt", "ro", "ru", "simple", "sk", "sl", "sr", "sv",
    "th", "tr", "uk", "vi", "zh",
})

INTERWIKI_PREFIXES: frozenset[str] = frozenset({
    "b", "commons", "d", "m", "meta", "mw", "n", "phab", "q", "s", "species",
    "v", "voy", "wikibooks", "wikidata", "wikinews", "wikiquote",
    "wikisource", "wikispecies", "wikiversity", "wikivoyage", "wikt",
    "wiktionary",
})

# Characters that cannot appear in a link target.
_TARGET_FORBIDDEN = "\n[]{}<>"

_URL_SCHEMES = r"(?:https?://|ftp://|ftps://|irc://|ircs://|news:|mailto:|//)"
_BRACKETED_EXTERNAL_RE = re.compile(
    r"\[(?P<url>" + _URL_SCHEMES + r"[^\s\[\]<>\"]+)(?P<sep>[ \t]*)(?P<display>[^\]\n]*)\]",
    re.IGNORECASE,
)
_BARE_URL_RE = re.compile(
    r"(?<![\w/\[])(?P<url>(?:https?|ftp)://[^\s<>\[\]{}|\"]+)",
    re.IGNORECASE,
)
# MediaWiki drops these from the end of a bare URL.
_BARE_URL_TRAILING = ".,;:!?)'"


@dataclass(slots=True)
class LinkScan:
    """All link families found in one document."""

    internal: list[InternalLink] = field(default_factory=list[InternalLink])
    external: list[ExternalLink] = field(default_factory=list[ExternalLink])
    interwiki: list[InterwikiLink] = field(default_factory=list[InterwikiLink])
    language: list[LanguageLink] = field(default_factory=list[LanguageLink])
    category: list[Category] = field(default_factory=list[Category])


def _find_link_end(text: str, pos: int) -> int:
    """Offset just after the ``]]`` matching the ``[[`` at ``pos``, or -1."""
    depth = 0
    i = pos
    while i < len(text):
        if text.startswith("[[", i):
            depth += 1
            i += 2
        elif text.startswith("]]", i):
            depth -= 1
            i += 2
            if depth == 0:
                return i
        else:
            i += 1
    return -1


def _split_prefix(target: str) -> tuple[str, str] | None:
    colon = target.find(":")
    if colon <= 0:
        return None
    return target[:colon].strip().lower(), target[colon + 1:]


def _classify(
    scan: LinkScan, text: str, begin: int, end: int,
) -> bool:
    """Append the link at ``[begin, end)`` to its family; False if not a link."""
    inner_begin = begin + 2
    inner_end = end - 2
    pipe = text.find("|", inner_begin, inner_end)
    target_end = inner_end if pipe < 0 else pipe
    raw_target = text[inner_begin:target_end]
    if not raw_target.strip() or any(c in raw_target for c in _TARGET_FORBIDDEN):
        return False
    display: str | None = None
    display_interval: Interval | None = None
    if pipe >= 0:
        display = text[pipe + 1:inner_end]
        display_interval = Interval(pipe + 1, inner_end)

    leading_colon = raw_target.lstrip().startswith(":")
    target_begin = inner_begin + (len(raw_target) - len(raw_target.lstrip()))
    if leading_colon:
        target_begin = text.index(":", target_begin) + 1
    target = text[target_begin:target_end].strip()
    target_interval = Interval(target_begin, target_begin + len(text[target_begin:target_end].rstrip()))
    split = _split_prefix(target)

    if split is not None:
        prefix, rest = split
        rest_begin = text.index(":", target_begin) + 1
        rest_interval = Interval(rest_begin, max(rest_begin, target_interval.end))
        if prefix in CATEGORY_PREFIXES and not leading_colon:
            scan.category.append(Category(
                begin, end,
                name=rest.strip(),
                name_interval=rest_interval,
                sort_key=display,
                sort_key_interval=display_interval,
            ))
            return True
        if prefix in LANGUAGE_CODES and not leading_colon:
            scan.language.append(LanguageLink(
                begin, end,
                language=prefix,
                target=rest.strip(),
                target_interval=rest_interval,
            ))
            return True
        if prefix in INTERWIKI_PREFIXES or prefix in LANGUAGE_CODES:
            scan.interwiki.append(InterwikiLink(
                begin, end,
                prefix=prefix,
                target=rest.strip(),
                target_interval=rest_interval,
                display=display,
                display_interval=display_interval,
            ))
            return True

    anchor: str | None = None
    anchor_interval: Interval | None = None
    hash_pos = text.find("#", target_interval.begin, target_interval.end)
    if hash_pos >= 0:
        anchor = text[hash_pos + 1:target_interval.end]
        anchor_interval = Interval(hash_pos + 1, target_interval.end)
        target = text[target_interval.begin:hash_pos].strip()
        target_interval = Interval(target_interval.begin, hash_pos)
    scan.internal.append(InternalLink(
        begin, end,
        target=target,
        target_interval=target_interval,
        anchor=anchor,
        anchor_interval=anchor_interval,
        display=display,
        display_interval=display_interval,
    ))
    return True


def scan_links(
    text: str,
    comments: ElementIndex[Comment] | None = None,
    is_excluded: Callable[[int], bool] | None = None,
) -> LinkScan:
    """Scan every link family.

    ``is_excluded`` marks offsets (verbatim tag content, tag attributes)
    where nothing is a link.
    """
    def skip(pos: int) -> bool:
        if comments is not None and comments.at(pos) is not None:
            return True
        return is_excluded is not None and is_excluded(pos)

    scan = LinkScan()
    covered: list[Interval] = []
    pos = text.find("[[")
    while pos >= 0:
        if skip(pos):
            pos = text.find("[[", pos + 2)
            continue
        end = _find_link_end(text, pos)
        if end > 0 and _classify(scan, text, pos, end):
            covered.append(Interval(pos, end))
        pos = text.find("[[", pos + 2)

    for m in _BRACKETED_EXTERNAL_RE.finditer(text):
        if m.start() > 0 and text[m.start() - 1] == "[":
            continue
        if skip(m.start()):
            continue
        display = m.group("display") or None
        scan.external.append(ExternalLink(
            m.start(), m.end(),
            url=m.group("url"),
            url_interval=Interval(m.start("url"), m.end("url")),
            display=display,
            display_interval=Interval(m.start("display"), m.end("display")) if display else None,
            bracketed=True,
        ))
    covered.extend(link.interval for link in scan.external)
    covered_index = ElementIndex(covered)

    for m in _BARE_URL_RE.finditer(text):
        begin = m.start("url")
        if skip(begin) or covered_index.at(begin) is not None:
            continue
        url = m.group("url")
        while url and url[-1] in _BARE_URL_TRAILING:
            if url[-1] == ")" and "(" in url:
                break
            url = url[:-1]
        end = begin + len(url)
        scan.external.append(ExternalLink(
            begin, end,
            url=url,
            url_interval=Interval(begin, end),
            bracketed=False,
        ))

    scan.internal = drop_crossing(scan.internal)
    scan.external = drop_crossing(scan.external)
    scan.interwiki = drop_crossing(scan.interwiki)
    scan.language = drop_crossing(scan.language)
    scan.category = drop_crossing(scan.category)
    return scan
