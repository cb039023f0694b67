"""Record extraction from site markup using ordered CSS selector strategies.

Each :class:`ExtractionProfile` owns a tuple of strategies. A strategy is a
pure function of a parsed :class:`Document` returning ``(record, candidates)``
where ``record`` is ``None`` (or empty) when the strategy did not recognise
the layout and ``candidates`` counts the elements it looked at. The first
strategy that yields a record wins; when none does, :func:`extract` returns a
:class:`NoMatch` holding the candidate counts of every strategy.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from selectolax.parser import HTMLParser, Node

from .errors import InvalidReference, ParseError
from .models import CatalogEntry
from .urls import absolute_url, canonical_url, file_extension, is_http_url, slug_from_url

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp", "gif", "avif"})

# Labels of the info table on an item page, keyed by record field.
INFO_FIELDS = {
    "title": "judul komik",
    "localized_title": "judul indonesia",
    "category": "jenis komik",
    "concept": "konsep cerita",
    "author": "pengarang",
    "status": "status",
    "age_rating": "umur pembaca",
    "reading_direction": "cara baca",
}


class ExtractionProfile(Enum):
    CATALOG_LISTING = "catalog-listing"
    ITEM_DETAIL = "item-detail"
    ITEM_IMAGES = "item-images"


@dataclass
class RawChapter:
    origin_url: str
    title: str
    date: str = ""


@dataclass
class RawItemDetail:
    """Item page fields before the cover URL is virtualized."""

    title: str
    localized_title: str = ""
    category: str = ""
    concept: str = ""
    synopsis: str = ""
    author: str = ""
    status: str = ""
    age_rating: str = ""
    reading_direction: str = ""
    genres: list[str] = field(default_factory=list)
    cover_url: str | None = None
    chapters: list[RawChapter] = field(default_factory=list)


@dataclass
class RawPage:
    origin_url: str
    alt_text: str = ""


@dataclass
class RawItemImages:
    title: str
    pages: list[RawPage] = field(default_factory=list)


@dataclass(frozen=True)
class Strategy:
    name: str
    run: Callable[["Document"], tuple[Any, int]]


@dataclass
class Extraction:
    profile: ExtractionProfile
    strategy: str
    record: Any
    diagnostics: dict[str, int]


@dataclass
class NoMatch:
    """Every strategy of ``profile`` came back empty."""

    profile: ExtractionProfile
    diagnostics: dict[str, int]


def clean_text(node: Node | None) -> str:
    """Node text with inner whitespace collapsed and ends trimmed."""
    if node is None:
        return ""
    return " ".join(node.text(separator=" ").split())


def scrub_category(text: str) -> str:
    """Keep alphabetic characters only: ``Manga (Jepang)!!`` -> ``MangaJepang``."""
    return "".join(char for char in text if char.isalpha())


class Document:
    """Parsed page with CSS helpers and URL completion against ``base_url``."""

    def __init__(self, markup: str | bytes, base_url: str):
        if isinstance(markup, bytes):
            markup = markup.decode("utf-8", errors="replace")
        if not isinstance(markup, str) or not markup.strip():
            raise ParseError("Upstream page is empty")
        try:
            self.tree = HTMLParser(markup)
        except Exception as e:
            raise ParseError(cause=type(e).__name__) from e
        if self.tree.root is None:
            raise ParseError()
        self.base_url = base_url

    def nodes(self, selector: str) -> list[Node]:
        return self.tree.css(selector)

    def css(self, selector: str, attribute: str | None = None) -> list[str]:
        """Extract data using CSS selector."""
        results = []

        for node in self.tree.css(selector):
            if attribute:
                attr_val = (node.attributes.get(attribute) or "").strip()
                if attr_val:
                    results.append(attr_val)
            else:
                text = clean_text(node)
                if text:
                    results.append(text)

        return results

    def css_first(self, selector: str, attribute: str | None = None) -> str | None:
        """Extract first match using CSS selector."""
        results = self.css(selector, attribute)
        return results[0] if results else None

    def first_text(self, *selectors: str) -> str:
        """Text of the first selector that matches non-blank text."""
        for selector in selectors:
            text = self.css_first(selector)
            if text:
                return text
        return ""

    def meta(self, name: str) -> str:
        """Content of a ``<meta>`` tag matched by ``property`` or ``name``."""
        return (
            self.css_first(f'meta[property="{name}"]', "content")
            or self.css_first(f'meta[name="{name}"]', "content")
            or ""
        )

    def absolute(self, href: str) -> str | None:
        """``href`` completed against the page URL, or None when it does not parse."""
        try:
            return absolute_url(href, self.base_url)
        except InvalidReference:
            logger.debug("Skipping malformed reference %r", href)
            return None


# -- catalog listing ------------------------------------------------------


def _catalog_entries(doc: Document, anchors: list[Node]) -> tuple[list[CatalogEntry], int]:
    entries = []
    seen: set[str] = set()

    for node in anchors:
        href = (node.attributes.get("href") or "").strip()
        title = clean_text(node) or (node.attributes.get("title") or "").strip()
        if not href or not title or href.startswith(("#", "javascript:")):
            continue

        url = doc.absolute(href)
        if not url or not is_http_url(url):
            continue
        key = canonical_url(url)
        if key in seen:
            continue
        seen.add(key)
        entries.append(CatalogEntry(origin_url=url, title=title, slug=slug_from_url(url)))

    return entries, len(anchors)


def catalog_from_listing_cards(doc: Document):
    return _catalog_entries(doc, doc.nodes(".ls4j h4 a, .daftar .kan a"))


def catalog_from_manga_links(doc: Document):
    return _catalog_entries(doc, doc.nodes('a[href*="/manga/"]'))


# -- item detail ----------------------------------------------------------


def parse_info_table(doc: Document) -> dict[str, str]:
    """Two-column info table as a mapping of lower-cased label to value."""
    table = {}
    for row in doc.nodes("table.inftable tr"):
        cells = row.css("td")
        if len(cells) < 2:
            continue
        label = clean_text(cells[0]).lower()
        if label:
            table.setdefault(label, clean_text(cells[1]))
    return table


def _image_src(node: Node) -> str:
    src = (node.attributes.get("data-src") or node.attributes.get("src") or "").strip()
    return "" if src.startswith("data:") else src


def _genres(doc: Document) -> list[str]:
    genres = doc.css("ul.genre li") or doc.css(".genre a")
    return list(dict.fromkeys(genres))


def _cover_url(doc: Document) -> str | None:
    for selector in ("#Informasi .ims img", ".ims img", ".thumb img"):
        node = doc.tree.css_first(selector)
        src = _image_src(node) if node is not None else ""
        url = doc.absolute(src) if src else None
        if url:
            return url
    og_image = doc.meta("og:image")
    return doc.absolute(og_image) if og_image else None


def _chapters(doc: Document) -> list[RawChapter]:
    chapters = []
    for row in doc.nodes("#Daftar_Chapter tr"):
        anchor = row.css_first("td.judulseries a") or row.css_first("a")
        if anchor is None:
            continue
        href = (anchor.attributes.get("href") or "").strip()
        url = doc.absolute(href) if href else None
        if not url:
            continue
        chapters.append(RawChapter(
            origin_url=url,
            title=clean_text(anchor),
            date=clean_text(row.css_first("td.tanggalseries")),
        ))
    return chapters


def _item_detail(doc: Document, title: str, table: dict[str, str]) -> RawItemDetail:
    fields = {name: table.get(label, "") for name, label in INFO_FIELDS.items()}
    fields["title"] = title
    fields["category"] = scrub_category(fields["category"])
    return RawItemDetail(
        **fields,
        synopsis=doc.first_text("#Sinopsis p", "p.desc", ".desc") or doc.meta("description"),
        genres=_genres(doc),
        cover_url=_cover_url(doc),
        chapters=_chapters(doc),
    )


def detail_from_info_table(doc: Document):
    table = parse_info_table(doc)
    title = table.get(INFO_FIELDS["title"], "")
    if not title:
        return None, len(table)
    return _item_detail(doc, title, table), len(table)


def detail_from_page_heading(doc: Document):
    headings = doc.nodes("h1")
    title = doc.first_text("#Judul h1", "h1") or doc.meta("og:title")
    if not title:
        return None, len(headings)
    return _item_detail(doc, title, parse_info_table(doc)), len(headings)


# -- chapter images -------------------------------------------------------


def _pages(doc: Document, nodes: list[Node]) -> list[RawPage]:
    pages = []
    for node in nodes:
        src = _image_src(node)
        if not src or "iklan" in src.lower():
            continue
        url = doc.absolute(src)
        if not url:
            continue
        pages.append(RawPage(
            origin_url=url,
            alt_text=(node.attributes.get("alt") or "").strip(),
        ))
    return pages


def _chapter_title(doc: Document) -> str:
    return doc.first_text("#Baca_Komik h1", "#Judul h1", "h1", "title")


def images_from_reader(doc: Document):
    nodes = doc.nodes("#Baca_Komik img")
    pages = _pages(doc, nodes)
    if not pages:
        return None, len(nodes)
    return RawItemImages(title=_chapter_title(doc), pages=pages), len(nodes)


def images_from_content(doc: Document):
    nodes = doc.nodes("img")
    candidates = [n for n in nodes if file_extension(_image_src(n), default="") in IMAGE_EXTENSIONS]
    pages = _pages(doc, candidates)
    if not pages:
        return None, len(nodes)
    return RawItemImages(title=_chapter_title(doc), pages=pages), len(nodes)


STRATEGIES: dict[ExtractionProfile, tuple[Strategy, ...]] = {
    ExtractionProfile.CATALOG_LISTING: (
        Strategy("listing_cards", catalog_from_listing_cards),
        Strategy("manga_links", catalog_from_manga_links),
    ),
    ExtractionProfile.ITEM_DETAIL: (
        Strategy("info_table", detail_from_info_table),
        Strategy("page_heading", detail_from_page_heading),
    ),
    ExtractionProfile.ITEM_IMAGES: (
        Strategy("reader_images", images_from_reader),
        Strategy("content_images", images_from_content),
    ),
}


def extract(
    profile: ExtractionProfile,
    markup: str | bytes,
    base_url: str,
    strategies: tuple[Strategy, ...] | None = None,
) -> Extraction | NoMatch:
    """Run the strategies of ``profile`` in order and return the first hit.

    Raises:
        ParseError: markup is empty or cannot be parsed at all.
    """
    doc = Document(markup, base_url)
    diagnostics: dict[str, int] = {}

    for strategy in strategies or STRATEGIES[profile]:
        record, candidates = strategy.run(doc)
        diagnostics[strategy.name] = candidates
        if record:
            logger.debug("%s matched by %s (%s)", profile.value, strategy.name, diagnostics)
            return Extraction(profile, strategy.name, record, diagnostics)

    logger.info("No strategy matched %s: %s", profile.value, diagnostics)
    return NoMatch(profile, diagnostics)
