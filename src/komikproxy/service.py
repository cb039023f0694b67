"""Proxy operations composing the fetcher, extractor and URL virtualizer."""

import logging
from dataclasses import dataclass
from typing import Generic, TypeVar

from .config import ProxySettings, settings
from .core import Fetcher, HttpFetcher
from .errors import InvalidReference, NoMatchError, ProxyError, ResourceNotFound
from .extract import ExtractionProfile, NoMatch, extract
from .models import CatalogEntry, Chapter, ItemDetail, ItemImages, PageImage
from .store import MappingStore
from .urls import absolute_url, chapter_path, is_http_url, normalize_chapter_ref, validate_slug
from .virtualize import COVER, URLVirtualizer, split_resource_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ResourcePayload:
    """Upstream image bytes with the headers a transport should forward."""

    body: bytes
    content_type: str | None = None
    content_length: str | None = None


@dataclass
class OperationResult(Generic[T]):
    """Tagged outcome of a proxy operation: a value or a classified error."""

    value: T | None = None
    error: ProxyError | None = None
    note: dict | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, note: dict | None = None) -> "OperationResult[T]":
        return cls(value=value, note=note)

    @classmethod
    def failure(cls, error: ProxyError) -> "OperationResult[T]":
        return cls(error=error)


class ProxyService:
    """Read operations over the upstream site.

    Every public operation returns an :class:`OperationResult`; upstream,
    parse and lookup failures come back as classified errors, never raised.
    """

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        store: MappingStore | None = None,
        config: ProxySettings = settings,
    ):
        self.config = config
        self.fetcher = fetcher or HttpFetcher(
            timeout=config.timeout,
            user_agent=config.user_agent,
            max_redirects=config.max_redirects,
            max_connections=config.max_connections,
            max_keepalive_connections=config.max_keepalive_connections,
        )
        self.store = store if store is not None else MappingStore(config.store_max_entries)
        self.virtualizer = URLVirtualizer(self.store, config.base_url, repopulate=self._repopulate)

    async def __aenter__(self) -> "ProxyService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        await self.fetcher.close()

    @property
    def image_headers(self) -> dict[str, str]:
        return {"Accept": "image/*", "Referer": self.config.base_url.rstrip("/") + "/"}

    async def list_catalog(self) -> OperationResult[list[CatalogEntry]]:
        """Entries of the catalog listing page in document order.

        A listing no strategy recognises is reported as an empty result with
        the strategy diagnostics in ``note``.
        """
        try:
            entries = await self._extract(ExtractionProfile.CATALOG_LISTING, self.config.listing_url)
        except NoMatchError as e:
            logger.warning("Catalog listing not recognised: %s", e.diagnostics)
            return OperationResult.success([], note={"match": "none", "diagnostics": e.diagnostics})
        except ProxyError as e:
            return self._failed("list_catalog", e)
        logger.info("Listed %d catalog entries", len(entries))
        return OperationResult.success(entries)

    async def get_item_detail(self, entity_id: str) -> OperationResult[ItemDetail]:
        try:
            return OperationResult.success(await self._load_item(entity_id))
        except ProxyError as e:
            return self._failed("get_item_detail", e)

    async def get_item_images(self, entity_id: str, chapter_ref: str) -> OperationResult[ItemImages]:
        try:
            return OperationResult.success(await self._load_chapter(entity_id, chapter_ref))
        except ProxyError as e:
            return self._failed("get_item_images", e)

    async def resolve_resource(
        self,
        entity_id: str,
        resource_name: str,
        origin_hint: str | None = None,
    ) -> OperationResult[ResourcePayload]:
        """Fetch the image behind a resource id.

        ``origin_hint`` is only used when the store cannot resolve the id,
        which keeps ids issued with an explicit origin URL working.
        """
        try:
            url = await self.virtualizer.resolve(entity_id, resource_name)
            if url is None and origin_hint:
                url = self._hint_url(origin_hint)
            if url is None:
                raise ResourceNotFound(entity_id=entity_id, resource_name=resource_name)
            resp = await self.fetcher.fetch(url, self.image_headers)
        except ProxyError as e:
            return self._failed("resolve_resource", e)

        return OperationResult.success(ResourcePayload(
            body=resp.body,
            content_type=resp.headers.get("content-type"),
            content_length=resp.headers.get("content-length"),
        ))

    async def resolve_resource_id(
        self, resource_id: str, origin_hint: str | None = None
    ) -> OperationResult[ResourcePayload]:
        entity_id, resource_name = split_resource_id(resource_id)
        return await self.resolve_resource(entity_id, resource_name, origin_hint)

    async def _extract(self, profile: ExtractionProfile, url: str):
        page = await self.fetcher.fetch(url)
        outcome = extract(profile, page.body, page.url)
        if isinstance(outcome, NoMatch):
            raise NoMatchError(profile.value, outcome.diagnostics, url=url)
        return outcome.record

    async def _load_item(self, entity_id: str) -> ItemDetail:
        slug = validate_slug(entity_id)
        raw = await self._extract(ExtractionProfile.ITEM_DETAIL, self.config.item_url(slug))

        cover_id = None
        if raw.cover_url:
            cover_id = self.virtualizer.virtualize(slug, COVER, raw.cover_url)

        return ItemDetail(
            title=raw.title,
            localized_title=raw.localized_title,
            category=raw.category,
            concept=raw.concept,
            synopsis=raw.synopsis,
            author=raw.author,
            status=raw.status,
            age_rating=raw.age_rating,
            reading_direction=raw.reading_direction,
            genres=raw.genres,
            cover_resource_id=cover_id,
            chapters=[
                Chapter(
                    origin_url=chapter.origin_url,
                    title=chapter.title,
                    date=chapter.date,
                    ref=chapter_path(chapter.origin_url),
                )
                for chapter in raw.chapters
            ],
        )

    async def _load_chapter(self, entity_id: str, chapter_ref: str) -> ItemImages:
        slug = validate_slug(entity_id)
        path = normalize_chapter_ref(chapter_ref, self.config.base_url)
        raw = await self._extract(ExtractionProfile.ITEM_IMAGES, self.config.page_url(path))

        # Pages are scoped per chapter so page numbers never collide across chapters.
        scope = f"{slug}/{path}"
        pages = [
            PageImage(
                resource_id=self.virtualizer.virtualize(scope, index, page.origin_url),
                alt_text=page.alt_text,
            )
            for index, page in enumerate(raw.pages, start=1)
        ]
        return ItemImages(title=raw.title, pages=pages)

    async def _repopulate(self, entity_id: str, resource_name: str):
        """Re-extract the page owning a resource so its mapping is stored again."""
        slug, _, path = entity_id.partition("/")
        if resource_name.startswith(COVER + ".") and not path:
            await self._load_item(slug)
        elif resource_name.startswith("page-") and path:
            await self._load_chapter(slug, path)

    def _hint_url(self, origin_hint: str) -> str:
        url = absolute_url(origin_hint, self.config.base_url)
        if not is_http_url(url):
            raise InvalidReference("Invalid origin hint")
        return url

    def _failed(self, operation: str, error: ProxyError) -> OperationResult:
        logger.warning("%s failed: %s %s", operation, error.kind, error.context)
        return OperationResult.failure(error)
