"""Rewriting of image URLs into local resource identifiers."""

import logging
import re
from typing import Awaitable, Callable, Literal

from .errors import ProxyError
from .store import MappingStore
from .urls import absolute_url, file_extension

logger = logging.getLogger(__name__)

COVER = "cover"

# "cover" or the 1-based index of a page image.
ResourceRole = Literal["cover"] | int

Repopulate = Callable[[str, str], Awaitable[None]]

_RESOURCE_NAME_RE = re.compile(r"^(cover|page-[1-9][0-9]*)\.[a-z0-9]{1,5}$")


def resource_name(role: ResourceRole, origin_url: str) -> str:
    extension = file_extension(origin_url)
    if role == COVER:
        return f"{COVER}.{extension}"
    if isinstance(role, int) and not isinstance(role, bool) and role >= 1:
        return f"page-{role}.{extension}"
    raise ValueError(f"Invalid resource role: {role!r}")


def is_resource_name(name: str) -> bool:
    return bool(_RESOURCE_NAME_RE.match(name))


def split_resource_id(resource_id: str) -> tuple[str, str]:
    """Split ``entity_id/resource_name`` at the last slash."""
    entity_id, _, name = resource_id.strip("/").rpartition("/")
    return entity_id, name


class URLVirtualizer:
    """Issue stable resource ids for origin URLs and map them back.

    ``repopulate(entity_id, resource_name)`` is awaited on a lookup miss; it
    is expected to re-extract the owning page, which virtualizes its images
    again and so refills the store.
    """

    def __init__(self, store: MappingStore, base_url: str, repopulate: Repopulate | None = None):
        self.store = store
        self.base_url = base_url
        self.repopulate = repopulate

    def virtualize(self, entity_id: str, role: ResourceRole, origin_url: str) -> str:
        url = absolute_url(origin_url, self.base_url)
        name = resource_name(role, url)
        self.store.insert(entity_id, name, url)
        logger.debug("Virtualized %s/%s", entity_id, name)
        return f"{entity_id}/{name}"

    def lookup(self, entity_id: str, resource_name: str) -> str | None:
        return self.store.lookup(entity_id, resource_name)

    async def resolve(self, entity_id: str, resource_name: str) -> str | None:
        """Origin URL for a resource, repopulating the store on a miss."""
        url = self.lookup(entity_id, resource_name)
        if url is not None or self.repopulate is None or not is_resource_name(resource_name):
            return url

        logger.info("Mapping miss for %s/%s, repopulating", entity_id, resource_name)
        try:
            await self.repopulate(entity_id, resource_name)
        except ProxyError as e:
            logger.warning("Repopulation of %s failed: %s %s", entity_id, e.kind, e.context)
            return None
        return self.lookup(entity_id, resource_name)
