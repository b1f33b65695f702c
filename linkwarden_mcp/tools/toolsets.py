"""The Linkwarden tool catalog, grouped into toolsets."""
import logging
from typing import Iterable

from ..client import LinkwardenClient
from ..errors import ConfigurationError
from .builtin import collections, links, search, tags
from .registry import Toolset, ToolsetGroup

logger = logging.getLogger(__name__)


def new_toolsets(client: LinkwardenClient, enabled_toolsets: Iterable[str],
                 read_only: bool = False) -> ToolsetGroup:
    """Build every toolset around `client` and enable the requested ones.

    Raises ConfigurationError (UnknownToolsetError for a bad name).
    """
    if client is None:
        raise ConfigurationError("linkwarden client is required")

    group = ToolsetGroup(read_only=read_only)

    group.add_toolset(
        Toolset("search", "Linkwarden search related tools")
        .add_read_tools(search.search_links(client))
    )
    group.add_toolset(
        Toolset("collection", "Linkwarden collection related tools")
        .add_read_tools(
            collections.get_all_collections(client),
            collections.get_collection_by_id(client),
            collections.get_public_collections_links(client),
            collections.get_public_collections_tags(client),
            collections.get_public_collection_by_id(client),
        )
        .add_write_tools(
            collections.create_collection(client),
            collections.delete_collection_by_id(client),
        )
    )
    group.add_toolset(
        Toolset("link", "Linkwarden link related tools")
        .add_read_tools(
            links.get_all_links(client),
            links.get_link_by_id(client),
        )
        .add_write_tools(
            links.create_link(client),
            links.delete_link_by_id(client),
            links.delete_links(client),
            links.archive_link(client),
        )
    )
    group.add_toolset(
        Toolset("tags", "Linkwarden tag related tools")
        .add_read_tools(tags.get_all_tags(client))
        .add_write_tools(tags.delete_tag_by_id(client))
    )

    group.enable_toolsets(enabled_toolsets)
    logger.info(f"Exposing {len(group.exposed_tools())} tools (read_only={read_only})")
    return group
