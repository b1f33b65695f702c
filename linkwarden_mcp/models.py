"""Request models for the Linkwarden API.

Fields default to None and are only sent when they were set, so an omitted
argument never turns into an explicit default on the wire.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> Dict[str, Any]:
        """Serialize with API (camelCase) names, leaving out unset fields."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class SearchLinksParams(ApiModel):
    search_query_string: Optional[str] = None
    sort: Optional[int] = None
    cursor: Optional[int] = None
    collection_id: Optional[int] = None
    tag_id: Optional[int] = None


class LinkFilterParams(ApiModel):
    sort: Optional[int] = None
    cursor: Optional[int] = None
    pinned_only: Optional[bool] = None
    search_query_string: Optional[str] = None
    search_by_name: Optional[bool] = None
    search_by_url: Optional[bool] = None
    search_by_description: Optional[bool] = None
    search_by_text_content: Optional[bool] = None
    search_by_tags: Optional[bool] = None


class GetLinksParams(LinkFilterParams):
    collection_id: Optional[int] = None
    tag_id: Optional[int] = None


class PublicCollectionLinksParams(LinkFilterParams):
    collection_id: Optional[int] = None


class PublicCollectionTagsParams(ApiModel):
    collection_id: Optional[int] = None


class CreateCollectionBody(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    icon_weight: Optional[str] = None
    parent_id: Optional[int] = None


class CollectionRef(ApiModel):
    id: Optional[int] = None
    name: Optional[str] = None


class TagRef(ApiModel):
    id: Optional[int] = None
    name: Optional[str] = None


class CreateLinkBody(ApiModel):
    name: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    collection: Optional[CollectionRef] = None
    tags: Optional[List[TagRef]] = None


class DeleteLinksBody(ApiModel):
    link_ids: List[int]
