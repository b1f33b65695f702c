"""Link tools — list, fetch, create, delete and archive saved links."""
import logging

from ...client import LinkwardenClient
from ...models import CollectionRef, CreateLinkBody, DeleteLinksBody, GetLinksParams, TagRef
from ..params import ParameterError, ParameterMapping, ValueKind, Validator, build_params, extract_value
from ..registry import Tool, ToolParam
from .common import confirm_result, json_result

logger = logging.getLogger(__name__)

LINK_TYPES = ("url", "image", "pdf")

# Filter arguments shared by get_all_links and get_public_collections_links
FILTER_PARAMS = [
    ToolParam("sort", "number", "A numeric value to sort the results."),
    ToolParam("cursor", "number", "A numeric value for pagination."),
    ToolParam("pinnedOnly", "boolean", "Whether to return only pinned links."),
    ToolParam("searchQueryString", "string", "A string to filter search results."),
    ToolParam("searchByName", "boolean", "Whether to search by name."),
    ToolParam("searchByUrl", "boolean", "Whether to search by URL."),
    ToolParam("searchByDescription", "boolean", "Whether to search by description."),
    ToolParam("searchByTextContent", "boolean", "Whether to search by text content."),
    ToolParam("searchByTags", "boolean", "Whether to search by tags."),
]

FILTER_MAPPINGS = [
    ParameterMapping("sort", "sort", "int"),
    ParameterMapping("cursor", "cursor", "int"),
    ParameterMapping("pinnedOnly", "pinned_only", "bool"),
    ParameterMapping("searchQueryString", "search_query_string", "string"),
    ParameterMapping("searchByName", "search_by_name", "bool"),
    ParameterMapping("searchByUrl", "search_by_url", "bool"),
    ParameterMapping("searchByDescription", "search_by_description", "bool"),
    ParameterMapping("searchByTextContent", "search_by_text_content", "bool"),
    ParameterMapping("searchByTags", "search_by_tags", "bool"),
]


def validate_link_filters(validator: Validator, args: dict) -> Validator:
    validator.optional_int(args, "sort")
    validator.optional_int(args, "cursor")
    validator.optional_bool(args, "pinnedOnly")
    validator.optional_string(args, "searchQueryString")
    validator.optional_bool(args, "searchByName")
    validator.optional_bool(args, "searchByUrl")
    validator.optional_bool(args, "searchByDescription")
    validator.optional_bool(args, "searchByTextContent")
    validator.optional_bool(args, "searchByTags")
    return validator


def get_all_links(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        validator = Validator(request.arguments)
        validate_link_filters(validator, args)
        validator.optional_int(args, "collectionId")
        validator.optional_int(args, "tagId")
        result = validator.handle_errors_if_any()
        if result:
            return result

        mappings = FILTER_MAPPINGS + [
            ParameterMapping("collectionId", "collection_id", "int"),
            ParameterMapping("tagId", "tag_id", "int"),
        ]
        params = build_params(GetLinksParams, args, mappings)
        return await json_result("get links", api.get_links(params))

    return Tool(
        name="get_all_links",
        description="Gets all links with optional filtering and pagination.",
        params=FILTER_PARAMS + [
            ToolParam("collectionId", "number", "Filter by collection ID."),
            ToolParam("tagId", "number", "Filter by tag ID."),
        ],
        handler=handler,
    )


def get_link_by_id(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int(args, "id").handle_errors_if_any()
        if result:
            return result
        return await json_result("get link", api.get_link(args["id"]))

    return Tool(
        name="get_link_by_id",
        description="Gets a link by its ID.",
        params=[ToolParam("id", "number", "The ID of the link to retrieve.", required=True)],
        handler=handler,
    )


def _tag_refs(tags: list) -> list:
    """Turn the `tags` argument into tag references; unusable fields are dropped."""
    refs = []
    for tag in tags:
        ref = {}
        if isinstance(tag, dict):
            try:
                tag_id = extract_value(tag, "id", False, ValueKind.INT)
            except ParameterError:
                tag_id = None
            if tag_id is not None:
                ref["id"] = tag_id
            if isinstance(tag.get("name"), str):
                ref["name"] = tag["name"]
        else:
            logger.debug(f"Ignoring tag entry of type {type(tag).__name__}")
        refs.append(TagRef(**ref))
    return refs


def create_link(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        validator = Validator(request.arguments)
        validator.required_string(args, "name")
        validator.required_string(args, "url")
        validator.optional_string(args, "description")
        validator.optional_string(args, "type")
        validator.optional_int(args, "collectionId")
        validator.optional_string(args, "collectionName")
        validator.optional_array(args, "tags")
        result = validator.handle_errors_if_any()
        if result:
            return result

        fields = {
            "name": args["name"],
            "url": args["url"],
            "description": args.get("description", args["name"]),
            "type": args.get("type", "url"),
        }
        if "collectionId" in args:
            fields["collection"] = CollectionRef(id=args["collectionId"])
        elif "collectionName" in args:
            fields["collection"] = CollectionRef(name=args["collectionName"])
        if "tags" in args:
            fields["tags"] = _tag_refs(args["tags"])
        body = CreateLinkBody(**fields)

        return await json_result("create link", api.create_link(body))

    return Tool(
        name="create_link",
        description="Creates a new link.",
        params=[
            ToolParam("name", "string", "The name of the link.", required=True),
            ToolParam("url", "string", "The URL of the link.", required=True),
            ToolParam("description", "string", "The description of the link."),
            ToolParam("type", "string", f"The type of the link ({', '.join(LINK_TYPES)})."),
            ToolParam("collectionId", "number", "The ID of the collection to add the link to."),
            ToolParam("collectionName", "string", "The name of the collection to add the link to."),
            ToolParam("tags", "array",
                      "List of tags to add to the link. Each tag should have 'id' and 'name' fields."),
        ],
        handler=handler,
    )


def delete_link_by_id(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int(args, "id").handle_errors_if_any()
        if result:
            return result
        return await confirm_result("delete link", api.delete_link(args["id"]), "Link deleted successfully")

    return Tool(
        name="delete_link_by_id",
        description="Deletes a link by its ID.",
        params=[ToolParam("id", "number", "The ID of the link to delete.", required=True)],
        handler=handler,
    )


def delete_links(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int_array(args, "linkIds").handle_errors_if_any()
        if result:
            return result

        body = DeleteLinksBody(link_ids=args["linkIds"])
        return await confirm_result("delete links", api.delete_links(body), "Links deleted successfully")

    return Tool(
        name="delete_links",
        description="Deletes multiple links by their IDs.",
        params=[ToolParam("linkIds", "array", "List of link IDs to delete.", required=True)],
        handler=handler,
    )


def archive_link(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int(args, "id").handle_errors_if_any()
        if result:
            return result
        return await confirm_result("archive link", api.archive_link(args["id"]), "Link archived successfully")

    return Tool(
        name="archive_link",
        description="Archives a link by its ID.",
        params=[ToolParam("id", "number", "The ID of the link to archive.", required=True)],
        handler=handler,
    )
