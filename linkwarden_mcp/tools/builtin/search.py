"""Search tool — full-text search over saved links."""
from ...client import LinkwardenClient
from ...models import SearchLinksParams
from ..params import ParameterMapping, Validator, build_params
from ..registry import Tool, ToolParam
from .common import json_result

SEARCH_MAPPINGS = [
    ParameterMapping("searchQueryString", "search_query_string", "string"),
    ParameterMapping("sort", "sort", "int"),
    ParameterMapping("cursor", "cursor", "int"),
    ParameterMapping("collectionId", "collection_id", "int"),
    ParameterMapping("tagId", "tag_id", "int"),
]


def search_links(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        validator = Validator(request.arguments)
        validator.optional_string(args, "searchQueryString")
        validator.optional_int(args, "sort")
        validator.optional_int(args, "cursor")
        validator.optional_int(args, "collectionId")
        validator.optional_int(args, "tagId")
        result = validator.handle_errors_if_any()
        if result:
            return result

        params = build_params(SearchLinksParams, args, SEARCH_MAPPINGS)
        return await json_result("search links", api.search_links(params))

    return Tool(
        name="search_links",
        description="Searches for links based on some query parameters.",
        params=[
            ToolParam("searchQueryString", "string", "A string to filter search results."),
            ToolParam("sort", "number", "A numeric value to sort the search results."),
            ToolParam("cursor", "number", "A numeric value for pagination."),
            ToolParam("collectionId", "number", "Filter by collection ID"),
            ToolParam("tagId", "number", "Filter by tag ID"),
        ],
        handler=handler,
    )
