"""Collection tools — private and public collections."""
from ...client import LinkwardenClient
from ...models import CreateCollectionBody, PublicCollectionLinksParams, PublicCollectionTagsParams
from ..params import ParameterMapping, Validator, build_params
from ..registry import Tool, ToolParam
from .common import confirm_result, json_result
from .links import FILTER_MAPPINGS, FILTER_PARAMS, validate_link_filters

COLLECTION_ID = ParameterMapping("collectionId", "collection_id", "int")


def get_all_collections(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        return await json_result("get all collections", api.get_collections())

    return Tool(name="get_all_collections", description="Gets all collections.", params=[], handler=handler)


def get_collection_by_id(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int(args, "id").handle_errors_if_any()
        if result:
            return result
        return await json_result("get collection", api.get_collection(args["id"]))

    return Tool(
        name="get_collection_by_id",
        description="Gets a collection by its ID.",
        params=[ToolParam("id", "number", "The ID of the collection to retrieve.", required=True)],
        handler=handler,
    )


def create_collection(client: LinkwardenClient) -> Tool:
    mappings = [
        ParameterMapping("name", "name", "string"),
        ParameterMapping("description", "description", "string"),
        ParameterMapping("color", "color", "string"),
        ParameterMapping("icon", "icon", "string"),
        ParameterMapping("iconWeight", "icon_weight", "string"),
        ParameterMapping("parentId", "parent_id", "int"),
    ]

    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        validator = Validator(request.arguments)
        validator.optional_string(args, "name")
        validator.optional_string(args, "description")
        validator.optional_string(args, "color")
        validator.optional_string(args, "icon")
        validator.optional_string(args, "iconWeight")
        validator.optional_int(args, "parentId")
        result = validator.handle_errors_if_any()
        if result:
            return result

        body = build_params(CreateCollectionBody, args, mappings)
        return await json_result("create collection", api.create_collection(body))

    return Tool(
        name="create_collection",
        description="Creates a new collection.",
        params=[
            ToolParam("name", "string", "The name of the collection."),
            ToolParam("description", "string", "The description of the collection."),
            ToolParam("color", "string", "The color of the collection."),
            ToolParam("icon", "string", "The icon of the collection."),
            ToolParam("iconWeight", "string", "The weight of the collection's icon."),
            ToolParam("parentId", "number", "The ID of the parent collection, if applicable."),
        ],
        handler=handler,
    )


def delete_collection_by_id(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int(args, "id").handle_errors_if_any()
        if result:
            return result
        return await confirm_result("delete collection", api.delete_collection(args["id"]),
                                    "Collection deleted successfully")

    return Tool(
        name="delete_collection_by_id",
        description="Deletes a collection by its ID.",
        params=[ToolParam("id", "number", "The ID of the collection to delete.", required=True)],
        handler=handler,
    )


def get_public_collections_links(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        validator = Validator(request.arguments)
        validator.required_int(args, "collectionId")
        validate_link_filters(validator, args)
        result = validator.handle_errors_if_any()
        if result:
            return result

        params = build_params(PublicCollectionLinksParams, args, [COLLECTION_ID] + FILTER_MAPPINGS)
        return await json_result("get public collection links", api.get_public_collection_links(params))

    return Tool(
        name="get_public_collections_links",
        description="Gets links from a public collection.",
        params=[
            ToolParam("collectionId", "number", "The ID of the collection to retrieve links for.",
                      required=True),
        ] + FILTER_PARAMS,
        handler=handler,
    )


def get_public_collections_tags(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int(args, "collectionId").handle_errors_if_any()
        if result:
            return result

        params = build_params(PublicCollectionTagsParams, args, [COLLECTION_ID])
        return await json_result("get public collection tags", api.get_public_collection_tags(params))

    return Tool(
        name="get_public_collections_tags",
        description="Gets tags from a public collection.",
        params=[ToolParam("collectionId", "number", "The ID of the collection to retrieve tags for.",
                          required=True)],
        handler=handler,
    )


def get_public_collection_by_id(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int(args, "id").handle_errors_if_any()
        if result:
            return result
        return await json_result("get public collection", api.get_public_collection(args["id"]))

    return Tool(
        name="get_public_collection_by_id",
        description="Gets a public collection by its ID.",
        params=[ToolParam("id", "number", "The ID of the public collection to retrieve.", required=True)],
        handler=handler,
    )
