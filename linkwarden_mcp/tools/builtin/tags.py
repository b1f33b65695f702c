"""Tag tools."""
from ...client import LinkwardenClient
from ..params import Validator
from ..registry import Tool, ToolParam
from .common import confirm_result, json_result


def get_all_tags(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        return await json_result("get all tags", api.get_tags())

    return Tool(name="get_all_tags", description="Gets all tags.", params=[], handler=handler)


def delete_tag_by_id(client: LinkwardenClient) -> Tool:
    async def handler(ctx, request):
        api = ctx.resolve_client(client)
        args = {}
        result = Validator(request.arguments).required_int(args, "id").handle_errors_if_any()
        if result:
            return result
        return await confirm_result("delete tag", api.delete_tag(args["id"]), "Tag deleted successfully")

    return Tool(
        name="delete_tag_by_id",
        description="Deletes a tag by its ID.",
        params=[ToolParam("id", "number", "The ID of the tag to delete.", required=True)],
        handler=handler,
    )
