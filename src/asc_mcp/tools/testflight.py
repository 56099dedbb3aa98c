"""TestFlight tools: beta groups and beta testers."""

from pydantic import BaseModel, Field

from ..client import AppStoreConnectClient
from ..consts import RESOURCE_ID_PATTERN
from ..registry import ToolRegistry
from ..utils import format_date


class ListBetaGroupsArgs(BaseModel):
    app_id: str | None = Field(
        None,
        pattern=RESOURCE_ID_PATTERN,
        description="Only list beta groups of this app (optional)",
    )
    limit: int = Field(
        50, ge=1, le=1000, description="Maximum number of groups to return (default: 50)"
    )


class CreateBetaGroupArgs(BaseModel):
    app_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The app the group belongs to",
    )
    name: str = Field(..., min_length=1, description="Name of the new beta group")
    public_link_enabled: bool = Field(
        False, description="Whether testers can join through a public link"
    )
    feedback_enabled: bool = Field(
        True, description="Whether testers can send feedback"
    )


class BetaGroupArgs(BaseModel):
    beta_group_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The beta group ID",
    )


class ListBetaTestersArgs(BaseModel):
    beta_group_id: str | None = Field(
        None,
        pattern=RESOURCE_ID_PATTERN,
        description="Only list testers in this beta group (optional)",
    )
    limit: int = Field(
        50, ge=1, le=1000, description="Maximum number of testers to return (default: 50)"
    )


class InviteBetaTesterArgs(BaseModel):
    email: str = Field(..., min_length=3, description="Tester's email address")
    first_name: str | None = Field(None, description="Tester's first name")
    last_name: str | None = Field(None, description="Tester's last name")
    beta_group_ids: list[str] = Field(
        default_factory=list, description="Beta groups to add the tester to"
    )


class BetaTesterArgs(BaseModel):
    beta_tester_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The beta tester ID",
    )


class AddTesterToGroupArgs(BaseModel):
    beta_group_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The beta group ID",
    )
    beta_tester_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The beta tester ID",
    )


async def list_beta_groups(
    client: AppStoreConnectClient, args: ListBetaGroupsArgs
) -> str:
    params = {}
    if args.app_id:
        params["filter[app]"] = args.app_id

    page = await client.list_resources("/v1/betaGroups", params, limit=args.limit)
    groups = page["data"]
    if not groups:
        return "No beta groups found."

    lines = [f"Found {len(groups)} beta groups:", ""]
    for group in groups:
        attrs = group.get("attributes") or {}
        lines += [
            f"**{attrs.get('name', '')}**",
            f"  - ID: {group['id']}",
            f"  - Internal Group: {bool(attrs.get('isInternalGroup'))}",
            f"  - Has Access to All Builds: {bool(attrs.get('hasAccessToAllBuilds'))}",
            f"  - Feedback Enabled: {bool(attrs.get('feedbackEnabled'))}",
            f"  - Public Link Enabled: {bool(attrs.get('publicLinkEnabled'))}",
        ]
        if attrs.get("publicLink"):
            lines.append(f"  - Public Link: {attrs['publicLink']}")
        if attrs.get("createdDate"):
            lines.append(
                f"  - Created: {format_date(attrs['createdDate'], with_time=False)}"
            )
        lines.append("")
    return "\n".join(lines)


async def create_beta_group(
    client: AppStoreConnectClient, args: CreateBetaGroupArgs
) -> str:
    body = {
        "data": {
            "type": "betaGroups",
            "attributes": {
                "name": args.name,
                "publicLinkEnabled": args.public_link_enabled,
                "feedbackEnabled": args.feedback_enabled,
            },
            "relationships": {
                "app": {"data": {"type": "apps", "id": args.app_id}},
            },
        }
    }
    document = await client.post_json("/v1/betaGroups", body)
    group = document["data"]
    attrs = group.get("attributes") or {}

    return "\n".join(
        [
            f"Successfully created beta group **{attrs.get('name', args.name)}**",
            "",
            f"- ID: {group['id']}",
            f"- Public Link Enabled: {bool(attrs.get('publicLinkEnabled'))}",
            f"- Feedback Enabled: {bool(attrs.get('feedbackEnabled'))}",
        ]
    )


async def delete_beta_group(client: AppStoreConnectClient, args: BetaGroupArgs) -> str:
    await client.delete(f"/v1/betaGroups/{args.beta_group_id}")
    return f"Successfully deleted beta group {args.beta_group_id}"


async def list_beta_testers(
    client: AppStoreConnectClient, args: ListBetaTestersArgs
) -> str:
    params = {}
    if args.beta_group_id:
        params["filter[betaGroups]"] = args.beta_group_id

    page = await client.list_resources("/v1/betaTesters", params, limit=args.limit)
    testers = page["data"]
    if not testers:
        return "No beta testers found."

    lines = [f"Found {len(testers)} beta testers:", ""]
    for tester in testers:
        attrs = tester.get("attributes") or {}
        email = attrs.get("email") or ""
        full_name = " ".join(
            part for part in (attrs.get("firstName"), attrs.get("lastName")) if part
        )
        lines += [
            f"**{full_name} ({email})**" if full_name else f"**{email}**",
            f"  - ID: {tester['id']}",
            f"  - State: {attrs.get('state', '')}",
            f"  - Invite Type: {attrs.get('inviteType', '')}",
            "",
        ]
    return "\n".join(lines)


async def invite_beta_tester(
    client: AppStoreConnectClient, args: InviteBetaTesterArgs
) -> str:
    attributes = {"email": args.email}
    if args.first_name:
        attributes["firstName"] = args.first_name
    if args.last_name:
        attributes["lastName"] = args.last_name

    data = {"type": "betaTesters", "attributes": attributes}
    if args.beta_group_ids:
        data["relationships"] = {
            "betaGroups": {
                "data": [{"type": "betaGroups", "id": gid} for gid in args.beta_group_ids]
            }
        }

    document = await client.post_json("/v1/betaTesters", {"data": data})
    tester = document["data"]
    attrs = tester.get("attributes") or {}

    return "\n".join(
        [
            f"Successfully invited beta tester **{attrs.get('email', args.email)}**",
            "",
            f"- ID: {tester['id']}",
            f"- State: {attrs.get('state', '')}",
        ]
    )


async def remove_beta_tester(
    client: AppStoreConnectClient, args: BetaTesterArgs
) -> str:
    await client.delete(f"/v1/betaTesters/{args.beta_tester_id}")
    return f"Successfully removed beta tester {args.beta_tester_id}"


async def add_tester_to_group(
    client: AppStoreConnectClient, args: AddTesterToGroupArgs
) -> str:
    body = {"data": [{"type": "betaTesters", "id": args.beta_tester_id}]}
    await client.post_json(
        f"/v1/betaGroups/{args.beta_group_id}/relationships/betaTesters", body
    )
    return (
        f"Successfully added beta tester {args.beta_tester_id} "
        f"to beta group {args.beta_group_id}"
    )


def register(registry: ToolRegistry) -> None:
    registry.register(
        "list_beta_groups",
        "List TestFlight beta groups, optionally filtered by app.",
        ListBetaGroupsArgs,
        list_beta_groups,
    )
    registry.register(
        "create_beta_group",
        "Create a new TestFlight beta group for an app.",
        CreateBetaGroupArgs,
        create_beta_group,
    )
    registry.register(
        "delete_beta_group",
        "Delete a TestFlight beta group.",
        BetaGroupArgs,
        delete_beta_group,
    )
    registry.register(
        "list_beta_testers",
        "List TestFlight beta testers, optionally filtered by beta group.",
        ListBetaTestersArgs,
        list_beta_testers,
    )
    registry.register(
        "invite_beta_tester",
        "Invite a new TestFlight beta tester by email, optionally adding them "
        "to beta groups.",
        InviteBetaTesterArgs,
        invite_beta_tester,
    )
    registry.register(
        "remove_beta_tester",
        "Remove a beta tester from TestFlight entirely.",
        BetaTesterArgs,
        remove_beta_tester,
    )
    registry.register(
        "add_tester_to_group",
        "Add an existing beta tester to a beta group.",
        AddTesterToGroupArgs,
        add_tester_to_group,
    )
