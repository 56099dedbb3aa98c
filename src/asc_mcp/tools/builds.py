"""Build tools."""

from pydantic import BaseModel, Field

from ..client import AppStoreConnectClient
from ..consts import RESOURCE_ID_PATTERN
from ..registry import ToolRegistry
from ..utils import format_date


class ListBuildsArgs(BaseModel):
    app_id: str | None = Field(
        None,
        pattern=RESOURCE_ID_PATTERN,
        description="Only list builds of this app (optional)",
    )
    limit: int = Field(
        50, ge=1, le=1000, description="Maximum number of builds to return (default: 50)"
    )


class GetBuildArgs(BaseModel):
    build_id: str = Field(..., pattern=RESOURCE_ID_PATTERN, description="The build ID")


def _build_lines(build: dict, indent: str = "") -> list[str]:
    attrs = build.get("attributes") or {}
    lines = [
        f"{indent}- ID: {build['id']}",
        f"{indent}- Processing State: {attrs.get('processingState', '')}",
        f"{indent}- Expired: {bool(attrs.get('expired'))}",
    ]
    if attrs.get("minOsVersion"):
        lines.append(f"{indent}- Minimum OS: {attrs['minOsVersion']}")
    if attrs.get("uploadedDate"):
        lines.append(f"{indent}- Uploaded: {format_date(attrs['uploadedDate'])}")
    if attrs.get("expirationDate"):
        lines.append(f"{indent}- Expires: {format_date(attrs['expirationDate'])}")
    return lines


async def list_builds(client: AppStoreConnectClient, args: ListBuildsArgs) -> str:
    params = {"sort": "-uploadedDate"}
    if args.app_id:
        params["filter[app]"] = args.app_id

    page = await client.list_resources("/v1/builds", params, limit=args.limit)
    builds = page["data"]
    if not builds:
        return "No builds found."

    lines = [f"Found {len(builds)} builds:", ""]
    for build in builds:
        attrs = build.get("attributes") or {}
        lines.append(f"**Build {attrs.get('version', '')}**")
        lines += _build_lines(build, indent="  ")
        lines.append("")
    return "\n".join(lines)


async def get_build(client: AppStoreConnectClient, args: GetBuildArgs) -> str:
    document = await client.get_json(f"/v1/builds/{args.build_id}")
    build = document["data"]
    attrs = build.get("attributes") or {}

    lines = [f"**Build {attrs.get('version', '')}**", ""]
    lines += _build_lines(build)
    lines.append(
        f"- Uses Non-Exempt Encryption: {attrs.get('usesNonExemptEncryption', 'unknown')}"
    )
    return "\n".join(lines)


def register(registry: ToolRegistry) -> None:
    registry.register(
        "list_builds",
        "List builds, newest first, optionally filtered by app. Shows version, "
        "processing state, and upload/expiry dates.",
        ListBuildsArgs,
        list_builds,
    )
    registry.register(
        "get_build",
        "Get detailed information about a specific build.",
        GetBuildArgs,
        get_build,
    )
