"""App management tools."""

from pydantic import BaseModel, Field

from ..client import AppStoreConnectClient
from ..consts import RESOURCE_ID_PATTERN
from ..registry import ToolRegistry
from ..utils import format_date


class ListAppsArgs(BaseModel):
    limit: int = Field(
        50, ge=1, le=1000, description="Maximum number of apps to return (default: 50)"
    )


class GetAppArgs(BaseModel):
    app_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The App Store Connect ID of the app",
    )


class GetAppVersionsArgs(BaseModel):
    app_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The App Store Connect ID of the app",
    )
    limit: int = Field(
        20, ge=1, le=1000, description="Maximum number of versions to return (default: 20)"
    )


async def list_apps(client: AppStoreConnectClient, args: ListAppsArgs) -> str:
    page = await client.list_resources("/v1/apps", limit=args.limit)
    apps = page["data"]
    if not apps:
        return "No apps found in your App Store Connect account."

    lines = [f"Found {len(apps)} apps:", ""]
    for app in apps:
        attrs = app.get("attributes") or {}
        lines += [
            f"**{attrs.get('name', '')}**",
            f"  - ID: {app['id']}",
            f"  - Bundle ID: {attrs.get('bundleId', '')}",
            f"  - SKU: {attrs.get('sku', '')}",
            f"  - Primary Locale: {attrs.get('primaryLocale', '')}",
            "",
        ]
    return "\n".join(lines)


async def get_app(client: AppStoreConnectClient, args: GetAppArgs) -> str:
    document = await client.get_json(f"/v1/apps/{args.app_id}")
    app = document["data"]
    attrs = app.get("attributes") or {}

    lines = [
        f"**{attrs.get('name', '')}**",
        "",
        f"- ID: {app['id']}",
        f"- Bundle ID: {attrs.get('bundleId', '')}",
        f"- SKU: {attrs.get('sku', '')}",
        f"- Primary Locale: {attrs.get('primaryLocale', '')}",
        f"- Made for Kids: {bool(attrs.get('isOrEverWasMadeForKids'))}",
    ]
    if attrs.get("contentRightsDeclaration"):
        lines.append(f"- Content Rights: {attrs['contentRightsDeclaration']}")
    return "\n".join(lines)


async def get_app_versions(
    client: AppStoreConnectClient, args: GetAppVersionsArgs
) -> str:
    page = await client.list_resources(
        f"/v1/apps/{args.app_id}/appStoreVersions", limit=args.limit
    )
    versions = page["data"]
    if not versions:
        return "No versions found for this app."

    lines = [f"Found {len(versions)} versions:", ""]
    for version in versions:
        attrs = version.get("attributes") or {}
        lines += [
            f"**Version {attrs.get('versionString', '')}** ({attrs.get('platform', '')})",
            f"  - ID: {version['id']}",
            f"  - State: {attrs.get('appStoreState', '')}",
            f"  - Release Type: {attrs.get('releaseType', '')}",
            f"  - Downloadable: {bool(attrs.get('downloadable'))}",
        ]
        if attrs.get("createdDate"):
            lines.append(f"  - Created: {format_date(attrs['createdDate'])}")
        lines.append("")
    return "\n".join(lines)


def register(registry: ToolRegistry) -> None:
    registry.register(
        "list_apps",
        "List all apps in your App Store Connect account. Returns app name, "
        "bundle ID, SKU, and primary locale for each app.",
        ListAppsArgs,
        list_apps,
    )
    registry.register(
        "get_app",
        "Get detailed information about a specific app by its App Store Connect ID.",
        GetAppArgs,
        get_app,
    )
    registry.register(
        "get_app_versions",
        "Get all App Store versions for a specific app, including version string, "
        "platform, state, and release information.",
        GetAppVersionsArgs,
        get_app_versions,
    )
