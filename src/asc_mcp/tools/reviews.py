"""Customer review tools."""

from pydantic import BaseModel, Field

from ..client import AppStoreConnectClient
from ..consts import RESOURCE_ID_PATTERN
from ..registry import ToolRegistry
from ..utils import format_date


class ListCustomerReviewsArgs(BaseModel):
    app_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The App ID to list reviews for",
    )
    limit: int = Field(
        50, ge=1, le=1000, description="Maximum number of reviews to return (default: 50)"
    )


class GetCustomerReviewArgs(BaseModel):
    review_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The customer review ID",
    )


class CreateReviewResponseArgs(BaseModel):
    review_id: str = Field(
        ...,
        pattern=RESOURCE_ID_PATTERN,
        description="The customer review ID to respond to",
    )
    response_body: str = Field(..., min_length=1, description="The response text")


class DeleteReviewResponseArgs(BaseModel):
    response_id: str = Field(
        ..., pattern=RESOURCE_ID_PATTERN, description="The customer review response ID"
    )


def _review_lines(review: dict) -> list[str]:
    attrs = review.get("attributes") or {}
    rating = attrs.get("rating") or 0
    lines = [
        f"**{attrs.get('title', '(no title)')}** {'★' * rating}{'☆' * (5 - rating)}",
        f"  - ID: {review['id']}",
        f"  - Reviewer: {attrs.get('reviewerNickname', '')}",
        f"  - Territory: {attrs.get('territory', '')}",
    ]
    if attrs.get("createdDate"):
        lines.append(f"  - Date: {format_date(attrs['createdDate'])}")
    if attrs.get("body"):
        lines.append(f"  - Review: {attrs['body']}")
    return lines


async def list_customer_reviews(
    client: AppStoreConnectClient, args: ListCustomerReviewsArgs
) -> str:
    page = await client.list_resources(
        f"/v1/apps/{args.app_id}/customerReviews",
        {"sort": "-createdDate"},
        limit=args.limit,
    )
    reviews = page["data"]
    if not reviews:
        return "No customer reviews found."

    lines = [f"Found {len(reviews)} customer reviews:", ""]
    for review in reviews:
        lines += _review_lines(review)
        lines.append("")
    return "\n".join(lines)


async def get_customer_review(
    client: AppStoreConnectClient, args: GetCustomerReviewArgs
) -> str:
    document = await client.get_json(
        f"/v1/customerReviews/{args.review_id}", {"include": "response"}
    )
    lines = _review_lines(document["data"])

    for included in document.get("included") or []:
        if included.get("type") != "customerReviewResponses":
            continue
        attrs = included.get("attributes") or {}
        lines += [
            "",
            "Developer response:",
            f"  - ID: {included['id']}",
            f"  - State: {attrs.get('state', '')}",
            f"  - Response: {attrs.get('responseBody', '')}",
        ]
    return "\n".join(lines)


async def create_customer_review_response(
    client: AppStoreConnectClient, args: CreateReviewResponseArgs
) -> str:
    body = {
        "data": {
            "type": "customerReviewResponses",
            "attributes": {"responseBody": args.response_body},
            "relationships": {
                "review": {"data": {"type": "customerReviews", "id": args.review_id}},
            },
        }
    }
    document = await client.post_json("/v1/customerReviewResponses", body)
    response = document["data"]
    attrs = response.get("attributes") or {}
    return "\n".join(
        [
            f"Successfully responded to review {args.review_id}",
            "",
            f"- Response ID: {response['id']}",
            f"- State: {attrs.get('state', '')}",
        ]
    )


async def delete_customer_review_response(
    client: AppStoreConnectClient, args: DeleteReviewResponseArgs
) -> str:
    await client.delete(f"/v1/customerReviewResponses/{args.response_id}")
    return f"Successfully deleted review response {args.response_id}"


def register(registry: ToolRegistry) -> None:
    registry.register(
        "list_customer_reviews",
        "List customer reviews for an app, newest first.",
        ListCustomerReviewsArgs,
        list_customer_reviews,
    )
    registry.register(
        "get_customer_review",
        "Get details of a specific customer review, including any developer response.",
        GetCustomerReviewArgs,
        get_customer_review,
    )
    registry.register(
        "create_customer_review_response",
        "Create a response to a customer review",
        CreateReviewResponseArgs,
        create_customer_review_response,
    )
    registry.register(
        "delete_customer_review_response",
        "Delete a response to a customer review",
        DeleteReviewResponseArgs,
        delete_customer_review_response,
    )
