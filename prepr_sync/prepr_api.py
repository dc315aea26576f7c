"""
Prepr GraphQL API wrapper for the sync system.

Provides a clean interface to Prepr's GraphQL endpoint with:
- Offset pagination over the Articles query
- Rate limiting compliance
- Typed article records (with a tagged content-block union)
- GraphQL error aggregation
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

import requests
from ratelimit import limits, sleep_and_retry
from rich.console import Console

from prepr_sync.config import DEFAULT_ENDPOINT

console = Console()

PAGE_SIZE = 100

# Client-side pacing only; failed requests are never retried.
RATE_LIMIT_CALLS = 10
RATE_LIMIT_PERIOD = 1  # second

ARTICLES_QUERY = """query (
  $skip: Int
  $where: ArticleWhereInput
) {
  Articles (
    limit: %d
    skip: $skip,
    sort: changed_on_DESC,
    where: $where
  ) {
    items {
      _changed_on,
      _id,
      _slug,
      authors {
        _id,
        _changed_on,
        bio,
        full_name
      },
      categories {
        _changed_on,
        _id,
        _slug,
        title
      },
      content {
        ... on Assets {
          items {
            _id,
            _type,
            url
          }
        },
        ... on CodeBlock {
          _id,
          code,
          language
        },
        ... on Text {
          _id,
          html
        }
      }
      title
    },
    total
  }
}""" % PAGE_SIZE


class GraphQLError(Exception):
    """Raised when Prepr answers with a GraphQL error list."""

    def __init__(self, errors: list[dict]):
        self.errors = errors
        super().__init__(self.format_errors(errors))

    @staticmethod
    def format_errors(errors: list[dict]) -> str:
        """Build one message enumerating every error and its location."""
        message = f"Received {len(errors)} error(s) from GraphQL:\n"
        for index, error in enumerate(errors, start=1):
            line = f"GraphQlError {index}: {error.get('message', '')}"
            locations = error.get("locations") or []
            if locations:
                line += f" at {locations[0].get('line')}:{locations[0].get('column')}"
            message += line + "\n"
        return message


# =========================================================================
# Content blocks
# =========================================================================


class BlockKind(Enum):
    """Variants of an article content block."""
    ASSETS = "assets"
    CODE = "code"
    TEXT = "text"
    UNKNOWN = "unknown"


@dataclass
class Asset:
    """A single asset inside an asset group."""

    id: str
    type: str
    url: str


@dataclass
class AssetsBlock:
    """Group of assets (images, videos...)."""

    items: list[Asset] = field(default_factory=list)
    kind: BlockKind = field(default=BlockKind.ASSETS, init=False)


@dataclass
class CodeBlock:
    """Code snippet with its language tag."""

    id: str
    code: str
    language: str
    kind: BlockKind = field(default=BlockKind.CODE, init=False)


@dataclass
class TextBlock:
    """Rich-text fragment, already rendered to HTML by Prepr."""

    id: str
    html: str
    kind: BlockKind = field(default=BlockKind.TEXT, init=False)


@dataclass
class UnknownBlock:
    """Any block shape the query does not select fields for."""

    raw: dict = field(default_factory=dict)
    kind: BlockKind = field(default=BlockKind.UNKNOWN, init=False)


ContentBlock = Union[AssetsBlock, CodeBlock, TextBlock, UnknownBlock]


def parse_content_block(block: dict) -> ContentBlock:
    """
    Create a typed content block from an API response item.

    Prepr returns the union members without a type tag, so the
    variant is picked from the fields present, in this order:
    ``items``, ``code``, ``html``.
    """
    if "items" in block:
        return AssetsBlock(items=[
            Asset(
                id=item.get("_id", ""),
                type=item.get("_type", ""),
                url=item.get("url", ""),
            )
            for item in block["items"] or []
        ])
    if "code" in block:
        return CodeBlock(
            id=block.get("_id", ""),
            code=block["code"] or "",
            language=block.get("language") or "",
        )
    if "html" in block:
        return TextBlock(id=block.get("_id", ""), html=block["html"] or "")
    return UnknownBlock(raw=block)


# =========================================================================
# Articles
# =========================================================================


@dataclass
class Author:
    """Article author, embedded by value."""

    id: str
    full_name: str
    bio: Optional[str] = None
    changed_on: Optional[str] = None

    @classmethod
    def from_api_response(cls, author: dict) -> "Author":
        """Create Author from API response."""
        return cls(
            id=author["_id"],
            full_name=author["full_name"],
            bio=author.get("bio"),
            changed_on=author.get("_changed_on"),
        )


@dataclass
class Category:
    """Article category, embedded by value."""

    id: str
    slug: str
    title: str
    changed_on: Optional[str] = None

    @classmethod
    def from_api_response(cls, category: dict) -> "Category":
        """Create Category from API response."""
        return cls(
            id=category["_id"],
            slug=category["_slug"],
            title=category["title"],
            changed_on=category.get("_changed_on"),
        )


@dataclass
class Article:
    """Represents a Prepr article as returned by the Articles query."""

    id: str
    slug: str
    changed_on: str
    title: str
    authors: list[Author] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    content: list[ContentBlock] = field(default_factory=list)

    @classmethod
    def from_api_response(cls, article: dict) -> "Article":
        """Create Article from API response."""
        return cls(
            id=article["_id"],
            slug=article["_slug"],
            changed_on=article["_changed_on"],
            title=article["title"],
            authors=[Author.from_api_response(a) for a in article.get("authors") or []],
            categories=[
                Category.from_api_response(c) for c in article.get("categories") or []
            ],
            content=[parse_content_block(b) for b in article.get("content") or []],
        )


class PreprAPI:
    """
    Wrapper around the Prepr GraphQL API.

    Handles:
    - Authentication
    - Rate limiting
    - Offset pagination until the reported total is reached
    - Error aggregation (no retries)
    """

    def __init__(
        self,
        api_token: str,
        endpoint: str = DEFAULT_ENDPOINT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Prepr API client.

        Args:
            api_token: Prepr access token.
            endpoint: GraphQL endpoint URL.
            session: Optional requests session (injected in tests).
        """
        self.endpoint = endpoint
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        })
        self._request_count = 0

    @sleep_and_retry
    @limits(calls=RATE_LIMIT_CALLS, period=RATE_LIMIT_PERIOD)
    def _rate_limited_call(self, func, *args, **kwargs) -> Any:
        """Execute a rate-limited API call."""
        self._request_count += 1
        return func(*args, **kwargs)

    def _fetch_page(self, skip: int, changed_since: Optional[str]) -> dict:
        """Fetch one page of articles and return the ``Articles`` object."""
        response = self._rate_limited_call(
            self.session.post,
            self.endpoint,
            json={
                "query": ARTICLES_QUERY,
                "variables": {
                    "skip": skip,
                    "where": {"_changed_on_gte": changed_since},
                },
            },
        )

        try:
            body = response.json()
        except ValueError:
            # Not JSON: surface the HTTP status if there is one
            response.raise_for_status()
            raise

        if isinstance(body, dict) and "errors" in body:
            raise GraphQLError(body["errors"] or [])

        response.raise_for_status()
        return body["data"]["Articles"]

    def fetch_articles(self, changed_since: Optional[str] = None) -> list[Article]:
        """
        Fetch every article, page by page.

        Args:
            changed_since: Optional ISO-8601 lower bound on ``_changed_on``.

        Returns:
            All articles, in API order.

        Raises:
            GraphQLError: If any page reports GraphQL errors.
            requests.RequestException: On transport failures.
        """
        items: list[dict] = []
        total: Optional[int] = None
        skip = 0

        while True:
            page = self._fetch_page(skip, changed_since)
            page_items = page.get("items") or []
            items.extend(page_items)

            # Only the first page's total counts
            if total is None:
                total = page.get("total") or 0

            if len(items) >= total:
                break

            if not page_items:
                console.print(
                    f"[yellow]Warning: empty page at offset {skip}, "
                    f"got {len(items)} of {total} articles[/yellow]"
                )
                break

            skip += PAGE_SIZE

        return [Article.from_api_response(item) for item in items]

    @property
    def request_count(self) -> int:
        """Number of API requests made."""
        return self._request_count
