"""Tests for prepr_sync.prepr_api."""

import math

import pytest
import requests

from prepr_sync.prepr_api import (
    ARTICLES_QUERY,
    PAGE_SIZE,
    AssetsBlock,
    BlockKind,
    CodeBlock,
    GraphQLError,
    PreprAPI,
    TextBlock,
    UnknownBlock,
    parse_content_block,
)
from tests.factories import articles_page, make_article, make_response, paged_responses


def graphql_errors(count):
    return [
        {
            "message": f"Problem {i}",
            "locations": [{"line": i + 1, "column": 2 * i + 3}],
            "extensions": {"category": "graphql"},
        }
        for i in range(count)
    ]


class TestPagination:
    """Tests for PreprAPI.fetch_articles paging."""

    @pytest.mark.parametrize("total", [1, 99, 100, 101, 250])
    def test_issues_one_request_per_page(self, session, total) -> None:
        session.post.side_effect = paged_responses(total)
        api = PreprAPI("token", session=session)

        articles = api.fetch_articles()

        assert session.post.call_count == math.ceil(total / PAGE_SIZE)
        assert api.request_count == math.ceil(total / PAGE_SIZE)
        assert len(articles) == total

    def test_empty_result_needs_single_request(self, session) -> None:
        session.post.side_effect = paged_responses(0)
        api = PreprAPI("token", session=session)

        assert api.fetch_articles() == []
        assert session.post.call_count == 1

    def test_requests_increasing_offsets(self, session) -> None:
        session.post.side_effect = paged_responses(250)
        api = PreprAPI("token", session=session)

        api.fetch_articles("2024-01-01T00:00:00+00:00")

        skips = [c.kwargs["json"]["variables"]["skip"] for c in session.post.call_args_list]
        assert skips == [0, 100, 200]
        for c in session.post.call_args_list:
            assert c.kwargs["json"]["query"] == ARTICLES_QUERY
            assert c.kwargs["json"]["variables"]["where"] == {
                "_changed_on_gte": "2024-01-01T00:00:00+00:00"
            }

    def test_no_filter_sends_null_lower_bound(self, session) -> None:
        session.post.side_effect = paged_responses(1)
        api = PreprAPI("token", session=session)

        api.fetch_articles()

        variables = session.post.call_args.kwargs["json"]["variables"]
        assert variables["where"] == {"_changed_on_gte": None}

    def test_total_is_taken_from_first_page_only(self, session) -> None:
        first = [make_article(article_id=f"a{i}") for i in range(100)]
        second = [make_article(article_id="b0")]
        session.post.side_effect = [
            articles_page(first, 101),
            articles_page(second, 5000),
        ]
        api = PreprAPI("token", session=session)

        articles = api.fetch_articles()

        assert len(articles) == 101
        assert session.post.call_count == 2

    def test_empty_page_stops_before_total(self, session) -> None:
        first = [make_article(article_id=f"a{i}") for i in range(100)]
        session.post.side_effect = [
            articles_page(first, 300),
            articles_page([], 300),
        ]
        api = PreprAPI("token", session=session)

        articles = api.fetch_articles()

        assert len(articles) == 100
        assert session.post.call_count == 2

    def test_sends_bearer_token(self, session) -> None:
        PreprAPI("secret-token", session=session)

        assert session.headers["Authorization"] == "Bearer secret-token"

    def test_posts_to_endpoint(self, session) -> None:
        session.post.side_effect = paged_responses(1)
        api = PreprAPI("token", endpoint="https://example.test/graphql", session=session)

        api.fetch_articles()

        assert session.post.call_args.args[0] == "https://example.test/graphql"


class TestErrors:
    """Tests for GraphQL and transport error handling."""

    @pytest.mark.parametrize("count", [1, 3])
    def test_graphql_errors_are_enumerated(self, session, count) -> None:
        session.post.return_value = make_response({"errors": graphql_errors(count)})
        api = PreprAPI("token", session=session)

        with pytest.raises(GraphQLError) as exc_info:
            api.fetch_articles()

        message = str(exc_info.value)
        lines = message.strip().split("\n")
        assert lines[0] == f"Received {count} error(s) from GraphQL:"
        assert len(lines) == count + 1
        for i in range(count):
            assert lines[i + 1] == f"GraphQlError {i + 1}: Problem {i} at {i + 1}:{2 * i + 3}"
        assert len(exc_info.value.errors) == count

    def test_error_without_location(self) -> None:
        error = GraphQLError([{"message": "Boom"}])

        assert str(error) == "Received 1 error(s) from GraphQL:\nGraphQlError 1: Boom\n"

    def test_empty_error_list_still_raises(self, session) -> None:
        session.post.return_value = make_response({"data": None, "errors": []})
        api = PreprAPI("token", session=session)

        with pytest.raises(GraphQLError) as exc_info:
            api.fetch_articles()

        assert str(exc_info.value) == "Received 0 error(s) from GraphQL:\n"
        assert exc_info.value.errors == []

    def test_error_on_later_page_discards_earlier_pages(self, session) -> None:
        first = [make_article(article_id=f"a{i}") for i in range(100)]
        session.post.side_effect = [
            articles_page(first, 200),
            make_response({"errors": graphql_errors(1)}),
        ]
        api = PreprAPI("token", session=session)

        with pytest.raises(GraphQLError):
            api.fetch_articles()

        assert session.post.call_count == 2

    def test_errors_are_not_retried(self, session) -> None:
        session.post.return_value = make_response({"errors": graphql_errors(2)})
        api = PreprAPI("token", session=session)

        with pytest.raises(GraphQLError):
            api.fetch_articles()

        assert session.post.call_count == 1

    def test_http_error_propagates(self, session) -> None:
        response = make_response({"message": "Unauthorized"})
        response.raise_for_status.side_effect = requests.HTTPError("401 Client Error")
        session.post.return_value = response
        api = PreprAPI("token", session=session)

        with pytest.raises(requests.HTTPError):
            api.fetch_articles()

    def test_connection_error_propagates(self, session) -> None:
        session.post.side_effect = requests.ConnectionError("unreachable")
        api = PreprAPI("token", session=session)

        with pytest.raises(requests.ConnectionError):
            api.fetch_articles()


class TestParsing:
    """Tests for article and content block parsing."""

    def test_assets_block(self) -> None:
        block = parse_content_block({
            "items": [
                {"_id": "1", "_type": "Photo", "url": "https://cdn/a.png"},
                {"_id": "2", "_type": "Photo", "url": "https://cdn/b.png"},
            ]
        })

        assert isinstance(block, AssetsBlock)
        assert block.kind == BlockKind.ASSETS
        assert [a.url for a in block.items] == ["https://cdn/a.png", "https://cdn/b.png"]

    def test_code_block(self) -> None:
        block = parse_content_block({"_id": "c", "code": "x = 1", "language": "RB"})

        assert isinstance(block, CodeBlock)
        assert block.kind == BlockKind.CODE
        assert block.language == "RB"

    def test_text_block(self) -> None:
        block = parse_content_block({"_id": "t", "html": "<p>hi</p>"})

        assert isinstance(block, TextBlock)
        assert block.kind == BlockKind.TEXT
        assert block.html == "<p>hi</p>"

    def test_unrecognized_block(self) -> None:
        raw = {"_id": "q", "format": "H2"}
        block = parse_content_block(raw)

        assert isinstance(block, UnknownBlock)
        assert block.kind == BlockKind.UNKNOWN
        assert block.raw == raw

    def test_empty_block_is_unknown(self) -> None:
        assert parse_content_block({}).kind == BlockKind.UNKNOWN

    def test_article_fields(self, session) -> None:
        payload = make_article(
            authors=[{"_id": "au1", "_changed_on": "x", "full_name": "Ada", "bio": None}],
            categories=[{"_id": "c1", "_changed_on": "x", "_slug": "news", "title": "News"}],
            content=[{"_id": "t", "html": "<p>y</p>"}],
        )
        session.post.side_effect = [articles_page([payload], 1)]
        api = PreprAPI("token", session=session)

        article = api.fetch_articles()[0]

        assert article.id == "abc"
        assert article.slug == "my-post"
        assert article.changed_on == "2024-01-01T00:00:00Z"
        assert article.authors[0].full_name == "Ada"
        assert article.authors[0].bio is None
        assert article.categories[0].slug == "news"
        assert article.content[0].kind == BlockKind.TEXT
