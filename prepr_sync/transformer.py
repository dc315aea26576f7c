"""
Maps Prepr articles to normalized Article nodes.
"""

from dataclasses import asdict, dataclass, field
from typing import Optional

from prepr_sync.html_converter import HtmlConverter
from prepr_sync.prepr_api import Article


@dataclass
class AuthorNode:
    """Author as stored on an Article node."""

    author_id: str
    name: str
    bio: Optional[str] = None


@dataclass
class CategoryNode:
    """Category as stored on an Article node."""

    category_id: str
    slug: str
    title: str


@dataclass
class ArticleNode:
    """Normalized Article node handed to the content engine."""

    id: str
    slug: str
    title: str
    body: str
    updated: str
    authors: list[AuthorNode] = field(default_factory=list)
    categories: list[CategoryNode] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to the field layout of the Article model."""
        return asdict(self)


def article_to_node(article: Article, converter: Optional[HtmlConverter] = None) -> ArticleNode:
    """
    Map a single Prepr article to an Article node.

    Args:
        article: Article fetched from Prepr.
        converter: HTML converter for the body. A default one is
                   created when omitted.

    Returns:
        The normalized node.
    """
    converter = converter or HtmlConverter()

    return ArticleNode(
        id=article.id,
        slug=article.slug,
        title=article.title,
        body=converter.convert(article.content),
        updated=article.changed_on,
        authors=[
            AuthorNode(author_id=author.id, name=author.full_name, bio=author.bio)
            for author in article.authors
        ],
        categories=[
            CategoryNode(category_id=category.id, slug=category.slug, title=category.title)
            for category in article.categories
        ],
    )


def articles_to_nodes(
    articles: list[Article],
    converter: Optional[HtmlConverter] = None,
) -> list[ArticleNode]:
    """Map every article, keeping API order."""
    converter = converter or HtmlConverter()
    return [article_to_node(article, converter) for article in articles]
