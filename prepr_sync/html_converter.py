"""
Prepr content blocks to HTML converter.

Flattens an article's ordered content blocks into a single HTML body:
- Asset groups become <img> tags
- Code blocks become <pre><code> wrappers
- Text fragments are copied verbatim
"""

from typing import Callable

from prepr_sync.prepr_api import (
    AssetsBlock,
    BlockKind,
    CodeBlock,
    ContentBlock,
    TextBlock,
)


class HtmlConverter:
    """
    Converts Prepr content blocks to an HTML string.

    Blocks are folded left to right; each handler receives the body
    built so far and returns the new body. An asset group replaces the
    body, and the first code or text block after it starts over.
    """

    def __init__(self):
        self._handlers: dict[BlockKind, Callable[[str, ContentBlock], str]] = {
            BlockKind.ASSETS: self._convert_assets,
            BlockKind.CODE: self._convert_code,
            BlockKind.TEXT: self._convert_text,
            BlockKind.UNKNOWN: self._convert_unknown,
        }

    def convert(self, blocks: list[ContentBlock]) -> str:
        """
        Convert a list of content blocks to HTML.

        Args:
            blocks: Content blocks in API order.

        Returns:
            The flattened HTML body.
        """
        body = ""
        images_only = False

        for block in blocks:
            # Asset output only survives when no code or text block follows it
            if images_only and block.kind in (BlockKind.CODE, BlockKind.TEXT):
                body = ""

            body = self._handlers[block.kind](body, block)

            if block.kind != BlockKind.UNKNOWN:
                images_only = block.kind == BlockKind.ASSETS

        return body

    # =========================================================================
    # Block handlers
    # =========================================================================

    def _convert_assets(self, body: str, block: AssetsBlock) -> str:
        """Render an asset group, replacing everything rendered before it."""
        return "".join(f'<img href="{asset.url}"/>' for asset in block.items)

    def _convert_code(self, body: str, block: CodeBlock) -> str:
        """Append a code block."""
        return f"{body}<pre lang={block.language.lower()}><code>{block.code}</code></pre>"

    def _convert_text(self, body: str, block: TextBlock) -> str:
        """Append a text fragment as-is."""
        return f"{body}{block.html}"

    def _convert_unknown(self, body: str, block: ContentBlock) -> str:
        return body
