"""
Main sync engine for Prepr → Content Engine synchronization.

Orchestrates:
- Article fetching from Prepr
- Content conversion
- Node creation and deletion
- Sync cursor management
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from rich.console import Console
from rich.table import Table

from prepr_sync.html_converter import HtmlConverter
from prepr_sync.prepr_api import PreprAPI
from prepr_sync.transformer import articles_to_nodes

console = Console()

CURSOR_KEY = "lastSync"
DELETE_EVENT = "content_item.deleted"


@dataclass
class SyncResult:
    """Result of a sync operation."""

    mode: str
    nodes_created: int = 0
    nodes_deleted: int = 0
    changed_since: Optional[str] = None
    cursor: Optional[str] = None
    requests: int = 0


class SyncEngine:
    """
    Main orchestrator for Prepr → Content Engine synchronization.

    The host's model and cache handles are passed in, so the engine
    runs the same against the real host and the local store:
    - ``model.create(nodes)`` creates or replaces nodes by id
    - ``model.delete(node_id)`` removes one node
    - ``cache.get(key)`` / ``cache.set(key, value)`` hold the cursor
    """

    def __init__(
        self,
        api_token: str,
        model: Any,
        cache: Any,
        api: Optional[PreprAPI] = None,
        converter: Optional[HtmlConverter] = None,
    ):
        """
        Initialize sync engine.

        Args:
            api_token: Prepr access token.
            model: Host data-model handle for Article nodes.
            cache: Host cache handle.
            api: Optional PreprAPI instance (built from the token if omitted).
            converter: Optional HTML converter.
        """
        self.model = model
        self.cache = cache
        self.api = api or PreprAPI(api_token)
        self.converter = converter or HtmlConverter()

    def sync_all(self) -> SyncResult:
        """Fetch every article and create or replace all nodes."""
        console.print("\n[bold blue]🔄 Starting full Prepr sync[/bold blue]\n")
        return self._sync(SyncResult(mode="full"), changed_since=None)

    def sync_changes(self) -> SyncResult:
        """Fetch articles changed since the last sync and update their nodes."""
        last_sync = self.cache.get(CURSOR_KEY)
        if last_sync:
            console.print(f"\n[bold blue]🔄 Syncing changes since {last_sync}[/bold blue]\n")
        else:
            console.print("\n[bold blue]🔄 No previous sync found, fetching everything[/bold blue]\n")

        return self._sync(SyncResult(mode="incremental"), changed_since=last_sync)

    def delete_node(self, node_id: str) -> SyncResult:
        """Remove a single node without touching Prepr or the cursor."""
        console.print(f"[cyan]Deleting:[/cyan] {node_id}")
        self.model.delete(node_id)
        return SyncResult(mode="delete", nodes_deleted=1)

    def handle_webhook(self, body: dict) -> SyncResult:
        """
        Route a Prepr webhook body.

        Deletions remove the referenced node; every other event
        triggers an incremental sync.
        """
        if body.get("event") == DELETE_EVENT:
            return self.delete_node(body["payload"]["id"])
        return self.sync_changes()

    def _sync(self, result: SyncResult, changed_since: Optional[str]) -> SyncResult:
        requests_before = self.api.request_count
        result.changed_since = changed_since

        articles = self.api.fetch_articles(changed_since)
        console.print(f"Fetched {len(articles)} article(s) from Prepr")

        nodes = articles_to_nodes(articles, self.converter)
        self.model.create([node.to_dict() for node in nodes])
        result.nodes_created = len(nodes)

        result.cursor = datetime.now(timezone.utc).isoformat()
        self.cache.set(CURSOR_KEY, result.cursor)

        result.requests = self.api.request_count - requests_before
        self._print_summary(result)
        return result

    def _print_summary(self, result: SyncResult) -> None:
        """Print sync summary."""
        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("Mode", result.mode)
        table.add_row("Changed since", result.changed_since or "-")
        table.add_row("Nodes created", str(result.nodes_created))
        table.add_row("API requests", str(result.requests))
        table.add_row("New cursor", result.cursor or "-")

        console.print(table)
