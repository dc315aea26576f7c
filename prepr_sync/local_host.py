"""
File-backed stand-in for the content engine host.

Keeps Article nodes and the cache in JSON files under the sync
directory so the connector can be run and inspected locally.
"""

import json
import shutil
from pathlib import Path
from typing import Any, Optional

from rich.console import Console

from prepr_sync.config import Config
from prepr_sync.connector import ARTICLE_MODEL, FieldSpec, HostAPI, NodeModel

console = Console()


class SchemaError(Exception):
    """A node does not match its declared model."""


def validate_node(node: dict, fields: dict[str, FieldSpec], path: str = "") -> None:
    """
    Check a node against a model's field declarations.

    Raises:
        SchemaError: On missing required fields, list fields that are not
                     lists, or fields the model does not declare.
    """
    for name, spec in fields.items():
        value = node.get(name)
        where = f"{path}{name}"

        if value is None:
            if spec.required:
                raise SchemaError(f"Missing required field '{where}'")
            continue

        if spec.list:
            if not isinstance(value, list):
                raise SchemaError(f"Field '{where}' must be a list")
            if spec.fields:
                for i, item in enumerate(value):
                    validate_node(item, spec.fields, f"{where}[{i}].")
        elif spec.fields:
            validate_node(value, spec.fields, f"{where}.")

    unknown = set(node) - set(fields) - {"id"}
    if unknown:
        raise SchemaError(f"Unknown field(s) {sorted(unknown)} at '{path or '.'}'")


class _JsonFile:
    """Dict persisted to a JSON file."""

    def __init__(self, path: Path):
        self.path = path
        self.data = self._load()

    def _load(self) -> dict:
        if self.path.exists():
            try:
                with open(self.path) as f:
                    return json.load(f)
            except json.JSONDecodeError as e:
                console.print(f"[yellow]Warning: Could not load {self.path}: {e}[/yellow]")
        return {}

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self.data, f, indent=2)


class LocalModel(_JsonFile):
    """Node store for one model, keyed by node id."""

    def __init__(self, path: Path, model: NodeModel):
        super().__init__(path)
        self.model = model

    def create(self, nodes: list[dict]) -> None:
        """Create or replace nodes by id."""
        for node in nodes:
            if not node.get("id"):
                raise SchemaError("Node is missing its id")
            validate_node(node, self.model.fields)

        for node in nodes:
            self.data[node["id"]] = node
        self.save()

    def delete(self, node_id: str) -> None:
        """Remove a node; unknown ids are ignored."""
        if self.data.pop(node_id, None) is None:
            console.print(f"[dim]Node {node_id} not found, nothing to delete[/dim]")
        self.save()

    def get(self, node_id: str) -> Optional[dict]:
        return self.data.get(node_id)

    def all(self) -> list[dict]:
        return list(self.data.values())


class LocalCache(_JsonFile):
    """Key/value cache."""

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value
        self.save()


class LocalStore:
    """Local host: the Article model plus the cache."""

    def __init__(self, config: Config):
        self.config = config
        self.articles = LocalModel(config.nodes_file, ARTICLE_MODEL)
        self.cache = LocalCache(config.cache_file)

    def host_api(self, webhook_body: Optional[dict] = None) -> HostAPI:
        """Handles to pass to connector event handlers."""
        return HostAPI(
            models={ARTICLE_MODEL.name: self.articles},
            cache=self.cache,
            webhook_body=webhook_body or {},
        )

    def clean(self) -> None:
        """Remove all stored nodes and the cache."""
        if self.config.sync_dir.exists():
            shutil.rmtree(self.config.sync_dir)
            console.print(f"Removed: {self.config.sync_dir}")
        self.articles.data = {}
        self.cache.data = {}
