"""
Connector registration for the content engine host.

Declares what the host needs to know about this connector:
- The configuration options (one secret API token)
- The Article node model
- The lifecycle events and their handlers

Handlers take the host API handles as arguments instead of
reaching for globals, so they run against any host implementation.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from rich.console import Console

from prepr_sync.config import Config
from prepr_sync.sync_engine import SyncEngine

console = Console()

TYPE_PREFIX = "Prepr"


@dataclass
class ConnectorOption:
    """A single configuration option shown in the host UI."""

    name: str
    label: str
    help_text: str = ""
    secret: bool = False
    required: bool = True


@dataclass
class FieldSpec:
    """Field of a node model; ``fields`` is set for inline objects."""

    type: str = "String"
    required: bool = False
    list: bool = False
    fields: Optional[dict[str, "FieldSpec"]] = None


@dataclass
class NodeModel:
    """Node type declared to the host."""

    name: str
    fields: dict[str, FieldSpec]
    cache_field_name: Optional[str] = None

    @property
    def type_name(self) -> str:
        """Name the host exposes, prefixed with the connector prefix."""
        return f"{TYPE_PREFIX}{self.name}"


@dataclass
class HostAPI:
    """Handles the host passes to an event handler."""

    models: dict[str, Any]
    cache: Any
    webhook_body: dict = field(default_factory=dict)


OPTIONS = [
    ConnectorOption(
        name="apiToken",
        label="API token",
        help_text=(
            "Prepr API token, found here: "
            "https://[prepr-environment].prepr.io/settings/access-tokens"
        ),
        secret=True,
    ),
]

ARTICLE_MODEL = NodeModel(
    name="Article",
    cache_field_name="updated",
    fields={
        "authors": FieldSpec(
            type="Object",
            list=True,
            fields={
                "author_id": FieldSpec(required=True),
                "bio": FieldSpec(),
                "name": FieldSpec(required=True),
            },
        ),
        "body": FieldSpec(required=True),
        "categories": FieldSpec(
            type="Object",
            list=True,
            fields={
                "category_id": FieldSpec(required=True),
                "slug": FieldSpec(required=True),
                "title": FieldSpec(required=True),
            },
        ),
        "slug": FieldSpec(required=True),
        "title": FieldSpec(required=True),
        "updated": FieldSpec(required=True),
    },
)


def validate_options(options: dict) -> None:
    """
    Check that every required option is present.

    Raises:
        ValueError: If a required option is missing or blank.
    """
    for option in OPTIONS:
        value = options.get(option.name)
        if option.required and (not isinstance(value, str) or not value.strip()):
            raise ValueError(f"Missing required connector option: {option.name}")


def local_dev_options(config: Config) -> dict:
    """Options used when running outside the host, taken from the environment."""
    return {"apiToken": config.api_token}


def create_all_nodes(api: HostAPI, options: dict, prepr_api=None):
    """Full build: sync every article."""
    engine = SyncEngine(
        options["apiToken"],
        api.models[ARTICLE_MODEL.name],
        api.cache,
        api=prepr_api,
    )
    return engine.sync_all()


def update_nodes(api: HostAPI, options: dict, prepr_api=None):
    """Webhook build: delete one node or sync what changed."""
    engine = SyncEngine(
        options["apiToken"],
        api.models[ARTICLE_MODEL.name],
        api.cache,
        api=prepr_api,
    )
    return engine.handle_webhook(api.webhook_body)


EVENTS: dict[str, Callable] = {
    "createAllNodes": create_all_nodes,
    "updateNodes": update_nodes,
}


def dispatch(event: str, api: HostAPI, options: dict, prepr_api=None):
    """
    Run the handler registered for a lifecycle event.

    Args:
        event: Host event name.
        api: Host API handles.
        options: Connector options.
        prepr_api: Optional PreprAPI instance to use instead of a new one.

    Raises:
        ValueError: On unknown events or invalid options.
    """
    handler = EVENTS.get(event)
    if handler is None:
        raise ValueError(f"Unknown connector event: {event}")

    validate_options(options)
    console.print(f"[dim]{TYPE_PREFIX} connector handling '{event}'[/dim]")
    return handler(api, options, prepr_api=prepr_api)
