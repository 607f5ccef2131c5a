"""Table and view resources plus prompt templates."""

import logging
from typing import Any, Dict, List, Optional

from ..exceptions import NotFound
from ..gateway import QueryGateway
from .protocol import (
    PromptArgument,
    PromptDefinition,
    ResourceContents,
    ResourceInfo,
    ResourceTemplate,
)


logger = logging.getLogger(__name__)

RESOURCE_SCHEME = "sqlite:///"


def table_uri(name: str) -> str:
    return f"{RESOURCE_SCHEME}{name}"


def parse_table_uri(uri: str) -> str:
    """Extract the table name from a table resource URI."""
    if not uri or not uri.startswith(RESOURCE_SCHEME):
        raise NotFound(f"Unknown resource: {uri}")

    name = uri[len(RESOURCE_SCHEME):].strip("/")
    if not name:
        raise NotFound(f"Unknown resource: {uri}")
    return name


class ResourceHandler:
    """Exposes every table and view as a readable CSV resource."""

    def __init__(self, gateway: QueryGateway):
        self.gateway = gateway

    async def list_resources(self) -> List[ResourceInfo]:
        tables = await self.gateway.list_tables()
        return [
            ResourceInfo(
                uri=table_uri(row["name"]),
                name=row["name"],
                description=f"Rows of {row['name']} as CSV"
            )
            for row in tables
        ]

    def list_templates(self) -> List[ResourceTemplate]:
        return [
            ResourceTemplate(
                uriTemplate=f"{RESOURCE_SCHEME}{{table}}",
                name="table-data",
                description="Rows of a table or view as CSV"
            )
        ]

    async def read_resource(self, uri: str) -> ResourceContents:
        """Read a table or view.

        Raises:
            NotFound: the URI does not name an existing table or view
        """
        name = parse_table_uri(uri)
        if not await self.gateway.table_exists(name):
            raise NotFound(f"Table or view not found: {name}")

        rows = await self.gateway.read_table(name)
        logger.info(f"Read resource {uri}: {len(rows)} rows")
        return ResourceContents(uri=uri, text=self.gateway.formatter.to_csv(rows))


EXPLORE_TABLE_PROMPT = PromptDefinition(
    name="explore_table",
    description="Inspect a table or view and summarise what it contains",
    arguments=[
        PromptArgument(name="table", description="Table or view to explore", required=True)
    ]
)


class PromptHandler:
    """Prompt templates steering a client towards the gateway tools."""

    def list_prompts(self) -> List[PromptDefinition]:
        return [EXPLORE_TABLE_PROMPT]

    def get_prompt(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Render a prompt.

        Raises:
            NotFound: unknown prompt name
            ValueError: a required argument is missing
        """
        if name != EXPLORE_TABLE_PROMPT.name:
            raise NotFound(f"Unknown prompt: {name}")

        table = (arguments or {}).get("table")
        if not table:
            raise ValueError("Missing required argument: table")

        text = (
            f"Explore the table '{table}'. Use execute_query with read_only set to true to "
            f"look at its columns and a sample of rows (for example "
            f"SELECT * FROM {table} LIMIT 10), then summarise what the data describes, "
            f"notable columns and anything that looks inconsistent."
        )
        return {
            "description": EXPLORE_TABLE_PROMPT.description,
            "messages": [
                {"role": "user", "content": {"type": "text", "text": text}}
            ]
        }
