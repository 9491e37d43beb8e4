"""Default data tool: species lookups driven by a `ClassificationResult`.

Architectural role:
    Registered as `entity_info`, the registry's default entity tool. The
    classifier decides which entities and endpoints are needed; this tool only
    fetches and packages the data for the response builder.

Failure handling:
    Data-provider errors become `ToolOutput(kind="error")`; the tool does not
    raise for missing species or provider outages.
"""

import logging
from dataclasses import dataclass

from dexai import config
from dexai.core.classification_types import ClassificationResult, Facet
from dexai.data.pokeapi_client import DataClientError, PokeApiClient
from dexai.nlp.catalog import COMPARISON_PATTERN
from dexai.tools.registry import PatternRule, ToolSpec

logger = logging.getLogger(__name__)

MAX_MATCHUP_ENTITIES = 3

ENTITY_TOOL_SPEC = ToolSpec(
    name=config.DEFAULT_TOOL_NAME,
    description=(
        "Species information: base stats, types, abilities, evolution chain, "
        "breeding data, moves, encounter locations and matchups."
    ),
    pattern_rules=(
        PatternRule.compile(r"\bpok[eé]dex\b", description="dex lookup"),
    ),
    handles_entity_queries=True,
)


@dataclass(frozen=True)
class ToolOutput:
    """Result of one tool execution.

    `kind` is one of `no_match`, `entity_data`, `competitive_matchup`, `error`.
    """

    kind: str
    query: str
    records: tuple = ()
    entities: tuple = ()
    subject: str | None = None
    error: str | None = None


class EntityInfoTool:
    def __init__(self, client: PokeApiClient | None = None) -> None:
        self.client = client or PokeApiClient()
        self.spec = ENTITY_TOOL_SPEC

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def description(self) -> str:
        return self.spec.description

    def _is_matchup(self, query: str, classification: ClassificationResult) -> bool:
        return (
            classification.is_multi_entity_comparison
            or Facet.COMPETITIVE in classification.facets
            or bool(COMPARISON_PATTERN.search(query or ""))
        )

    def execute(self, query: str, classification: ClassificationResult) -> ToolOutput:
        """
        Fetch data for the entities named in `classification`.

        Edge cases:
        - No entities -> `no_match`.
        - Two or more entities with a comparison signal -> `competitive_matchup`
          over at most `MAX_MATCHUP_ENTITIES` species; fewer than two fetched
          records is an `error`.
        - Otherwise only the first entity is looked up.
        """
        names = list(dict.fromkeys(classification.entities))
        if not names:
            return ToolOutput(kind="no_match", query=query)

        if len(names) > 1 and self._is_matchup(query, classification):
            return self._matchup(query, names[:MAX_MATCHUP_ENTITIES], classification)

        name = names[0]
        logger.info("Entity tool fetching %s", name)
        try:
            record = self.client.get_entity(name, classification.required_endpoints)
        except DataClientError as err:
            return ToolOutput(kind="error", query=query, entities=(name,), subject=name, error=str(err))

        return ToolOutput(kind="entity_data", query=query, records=(record,), entities=(name,), subject=name)

    def _matchup(self, query: str, names, classification: ClassificationResult) -> ToolOutput:
        subject = " vs ".join(names)
        logger.info("Entity tool handling matchup: %s", subject)

        records = []
        for name in names:
            try:
                records.append(self.client.get_entity(name, classification.required_endpoints))
            except DataClientError as err:
                logger.warning("Skipping %s in matchup: %s", name, err)

        if len(records) < 2:
            return ToolOutput(
                kind="error",
                query=query,
                entities=tuple(names),
                subject=subject,
                error="Unable to fetch data for competitive matchup",
            )

        return ToolOutput(
            kind="competitive_matchup",
            query=query,
            records=tuple(records),
            entities=tuple(names),
            subject=subject,
        )
