"""HTTP client for the public species data provider (PokeAPI).

Architectural role:
    Fetches and flattens species records for the entity tool. Which secondary
    resources are requested follows `ClassificationResult.required_endpoints`.

Request flow:
    `get_entity(name, endpoints)` -> cache lookup -> `pokemon/{name}` ->
    optional `pokemon-species`, `evolution-chain`, `type`, `ability` and
    `encounters` lookups -> `EntityRecord`.

Retry behavior:
    No retry loop. Each HTTP call is attempted once with `config.POKEAPI_TIMEOUT`.

Failure handling model:
    - 404 on the primary resource raises `EntityNotFoundError`.
    - Transport errors and other HTTP failures on the primary resource raise
      `DataProviderError`.
    - Failures on secondary resources are logged and replaced by "unknown"
      defaults so one missing detail never hides the whole record.
"""

import logging
import threading
import time
from dataclasses import asdict, dataclass, field

import requests

from dexai import config

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
MAX_MOVES = 10


# =========================================================
# ERRORS
# =========================================================

class DataClientError(Exception):
    """Base class for data-provider failures."""


class EntityNotFoundError(DataClientError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Pokemon '{name}' not found")
        self.name = name


class DataProviderError(DataClientError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# =========================================================
# RECORD
# =========================================================

@dataclass
class EntityRecord:
    """Flattened species record.

    Height is in meters and weight in kilograms. Species-level fields keep
    their "unknown" defaults when the species resource was not requested or
    could not be fetched.
    """

    name: str
    display_name: str
    id: int
    height: float
    weight: float
    types: list = field(default_factory=list)
    abilities: list = field(default_factory=list)
    base_stats: dict = field(default_factory=dict)
    sprite: str | None = None
    moves: list = field(default_factory=list)

    flavor_text: str = ""
    egg_groups: list = field(default_factory=lambda: [UNKNOWN])
    generation: str = UNKNOWN
    habitat: str = UNKNOWN
    capture_rate: int | None = None
    base_happiness: int | None = None

    evolution_chain: list = field(default_factory=list)
    type_relations: dict = field(default_factory=dict)
    ability_effects: dict = field(default_factory=dict)
    encounter_locations: list = field(default_factory=list)

    @property
    def total_stats(self) -> int:
        return sum(self.base_stats.values())

    def to_dict(self) -> dict:
        data = asdict(self)
        data["total_stats"] = self.total_stats
        return data


def clean_name(name: str) -> str:
    return "-".join(str(name).lower().split())


def display_name(name: str) -> str:
    return " ".join(part.capitalize() for part in name.split("-"))


def flatten_evolution_chain(chain: dict) -> list[str]:
    """Return stage names in depth-first order, branches included."""
    stages = []

    def walk(node):
        species = (node or {}).get("species") or {}
        if species.get("name"):
            stages.append(species["name"])
        for child in (node or {}).get("evolves_to") or []:
            walk(child)

    walk(chain)
    return stages


def _english_entry(entries, key):
    for entry in entries or []:
        if (entry.get("language") or {}).get("name") == "en":
            return " ".join(str(entry.get(key, "")).split())
    return ""


# =========================================================
# CLIENT
# =========================================================

class PokeApiClient:
    """Thin `requests` client with a per-entity TTL cache.

    Args:
        base_url: API root, without trailing slash.
        timeout: Per-request timeout in seconds.
        cache_ttl: Cache lifetime in seconds; `0` disables caching.
        session: Optional `requests.Session` (or compatible stub).
        max_entries: Cache size cap; expired records are swept on every write.
    """

    def __init__(
        self,
        base_url: str = config.POKEAPI_BASE_URL,
        timeout: float = config.POKEAPI_TIMEOUT,
        cache_ttl: float = config.DATA_CACHE_TTL_SECONDS,
        session=None,
        max_entries: int = config.DATA_CACHE_MAX_ENTRIES,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.max_entries = max(1, max_entries)
        self.session = session or requests.Session()

        self._cache = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    # =====================================================
    # TRANSPORT
    # =====================================================

    def _url(self, path_or_url: str) -> str:
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url
        return f"{self.base_url}/{path_or_url.lstrip('/')}"

    def _get_json(self, path_or_url: str, entity_name: str | None = None):
        url = self._url(path_or_url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.RequestException as err:
            raise DataProviderError(f"Request to data provider failed: {type(err).__name__}") from err

        if response.status_code == 404 and entity_name is not None:
            raise EntityNotFoundError(entity_name)

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as err:
            raise DataProviderError(
                f"Data provider HTTP error ({response.status_code})",
                status_code=response.status_code,
            ) from err

        try:
            return response.json()
        except ValueError as err:
            raise DataProviderError("Data provider returned invalid JSON") from err

    # =====================================================
    # CACHE
    # =====================================================

    def _cache_get(self, key):
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None and entry[0] > time.monotonic():
                self._hits += 1
                return entry[1]
            if entry is not None:
                del self._cache[key]
            self._misses += 1
            return None

    def _cache_put(self, key, record) -> None:
        if self.cache_ttl <= 0:
            return
        with self._lock:
            now = time.monotonic()
            expired = [k for k, entry in self._cache.items() if entry[0] <= now]
            for stale in expired:
                del self._cache[stale]
            self._cache.pop(key, None)
            while self._cache and len(self._cache) >= self.max_entries:
                oldest = next(iter(self._cache))
                del self._cache[oldest]
                logger.debug("Evicted cached entity record %s", oldest[0])
            self._cache[key] = (now + self.cache_ttl, record)

    def clear_cache(self) -> int:
        with self._lock:
            cleared = len(self._cache)
            self._cache.clear()
        logger.info("Cleared %d cached entity records", cleared)
        return cleared

    def cache_stats(self) -> dict:
        with self._lock:
            return {"entries": len(self._cache), "hits": self._hits, "misses": self._misses}

    # =====================================================
    # ENTITY LOOKUP
    # =====================================================

    def get_entity(self, name: str, endpoints=frozenset({config.BASE_ENDPOINT})) -> EntityRecord:
        """
        Fetch one species record with the requested secondary resources.

        Raises:
            EntityNotFoundError: The provider has no such species.
            DataProviderError: The primary resource could not be fetched.
        """
        slug = clean_name(name)
        if not slug:
            raise EntityNotFoundError(str(name))

        endpoints = frozenset(endpoints or ()) | {config.BASE_ENDPOINT}
        key = (slug, endpoints)

        cached = self._cache_get(key)
        if cached is not None:
            logger.info("Returning cached data for %s", slug)
            return cached

        logger.info("Fetching data for %s (endpoints=%s)", slug, sorted(endpoints))
        data = self._get_json(f"pokemon/{slug}", entity_name=slug)
        record = self._parse_pokemon(data)

        wants_species = endpoints & {"pokemon-species", "evolution-chain", "egg-group"}
        if wants_species:
            self._attach_species(record, data, fetch_chain="evolution-chain" in endpoints)
        if "type" in endpoints:
            self._attach_type_relations(record)
        if "ability" in endpoints:
            self._attach_ability_effects(record)
        if "encounters" in endpoints:
            self._attach_encounters(record, slug)

        self._cache_put(key, record)
        return record

    def _parse_pokemon(self, data: dict) -> EntityRecord:
        name = data.get("name", "")
        return EntityRecord(
            name=name,
            display_name=display_name(name),
            id=int(data.get("id", 0)),
            height=(data.get("height") or 0) / 10,
            weight=(data.get("weight") or 0) / 10,
            types=[t["type"]["name"] for t in data.get("types", [])],
            abilities=[a["ability"]["name"] for a in data.get("abilities", [])],
            base_stats={s["stat"]["name"]: s["base_stat"] for s in data.get("stats", [])},
            sprite=(data.get("sprites") or {}).get("front_default"),
            moves=[m["move"]["name"] for m in data.get("moves", [])[:MAX_MOVES]],
        )

    def _attach_species(self, record: EntityRecord, data: dict, fetch_chain: bool) -> None:
        species_url = (data.get("species") or {}).get("url") or f"pokemon-species/{record.name}"
        try:
            species = self._get_json(species_url)
        except DataClientError as err:
            logger.warning("Failed to fetch species data for %s: %s", record.name, err)
            return

        record.flavor_text = _english_entry(species.get("flavor_text_entries"), "flavor_text")
        record.egg_groups = [g["name"] for g in species.get("egg_groups", [])] or [UNKNOWN]
        record.generation = (species.get("generation") or {}).get("name", UNKNOWN)
        record.habitat = (species.get("habitat") or {}).get("name", UNKNOWN)
        record.capture_rate = species.get("capture_rate")
        record.base_happiness = species.get("base_happiness")

        chain_url = (species.get("evolution_chain") or {}).get("url")
        if not fetch_chain or not chain_url:
            return
        try:
            chain = self._get_json(chain_url)
        except DataClientError as err:
            logger.warning("Failed to fetch evolution chain for %s: %s", record.name, err)
            return
        record.evolution_chain = flatten_evolution_chain(chain.get("chain"))

    def _attach_type_relations(self, record: EntityRecord) -> None:
        relations = {"weak_to": set(), "resists": set(), "immune_to": set(), "strong_against": set()}
        for type_name in record.types:
            try:
                damage = self._get_json(f"type/{type_name}").get("damage_relations", {})
            except DataClientError as err:
                logger.warning("Failed to fetch type data for %s: %s", type_name, err)
                continue
            relations["weak_to"].update(t["name"] for t in damage.get("double_damage_from", []))
            relations["resists"].update(t["name"] for t in damage.get("half_damage_from", []))
            relations["immune_to"].update(t["name"] for t in damage.get("no_damage_from", []))
            relations["strong_against"].update(t["name"] for t in damage.get("double_damage_to", []))
        record.type_relations = {key: sorted(values) for key, values in relations.items()}

    def _attach_ability_effects(self, record: EntityRecord) -> None:
        effects = {}
        for ability in record.abilities:
            try:
                payload = self._get_json(f"ability/{ability}")
            except DataClientError as err:
                logger.warning("Failed to fetch ability data for %s: %s", ability, err)
                continue
            effects[ability] = _english_entry(payload.get("effect_entries"), "short_effect")
        record.ability_effects = effects

    def _attach_encounters(self, record: EntityRecord, slug: str) -> None:
        try:
            encounters = self._get_json(f"pokemon/{slug}/encounters")
        except DataClientError as err:
            logger.warning("Failed to fetch encounters for %s: %s", slug, err)
            return
        names = []
        for entry in encounters or []:
            area = (entry.get("location_area") or {}).get("name")
            if area and area not in names:
                names.append(area)
        record.encounter_locations = names
