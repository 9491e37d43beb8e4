"""Pytest configuration and fixtures."""

import pytest

from dexai.core.engine import AgentEngine
from dexai.data.pokeapi_client import PokeApiClient
from dexai.nlp.embedding_scorer import EmbeddingScorer
from dexai.nlp.intent_router import ClassifierContext, default_registry
from dexai.nlp.lexical_classifier import LexicalClassifier
from dexai.nlp.pattern_matcher import PatternMatcher
from dexai.nlp.text_preprocessor import TextPreprocessor
from dexai.tools.entity_tool import EntityInfoTool
from fakes import (
    CountingEmbedder,
    FakeSession,
    HashingEmbedder,
    missing_model_loader,
    no_spacy_loader,
    pokemon_payload,
)


# ==========================================
#  CLASSIFIER FIXTURES
# ==========================================


@pytest.fixture(scope="session")
def preprocessor():
    """Preprocessor with part-of-speech reduction unavailable."""
    return TextPreprocessor(nlp_loader=no_spacy_loader)


@pytest.fixture(scope="session")
def lexical(preprocessor):
    return LexicalClassifier(preprocessor)


@pytest.fixture(scope="session")
def registry():
    return default_registry()


@pytest.fixture(scope="session")
def matcher(registry):
    return PatternMatcher(registry)


@pytest.fixture
def counting_embedder():
    return CountingEmbedder(HashingEmbedder())


@pytest.fixture
def ready_scorer(counting_embedder):
    scorer = EmbeddingScorer(loader=lambda: counting_embedder, enabled=True)
    scorer.initialize()
    return scorer


@pytest.fixture
def unavailable_scorer():
    scorer = EmbeddingScorer(loader=missing_model_loader, enabled=True)
    scorer.initialize()
    return scorer


@pytest.fixture
def context(registry, matcher, lexical, unavailable_scorer):
    """Classifier context with the embedding tier forced unavailable."""
    return ClassifierContext(
        registry=registry,
        pattern_matcher=matcher,
        lexical=lexical,
        embedding=unavailable_scorer,
    )


@pytest.fixture
def quality_context(registry, matcher, lexical, ready_scorer):
    """Classifier context with a ready, call-counting embedding tier."""
    return ClassifierContext(
        registry=registry,
        pattern_matcher=matcher,
        lexical=lexical,
        embedding=ready_scorer,
    )


# ==========================================
#  DATA PROVIDER FIXTURES
# ==========================================


@pytest.fixture
def pokeapi_routes():
    return {
        "pokemon/pikachu": pokemon_payload("pikachu", 25, ["electric"], (35, 55, 40, 50, 50, 90)),
        "pokemon/rhyhorn": pokemon_payload(
            "rhyhorn", 111, ["ground", "rock"], (80, 85, 95, 30, 30, 25), abilities=("lightning-rod", "rock-head")
        ),
        "pokemon-species/25/": {
            "flavor_text_entries": [
                {"flavor_text": "Cuando se enfada", "language": {"name": "es"}},
                {"flavor_text": "When several of\nthese POKéMON\fgather.", "language": {"name": "en"}},
            ],
            "egg_groups": [{"name": "ground"}, {"name": "fairy"}],
            "generation": {"name": "generation-i"},
            "habitat": {"name": "forest"},
            "capture_rate": 190,
            "base_happiness": 50,
            "evolution_chain": {"url": "https://pokeapi.test/api/v2/evolution-chain/10/"},
        },
        "evolution-chain/10/": {
            "chain": {
                "species": {"name": "pichu"},
                "evolves_to": [
                    {
                        "species": {"name": "pikachu"},
                        "evolves_to": [{"species": {"name": "raichu"}, "evolves_to": []}],
                    }
                ],
            }
        },
        "type/electric": {
            "damage_relations": {
                "double_damage_from": [{"name": "ground"}],
                "half_damage_from": [{"name": "electric"}, {"name": "flying"}, {"name": "steel"}],
                "no_damage_from": [],
                "double_damage_to": [{"name": "water"}, {"name": "flying"}],
            }
        },
        "type/ground": {
            "damage_relations": {
                "double_damage_from": [{"name": "water"}, {"name": "grass"}, {"name": "ice"}],
                "half_damage_from": [{"name": "poison"}, {"name": "rock"}],
                "no_damage_from": [{"name": "electric"}],
                "double_damage_to": [{"name": "electric"}, {"name": "fire"}, {"name": "rock"}],
            }
        },
        "type/rock": {
            "damage_relations": {
                "double_damage_from": [{"name": "water"}, {"name": "grass"}],
                "half_damage_from": [{"name": "normal"}, {"name": "fire"}],
                "no_damage_from": [],
                "double_damage_to": [{"name": "fire"}, {"name": "flying"}],
            }
        },
        "ability/static": {
            "effect_entries": [
                {"short_effect": "Has a 30% chance of paralyzing attacking Pokemon on contact.", "language": {"name": "en"}}
            ]
        },
        "pokemon/pikachu/encounters": [
            {"location_area": {"name": "viridian-forest-area"}},
            {"location_area": {"name": "viridian-forest-area"}},
            {"location_area": {"name": "power-plant-area"}},
        ],
    }


@pytest.fixture
def fake_session(pokeapi_routes):
    return FakeSession(pokeapi_routes)


@pytest.fixture
def client(fake_session):
    return PokeApiClient(base_url="https://pokeapi.test/api/v2", timeout=1, cache_ttl=60, session=fake_session)


@pytest.fixture
def engine(context, client):
    return AgentEngine(context, tool=EntityInfoTool(client), cache_ttl=60, default_mode="balanced")
