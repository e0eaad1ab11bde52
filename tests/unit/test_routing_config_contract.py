from pathlib import Path

import pytest
from pydantic import ValidationError

from search_routing.contracts.routing_config_v1 import (
    CategoryPolicy,
    FallbackPolicy,
    KeyType,
    QuotaConfig,
    SelectionStrategy,
    load_config_file,
    parse_config,
)
from search_routing.orchestrators.search.config_store import ConfigStore
from search_routing.orchestrators.search.errors import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def test_parse_minimal_document_applies_defaults():
    config = parse_config({})

    assert config.version == "1.0"
    assert config.routing.category_policy == CategoryPolicy.PARALLEL
    assert config.routing.fallback == FallbackPolicy.NEXT_AVAILABLE
    assert config.routing.timeout_ms == 10000
    assert config.categories == []
    assert config.trial.enabled is True


def test_parse_full_document(routing_document):
    config = parse_config(routing_document)

    news = config.category("news")
    assert news is not None
    assert news.selection == SelectionStrategy.WEIGHTED
    assert news.providers == ["newsfeed"]
    scholar = config.provider("scholar")
    assert scholar.key_type == KeyType.BYOK
    assert scholar.byok_only is True
    assert config.provider("newsfeed").requires_key is False
    assert config.trial.per_user_daily["news"] == 2


def test_unknown_provider_in_category_is_rejected(routing_document):
    routing_document["categories"][0]["providers"].append("ghost")

    with pytest.raises(ValidationError, match="unknown providers"):
        parse_config(routing_document)


def test_duplicate_category_id_is_rejected(routing_document):
    routing_document["categories"].append(dict(routing_document["categories"][0]))

    with pytest.raises(ValidationError, match="duplicate category"):
        parse_config(routing_document)


def test_role_override_must_reference_known_providers(routing_document):
    routing_document["role_overrides"] = {"r1": {"pin": ["ghost"]}}

    with pytest.raises(ValidationError, match="role override 'r1'"):
        parse_config(routing_document)


def test_negative_override_weight_is_rejected(routing_document):
    routing_document["role_overrides"] = {"r1": {"weights": {"papers": -1}}}

    with pytest.raises(ValidationError, match="must be >= 0"):
        parse_config(routing_document)


def test_max_parallel_must_be_positive(routing_document):
    routing_document["categories"][0]["max_parallel"] = 0

    with pytest.raises(ValidationError):
        parse_config(routing_document)


def test_category_providers_are_deduplicated_in_order(routing_document):
    routing_document["categories"][1]["providers"] = ["scholar", "papers", "scholar"]

    config = parse_config(routing_document)

    assert config.category("academic").providers == ["scholar", "papers"]


def test_quota_caps_take_the_stricter_limit():
    quota = QuotaConfig(provider_daily=100, user_daily=10, provider_monthly=500)

    assert quota.daily_cap == 10
    assert quota.monthly_cap == 500
    assert QuotaConfig().daily_cap is None


def test_trial_copy_round_trips_through_alias():
    config = parse_config({"trial": {"copy": {"limit_hit": "stop"}}})

    assert config.trial.copy_.limit_hit == "stop"
    assert config.to_document()["trial"]["copy"]["limit_hit"] == "stop"


def test_shipped_routing_document_is_valid():
    config = load_config_file(PROJECT_ROOT / "config" / "routing.yaml")

    assert {c.id for c in config.categories} == {"web", "news", "academic", "encyclopedia"}
    for provider_id in ("wikimedia", "arxiv", "openalex"):
        assert config.provider(provider_id).key_type == KeyType.NONE


class TestConfigStore:
    def test_update_replaces_top_level_sections(self, routing_document):
        store = ConfigStore(routing_document)
        before = store.current

        updated = store.update_config({"routing": {"timeout_ms": 500, "fallback": "none"}})

        assert updated.routing.timeout_ms == 500
        assert updated.routing.fallback == FallbackPolicy.NONE
        # shallow merge: the whole routing section is replaced
        assert updated.routing.category_policy == CategoryPolicy.PARALLEL
        assert updated.categories == before.categories
        assert store.current is updated
        # the old document is untouched
        assert before.routing.timeout_ms == 2000

    def test_invalid_update_keeps_current_document(self, routing_document):
        store = ConfigStore(routing_document)
        before = store.current

        with pytest.raises(ConfigurationError):
            store.update_config({"categories": [{"id": "x", "providers": ["ghost"]}]})

        assert store.current is before

    def test_invalid_initial_document_raises_configuration_error(self):
        with pytest.raises(ConfigurationError):
            ConfigStore({"routing": {"timeout_ms": 0}})

    def test_from_file_wraps_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot load"):
            ConfigStore.from_file(tmp_path / "missing.yaml")

    def test_from_file_reads_yaml(self, tmp_path):
        path = tmp_path / "routing.yaml"
        path.write_text(
            "version: '2.1'\n"
            "categories:\n"
            "  - id: encyclopedia\n"
            "    providers: [wikimedia]\n"
            "providers:\n"
            "  wikimedia:\n"
            "    category: encyclopedia\n",
            encoding="utf-8",
        )

        store = ConfigStore.from_file(path)

        assert store.version == "2.1"
        assert store.current.category("encyclopedia").providers == ["wikimedia"]
