"""Tests for capabilities/factory.py: capabilities, prompts and the agent cache."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from sop_agents.capabilities.factory import (
    CapabilityFactory,
    build_prompt,
    capability_name,
    definition_name,
)
from sop_agents.definitions.discovery import discover
from sop_agents.engine.base import FunctionTool


@pytest.fixture
def registry(research_dir):
    return discover(research_dir)


@pytest.fixture
def engine(scripted_engine):
    return scripted_engine()


@pytest.fixture
def factory(engine):
    return CapabilityFactory(engine)


class TestNames:
    def test_capability_name(self):
        assert capability_name("research") == "agent_research"

    def test_definition_name(self):
        assert definition_name("agent_research") == "research"
        assert definition_name("search") is None


class TestBuildPrompt:
    def test_task_only(self):
        assert build_prompt("Summarize", {"task": "Summarize"}) == "## Task\nSummarize"

    def test_inputs_rendered_as_json(self):
        prompt = build_prompt(
            "Summarize",
            {"task": "Summarize", "style": "dry", "limit": 3.0, "tags": ["a", "b"]},
        )
        assert prompt == (
            "## Task\nSummarize\n\n## Input Parameters\n"
            '- style: "dry"\n- limit: 3.0\n- tags: ["a", "b"]'
        )

    def test_non_ascii_kept(self):
        assert '- city: "Zürich"' in build_prompt("t", {"city": "Zürich"})


class TestCapability:
    def test_exposes_name_description_and_schema(self, factory, registry):
        capability = factory.create_invocable(registry["research"])
        assert capability.name == "agent_research"
        assert capability.description == "Researches a topic and reports findings"
        schema = capability.parameters
        assert schema["required"] == ["task"]
        assert schema["properties"]["depth"]["anyOf"][0]["enum"] == ["quick", "thorough"]

    def test_prompt_for_omits_unset_optional(self, factory, registry):
        capability = factory.create_invocable(registry["research"])
        assert capability.prompt_for({"task": "Find X"}) == "## Task\nFind X"

    def test_prompt_for_includes_defaults(self, factory, registry):
        capability = factory.create_invocable(registry["writer"])
        prompt = capability.prompt_for({"task": "Write"})
        assert prompt == '## Task\nWrite\n\n## Input Parameters\n- style: "plain"'

    def test_prompt_for_rejects_bad_arguments(self, factory, registry):
        capability = factory.create_invocable(registry["research"])
        with pytest.raises(ValidationError):
            capability.prompt_for({"task": "Find X", "depth": "bottomless"})

    def test_prompt_for_renders_date_default(self, factory, write_sop, make_sop, sop_dir):
        sop = make_sop(
            """
            name: digest
            description: D
            inputs:
              since:
                type: string
                default: 2024-01-01
            """
        )
        write_sop("digest.md", sop, sop_dir)
        capability = factory.create_invocable(discover(sop_dir)["digest"])
        prompt = capability.prompt_for({"task": "Summarize"})
        assert prompt == '## Task\nSummarize\n\n## Input Parameters\n- since: "2024-01-01"'

    @pytest.mark.asyncio
    async def test_invoke_runs_sub_agent(self, factory, registry, engine):
        capability = factory.create_invocable(registry["research"])
        result = await capability.invoke({"task": "Find X", "depth": "quick"})
        assert result.startswith("Agent response for: ## Task\nFind X")
        assert '- depth: "quick"' in result
        assert engine.sessions[0]["instructions"] == "# Research\n\nResearch instructions."

    @pytest.mark.asyncio
    async def test_stream_yields_text(self, factory, registry):
        capability = factory.create_invocable(registry["research"])
        chunks = [c async for c in capability.stream({"task": "Find X"})]
        assert "".join(chunks) == "Agent response for: ## Task\nFind X"

    def test_create_all(self, factory, registry):
        names = [c.name for c in factory.create_all(registry)]
        assert sorted(names) == ["agent_research", "agent_writer"]


class TestAgentCache:
    def test_same_name_same_agent(self, factory, registry):
        first = factory.get_or_create(registry["research"])
        second = factory.get_or_create(registry["research"])
        assert first is second
        assert factory.cached_names() == ["research"]

    def test_different_definitions_different_agents(self, factory, registry):
        research = factory.get_or_create(registry["research"])
        writer = factory.get_or_create(registry["writer"])
        assert research is not writer
        assert research.instructions != writer.instructions

    def test_clear_cache_builds_fresh_agent(self, factory, registry):
        first = factory.get_or_create(registry["research"])
        factory.clear_cache()
        assert factory.cached_names() == []
        assert factory.get_or_create(registry["research"]) is not first

    def test_capabilities_share_cached_agent(self, factory, registry):
        a = factory.create_invocable(registry["research"])
        b = factory.create_invocable(registry["research"])
        assert a.agent() is b.agent()

    def test_caches_are_per_factory(self, engine, registry):
        one = CapabilityFactory(engine).get_or_create(registry["research"])
        two = CapabilityFactory(engine).get_or_create(registry["research"])
        assert one is not two


class TestModelsAndTools:
    def test_default_model_resolved_with_provider(self, engine, registry):
        factory = CapabilityFactory(engine, default_model="gpt-4o", default_provider="openai")
        assert factory.get_or_create(registry["research"]).model == "openai/gpt-4o"

    def test_no_model_leaves_engine_default(self, factory, registry):
        assert factory.get_or_create(registry["research"]).model is None

    def test_definition_model_wins(self, engine, write_sop, make_sop, sop_dir):
        write_sop(
            "pinned.md",
            make_sop("name: pinned\ndescription: D\nmodel: anthropic/claude-3-haiku"),
            sop_dir,
        )
        definition = discover(sop_dir)["pinned"]
        factory = CapabilityFactory(engine, default_model="gpt-4o", default_provider="openai")
        assert factory.get_or_create(definition).model == "anthropic/claude-3-haiku"

    def test_declared_tools_injected(self, engine, write_sop, make_sop, sop_dir):
        sop = make_sop("name: searcher\ndescription: D\ntools: [search]")
        write_sop("searcher.md", sop, sop_dir)
        search = FunctionTool("search", "Search the web", lambda query="": f"hits for {query}")
        factory = CapabilityFactory(engine, tools={"search": search})
        agent = factory.get_or_create(discover(sop_dir)["searcher"])
        assert agent.tools == [search]

    def test_unknown_tool_warns_and_is_skipped(self, engine, write_sop, make_sop, sop_dir, caplog):
        write_sop("searcher.md", make_sop("name: searcher\ndescription: D\ntools: [nope]"), sop_dir)
        factory = CapabilityFactory(engine)
        with caplog.at_level(logging.WARNING, logger="sop_agents"):
            agent = factory.get_or_create(discover(sop_dir)["searcher"])
        assert agent.tools == []
        assert any('Tool "nope"' in r.getMessage() for r in caplog.records)
