"""Tests for the YAML prompt library."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from capserve.api.mcp.app import CapabilityServer
from capserve.core.mcp.descriptors import Role
from capserve.servers.prompts.provider import (
    PromptDefinitionError,
    YamlPrompt,
    YamlPromptProvider,
)


@pytest.fixture
def temp_prompts_dir(tmp_path):
    """Empty directory for user prompt definitions."""
    prompts_dir = tmp_path / "prompts"
    prompts_dir.mkdir()
    return prompts_dir


@pytest.fixture
def sample_prompt_data():
    """Prompt definition embedding a templated resource."""
    return {
        "name": "explain_profile",
        "description": "Explain a user profile",
        "arguments": [
            {"name": "user_id", "description": "User to explain"},
            {"name": "audience", "default": "a new teammate"},
        ],
        "messages": [
            {"role": "system", "content": "Explain things to {audience}."},
            {"role": "user", "content": "Who is {user_id}?"},
            {"resource": "user://{user_id}/profile"},
        ],
    }


def _write(directory: Path, filename: str, data) -> Path:
    path = directory / filename
    with path.open("w") as f:
        yaml.safe_dump(data, f)
    return path


class TestYamlPromptProvider:
    """Test loading definitions."""

    @pytest.mark.unit
    def test_init_with_custom_dir(self, temp_prompts_dir):
        provider = YamlPromptProvider(prompts_dir=temp_prompts_dir)
        assert provider.user_prompts_dir == temp_prompts_dir

    @pytest.mark.unit
    def test_init_with_env_var(self, temp_prompts_dir):
        """Test CAPSERVE_PROMPTS_DIR is used when no directory is given."""
        with patch.dict(os.environ, {"CAPSERVE_PROMPTS_DIR": str(temp_prompts_dir)}):
            provider = YamlPromptProvider()
        assert provider.user_prompts_dir == temp_prompts_dir

    @pytest.mark.unit
    def test_init_defaults_to_xdg(self, tmp_path):
        """Test the XDG prompts directory is used and not created."""
        provider = YamlPromptProvider()

        assert provider.user_prompts_dir == tmp_path / "xdg" / "capserve" / "prompts"
        assert not provider.user_prompts_dir.exists()

    @pytest.mark.unit
    def test_builtin_guides_loaded(self, temp_prompts_dir):
        provider = YamlPromptProvider(prompts_dir=temp_prompts_dir)

        assert provider.list_prompts() == {
            "code_review": "builtin",
            "summarize_text": "builtin",
        }

    @pytest.mark.unit
    def test_user_prompt_loaded(self, temp_prompts_dir, sample_prompt_data):
        _write(temp_prompts_dir, "explain.yaml", sample_prompt_data)

        provider = YamlPromptProvider(prompts_dir=temp_prompts_dir)

        assert provider.list_prompts()["explain_profile"] == "user"

    @pytest.mark.unit
    def test_name_defaults_to_file_stem(self, temp_prompts_dir, sample_prompt_data):
        del sample_prompt_data["name"]
        _write(temp_prompts_dir, "from_stem.yaml", sample_prompt_data)

        provider = YamlPromptProvider(prompts_dir=temp_prompts_dir)

        assert "from_stem" in provider.list_prompts()

    @pytest.mark.unit
    def test_user_overrides_builtin(self, temp_prompts_dir):
        """Test a user definition replaces the built-in of the same name."""
        _write(
            temp_prompts_dir,
            "mine.yaml",
            {
                "name": "summarize_text",
                "arguments": ["text"],
                "messages": [{"content": "TL;DR: {text}"}],
            },
        )

        provider = YamlPromptProvider(prompts_dir=temp_prompts_dir)

        assert provider.list_prompts()["summarize_text"] == "user"

    @pytest.mark.unit
    def test_invalid_files_skipped(self, temp_prompts_dir, sample_prompt_data):
        """Test broken YAML and malformed definitions are logged and skipped."""
        (temp_prompts_dir / "broken.yaml").write_text("name: [unclosed\n")
        _write(temp_prompts_dir, "no_messages.yaml", {"name": "empty"})
        _write(
            temp_prompts_dir,
            "bad_resource.yaml",
            {"name": "bad", "messages": [{"resource": "user://{who}/profile"}]},
        )
        _write(temp_prompts_dir, "good.yaml", sample_prompt_data)

        provider = YamlPromptProvider(prompts_dir=temp_prompts_dir)
        prompts = provider.list_prompts()

        assert "explain_profile" in prompts
        assert "empty" not in prompts
        assert "bad" not in prompts

    @pytest.mark.unit
    def test_non_yaml_files_ignored(self, temp_prompts_dir):
        (temp_prompts_dir / "notes.txt").write_text("not a prompt")

        provider = YamlPromptProvider(prompts_dir=temp_prompts_dir)

        assert set(provider.list_prompts()) == {"code_review", "summarize_text"}


class TestYamlPrompt:
    """Test rendering a single definition."""

    @pytest.mark.unit
    def test_unknown_placeholders_left_untouched(self):
        prompt = YamlPrompt(
            "literal", [{"role": Role.USER, "content": "Use {braces} for {name}"}]
        )

        messages = prompt(name="Ada")

        assert messages[0].content == "Use {braces} for Ada"

    @pytest.mark.unit
    def test_literal_braces_kept(self):
        """Test JSON examples and positional braces in content survive expansion."""
        prompt = YamlPrompt(
            "json",
            [
                {
                    "role": Role.USER,
                    "content": 'Explain {topic}. Reply as JSON, e.g. {} or {0} or {"k": 1}',
                }
            ],
        )

        messages = prompt(topic="recursion")

        assert messages[0].content == (
            'Explain recursion. Reply as JSON, e.g. {} or {0} or {"k": 1}'
        )

    @pytest.mark.unit
    def test_definition_error_is_value_error(self):
        assert issubclass(PromptDefinitionError, ValueError)


class TestRegistration:
    """Test YAML prompts served through a capability server."""

    @pytest.fixture
    def app(self, server, temp_prompts_dir, sample_prompt_data):
        _write(temp_prompts_dir, "explain.yaml", sample_prompt_data)
        server.add_provider(
            YamlPromptProvider(prompts_dir=temp_prompts_dir, expose_definitions=True)
        )
        return server

    @pytest.mark.unit
    def test_listed_with_arguments(self, app):
        prompts = {p["name"]: p for p in app.list_prompts()}

        assert prompts["explain_profile"]["arguments"] == [
            {"name": "user_id", "description": "User to explain", "required": True},
            {"name": "audience", "description": "", "required": False},
        ]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_expansion_embeds_resource(self, app):
        """Test the resource entry is resolved against the server's registry."""
        messages = await app.get_prompt("explain_profile", {"user_id": "ada"})

        assert [m.role for m in messages] == [
            Role.SYSTEM,
            Role.USER,
            Role.RESOURCE_ATTACHMENT,
        ]
        assert messages[0].content == "Explain things to a new teammate."
        assert messages[1].content == "Who is ada?"
        assert messages[2].resource.value["name"] == "Ada Lovelace"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_builtin_prompt_defaults(self, app):
        messages = await app.get_prompt("code_review", {"code": "x = 1"})

        assert messages[0].role is Role.SYSTEM
        assert "python reviewer" in messages[0].content
        assert "x = 1" in messages[1].content
        assert "correctness and readability" in messages[1].content

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_definitions_exposed_as_resources(self, app):
        """Test raw definitions can be read back as YAML resources."""
        contents = await app.read_resource("prompt://explain_profile")

        assert contents.mime_type == "text/yaml"
        assert yaml.safe_load(contents.text)["name"] == "explain_profile"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_json_example_in_yaml_content(self, server, temp_prompts_dir):
        """Test a definition quoting a JSON example expands through the server."""
        _write(
            temp_prompts_dir,
            "json_reply.yaml",
            {
                "name": "json_reply",
                "arguments": ["topic"],
                "messages": [{"content": "Explain {topic}. Reply as JSON, e.g. {}"}],
            },
        )
        server.add_provider(YamlPromptProvider(prompts_dir=temp_prompts_dir))

        response = await server.handle(
            {
                "method": "prompts/get",
                "params": {"name": "json_reply", "arguments": {"topic": "sets"}},
            }
        )

        assert response.ok
        assert response.result[0].content == "Explain sets. Reply as JSON, e.g. {}"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_name_taken_by_code_prompt_skipped(self, server, temp_prompts_dir):
        """Test a definition clashing with a registered prompt leaves it in place."""
        _write(
            temp_prompts_dir,
            "clash.yaml",
            {
                "name": "summarize_profile",
                "arguments": ["user_id"],
                "messages": [{"content": "Shadowed {user_id}"}],
            },
        )

        server.add_provider(YamlPromptProvider(prompts_dir=temp_prompts_dir))

        messages = await server.get_prompt("summarize_profile", {"user_id": "ada"})
        assert "Shadowed" not in messages[0].content
        assert "code_review" in {p["name"] for p in server.list_prompts()}
