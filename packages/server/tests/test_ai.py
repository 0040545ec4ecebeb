"""
Unit tests for the AI layer: lenient JSON parsing, schedule generation
helpers, analyzer reply parsing and provider error classification.
"""

from __future__ import annotations

import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.ai import scheduler
from app.ai.analyzer import (
    STARTER_TASKS,
    build_chat_prompt,
    extract_structured_data,
    parse_document_reply,
    parse_tasks_reply,
)
from app.ai.client import AIClient, AIErrorType, AIProviderError, classify_status
from app.ai.json_repair import extract_json_object, loads_lenient, repair_json


# ---------------------------------------------------------------------------
# JSON repair
# ---------------------------------------------------------------------------

class TestJSONRepair:
    def test_plain_json(self):
        assert loads_lenient('{"a": 1}') == {"a": 1}

    def test_code_fence_and_prose(self):
        text = 'Aquí tienes:\n```json\n{"name": "Plan", "entries": []}\n```\n¡Éxito!'
        assert loads_lenient(text) == {"name": "Plan", "entries": []}

    def test_no_object(self):
        assert extract_json_object("sin json") is None
        assert loads_lenient("sin json") is None

    def test_trailing_commas(self):
        assert loads_lenient('{"a": [1, 2,], "b": 3,}') == {"a": [1, 2], "b": 3}

    def test_unquoted_keys_and_single_quotes(self):
        assert loads_lenient("{title: 'Hola', platform: 'Instagram'}") == {
            "title": "Hola",
            "platform": "Instagram",
        }

    def test_trailing_comma_with_colon_in_prose(self):
        text = (
            '{"name": "C", "entries": [{"title": "A", "content": "Hola, amigos: hoy lanzamos",'
            ' "platform": "Instagram", "postDate": "2025-01-02", "postTime": "10:00",}]}'
        )
        data = loads_lenient(text)
        assert data["entries"][0]["content"] == "Hola, amigos: hoy lanzamos"
        assert data["entries"][0]["postTime"] == "10:00"

    def test_unquoted_keys_leave_string_values_alone(self):
        text = '{title: "Hola, amigos: hoy", platform: "Instagram"}'
        assert loads_lenient(text) == {"title": "Hola, amigos: hoy", "platform": "Instagram"}

    def test_doubled_quotes(self):
        assert loads_lenient('{""title"": ""Hola"", "platform": "Facebook"}') == {
            "title": "Hola",
            "platform": "Facebook",
        }

    def test_time_key_renamed(self):
        assert json.loads(repair_json('{"time": "10:00"}')) == {"postTime": "10:00"}

    def test_split_time(self):
        assert json.loads(repair_json('{"postTime": "14": 30"}')) == {"postTime": "14:30"}

    def test_truncated_reply_is_closed(self):
        data = loads_lenient('{"name": "Plan", "entries": [{"title": "Uno"}, {"title": "Do')
        assert data["name"] == "Plan"
        assert data["entries"][0] == {"title": "Uno"}

    def test_adjacent_objects(self):
        assert loads_lenient('{"entries": [{"a": 1} {"a": 2}]}') == {"entries": [{"a": 1}, {"a": 2}]}


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

START = date(2025, 3, 1)


class TestPostsForPeriod:
    def test_no_networks(self):
        assert scheduler.posts_for_period(None, 15) == 3
        assert scheduler.posts_for_period([], 31) == 7

    def test_per_network_rounding(self):
        networks = [
            {"name": "Instagram", "postsPerMonth": 8},
            {"name": "Facebook", "posts_per_month": "4"},
        ]
        # ceil(8 * 15 / 30) + ceil(4 * 15 / 30)
        assert scheduler.posts_for_period(networks, 15) == 6

    def test_unselected_and_zero_networks_ignored(self):
        networks = [
            {"name": "Instagram", "postsPerMonth": 12, "selected": False},
            {"name": "TikTok", "postsPerMonth": 0},
            {"name": "LinkedIn", "frequency": 2},
            "not a network",
        ]
        assert scheduler.selected_networks(networks) == [{"name": "LinkedIn", "posts_per_month": 2.0}]
        assert scheduler.posts_for_period(networks, 31) == 3


class TestSchedulePrompt:
    def test_includes_networks_history_and_instructions(self):
        prompt = scheduler.build_schedule_prompt(
            {"name": "Café Aurora", "client": "Aurora"},
            {"brand_tone": "Cercano", "social_networks": [{"name": "Instagram", "postsPerMonth": 8}]},
            START,
            15,
            previous_content=["Post sobre el tueste"],
            additional_instructions="Evitar emojis",
        )
        assert "Café Aurora" in prompt
        assert "Instagram: 4 publicaciones" in prompt
        assert "Post sobre el tueste" in prompt
        assert "Genera exactamente 4 publicaciones" in prompt
        assert "PRIORIDAD MÁXIMA" in prompt
        assert "2025-03-16" in prompt

    def test_defaults_without_analysis(self):
        prompt = scheduler.build_schedule_prompt({"name": "X"}, None, START, 31)
        assert "Sugiere 2-3 redes sociales" in prompt
        assert "Sin historial de contenido previo" in prompt


class TestParseScheduleReply:
    def test_entries_normalised_and_sorted(self):
        reply = json.dumps({
            "name": "Marzo",
            "entries": [
                {"title": "B", "platform": "Instagram", "postDate": "2025-03-05", "postTime": "9:5"},
                {"title": "A", "platform": "Facebook", "postDate": "2025-03-02T00:00:00",
                 "postTime": "18:30", "hashtags": ["#a", "#b"], "copyIn": "Texto"},
                {"title": "Sin fecha", "platform": "Instagram"},
                {"platform": "Instagram", "postDate": "2025-03-03"},
            ],
        })
        result = scheduler.parse_schedule_reply(reply, "Café", START)
        assert result.name == "Marzo"
        assert result.used_fallback is False
        assert [e["title"] for e in result.entries] == ["A", "B"]
        first = result.entries[0]
        assert first["post_date"] == date(2025, 3, 2)
        assert first["hashtags"] == "#a #b"
        assert first["copy_in"] == "Texto"
        assert result.entries[1]["post_time"] == "12:00"

    def test_fallback_entry(self):
        result = scheduler.parse_schedule_reply("Lo siento, no puedo.", "Café", START)
        assert result.used_fallback is True
        assert result.name == "Cronograma para Café"
        [entry] = result.entries
        assert entry["title"] == scheduler.FALLBACK_TITLE
        assert entry["post_date"] == START
        assert entry["platform"] == "Instagram"

    def test_trailing_comma_reply_is_not_a_fallback(self):
        reply = (
            '{"name": "Enero", "entries": [{"title": "Apertura", "content": "Hola, amigos: hoy lanzamos",'
            ' "platform": "Instagram", "postDate": "2025-01-02", "postTime": "10:00",}]}'
        )
        result = scheduler.parse_schedule_reply(reply, "Café", START)
        assert result.used_fallback is False
        [entry] = result.entries
        assert entry["title"] == "Apertura"
        assert entry["content"] == "Hola, amigos: hoy lanzamos"

    def test_post_time_normalisation(self):
        assert scheduler.normalize_post_time("7:05 pm") == "07:05"
        assert scheduler.normalize_post_time("25:00") == "12:00"
        assert scheduler.normalize_post_time(None) == "12:00"


class TestEntryRegeneration:
    ENTRY = {
        "title": "Título original",
        "description": "Objetivo: awareness",
        "content": "Hook",
        "platform": "Instagram",
        "hashtags": "#cafe",
    }

    def test_resolve_areas(self):
        assert scheduler.resolve_areas({"titles": True, "copyIn": True, "hashtags": False}) == [
            "titles",
            "copy_in",
        ]
        assert scheduler.resolve_areas({}) == list(scheduler.AREA_FIELDS)
        assert scheduler.resolve_areas({"bogus": True}) == list(scheduler.AREA_FIELDS)

    def test_only_selected_areas_change(self):
        reply = json.dumps({
            "title": "Nuevo título",
            "platform": "TikTok",
            "hashtags": ["#cafe", "#origen"],
        })
        changes = scheduler.apply_entry_edit(self.ENTRY, reply, ["titles", "hashtags"])
        assert changes == {"title": "Nuevo título", "hashtags": "#cafe #origen"}

    def test_unchanged_and_blank_values_ignored(self):
        reply = json.dumps({"title": "Título original", "description": "  "})
        assert scheduler.apply_entry_edit(self.ENTRY, reply, ["titles", "descriptions"]) == {}

    def test_unusable_reply(self):
        assert scheduler.apply_entry_edit(self.ENTRY, "no json", ["titles"]) == {}

    def test_edit_prompt_lists_specific_instructions(self):
        prompt = scheduler.build_edit_prompt(
            self.ENTRY, ["titles", "copy_out"], "Tono formal", {"copyOut": "Más corto"}
        )
        assert "Título original" in prompt
        assert "Tono formal" in prompt
        assert "TEXTO DESCRIPCIÓN (copyOut): Más corto" in prompt


# ---------------------------------------------------------------------------
# Analyzer
# ---------------------------------------------------------------------------

class TestAnalyzer:
    def test_structured_sections(self):
        text = "1. Colores: Naranja y crema\n2) Tipografía: Sans serif"
        assert extract_structured_data(text) == {"Colores": "Naranja y crema", "Tipografía": "Sans serif"}

    def test_numbered_points(self):
        assert extract_structured_data("1. Buena luz\n2. Mucho texto") == {
            "Punto 1": "Buena luz",
            "Punto 2": "Mucho texto",
        }

    def test_json_reply(self):
        assert extract_structured_data('{"score": 8}') == {"score": 8}

    def test_document_reply_aliases(self):
        result = parse_document_reply('{"brandTone": "Cálido", "summary": "Resumen", "extra": 1}')
        assert result == {"brand_tone": "Cálido", "summary": "Resumen"}

    def test_document_reply_not_json(self):
        text = "x" * 1500
        assert parse_document_reply(text) == {"summary": "x" * 1000 + "..."}

    def test_tasks_reply_fallback(self):
        tasks = parse_tasks_reply('{"tasks": []}')
        assert [t["title"] for t in tasks] == [t["title"] for t in STARTER_TASKS]
        tasks[0]["tags"].append("mutated")
        assert "mutated" not in STARTER_TASKS[0]["tags"]

    def test_chat_prompt_with_context_and_history(self):
        prompt = build_chat_prompt(
            "¿Ideas para abril?",
            {"name": "Café Aurora", "client": "Aurora"},
            [{"role": "user", "content": "Hola"}, {"role": "assistant", "content": "¡Hola!"}],
        )
        assert 'proyecto llamado "Café Aurora"' in prompt
        assert "Usuario: Hola\nAsistente: ¡Hola!" in prompt
        assert prompt.endswith("Usuario: ¿Ideas para abril?\n\nAsistente:")


# ---------------------------------------------------------------------------
# Provider client
# ---------------------------------------------------------------------------

def _client(**kwargs) -> AIClient:
    params = dict(provider="mistral", api_key="test-key", base_url="https://ai.example.com/v1/", model="m")
    params.update(kwargs)
    return AIClient(**params)


def _mock_http(response=None, exc=None):
    http = AsyncMock()
    if exc is not None:
        http.post.side_effect = exc
    else:
        http.post.return_value = response
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = http
    return patch("app.ai.client.httpx.AsyncClient", factory), http


class TestAIClient:
    def test_classify_status(self):
        assert classify_status(401) == AIErrorType.AUTH
        assert classify_status(403) == AIErrorType.AUTH
        assert classify_status(429) == AIErrorType.RATE_LIMIT
        assert classify_status(502) == AIErrorType.NETWORK
        assert classify_status(400) == AIErrorType.UNKNOWN

    def test_error_status_mapping(self):
        assert AIProviderError("x", AIErrorType.NETWORK).status_code == 503
        assert AIProviderError("x", AIErrorType.RATE_LIMIT).status_code == 429
        assert AIProviderError("x", AIErrorType.AUTH).status_code == 502
        assert AIProviderError("x", AIErrorType.JSON_PARSING).status_code == 422
        assert AIProviderError("x").status_code == 500

    @pytest.mark.asyncio
    async def test_generate_text(self):
        response = httpx.Response(200, json={"choices": [{"message": {"content": "Hola"}}]})
        patcher, http = _mock_http(response)
        with patcher:
            assert await _client().generate_text("hi", temperature=0.2) == "Hola"
        url = http.post.call_args.args[0]
        payload = http.post.call_args.kwargs["json"]
        assert url == "https://ai.example.com/v1/chat/completions"
        assert payload["temperature"] == 0.2
        assert payload["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_image_prompt_carries_data_url(self):
        response = httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})
        patcher, http = _mock_http(response)
        with patcher:
            await _client().generate_text_with_image("describe", "QUJD", mime_type="image/png")
        content = http.post.call_args.kwargs["json"]["messages"][0]["content"]
        assert content[0]["image_url"]["url"] == "data:image/png;base64,QUJD"

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(AIProviderError) as exc_info:
            await _client(api_key="").generate_text("hi")
        assert exc_info.value.error_type == AIErrorType.AUTH

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        patcher, _ = _mock_http(httpx.Response(429, text="slow down"))
        with patcher, pytest.raises(AIProviderError) as exc_info:
            await _client().generate_text("hi")
        assert exc_info.value.error_type == AIErrorType.RATE_LIMIT

    @pytest.mark.asyncio
    async def test_timeout(self):
        patcher, _ = _mock_http(exc=httpx.ReadTimeout("timed out"))
        with patcher, pytest.raises(AIProviderError) as exc_info:
            await _client().generate_text("hi")
        assert exc_info.value.error_type == AIErrorType.NETWORK

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        patcher, _ = _mock_http(httpx.Response(200, text="<html>oops</html>"))
        with patcher, pytest.raises(AIProviderError) as exc_info:
            await _client().generate_text("hi")
        assert exc_info.value.error_type == AIErrorType.JSON_PARSING

    @pytest.mark.asyncio
    async def test_unexpected_shape(self):
        patcher, _ = _mock_http(httpx.Response(200, json={"choices": []}))
        with patcher, pytest.raises(AIProviderError) as exc_info:
            await _client().generate_text("hi")
        assert exc_info.value.error_type == AIErrorType.UNKNOWN

    @pytest.mark.asyncio
    async def test_image_generation_unavailable(self):
        with pytest.raises(AIProviderError) as exc_info:
            await _client(provider="openai").generate_image("a cup of coffee")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_image_generation(self):
        response = httpx.Response(200, json={"data": [{"url": "https://img.example.com/1.png"}]})
        patcher, http = _mock_http(response)
        with patcher:
            url = await _client(image_model="img-model").generate_image("a cup of coffee")
        assert url == "https://img.example.com/1.png"
        assert http.post.call_args.kwargs["json"]["model"] == "img-model"
