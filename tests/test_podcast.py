"""Tests for podcast script generation and ElevenLabs rendering."""
import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from plexify.errors import ConfigurationError, ProviderError, StructuredOutputError
from plexify.llm.normalizer import StandardResponse, Usage
from plexify.models.schemas import DialogueTurn
from plexify.services.documents import ExtractedDocument
from plexify.services.elevenlabs import (
    PODCAST_VOICE_IDS,
    TEXT_TO_DIALOGUE_CHUNK_TARGET_CHARS,
    ElevenLabsClient,
    chunk_dialogue,
    split_text_by_max_chars,
)
from plexify.services.podcast_script import (
    MAX_DIALOGUE_CHARS,
    PodcastScriptService,
    build_context,
    clamp_dialogue,
)


def _doc(name: str, text: str) -> ExtractedDocument:
    return ExtractedDocument(id=name, filename=f"{name}.pdf", display_name=name, text=text, page_count=1)


class TestBuildContext:
    def test_wraps_each_source(self):
        context = build_context([_doc("Budget", "line items")])
        assert context == "--- SOURCE: Budget ---\nline items\n--- END SOURCE ---"

    def test_per_document_and_total_limits(self):
        docs = [_doc(f"doc{i}", "x" * 20_000) for i in range(8)]

        context = build_context(docs)

        # 12k per document; stops once 60k has been collected
        assert context.count("--- SOURCE:") == 5
        assert "x" * 12_001 not in context


class TestClampDialogue:
    def test_keeps_turns_within_budget(self):
        turns = [DialogueTurn(speaker="CASSIDY", text="a" * 10), DialogueTurn(speaker="MARK", text="b" * 10)]
        assert clamp_dialogue(turns, max_chars=25) == [
            DialogueTurn(speaker="CASSIDY", text="a" * 10),
            DialogueTurn(speaker="MARK", text="b" * 10),
        ]

    def test_last_turn_is_cut(self):
        turns = [DialogueTurn(speaker="CASSIDY", text="a" * 10), DialogueTurn(speaker="MARK", text="b" * 10)]

        clamped = clamp_dialogue(turns, max_chars=15)

        assert [t.text for t in clamped] == ["a" * 10, "b" * 5]
        assert sum(len(t.text) for t in clamped) <= 15


class TestChunking:
    def test_split_prefers_word_boundaries(self):
        text = " ".join(["word"] * 200)

        parts = split_text_by_max_chars(text, 300)

        assert all(len(p) <= 300 for p in parts)
        assert all(not p.startswith(" ") and not p.endswith(" ") for p in parts)
        assert " ".join(parts) == text

    def test_split_hard_cuts_without_spaces(self):
        assert split_text_by_max_chars("y" * 700, 300) == ["y" * 300, "y" * 300, "y" * 100]

    def test_chunks_respect_limit_and_keep_order(self):
        script = [
            DialogueTurn(speaker="CASSIDY" if i % 2 == 0 else "MARK", text=f"turn {i} " + "z" * 900)
            for i in range(12)
        ]

        chunks = chunk_dialogue(script, TEXT_TO_DIALOGUE_CHUNK_TARGET_CHARS)

        assert len(chunks) > 1
        for chunk in chunks:
            assert sum(len(t.text) for t in chunk) <= TEXT_TO_DIALOGUE_CHUNK_TARGET_CHARS
        flattened = [t for chunk in chunks for t in chunk]
        assert [t.text for t in flattened] == [t.text for t in script]

    def test_oversized_turn_is_split_and_empty_turns_dropped(self):
        script = [
            DialogueTurn(speaker="MARK", text=("long " * 1200).strip()),
            DialogueTurn(speaker="CASSIDY", text="   "),
        ]

        chunks = chunk_dialogue(script, 4500)

        flattened = [t for chunk in chunks for t in chunk]
        assert len(flattened) == 2
        assert all(t.speaker == "MARK" for t in flattened)


def _script_reply(payload: dict) -> MagicMock:
    executor = MagicMock()
    executor.complete = AsyncMock(
        return_value=StandardResponse(
            content="```json\n" + json.dumps(payload) + "\n```",
            provider="anthropic",
            model="claude-sonnet-4-20250514",
            usage=Usage(),
            latency=1,
        )
    )
    return executor


class TestPodcastScriptService:
    @pytest.mark.asyncio
    async def test_generates_validated_script(self, make_settings):
        executor = _script_reply(
            {
                "title": "Inside the Golden Triangle",
                "description": "Collections and wayfinding.",
                "dialogue": [
                    {"speaker": "CASSIDY", "text": "Welcome back to the show."},
                    {"speaker": "NARRATOR", "text": "dropped"},
                    {"speaker": "MARK", "text": "Collections hit ninety four percent."},
                    {"speaker": "MARK", "text": ""},
                ],
            }
        )
        service = PodcastScriptService(executor, cfg=make_settings(anthropic_api_key="sk-ant-test"))

        script = await service.generate("--- SOURCE: A ---\nfacts\n--- END SOURCE ---")

        assert script.title == "Inside the Golden Triangle"
        assert [t.speaker for t in script.dialogue] == ["CASSIDY", "MARK"]
        assert script.word_count == 5 + 5
        args, kwargs = executor.complete.call_args
        assert args[2] == 8192
        assert args[3] is None
        assert args[1][0] == "claude-sonnet-4-20250514"
        assert kwargs["system"]
        assert str(MAX_DIALOGUE_CHARS) in args[4]

    @pytest.mark.asyncio
    async def test_defaults_title_and_description(self, make_settings):
        executor = _script_reply({"dialogue": [{"speaker": "MARK", "text": "Hello."}]})
        service = PodcastScriptService(executor, cfg=make_settings(anthropic_api_key="sk-ant-test"))

        script = await service.generate("ctx", district_name="Downtown BID")

        assert script.title == "Downtown BID Deep Dive"
        assert script.description == "A deep dive discussion of Downtown BID."

    @pytest.mark.asyncio
    async def test_missing_dialogue_is_an_error(self, make_settings):
        service = PodcastScriptService(
            _script_reply({"title": "x"}), cfg=make_settings(anthropic_api_key="sk-ant-test")
        )

        with pytest.raises(StructuredOutputError, match="Failed to parse podcast script"):
            await service.generate("ctx")

    @pytest.mark.asyncio
    async def test_requires_anthropic_key(self, make_settings):
        service = PodcastScriptService(MagicMock(), cfg=make_settings())

        with pytest.raises(ConfigurationError, match="Anthropic API key not configured"):
            await service.generate("ctx")


class TestElevenLabsClient:
    @pytest.mark.asyncio
    async def test_renders_chunks_into_one_file(self, tmp_path, make_settings):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(
                {
                    "url": str(request.url),
                    "key": request.headers["xi-api-key"],
                    "body": json.loads(request.content),
                }
            )
            return httpx.Response(200, content=f"chunk{len(seen)}".encode())

        client = ElevenLabsClient(
            make_settings(elevenlabs_api_key="el-test"),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        script = [
            DialogueTurn(speaker="CASSIDY" if i % 2 == 0 else "MARK", text=" ".join(["word"] * 300))
            for i in range(4)
        ]

        audio = await client.generate_podcast_audio(script, "gt-123")

        assert len(seen) == 2
        assert seen[0]["key"] == "el-test"
        assert seen[0]["url"].endswith("/v1/text-to-dialogue?output_format=mp3_44100_128")
        assert seen[0]["body"]["model_id"] == "eleven_v3"
        assert seen[0]["body"]["settings"] == {"stability": 0.5}
        assert seen[0]["body"]["inputs"][0]["voice_id"] == PODCAST_VOICE_IDS["CASSIDY"]
        assert seen[0]["body"]["inputs"][1]["voice_id"] == PODCAST_VOICE_IDS["MARK"]

        assert audio.audio_url.startswith("/podcasts/podcast-gt-123-")
        written = tmp_path / "podcasts" / audio.audio_url.rsplit("/", 1)[1]
        assert written.read_bytes() == b"chunk1chunk2"
        assert audio.duration == pytest.approx(1200 / 150 * 60)

    @pytest.mark.asyncio
    async def test_vendor_error(self, make_settings):
        client = ElevenLabsClient(
            make_settings(vite_elevenlabs_api_key="el-test"),
            http_client=httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(422, text="bad voice"))
            ),
        )

        with pytest.raises(ProviderError, match="Elevenlabs error 422: bad voice"):
            await client.generate_podcast_audio([DialogueTurn(speaker="MARK", text="hi")], "x")

    @pytest.mark.asyncio
    async def test_requires_key(self, make_settings):
        client = ElevenLabsClient(make_settings())

        assert client.is_configured() is False
        with pytest.raises(ConfigurationError):
            await client.generate_podcast_audio([DialogueTurn(speaker="MARK", text="hi")], "x")
