"""Unit tests for the chat controller."""
import asyncio
import json

import pytest

from modelverse.chat import ChatController, ChatMessage, ChatState, PromptRelay, history_for_request
from modelverse.chat.controller import LOADED_TEXT, WELCOME_TEXT
from modelverse.errors import ChatBusyError, TranscriptFormatError
from modelverse.llm import ModelConfig, ModelRegistry

MODEL = "openai/gpt-4o"


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def controller(relay, notifications):
    return ChatController(relay, model=MODEL, notify=lambda msg, severity: notifications.append((msg, severity)))


def controller_for(provider, **kwargs) -> ChatController:
    relay = PromptRelay(ModelRegistry(providers={"openai": provider}))
    return ChatController(relay, model=MODEL, **kwargs)


class TestSend:
    """Tests for sending messages."""

    def test_fresh_chat_has_welcome(self, controller):
        assert [(m.sender, m.text) for m in controller.messages] == [("system", WELCOME_TEXT)]
        assert controller.state is ChatState.IDLE

    @pytest.mark.asyncio
    async def test_send_appends_user_and_reply(self, controller):
        reply = await controller.send("  Hello  ")

        assert [m.sender for m in controller.messages] == ["system", "user", "ai"]
        assert controller.messages[1].text == "Hello"
        assert reply == controller.messages[-1]
        assert reply.text == "Hello from the model"

    @pytest.mark.asyncio
    async def test_history_excludes_system_and_current(self, controller, fake_provider):
        """Test that each request carries prior user/ai turns only."""
        await controller.send("first")
        await controller.send("second")

        first, second = fake_provider.requests
        assert first.messages is None
        assert [m.role for m in second.messages] == ["user", "model"]
        assert second.messages[0].content[0].text == "first"
        assert second.prompt[0].text == "second"

    @pytest.mark.asyncio
    async def test_empty_send_is_ignored(self, controller, fake_provider):
        assert await controller.send("   ") is None
        assert len(controller.messages) == 1
        assert fake_provider.requests == []

    @pytest.mark.asyncio
    async def test_image_only_send(self, controller, fake_provider, png_data_uri):
        await controller.send("", image_url=png_data_uri)

        assert controller.messages[1].image_url == png_data_uri
        assert fake_provider.requests[0].prompt[1].media.url == png_data_uri

    @pytest.mark.asyncio
    async def test_config_reaches_provider(self, controller, fake_provider):
        controller.update_config(ModelConfig(max_output_tokens=64))
        await controller.send("hi")

        assert fake_provider.requests[0].config.explicit_fields() == {"max_output_tokens": 64}

    @pytest.mark.asyncio
    async def test_on_change_sees_user_message_before_reply(self, relay):
        snapshots = []
        controller = ChatController(relay, model=MODEL, on_change=snapshots.append)

        await controller.send("hi")

        assert [m.sender for m in snapshots[0]] == ["system", "user"]
        assert [m.sender for m in snapshots[-1]] == ["system", "user", "ai"]

    @pytest.mark.asyncio
    async def test_model_switch_applies_to_next_send(self, controller, fake_provider):
        controller.select_model("anthropic/claude-3-haiku-20240307")
        await controller.send("hi")

        assert fake_provider.requests[0].model == "claude-3-haiku-20240307"


class TestFailures:
    """Tests for failed replies."""

    @pytest.mark.asyncio
    async def test_error_becomes_system_message(self, make_provider):
        notes = []
        controller = controller_for(
            make_provider(error=RuntimeError("quota exceeded")),
            notify=lambda msg, severity: notes.append((msg, severity)),
        )

        reply = await controller.send("hi")

        assert reply.sender == "system"
        assert reply.text == "Error: quota exceeded"
        assert notes == [("Failed to get response from AI: quota exceeded", "error")]
        assert controller.state is ChatState.IDLE

    @pytest.mark.asyncio
    async def test_canned_reply_is_an_ai_message(self, controller, fake_provider, png_data_uri):
        controller.select_model("openai/gpt-3.5-turbo")

        reply = await controller.send("", image_url=png_data_uri)

        assert reply.sender == "ai"
        assert "does not support images" in reply.text
        assert fake_provider.requests == []

    @pytest.mark.asyncio
    async def test_next_send_works_after_error(self, make_provider):
        provider = make_provider(error=RuntimeError("flaky"))
        controller = controller_for(provider)

        await controller.send("one")
        provider.error = None
        reply = await controller.send("two")

        assert reply.sender == "ai"
        # The error message is not part of the history sent next
        assert [m.role for m in provider.requests[-1].messages] == ["user"]


class TestBusy:
    """Tests for the single in-flight request rule."""

    @pytest.mark.asyncio
    async def test_mutations_rejected_while_sending(self, make_provider):
        gate = asyncio.Event()
        controller = controller_for(make_provider(gate=gate))

        task = asyncio.create_task(controller.send("slow"))
        await asyncio.sleep(0)

        assert controller.is_busy
        with pytest.raises(ChatBusyError):
            await controller.send("again")
        with pytest.raises(ChatBusyError):
            controller.select_model("googleai/gemini-1.5-flash-latest")
        with pytest.raises(ChatBusyError):
            controller.update_config(ModelConfig(temperature=1.0))
        with pytest.raises(ChatBusyError):
            controller.clear()

        pending = controller.messages
        with pytest.raises(ChatBusyError):
            controller.load_json(json.dumps([{"id": "x", "sender": "user", "text": "imported"}]))
        with pytest.raises(ChatBusyError):
            await controller.edit_and_resend(pending[1].id, "rewritten")
        assert controller.messages == pending

        gate.set()
        await task

        assert not controller.is_busy
        assert [m.sender for m in controller.messages] == ["system", "user", "ai"]


class TestEditAndResend:
    """Tests for editing an earlier user message."""

    @pytest.mark.asyncio
    async def test_truncates_and_regenerates(self, controller, fake_provider):
        await controller.send("first")
        await controller.send("second")
        first_id = controller.messages[1].id

        await controller.edit_and_resend(first_id, "first, edited")

        assert [(m.sender, m.text) for m in controller.messages] == [
            ("system", WELCOME_TEXT),
            ("user", "first, edited"),
            ("ai", "Hello from the model"),
        ]
        assert controller.messages[1].id == first_id
        last = fake_provider.requests[-1]
        assert last.messages is None
        assert last.prompt[0].text == "first, edited"

    @pytest.mark.asyncio
    async def test_history_before_edit_is_kept(self, controller, fake_provider):
        await controller.send("first")
        await controller.send("second")
        second_id = controller.messages[3].id

        await controller.edit_and_resend(second_id, "second, edited")

        assert len(controller.messages) == 5
        assert [m.role for m in fake_provider.requests[-1].messages] == ["user", "model"]

    @pytest.mark.asyncio
    async def test_image_kept_unless_removed(self, controller, png_data_uri):
        await controller.send("look", image_url=png_data_uri)
        message_id = controller.messages[1].id

        await controller.edit_and_resend(message_id, "look again")
        assert controller.messages[1].image_url == png_data_uri

        await controller.edit_and_resend(message_id, "never mind", remove_image=True)
        assert controller.messages[1].image_url is None

    @pytest.mark.asyncio
    async def test_only_user_messages_editable(self, controller):
        await controller.send("hi")
        ai_id = controller.messages[2].id

        with pytest.raises(ValueError, match="Only user messages"):
            await controller.edit_and_resend(ai_id, "nope")

    @pytest.mark.asyncio
    async def test_unknown_id(self, controller):
        with pytest.raises(ValueError, match="No message"):
            await controller.edit_and_resend("missing", "text")

    @pytest.mark.asyncio
    async def test_edit_cannot_empty_message(self, controller):
        await controller.send("hi")

        with pytest.raises(ValueError, match="needs text or an image"):
            await controller.edit_and_resend(controller.messages[1].id, "   ")


class TestLogManagement:
    """Tests for clear, export and import."""

    @pytest.mark.asyncio
    async def test_clear(self, controller):
        await controller.send("hi")
        controller.clear()

        assert [(m.sender, m.text) for m in controller.messages] == [("system", WELCOME_TEXT)]

    @pytest.mark.asyncio
    async def test_export_load_round_trip(self, controller, relay, png_data_uri):
        await controller.send("look", image_url=png_data_uri)
        exported = controller.export_json()

        other = ChatController(relay, model=MODEL)
        loaded = other.load_json(exported)

        assert loaded == list(controller.messages)
        assert other.messages[:-1] == controller.messages
        assert (other.messages[-1].sender, other.messages[-1].text) == ("system", LOADED_TEXT)

    def test_invalid_import_leaves_log_unchanged(self, controller, notifications):
        before = controller.messages

        with pytest.raises(TranscriptFormatError):
            controller.load_json(json.dumps([{"id": "1", "sender": "robot", "text": "x"}]))

        assert controller.messages == before
        assert notifications and notifications[0][1] == "error"
        assert notifications[0][0].startswith("Invalid chat file:")

    @pytest.mark.asyncio
    async def test_save_and_load_file(self, controller, relay, tmp_path):
        await controller.send("persist me")
        path = controller.save_file(tmp_path / "chats" / "chat.json")

        other = ChatController(relay, model=MODEL, welcome_text=None)
        other.load_file(path)

        assert other.messages[1].text == "persist me"

    def test_load_missing_file(self, controller, tmp_path, notifications):
        with pytest.raises(TranscriptFormatError, match="Cannot read"):
            controller.load_file(tmp_path / "nope.json")
        assert notifications

    @pytest.mark.asyncio
    async def test_last_ai_response(self, controller):
        assert controller.last_ai_response() is None
        await controller.send("hi")
        assert controller.last_ai_response() == "Hello from the model"


def test_history_for_request_drops_system_and_blank():
    messages = [
        ChatMessage(sender="system", text="welcome"),
        ChatMessage(sender="user", text="hi"),
        ChatMessage(sender="ai", text=""),
        ChatMessage(sender="ai", text="hello"),
    ]

    turns = history_for_request(messages)

    assert [(t.role, t.text) for t in turns] == [("user", "hi"), ("model", "hello")]
