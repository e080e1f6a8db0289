"""
Tests for chat_bridge/models/requests.py - ChatRequest.

Only model, messages and stream survive validation; missing or malformed
model/messages are reported as GatewayValidationError naming the field.
"""

import pytest

from chat_bridge.core.exceptions import GatewayValidationError
from chat_bridge.models.requests import ChatRequest


class TestChatRequestFromBody:
    """Valid bodies."""

    def test_valid_body(self, chat_body):
        request = ChatRequest.from_body(chat_body)

        assert request.model == "llama3"
        assert request.messages == [{"role": "user", "content": "hi"}]
        assert request.stream is False

    def test_stream_defaults_to_false(self):
        request = ChatRequest.from_body({"model": "llama3", "messages": []})

        assert request.stream is False

    def test_null_stream_treated_as_false(self):
        request = ChatRequest.from_body(
            {"model": "llama3", "messages": [], "stream": None}
        )

        assert request.stream is False

    def test_stream_true(self):
        request = ChatRequest.from_body(
            {"model": "llama3", "messages": [], "stream": True}
        )

        assert request.stream is True

    def test_message_records_pass_through_untouched(self):
        messages = [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "look", "images": ["aGVsbG8="]},
        ]
        request = ChatRequest.from_body({"model": "llava", "messages": messages})

        assert request.messages == messages


class TestFieldNarrowing:
    """Unknown fields are dropped."""

    def test_extra_fields_dropped(self, chat_body):
        body = dict(chat_body, options={"temperature": 2}, keep_alive=-1, format="json")

        payload = ChatRequest.from_body(body).to_downstream_payload()

        assert set(payload) == {"model", "messages", "stream"}

    def test_payload_values(self, chat_body):
        payload = ChatRequest.from_body(chat_body).to_downstream_payload()

        assert payload == {
            "model": "llama3",
            "messages": [{"role": "user", "content": "hi"}],
            "stream": False,
        }


class TestChatRequestValidation:
    """Invalid bodies."""

    def test_missing_messages(self):
        with pytest.raises(GatewayValidationError) as exc_info:
            ChatRequest.from_body({"model": "llama3"})

        assert exc_info.value.field == "messages"

    def test_missing_model(self):
        with pytest.raises(GatewayValidationError) as exc_info:
            ChatRequest.from_body({"messages": []})

        assert exc_info.value.field == "model"

    def test_empty_model(self):
        with pytest.raises(GatewayValidationError) as exc_info:
            ChatRequest.from_body({"model": "", "messages": []})

        assert exc_info.value.field == "model"

    def test_non_string_model(self):
        with pytest.raises(GatewayValidationError) as exc_info:
            ChatRequest.from_body({"model": 42, "messages": []})

        assert exc_info.value.field == "model"

    def test_messages_not_a_list(self):
        with pytest.raises(GatewayValidationError) as exc_info:
            ChatRequest.from_body({"model": "llama3", "messages": "hi"})

        assert exc_info.value.field == "messages"

    def test_message_entries_must_be_objects(self):
        with pytest.raises(GatewayValidationError) as exc_info:
            ChatRequest.from_body({"model": "llama3", "messages": ["hi"]})

        assert exc_info.value.field == "messages"

    def test_invalid_stream_flag(self):
        with pytest.raises(GatewayValidationError) as exc_info:
            ChatRequest.from_body(
                {"model": "llama3", "messages": [], "stream": "sometimes"}
            )

        assert exc_info.value.field == "stream"

    @pytest.mark.parametrize("body", [None, [], "text", 3])
    def test_body_must_be_object(self, body):
        with pytest.raises(GatewayValidationError):
            ChatRequest.from_body(body)

    def test_error_message_names_field(self):
        with pytest.raises(GatewayValidationError) as exc_info:
            ChatRequest.from_body({"model": "llama3"})

        assert "messages" in exc_info.value.message
