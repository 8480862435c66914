"""Tests for reminder message composition."""

import json
from types import SimpleNamespace
from unittest import mock

import pytest

from apps.notifications.messages import (
    MessageContext,
    MessageGenerationError,
    ReminderMessageGenerator,
    build_email_subject,
    build_fallback_message,
    compose_reminder_message,
)
from apps.notifications.urgency import Tone


@pytest.fixture
def context():
    return MessageContext(
        recipient_name='Asha Assignee',
        task_title='Quarterly report',
        deadline='Thursday, 13 March 2025',
        priority='high',
        days_remaining=3,
        reminder_count=1,
    )


def completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def generator_returning(content):
    generator = ReminderMessageGenerator(api_key='test-key')
    client = mock.Mock()
    client.chat.completions.create.return_value = completion(content)
    generator._client = client
    return generator


class TestFallback:

    @pytest.mark.parametrize('tone', list(Tone))
    def test_every_tone_has_subject_and_body(self, context, tone):
        message = build_fallback_message(context, tone)
        assert message.subject and message.body
        assert message.is_ai_generated is False
        assert message.body.startswith('Hi Asha,')

    def test_escalation_mentions_days_overdue(self, context):
        context.days_remaining = -2
        message = build_fallback_message(context, Tone.ESCALATION)
        assert 'OVERDUE' in message.subject
        assert '2 days overdue' in message.body


def test_email_subject_prefixes():
    assert build_email_subject('Report', Tone.FRIENDLY, 1) == '👋 Reminder: Report'
    assert build_email_subject('Report', Tone.URGENT, 3) == '🚨 URGENT: Report (Reminder #3)'


class TestGenerator:

    def test_unconfigured_raises(self, context):
        with pytest.raises(MessageGenerationError):
            ReminderMessageGenerator(api_key='').generate(context, Tone.FRIENDLY)

    def test_parses_json_response(self, context):
        generator = generator_returning(json.dumps({'subject': ' Hello ', 'body': 'Please finish.'}))

        message = generator.generate(context, Tone.FIRM)

        assert (message.subject, message.body) == ('Hello', 'Please finish.')
        assert message.is_ai_generated is True
        kwargs = generator.client.chat.completions.create.call_args.kwargs
        assert kwargs['response_format'] == {'type': 'json_object'}

    @pytest.mark.parametrize('content', ['', 'not json', '[]', json.dumps({'subject': 'only subject'})])
    def test_unusable_responses_raise(self, context, content):
        with pytest.raises(MessageGenerationError):
            generator_returning(content).generate(context, Tone.FRIENDLY)

    def test_transport_error_is_wrapped(self, context):
        generator = generator_returning('{}')
        generator.client.chat.completions.create.side_effect = TimeoutError('timed out')
        with pytest.raises(MessageGenerationError):
            generator.generate(context, Tone.FRIENDLY)


class TestCompose:

    def test_falls_back_when_generation_fails(self, context):
        generator = mock.Mock()
        generator.generate.side_effect = MessageGenerationError('boom')

        message = compose_reminder_message(context, Tone.FRIENDLY, 1, generator=generator)

        assert message == build_fallback_message(context, Tone.FRIENDLY)

    def test_without_ai_uses_custom_message(self, context):
        generator = mock.Mock()

        message = compose_reminder_message(
            context, Tone.FIRM, 2, use_ai=False,
            custom_message=' Any update? ', generator=generator,
        )

        generator.generate.assert_not_called()
        assert message.subject == '⏰ Action Required: Quarterly report (Reminder #2)'
        assert message.body == 'Any update?'
        assert message.is_ai_generated is False

    def test_without_ai_or_custom_message_uses_fallback_body(self, context):
        message = compose_reminder_message(context, Tone.FRIENDLY, 1, use_ai=False)
        assert message.body == build_fallback_message(context, Tone.FRIENDLY).body
