"""
Reminder message composition.

The subject and body of a reminder come from an OpenAI-compatible chat
completion API when one is configured (Groq by default, see AI_* settings).
Any failure there falls back to a fixed template per tone, so composing a
message never raises.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from openai import OpenAI

from .urgency import Tone

logger = logging.getLogger(__name__)


class MessageGenerationError(Exception):
    """The message generator could not produce a usable subject and body."""


@dataclass
class MessageContext:
    """Everything the generator and the templates know about a reminder."""
    recipient_name: str
    task_title: str
    deadline: str
    priority: str
    days_remaining: int
    reminder_count: int
    task_description: str = ''

    @property
    def first_name(self):
        return self.recipient_name.split(' ')[0] if self.recipient_name else 'there'

    @property
    def deadline_status(self):
        if self.days_remaining < 0:
            return 'OVERDUE'
        if self.days_remaining == 0:
            return 'DUE TODAY'
        return 'upcoming'


@dataclass
class GeneratedMessage:
    subject: str
    body: str
    tone: str
    is_ai_generated: bool


TONE_GUIDELINES = """\
- friendly: Warm, supportive, offering help
- firm: Professional, clear expectations, slightly urgent
- urgent: Very urgent, emphasizing importance and consequences
- escalation: Critical, this is overdue, immediate action required"""

SUBJECT_PREFIXES = {
    Tone.FRIENDLY: '👋 Reminder:',
    Tone.FIRM: '⏰ Action Required:',
    Tone.URGENT: '🚨 URGENT:',
    Tone.ESCALATION: '🔴 OVERDUE:',
}


def build_email_subject(task_title, tone, reminder_number):
    """Tone-prefixed subject; repeat reminders carry their number."""
    suffix = f' (Reminder #{reminder_number})' if reminder_number > 1 else ''
    return f'{SUBJECT_PREFIXES[tone]} {task_title}{suffix}'


def build_prompt(context, tone):
    return f"""You are an intelligent task reminder assistant. Generate a professional yet personalized reminder message.

Context:
- Recipient: {context.recipient_name}
- Task: {context.task_title}
- Description: {context.task_description or 'No description provided'}
- Deadline: {context.deadline}
- Priority: {context.priority}
- Days remaining: {context.days_remaining} ({context.deadline_status})
- This is reminder #{context.reminder_count}
- Required tone: {tone}

Tone Guidelines:
{TONE_GUIDELINES}

Generate a reminder message following these rules:
1. Address the recipient by first name
2. Be concise (max 3-4 sentences for body)
3. Include specific task details
4. Match the tone exactly
5. End with a clear call to action
6. For escalation, mention this may need to be escalated to management

Respond in this exact JSON format:
{{
  "subject": "Email subject line",
  "body": "The email body message"
}}"""


def build_fallback_message(context, tone):
    """
    Deterministic subject and body for a tone.

    Used whenever the generator is off or fails; never raises for a valid
    tone.
    """
    name = context.first_name
    title = context.task_title
    days = context.days_remaining

    if tone == Tone.FRIENDLY:
        due = 'today' if days == 0 else f'in {days} days'
        subject = f'👋 Friendly Reminder: {title}'
        body = (
            f'Hi {name},\n\n'
            f'This is a friendly reminder that your task "{title}" is due {due}.\n\n'
            f'Please let me know if you need any help or have questions!\n\n'
            f'Best regards'
        )
    elif tone == Tone.FIRM:
        subject = f'⏰ Action Required: {title}'
        body = (
            f'Hi {name},\n\n'
            f'This is a reminder that "{title}" requires your attention. '
            f'The deadline is {context.deadline}.\n\n'
            f"Please update the task status or reach out if you're facing any blockers.\n\n"
            f'Thank you'
        )
    elif tone == Tone.URGENT:
        due = 'today' if days <= 0 else 'approaching very soon'
        subject = f'🚨 URGENT: {title} - Immediate Action Required'
        body = (
            f'Hi {name},\n\n'
            f'This is an urgent reminder about "{title}". The deadline is {due}.\n\n'
            f'This is a {context.priority} priority task and requires immediate attention. '
            f"Please take action now or escalate if you're blocked.\n\n"
            f'Thank you'
        )
    else:
        subject = f'🔴 OVERDUE: {title} - Escalation Required'
        body = (
            f'Hi {name},\n\n'
            f'"{title}" is now {abs(days)} days overdue. '
            f'This is reminder #{context.reminder_count}.\n\n'
            f"Immediate action is required. If you're unable to complete this task, "
            f'please escalate to your manager immediately.\n\n'
            f'This matter will be escalated if not addressed today.'
        )

    return GeneratedMessage(subject=subject, body=body, tone=tone, is_ai_generated=False)


class ReminderMessageGenerator:
    """
    Writes reminder text through a chat completion API.

    `generate` raises MessageGenerationError for every failure mode
    (unconfigured, transport, timeout, malformed output); callers use
    `compose_reminder_message`, which never raises.
    """

    def __init__(self, api_key=None, base_url=None, model=None, timeout=None):
        self.api_key = api_key if api_key is not None else settings.AI_API_KEY
        self.base_url = base_url or settings.AI_BASE_URL
        self.model = model or settings.AI_MODEL
        self.timeout = timeout or settings.AI_TIMEOUT
        self._client = None

    @property
    def is_configured(self):
        return bool(self.api_key)

    @property
    def client(self):
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def generate(self, context: MessageContext, tone: str) -> GeneratedMessage:
        if not self.is_configured:
            raise MessageGenerationError('Message generator is not configured')

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[{'role': 'user', 'content': build_prompt(context, tone)}],
                temperature=0.7,
                max_tokens=500,
                response_format={'type': 'json_object'},
            )
            content = completion.choices[0].message.content
        except Exception as e:
            raise MessageGenerationError(f'Generation request failed: {e}') from e

        if not content:
            raise MessageGenerationError('No response from message generator')

        try:
            parsed = json.loads(content)
        except ValueError as e:
            raise MessageGenerationError(f'Malformed generator response: {e}') from e

        subject = parsed.get('subject') if isinstance(parsed, dict) else None
        body = parsed.get('body') if isinstance(parsed, dict) else None
        if not isinstance(subject, str) or not isinstance(body, str) or not subject.strip() or not body.strip():
            raise MessageGenerationError('Generator response is missing subject or body')

        return GeneratedMessage(
            subject=subject.strip(),
            body=body.strip(),
            tone=tone,
            is_ai_generated=True,
        )


_default_generator = None


def get_message_generator():
    """Process-wide generator built from settings."""
    global _default_generator
    if _default_generator is None:
        _default_generator = ReminderMessageGenerator()
    return _default_generator


def compose_reminder_message(context, tone, reminder_number, use_ai=True,
                             custom_message=None, generator: Optional[ReminderMessageGenerator] = None):
    """
    Subject and body for a reminder. Never raises.

    With `use_ai` the generator is tried first and the tone's fallback
    template is used on any failure. Without it, the subject is the tone
    prefix and the body is the custom message, or the fallback body.
    """
    if use_ai:
        generator = generator or get_message_generator()
        try:
            return generator.generate(context, tone)
        except MessageGenerationError as e:
            logger.warning('Message generation failed for "%s", using fallback: %s', context.task_title, e)
        return build_fallback_message(context, tone)

    body = custom_message.strip() if custom_message and custom_message.strip() else None
    if body is None:
        body = build_fallback_message(context, tone).body
    return GeneratedMessage(
        subject=build_email_subject(context.task_title, tone, reminder_number),
        body=body,
        tone=tone,
        is_ai_generated=False,
    )
