"""Article generation: completion API client and response parsing."""

import logging

import openai

from config import OPENAI_MAX_TOKENS, OPENAI_MODEL, OPENAI_TEMPERATURE, REQUEST_TIMEOUT, get_openai_api_key
from services.errors import (
    TransportError,
    UpstreamAuthError,
    UpstreamError,
    ValidationError,
    from_status,
)

log = logging.getLogger(__name__)

PROMPT_TEMPLATE = """\
Write a blog post about: {topic}

Title:
Description:
Content:

MDX format is a must. Make it fun, use emojis, and use an easy analogy to make the topic
easier to understand. Use bullet points and lists to make it more readable and add
separations. Use ## (H2) for section headings and leave a blank line between each heading
and its content.

"""

_TITLE_PREFIX = "Title:"
_DESCRIPTION_PREFIX = "Description:"
_CONTENT_PREFIX = "Content:"


def _strip_label(line: str, label: str) -> str:
    if line.startswith(label):
        return line[len(label) :].strip()
    return line


def parse_generated_text(text: str) -> dict:
    """Split a completion into {title, description, content}. Never raises.

    Non-empty lines only: the first is the title, the second the description,
    the rest the body. Labels are optional; missing lines become empty strings.
    A leading "Content:" label on the first body line is removed, so a body that
    genuinely starts with that word loses it.
    """
    lines = [line for line in (text or "").split("\n") if line.strip()]
    title = _strip_label(lines[0], _TITLE_PREFIX) if lines else ""
    description = _strip_label(lines[1], _DESCRIPTION_PREFIX) if len(lines) > 1 else ""

    rest = lines[2:]
    if rest and rest[0].startswith(_CONTENT_PREFIX):
        first = rest[0][len(_CONTENT_PREFIX) :].strip()
        rest = [first, *rest[1:]] if first else rest[1:]
    content = "\n".join(rest).strip()

    return {"title": title, "description": description, "content": content}


class CompletionClient:
    """Generation gateway backed by the OpenAI completions endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = OPENAI_MODEL,
        max_tokens: int = OPENAI_MAX_TOKENS,
        temperature: float = OPENAI_TEMPERATURE,
        client=None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client or openai.OpenAI(api_key=api_key, timeout=REQUEST_TIMEOUT)

    def complete(self, prompt: str) -> str:
        """Send the topic wrapped in the blog-post template; return the raw completion."""
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required")

        try:
            completion = self._client.completions.create(
                model=self.model,
                prompt=PROMPT_TEMPLATE.format(topic=prompt),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APITimeoutError as e:
            log.warning("Completion request timed out: %s", e)
            raise TransportError("Completion request timed out") from e
        except openai.APIConnectionError as e:
            log.warning("Completion request failed: %s", e)
            raise TransportError("Could not reach the completion API", details=str(e)) from e
        except openai.APIStatusError as e:
            log.warning("Completion API returned %s: %s", e.status_code, e.message)
            raise from_status(e.status_code, "Error generating article", details=e.message) from e

        if not completion.choices:
            raise UpstreamError("Completion API returned no choices")
        return completion.choices[0].text or ""

    def generate(self, prompt: str) -> dict:
        return parse_generated_text(self.complete(prompt))


def build_completion_client() -> CompletionClient:
    """Construct a client from configuration. Raises if no API key is configured."""
    api_key = get_openai_api_key()
    if not api_key:
        raise UpstreamAuthError("OPENAI_API_KEY is not configured", status=500)
    return CompletionClient(api_key)

