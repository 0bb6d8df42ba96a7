"""LLM-powered career impact report: Mistral via its OpenAI-compatible endpoint.

One completion per report:
  - the system prompt enumerates the sections from sections.REPORT_SECTIONS
    and appends the user's scenario in a delimited block
  - one request, one wall-clock timeout, no retries
  - the first choice's message content is the raw completion

Failures are raised as typed errors (see errors.py) so the caller can log
timeouts, provider errors and malformed responses separately.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass

from openai import APITimeoutError, OpenAI

from errors import (ConfigurationError, UpstreamRequestError,
                    UpstreamResponseError, UpstreamTimeoutError)
from sections import REPORT_SECTIONS
from token_budget import TASK_BUDGETS, check_payload_size, get_tracker

logger = logging.getLogger(__name__)

TASK = 'career_report'

# ---------------------------------------------------------------------------
# LLM Configuration
# ---------------------------------------------------------------------------

DEFAULT_MODEL = 'mistral-large-latest'
DEFAULT_BASE_URL = 'https://api.mistral.ai/v1'


@dataclass(frozen=True)
class LLMConfig:
    """Settings for the completion call, built once and passed in."""

    api_key: str = ''
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout: float = TASK_BUDGETS[TASK]['timeout']
    max_tokens: int = TASK_BUDGETS[TASK]['max_tokens']
    temperature: float = TASK_BUDGETS[TASK]['temperature']

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, environ=None) -> 'LLMConfig':
        env = os.environ if environ is None else environ
        budget = TASK_BUDGETS[TASK]
        timeout = env.get('LLM_TIMEOUT_SECONDS')
        return cls(
            api_key=env.get('MISTRAL_API_KEY', ''),
            model=env.get('MISTRAL_MODEL') or DEFAULT_MODEL,
            base_url=env.get('MISTRAL_BASE_URL') or DEFAULT_BASE_URL,
            timeout=float(timeout) if timeout else budget['timeout'],
            max_tokens=budget['max_tokens'],
            temperature=budget['temperature'],
        )


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT_TEMPLATE = """You are an AI assistant specializing in analyzing the impact of advanced AI on various professions in a world where humanity has achieved AGI. Your mission is to provide clear, factual, and realistic insights into how AI is likely to transform a given profession.

Please adhere to the following guidelines:
- Offer balanced, honest perspectives. Acknowledge both challenges and opportunities.
- Base your analysis on reputable research, current trends and expert forecasts.
- Emphasize that "Even the most human-like aspects such as empathy and creativity might be in jeopardy."
- Deliver practical, actionable suggestions for how someone in the given profession might adapt.
- Maintain an understandable style. Avoid overly technical jargon unless needed.
- Recognize user concerns about job security or obsolescence. Provide factual reassurance, but be realistic.
- Provide the response in exactly {section_count} labeled sections:
{section_list}
- Do not add additional sections beyond these {section_count}.
- Do not continue the conversation after your response.

Analyze the following user info:
<USER_SCENARIO>
Profession: {profession}
Years of experience: {experience}
Region: {region}
Skill Level: {skill_level}
Additional details: {details}
</USER_SCENARIO>"""


def _render_section_list(sections=REPORT_SECTIONS) -> str:
    lines = []
    for i, section in enumerate(sections, start=1):
        lines.append(f'  {i}) {section.header}:')
        if section.hint:
            lines.append(f'     {section.hint}')
    return '\n'.join(lines)


def build_system_prompt(profession: str, experience: int, region: str,
                        skill_level: int, details: str | None = None) -> str:
    """Render the instruction prompt with the user's values substituted verbatim."""
    return _SYSTEM_PROMPT_TEMPLATE.format(
        section_count=len(REPORT_SECTIONS),
        section_list=_render_section_list(),
        profession=profession,
        experience=experience,
        region=region,
        skill_level=skill_level,
        details=details or '(none)',
    )


# ---------------------------------------------------------------------------
# Completion fetcher
# ---------------------------------------------------------------------------

def extract_content(response) -> str:
    """Return choices[0].message.content as text, or '' if the shape is off."""
    try:
        choice = response.choices[0] if not isinstance(response, dict) else response['choices'][0]
        message = choice['message'] if isinstance(choice, dict) else choice.message
        content = message['content'] if isinstance(message, dict) else message.content
    except (AttributeError, IndexError, KeyError, TypeError):
        return ''

    # Some providers return a list of content chunks
    if isinstance(content, list):
        content = ''.join(
            (chunk.get('text') if isinstance(chunk, dict) else getattr(chunk, 'text', None)) or ''
            for chunk in content
        )
    return str(content).strip() if content else ''


class CompletionFetcher:
    """Issues one completion request per call under a wall-clock timeout."""

    def __init__(self, config: LLMConfig, client=None):
        self.config = config
        self._client = client

    def _get_client(self):
        """Lazy-initialise the OpenAI-compatible client."""
        if self._client is None:
            self._client = OpenAI(
                base_url=self.config.base_url,
                api_key=self.config.api_key,
                timeout=self.config.timeout,
                max_retries=0,
            )
            logger.info('Initialised completion client (%s)', self.config.model)
        return self._client

    def _request(self, prompt: str):
        client = self._get_client()
        return client.chat.completions.create(
            model=self.config.model,
            messages=[{'role': 'system', 'content': prompt}],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

    def fetch(self, prompt: str) -> str:
        """Return the raw completion text for ``prompt``.

        Raises ConfigurationError before any network activity when the
        credential is missing, UpstreamTimeoutError when the timer wins the
        race, UpstreamRequestError when the provider call fails, and
        UpstreamResponseError when the response carries no content.
        """
        if not self.config.is_configured:
            logger.error('Completion credential is not configured')
            raise ConfigurationError('completion credential is missing')

        check_payload_size(prompt, TASK)
        tracker = get_tracker()
        model = self.config.model

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='completion')
        t0 = time.time()
        future = executor.submit(self._request, prompt)
        try:
            response = future.result(timeout=self.config.timeout)
        except (FutureTimeoutError, APITimeoutError):
            elapsed = time.time() - t0
            logger.warning('Completion timed out after %.1fs (limit %.1fs)',
                           elapsed, self.config.timeout)
            tracker.log_call(TASK, len(prompt), 0, elapsed, model=model, outcome='timeout')
            raise UpstreamTimeoutError(
                f'completion exceeded {self.config.timeout:.1f}s') from None
        except Exception as e:
            elapsed = time.time() - t0
            logger.error('Completion request failed after %.1fs: %s: %s',
                         elapsed, type(e).__name__, str(e)[:200])
            tracker.log_call(TASK, len(prompt), 0, elapsed, model=model,
                             outcome='request_error')
            raise UpstreamRequestError(f'completion request failed: {type(e).__name__}') from e
        finally:
            # A timed-out call keeps running in its thread; only its result is dropped
            executor.shutdown(wait=False)

        elapsed = time.time() - t0
        content = extract_content(response)
        if not content:
            logger.error('Completion response had no message content (%.1fs)', elapsed)
            tracker.log_call(TASK, len(prompt), 0, elapsed, model=model,
                             outcome='invalid_response')
            raise UpstreamResponseError('response is missing choices[0].message.content')

        tracker.log_call(TASK, len(prompt), len(content), elapsed, model=model)
        logger.info('Completion received in %.1fs: %d chars', elapsed, len(content))
        return content
