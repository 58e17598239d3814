"""
Optional narrative phrasing for comparison and projection results.

The engine always produces deterministic template text. When a Gemini API key
is configured, ``with_narrative`` asks the model to rephrase the summary; any
failure or timeout falls back to the template text. Numeric fields are never
read back from the model.
"""
from __future__ import annotations

import copy
import json
import logging
from typing import Any, Dict, Optional, Protocol

import requests
from django.conf import settings

from offers.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15
MAX_PROMPT_CHARS = 12000

SYSTEM_PROMPT = (
    "You are a compensation and career progression analyst.\n"
    "Write a concise plain-text summary (at most 5 sentences) of the structured offer analysis below.\n"
    "Focus on trade-offs between the offers. Do not invent numbers; only cite figures present in the data.\n"
    "Do not use markdown."
)


class NarrativeGenerator(Protocol):
    def summarize(self, structured_result: Dict[str, Any]) -> str:
        ...


class GeminiNarrativeGenerator:
    """Phrase summaries with the Gemini generateContent REST API."""

    def __init__(self, api_key: str, *, model: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT):
        self.api_key = api_key
        self.model = model or 'gemini-1.5-flash-latest'
        self.timeout = timeout

    @property
    def endpoint(self) -> str:
        return f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent"

    def build_prompt(self, structured_result: Dict[str, Any]) -> str:
        data = json.dumps(structured_result, sort_keys=True, default=str)
        if len(data) > MAX_PROMPT_CHARS:
            data = data[:MAX_PROMPT_CHARS]
        return f"{SYSTEM_PROMPT}\n\n=== ANALYSIS ===\n{data}"

    def summarize(self, structured_result: Dict[str, Any]) -> str:
        if not self.api_key:
            raise UpstreamUnavailable('Gemini API key is not configured.')
        payload = {
            'contents': [
                {
                    'role': 'user',
                    'parts': [{'text': self.build_prompt(structured_result)}],
                }
            ],
            'generationConfig': {
                'temperature': 0.4,
                'topP': 0.9,
                'maxOutputTokens': 600,
            },
        }
        try:
            response = requests.post(self.endpoint, params={'key': self.api_key}, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            logger.error('Gemini narrative request failed: %s', exc)
            raise UpstreamUnavailable('Unable to reach Gemini API.') from exc
        except ValueError as exc:
            logger.error('Gemini narrative response was not JSON: %s', exc)
            raise UpstreamUnavailable('Gemini returned an unreadable response.') from exc

        block_reason = (data.get('promptFeedback') or {}).get('blockReason')
        if block_reason:
            raise UpstreamUnavailable(f'Content was blocked by Gemini: {block_reason}.')

        candidates = data.get('candidates') or []
        if not candidates:
            raise UpstreamUnavailable('Gemini returned an empty result.')

        first_candidate = candidates[0]
        finish_reason = first_candidate.get('finishReason')
        if finish_reason and finish_reason not in ['STOP', 'MAX_TOKENS']:
            raise UpstreamUnavailable(f'Generation stopped: {finish_reason}.')

        parts = first_candidate.get('content', {}).get('parts', [])
        texts = [part.get('text') for part in parts if part.get('text')]
        if not texts or not texts[0].strip():
            raise UpstreamUnavailable('Gemini response did not include text output.')
        return texts[0].strip()


def get_narrative_generator() -> Optional[GeminiNarrativeGenerator]:
    api_key = getattr(settings, 'GEMINI_API_KEY', '')
    if not api_key:
        return None
    return GeminiNarrativeGenerator(
        api_key,
        model=getattr(settings, 'GEMINI_MODEL', None),
        timeout=getattr(settings, 'OFFERS_NARRATIVE_TIMEOUT', DEFAULT_TIMEOUT),
    )


def with_narrative(
    result: Dict[str, Any],
    generator: Optional[NarrativeGenerator],
    *,
    field: str = 'analysis_summary',
) -> Dict[str, Any]:
    """
    Return a copy of ``result`` whose ``field`` is phrased by ``generator``.

    On ``UpstreamUnavailable`` (or with no generator) the deterministic text
    already in ``result`` is kept and ``narrative_source`` is ``'template'``.
    """
    enriched = copy.deepcopy(result)
    enriched['narrative_source'] = 'template'
    if generator is None:
        return enriched

    try:
        text = generator.summarize(result)
    except UpstreamUnavailable as exc:
        logger.warning('Narrative generation unavailable, using template text: %s', exc)
        return enriched

    enriched[field] = text
    enriched['narrative_source'] = 'ai'
    return enriched
