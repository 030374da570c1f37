"""
Best-effort synthesis of search results with a chat-completions LLM.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import httpx

from case_ranker.config import Settings
from case_ranker.ranking.rerank import RankedResult

logger = logging.getLogger(__name__)

SUMMARY_SNIPPET_CHARS = 500


class Synthesizer:
    """Summarizes the top ranked cases for a query. Failures yield None."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.llm_model and self.settings.llm_api_url and self.settings.llm_api_key)

    def synthesize(self, query: str, results: Sequence[RankedResult]) -> Optional[str]:
        if not results or not self.is_configured:
            return None

        context_block = self._build_context_block(results[: self.settings.synthesis_cases])
        prompt = self._build_prompt(query, context_block)
        try:
            return self._call_llm(prompt)
        except Exception as exc:
            logger.warning("Synthesis failed; returning results without it: %s", exc)
            return None

    def _build_context_block(self, results: Sequence[RankedResult]) -> str:
        blocks = []
        for idx, result in enumerate(results, start=1):
            case = result.case
            summary = (case.complaint_summary or "")[:SUMMARY_SNIPPET_CHARS]
            blocks.append(
                f"Case {idx}: {case.case_name or 'Unknown case'}\n"
                f"Court: {case.court_name or 'N/A'}\n"
                f"Nature: {case.nature_of_suit or 'N/A'}\n"
                f"Summary: {summary}"
            )
        return "\n\n".join(blocks)

    def _build_prompt(self, query: str, context_block: str) -> str:
        return (
            "You are a legal research assistant. Based on the following search query and matching "
            "cases, provide a brief synthesis (2-3 paragraphs) that highlights key themes, common "
            "elements, and notable differences across these cases. Be concise and professional.\n\n"
            f'Search query: "{query}"\n\n'
            f"{context_block}"
        )

    def _call_llm(self, prompt: str) -> Optional[str]:
        logger.debug("LLM call using model %s", self.settings.llm_model)
        headers = {"Authorization": f"Bearer {self.settings.llm_api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.settings.llm_model,
            "messages": [
                {"role": "system", "content": "You are a legal research assistant."},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": 512,
            "temperature": 0.3,
        }
        response = httpx.post(
            self.settings.llm_api_url,
            headers=headers,
            json=payload,
            timeout=self.settings.request_timeout * 4,
        )
        response.raise_for_status()
        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise RuntimeError(f"Unexpected LLM response: {str(data)[:200]}") from exc
        if not isinstance(content, str) or not content.strip():
            return None
        return content.strip()
