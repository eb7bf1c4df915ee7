"""
Continuation requestor — asks the generative service for the edit
records that did not fit in a truncated response.
"""

from __future__ import annotations

import logging

from ..units.models import EditRecord, records_to_json
from .prompts import PromptLibrary

logger = logging.getLogger(__name__)


class ContinuationRequestor:
    """Thin adapter between the extractor and an :class:`LLMClient`."""

    def __init__(self, llm_client, prompts: PromptLibrary | None = None,
                 task_prompt: str = "", project_name: str = "") -> None:
        self.llm_client = llm_client
        self.prompts = prompts or PromptLibrary()
        self.task_prompt = task_prompt
        self.project_name = project_name

    def build_prompt(self, records: list[EditRecord], remainder: str) -> str:
        return self.prompts.render(
            "continuation",
            prompt=self.task_prompt,
            project_name=self.project_name,
            existing_changes=records_to_json(records),
            remaining_content=remainder,
        )

    def request(self, records: list[EditRecord], remainder: str) -> str:
        """Return the raw text of one continuation response."""
        prompt = self.build_prompt(records, remainder)
        logger.debug("Requesting continuation after %d records (%d chars unconsumed)",
                     len(records), len(remainder))
        response = self.llm_client.complete(prompt)
        logger.debug("Continuation response:\n%s", response)
        return response
