"""
HTTP client for the AI gateway that turns a free-text work transcript into
suggested time entries.

The gateway speaks the OpenAI-compatible chat-completions API; the model is
forced to answer through a single ``suggest_time_entries`` tool call whose
JSON arguments carry the suggestions.
"""
import json
from datetime import date
from typing import Any, Optional
import logging

import httpx

from timetrack.core.config import settings
from timetrack.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

TOOL_NAME = "suggest_time_entries"

SYSTEM_PROMPT = """You are a timesheet assistant. Given a transcript of someone describing their work week and a list of available projects/tasks/subtasks, suggest time entries.

AVAILABLE PROJECTS/TASKS (JSON):
{hierarchy}

RULES:
- Match the described work to the most appropriate project/task/subtask from the hierarchy
- Each suggestion needs: wbs_code, hours, description, entry_date (YYYY-MM-DD format)
- Hours should be in 0.5 increments
- If the user mentions "today", use exactly this date: {local_date}
- If the user mentions specific days, use those. Otherwise distribute across the current work week (Mon-Fri)
- The current local date for the user is: {local_date}
- The description should be concise (1-2 sentences)
- Only suggest entries for work that matches available projects
- The work week starts on Monday"""

SUGGESTION_TOOL = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Return suggested time entries based on the work description",
        "parameters": {
            "type": "object",
            "properties": {
                "suggestions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "wbs_code": {"type": "string", "description": "The WBS code from the project hierarchy"},
                            "hours": {"type": "number", "description": "Hours worked (0.5 increments)"},
                            "description": {"type": "string", "description": "Brief description of the work"},
                            "entry_date": {"type": "string", "description": "Date in YYYY-MM-DD format"},
                        },
                        "required": ["wbs_code", "hours", "description", "entry_date"],
                        "additionalProperties": False,
                    },
                },
            },
            "required": ["suggestions"],
            "additionalProperties": False,
        },
    },
}


class AISuggestionClient:
    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._api_url = api_url or settings.AI_GATEWAY_URL
        self._api_key = api_key if api_key is not None else settings.AI_API_KEY
        self._model = model or settings.AI_MODEL
        self._timeout = timeout or settings.AI_TIMEOUT_SECONDS
        self._transport = transport

    def build_payload(
        self, transcript: str, hierarchy: list[dict], local_date: date
    ) -> dict[str, Any]:
        system = SYSTEM_PROMPT.format(
            hierarchy=json.dumps(hierarchy),
            local_date=local_date.isoformat(),
        )
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": f"Here's what I did this week:\n\n{transcript}"},
            ],
            "tools": [SUGGESTION_TOOL],
            "tool_choice": {"type": "function", "function": {"name": TOOL_NAME}},
        }

    def suggest(
        self, transcript: str, hierarchy: list[dict], local_date: date
    ) -> list[dict[str, Any]]:
        """
        Ask the gateway for suggestions and return the raw suggestion dicts.

        Raises:
            ExternalServiceError: not configured, transport failure, non-2xx
                reply, or a reply without a parseable tool call.
        """
        if not self._api_key:
            logger.warning("AI suggestion requested but AI_API_KEY is not configured")
            raise ExternalServiceError("AI suggestions are not configured")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        payload = self.build_payload(transcript, hierarchy, local_date)
        logger.info("Requesting AI suggestions model=%s", self._model)

        try:
            with httpx.Client(transport=self._transport, timeout=self._timeout) as client:
                r = client.post(self._api_url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("AI gateway transport error: %s", exc)
            raise ExternalServiceError("AI service unavailable. Please try again.") from exc

        if r.status_code == 429:
            logger.warning("AI gateway rate limited")
            raise ExternalServiceError("Rate limit exceeded. Please try again later.")
        if r.status_code == 402:
            logger.warning("AI gateway credits exhausted")
            raise ExternalServiceError("AI credits exhausted. Please try again later.")
        if r.status_code >= 400:
            logger.warning("AI gateway call failed: %d %s", r.status_code, r.text[:200])
            raise ExternalServiceError("AI processing failed. Please try again.")

        try:
            data = r.json()
            tool_call = data["choices"][0]["message"]["tool_calls"][0]
            arguments = json.loads(tool_call["function"]["arguments"])
            suggestions = arguments["suggestions"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("AI gateway reply had no usable tool call: %s", exc)
            raise ExternalServiceError("No suggestions generated. Please try again.") from exc

        if not isinstance(suggestions, list):
            logger.warning("AI gateway returned non-list suggestions")
            raise ExternalServiceError("No suggestions generated. Please try again.")
        logger.info("AI gateway returned %s suggestions", len(suggestions))
        return suggestions
