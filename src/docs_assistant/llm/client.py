from typing import List, Dict, Optional
import logging

import httpx

from ..config import settings
from ..core.errors import CompletionError

logger = logging.getLogger("docs.llm")


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.completion_model
        self.url = (base_url or settings.openai_base_url).rstrip("/") + "/chat/completions"
        self.timeout = timeout or settings.llm_timeout
        self._transport = transport

    async def chat(
        self,
        system_prompt: str,
        messages: List[Dict[str, str]],
        temperature: float = 0.2,
        model: Optional[str] = None,
    ) -> str:
        """
        Run a single chat completion and return the assistant text.

        The system prompt is prepended to `messages`. An empty or missing
        content field is returned as "".

        Raises
        ------
        CompletionError
            On transport errors, non-2xx responses or a malformed body.
        """
        payload = {
            "model": model or self.model,
            "messages": [{"role": "system", "content": system_prompt}] + messages,
            "temperature": temperature,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.post(
                    self.url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Completion request failed (%s): %s", type(exc).__name__, exc)
            raise CompletionError(
                f"Completion failed: {type(exc).__name__}"
            ) from exc

        try:
            content = data["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise CompletionError("Malformed completion response.") from exc

        return content or ""
