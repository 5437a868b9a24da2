# cleaner/llm/brain.py
from __future__ import annotations

from loguru import logger
from openai import OpenAI, OpenAIError

from config.config import settings


class Brain:
    """
    The staleness oracle. One chat completion per question, bounded by
    `timeout`. Failures are logged and come back as an empty reply, which
    every caller treats as "no answer".
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        model: str | None = None,
        timeout: float | None = None,
        api_key: str | None = None,
    ):
        self.timeout = timeout or settings.oracle_timeout_sec
        self.client = client or OpenAI(
            api_key=api_key or settings.openai_api_key, timeout=self.timeout, max_retries=1
        )
        self.model = model or settings.openai_model

    def ask_brain(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 1024,
    ) -> str:
        try:
            messages = []
            if system_prompt:
                messages.append({"role": "system", "content": system_prompt})
            messages.append({"role": "user", "content": prompt})

            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=0.0,
                max_tokens=max_tokens,
            )
            return (completion.choices[0].message.content or "").strip()
        except OpenAIError as e:
            # timeouts land here too (APITimeoutError)
            logger.warning(f"[ask_brain error] {type(e).__name__}: {e}")
            return ""
        except (IndexError, AttributeError) as e:
            logger.warning(f"[ask_brain error] unexpected completion shape: {e}")
            return ""
