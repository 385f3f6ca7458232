"""Reply generation for customer messages using the OpenAI Responses API.

The responder never raises to its caller: timeouts, API errors and empty
outputs all collapse into `FALLBACK_REPLY` so the message pipeline can
always deliver something.
"""

import asyncio
import logging
import time
from typing import Optional

from openai import AsyncOpenAI

from models.product_record import RetrievedRecord
from services.openai.prompts import reply_prompt, system_prompt
from services.openai.response_parser import extract_text

LOGGER = logging.getLogger(__name__)
DEFAULT_CHAT_MODEL = "gpt-4o-mini"
FALLBACK_REPLY = "Sorry, I couldn't process your message right now. Please try again in a moment."


class Responder:
    """Compose a prompt from a question and an optional product and ask the model for a reply."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = DEFAULT_CHAT_MODEL,
        timeout_s: float = 8.0,
        max_output_tokens: int = 400,
    ) -> None:
        if client is None:
            raise ValueError("AsyncOpenAI client is required.")
        self.client = client
        self.model = model
        self.timeout_s = timeout_s
        self.max_output_tokens = max_output_tokens

    async def generate(self, question: str, match: Optional[RetrievedRecord] = None) -> str:
        """Return reply text for the customer.

        Args:
            question: Text extracted from the customer's message.
            match: Best catalog match, or None to use the fallback prompt.

        Returns:
            The model reply, or FALLBACK_REPLY when the remote call fails.
        """
        product = match.record if match is not None else None
        start = time.time()
        try:
            response = await asyncio.wait_for(
                self.client.responses.create(
                    model=self.model,
                    input=[
                        {"role": "system", "content": [{"type": "input_text", "text": system_prompt()}]},
                        {"role": "user", "content": [{"type": "input_text", "text": reply_prompt(question, product)}]},
                    ],
                    max_output_tokens=self.max_output_tokens,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            LOGGER.error(f"Reply generation timed out after {self.timeout_s:.1f}s")
            return FALLBACK_REPLY
        except Exception as exc:
            LOGGER.error(f"OpenAI Responses API error: {exc}")
            return FALLBACK_REPLY

        text = extract_text(response)
        LOGGER.info(f"Reply generation latency: {time.time() - start:.3f}s")
        if not text:
            LOGGER.warning("Model returned an empty reply; using fallback text")
            return FALLBACK_REPLY
        return text
