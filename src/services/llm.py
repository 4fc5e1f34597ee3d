import time
import logging
from typing import Dict, Any, List, Optional

from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from services.config import LLMConfig

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """The chat-completion request failed."""


class ChatClient:
    """
    LangChain client for an OpenAI-compatible chat-completion endpoint.
    Every request is attempted exactly once.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str,
        timeout: float = 120.0,
    ):
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout

        self.llm = ChatOpenAI(
            base_url=self.base_url,
            model=model,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    @classmethod
    def from_config(cls, config: LLMConfig, api_key: str) -> "ChatClient":
        return cls(
            base_url=config.base_url,
            model=config.model,
            api_key=api_key,
            timeout=config.timeout,
        )

    async def _invoke(self, messages: List[HumanMessage], **params: Any) -> Any:
        try:
            return await self.llm.bind(**params).ainvoke(messages)
        except Exception as e:
            raise LLMError(f"Chat completion failed (base_url={self.base_url}, model={self.model}): {e}") from e

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float,
        json_mode: bool = False,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Send a single-message prompt and return the response with metadata.

        Raises:
            LLMError: On any transport or API failure.
        """
        params: Dict[str, Any] = {"temperature": temperature}
        if json_mode:
            params["response_format"] = {"type": "json_object"}
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        start = time.time()

        response = await self._invoke([HumanMessage(content=prompt)], **params)

        latency_ms = int((time.time() - start) * 1000)

        content = response.content if isinstance(response.content, str) else str(response.content)
        return {
            "raw": response,
            "content": content,
            "latency_ms": latency_ms,
        }
