# llm service using ollama for text generation and tool calling
import requests
import json
import logging
from typing import List, Dict, Any, Optional, Callable, Tuple
import time

from .config import (
    OLLAMA_BASE_URL, OLLAMA_MODEL, LLM_TIMEOUT_SECONDS, LLM_MAX_RETRIES,
    LLM_BACKOFF_BASE_SECONDS, LLM_BACKOFF_MAX_SECONDS, TRANSIENT_STATUS_CODES
)
from .errors import GenerationServiceError, TransientUpstreamError
from .models import ToolCall

logger = logging.getLogger(__name__)


# wait before retry number ``attempt`` (0-based)
def backoff_delay(attempt: int, base: float = LLM_BACKOFF_BASE_SECONDS, maximum: float = LLM_BACKOFF_MAX_SECONDS) -> float:
    return min(base * (2 ** attempt), maximum)


# service for interacting with ollama llm api
class OllamaLLMService:
    """LLM service using Ollama, with retries for overload"""

    # initialize service and optionally check ollama availability
    def __init__(
        self,
        base_url: str = OLLAMA_BASE_URL,
        model: str = OLLAMA_MODEL,
        timeout: float = LLM_TIMEOUT_SECONDS,
        max_retries: int = LLM_MAX_RETRIES,
        backoff_base: float = LLM_BACKOFF_BASE_SECONDS,
        backoff_max: float = LLM_BACKOFF_MAX_SECONDS,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        check_availability: bool = True
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.session = session or requests.Session()
        self.sleep = sleep

        if check_availability:
            self._check_ollama_availability()

    # verify ollama server is running and model is available
    def _check_ollama_availability(self):
        """Check if Ollama is running and model is available"""
        try:
            response = self.session.get(f"{self.base_url}/api/tags", timeout=5)
            if response.status_code != 200:
                raise GenerationServiceError("Ollama is not running. Please start it with: ollama serve")

            models = response.json().get("models", [])
            model_names = [model["name"] for model in models]

            if not any(self.model in name for name in model_names):
                logger.warning(f"Model {self.model} not found. Available models: {model_names}")
                raise GenerationServiceError(
                    f"Model {self.model} not available. Run: ollama pull {self.model}",
                    context={"available": model_names}
                )

            logger.info(f"✓ Ollama is running with model: {self.model}")

        except requests.exceptions.ConnectionError as e:
            raise GenerationServiceError(
                "Cannot connect to Ollama. Please install and start it:\n"
                "1. Install Ollama: https://ollama.ai/\n"
                "2. Start Ollama: ollama serve\n"
                f"3. Pull model: ollama pull {self.model}",
                cause=e
            )

    # post to ollama, retrying only when the server signals overload
    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        last_error = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self.session.post(url, json=payload, timeout=self.timeout)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                last_error = e
                reason = "timed out" if isinstance(e, requests.exceptions.Timeout) else "connection failed"
            else:
                body = response.text or ""
                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise GenerationServiceError("Ollama returned a non-JSON body", cause=e)

                if response.status_code not in TRANSIENT_STATUS_CODES and "overloaded" not in body.lower():
                    raise GenerationServiceError(
                        f"Ollama API error: {response.status_code} - {body[:200]}",
                        context={"status": response.status_code}
                    )
                last_error = None
                reason = f"status {response.status_code}"

            if attempt == self.max_retries:
                break

            wait = backoff_delay(attempt, self.backoff_base, self.backoff_max)
            logger.warning(f"Generation service {reason}, retry {attempt + 1}/{self.max_retries} in {wait:.0f}s")
            self.sleep(wait)

        raise TransientUpstreamError(
            f"Generation service still unavailable after {self.max_retries} retries",
            cause=last_error,
            context={"path": path}
        )

    # generate text using ollama api
    def generate_text(self, prompt: str, max_tokens: int = 2000, temperature: float = 0.3,
                      system: Optional[str] = None) -> str:
        """Generate text using Ollama"""
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
                "top_p": 0.9,
                "top_k": 40
            }
        }
        if system:
            payload["system"] = system

        result = self._post("/api/generate", payload)
        return result.get("response", "").strip()

    # generate chat completion from message history
    def generate_chat_completion(self, messages: List[Dict[str, str]], max_tokens: int = 2000, temperature: float = 0.3) -> str:
        """Generate chat completion using Ollama"""
        prompt = self._messages_to_prompt(messages)
        return self.generate_text(prompt, max_tokens, temperature)

    # ask the model to pick tools; returns its text reply and the calls
    def chat_with_tools(self, messages: List[Dict[str, str]], tools: List[Dict[str, Any]],
                        temperature: float = 0.1) -> Tuple[str, List[ToolCall]]:
        """Tool-calling chat through /api/chat"""
        payload = {
            "model": self.model,
            "messages": messages,
            "tools": tools,
            "stream": False,
            "options": {"temperature": temperature}
        }
        result = self._post("/api/chat", payload)
        message = result.get("message") or {}

        calls = []
        for raw_call in message.get("tool_calls") or []:
            function = raw_call.get("function") or {}
            arguments = function.get("arguments") or {}
            # some models send arguments as a json string
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments)
                except json.JSONDecodeError:
                    logger.warning(f"Unparseable arguments for tool {function.get('name')}: {arguments[:100]}")
                    arguments = {}
            if not isinstance(arguments, dict):
                arguments = {}
            calls.append(ToolCall(name=function.get("name", ""), arguments=arguments))

        return (message.get("content") or "").strip(), calls

    # convert list of messages to a single prompt string
    def _messages_to_prompt(self, messages: List[Dict[str, str]]) -> str:
        """Convert chat messages to a single prompt"""
        prompt_parts = []

        for message in messages:
            role = message.get("role", "user")
            content = message.get("content", "")

            if role == "system":
                prompt_parts.append(f"System: {content}")
            elif role == "user":
                prompt_parts.append(f"User: {content}")
            elif role == "assistant":
                prompt_parts.append(f"Assistant: {content}")

        return "\n\n".join(prompt_parts) + "\n\nAssistant:"

    # test if ollama connection is working
    def test_connection(self) -> bool:
        """Test if the LLM service is working"""
        try:
            test_prompt = "Hello! Please respond with just 'OK' to confirm you're working."
            response = self.generate_text(test_prompt, max_tokens=10)
            logger.info(f"✓ LLM test successful. Response: {response}")
            return True
        except GenerationServiceError as e:
            logger.error(f"✗ LLM test failed: {str(e)}")
            return False


# global instance for singleton pattern
llm_service = None


# get or create the global llm service instance
def get_llm_service() -> OllamaLLMService:
    """Get or create the global LLM service instance"""
    global llm_service
    if llm_service is None:
        llm_service = OllamaLLMService()
    return llm_service
