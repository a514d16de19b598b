import logging
from typing import Any, Optional

from .config_validator import get_required_env

logger = logging.getLogger(__name__)

# Provider packages are optional extras; only the configured one must be installed.
try:
    from langchain_google_genai import ChatGoogleGenerativeAI
except ImportError:
    ChatGoogleGenerativeAI = None

try:
    from langchain_groq import ChatGroq
except ImportError:
    ChatGroq = None

try:
    from langchain_openai import ChatOpenAI
except ImportError:
    ChatOpenAI = None


KNOWN_GOOGLE_MODELS = [
    "gemini-1.5-flash",
    "gemini-1.5-pro",
    "gemini-2.0-flash",
    "gemini-2.5-flash",
]


def get_llm_instance(provider: str, model: str, timeout: Optional[float] = None) -> Any:
    """
    Factory to return a ready-to-use chat model based on provider name.

    :param provider: 'google', 'groq' or 'openai'
    :param model: Model name
    :param timeout: Client-side request timeout in seconds
    :return: LangChain chat model to wrap in LangChainCompletionOracle
    """

    provider = provider.lower()

    if provider == "google":
        if ChatGoogleGenerativeAI is None:
            raise ImportError("langchain_google_genai not installed")

        api_key = get_required_env(
            "GEMINI_API_KEY",
            description="Gemini API key (get from https://aistudio.google.com/app/apikey)"
        )

        if model not in KNOWN_GOOGLE_MODELS:
            # Warn but don't fail - Google ships new models regularly
            logger.warning(
                f"Model '{model}' not in known Gemini models. "
                f"Known models: {KNOWN_GOOGLE_MODELS}"
            )

        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=api_key,
            timeout=timeout,
            max_retries=0,
        )

    elif provider == "groq":
        if ChatGroq is None:
            raise ImportError("langchain_groq not installed")

        api_key = get_required_env(
            "GROQ_API_KEY",
            description="Groq API key for LLM (get from https://console.groq.com/keys)"
        )
        return ChatGroq(
            model=model,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
            streaming=False,
        )

    elif provider == "openai":
        if ChatOpenAI is None:
            raise ImportError("langchain_openai not installed")

        api_key = get_required_env(
            "OPENAI_API_KEY",
            description="OpenAI API key for LLM (get from https://platform.openai.com/api-keys)"
        )
        return ChatOpenAI(
            model=model,
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
            streaming=False,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}")
