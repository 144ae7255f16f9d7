from dataclasses import dataclass, field

from loguru import logger
from openai import AsyncOpenAI, OpenAIError

from chatmem.memory.errors import EmbeddingUnavailableError
from chatmem.utils.env_cfg import load_model_env, load_openai_env


@dataclass
class OpenAIEmbeddingProvider:
    """
    Embedding provider backed by an OpenAI-compatible embeddings endpoint.
    """

    client: AsyncOpenAI = field(init=False)
    embed_model_id: str = field(init=False)

    def __post_init__(self) -> None:
        """
        Post-initialization to load configurations.
        """
        self.embed_model_id = load_model_env().embed_model

        _openai_config = load_openai_env()
        self.client = AsyncOpenAI(
            api_key=_openai_config.api_key,
            base_url=_openai_config.api_base,
            timeout=_openai_config.timeout,
            max_retries=_openai_config.max_retries,
        )
        logger.info("Using embedding model '{}'", self.embed_model_id)

    async def __call__(self, text: str) -> list[float]:
        """
        Embed a single text.

        Args:
            text (str): The text to embed.

        Returns:
            list[float]: The embedding vector.

        Raises:
            EmbeddingUnavailableError: If the request fails or returns no vector.
        """
        try:
            response = await self.client.embeddings.create(
                model=self.embed_model_id,
                input=text,
            )
        except OpenAIError as e:
            logger.error("Error during embedding request: {}", e)
            raise EmbeddingUnavailableError(f"Embedding request failed: {e}") from e

        if not response.data:
            logger.error("EmbeddingUnavailableError: Embedding response was empty.")
            raise EmbeddingUnavailableError("Embedding response was empty.")
        return list(response.data[0].embedding)
