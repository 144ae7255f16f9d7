from collections.abc import Iterator, Sequence

import anyio
import pytest
from loguru import logger

from chatmem.memory import ConversationMemory
from chatmem.utils.env_cfg import MemoryConfig

# Five-dimensional vectors with exact cosine similarities against QUERY.
QUERY = (1.0, 0.0, 0.0, 0.0, 0.0)
SIM_1_0 = (1.0, 0.0, 0.0, 0.0, 0.0)
SIM_0_9 = (9.0, 3.0, 3.0, 1.0, 0.0)
SIM_0_8 = (4.0, 3.0, 0.0, 0.0, 0.0)
SIM_0_75 = (15.0, 13.0, 2.0, 1.0, 1.0)
SIM_0_7 = (7.0, 1.0, 1.0, 7.0, 0.0)
SIM_0_5 = (1.0, 1.0, 1.0, 1.0, 0.0)
ORTHOGONAL = (0.0, 0.0, 0.0, 0.0, 1.0)


class FakeEmbedder:
    """
    In-memory embedding provider with scripted vectors, failures and delays.
    """

    def __init__(
        self,
        vectors: dict[str, Sequence[float]] | None = None,
        default: Sequence[float] = ORTHOGONAL,
    ) -> None:
        """
        Initialize the FakeEmbedder.

        Args:
            vectors (dict[str, Sequence[float]] | None, optional): Vector per text.
            default (Sequence[float], optional): Vector for texts not in ``vectors``.
        """
        self.vectors = dict(vectors or {})
        self.default = default
        self.failures: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.calls: list[str] = []
        self.completed: list[str] = []

    async def __call__(self, text: str) -> Sequence[float]:
        self.calls.append(text)
        delay = self.delays.get(text)
        if delay is not None:
            await anyio.sleep(delay)
        if text in self.failures:
            raise self.failures[text]
        self.completed.append(text)
        return self.vectors.get(text, self.default)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder({"query": QUERY})


@pytest.fixture
def memory(embedder: FakeEmbedder) -> ConversationMemory:
    """
    Memory store with the default limits and a scripted embedder.

    Args:
        embedder (FakeEmbedder): The fake embedding provider.

    Returns:
        ConversationMemory: The store under test.
    """
    return ConversationMemory(embed=embedder, config=MemoryConfig())


@pytest.fixture
def log_messages() -> Iterator[list]:
    """
    Capture chatmem log records at WARNING and above.

    Returns:
        Iterator[list]: Messages; each carries its loguru record as ``.record``.
    """
    messages: list = []
    logger.enable("chatmem")
    sink_id = logger.add(messages.append, level="WARNING", format="{message}")
    yield messages
    logger.remove(sink_id)
    logger.disable("chatmem")
