"""Approach selection by (name, RAGType)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from backend.core.errors import InvalidInputError, UnknownApproachError
from backend.generation.client import ChatClient
from backend.search.client import SearchClient
from .base import RAGApproach
from .chains import ChainsAskApproach, ChainsChatApproach
from .memory import VectorMemoryAskApproach, VectorMemoryChatApproach
from .options import RAGOptions, RAGType
from .plain import PlainAskApproach, PlainChatApproach

logger = logging.getLogger(__name__)

PLAIN = "plain"
MEMORY = "memory"
CHAINS = "chains"


@dataclass(frozen=True)
class ApproachRegistration:
    """How to build one approach and when it may be selected."""

    build: Callable[[], RAGApproach]
    requires_kernel_mode: bool = False


class RAGApproachFactory:
    """Maps (name, RAGType) to a registered approach.

    Registration happens once at startup; selection is a pure lookup.
    """

    def __init__(self):
        self._registry: dict[tuple[str, RAGType], ApproachRegistration] = {}

    def register(
        self,
        name: str,
        rag_type: RAGType,
        build: Callable[[], RAGApproach],
        *,
        requires_kernel_mode: bool = False,
    ) -> None:
        """Register a builder for a (name, type) pair.

        Args:
            name: Approach selector sent by clients.
            rag_type: ASK or CHAT.
            build: Zero-argument callable returning the approach.
            requires_kernel_mode: Only resolve when options.semantic_kernel_mode is set.
        """
        if not name or not name.strip():
            raise InvalidInputError("approach name cannot be blank")
        self._registry[(name, RAGType(rag_type))] = ApproachRegistration(build, requires_kernel_mode)

    def create_approach(self, name: str, rag_type: RAGType, options: RAGOptions) -> RAGApproach:
        """Return the approach registered for (name, rag_type).

        Raises:
            InvalidInputError: If name is blank or rag_type is not a RAGType value.
            UnknownApproachError: If nothing is registered for the pair, or the
                registration requires kernel mode and options do not enable it.
        """
        if not name or not name.strip():
            raise InvalidInputError("approach cannot be blank")
        try:
            rag_type = RAGType(rag_type)
        except ValueError as e:
            raise InvalidInputError(f"Unknown rag type: {rag_type}") from e

        registration = self._registry.get((name, rag_type))
        if registration is None:
            raise UnknownApproachError(name, rag_type.value)
        if registration.requires_kernel_mode and not options.semantic_kernel_mode:
            raise UnknownApproachError(name, rag_type.value)

        approach = registration.build()
        logger.info("Selected approach [%s] for rag type [%s]", name, rag_type.value)
        return approach

    def registered(self) -> list[tuple[str, RAGType]]:
        return sorted(self._registry, key=lambda key: (key[0], key[1].value))


def build_approach_factory(
    search: SearchClient,
    chat: ChatClient,
    memory: SearchClient | None = None,
) -> RAGApproachFactory:
    """Register the built-in approaches against shared collaborators.

    The memory approaches are registered only when a vector memory store is
    given; without one they are unknown approaches.
    """
    factory = RAGApproachFactory()

    factory.register(PLAIN, RAGType.ASK, lambda: PlainAskApproach(search, chat))
    factory.register(PLAIN, RAGType.CHAT, lambda: PlainChatApproach(search, chat))
    if memory is not None:
        factory.register(MEMORY, RAGType.ASK, lambda: VectorMemoryAskApproach(memory, chat))
        factory.register(MEMORY, RAGType.CHAT, lambda: VectorMemoryChatApproach(memory, chat))
    else:
        logger.info("No vector memory store; approach [%s] is not available", MEMORY)
    factory.register(CHAINS, RAGType.ASK, lambda: ChainsAskApproach(search, chat), requires_kernel_mode=True)
    factory.register(CHAINS, RAGType.CHAT, lambda: ChainsChatApproach(search, chat), requires_kernel_mode=True)

    return factory
