from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol


class TransactionManager(Protocol):
    """Unidad de trabajo: todo lo ejecutado dentro de `start()` se confirma o se revierte junto."""

    @asynccontextmanager
    async def start(self) -> AsyncIterator[None]:
        yield
