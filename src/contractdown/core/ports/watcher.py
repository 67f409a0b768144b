from typing import Protocol


class DocumentWatcherPort(Protocol):
    """Something that notices contract documents changing on disk."""

    @property
    def running(self) -> bool: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
