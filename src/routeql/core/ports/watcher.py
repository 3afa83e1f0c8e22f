from typing import Protocol


class ChangeWatcher(Protocol):
    """Reports batches of changed project files to a callback."""

    @property
    def running(self) -> bool: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def wait(self) -> None: ...
