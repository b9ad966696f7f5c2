"""Abstract base class for remote storage backends."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from types import TracebackType
from typing import BinaryIO


@dataclass(frozen=True)
class ListPage:
    """One page of a remote folder listing."""

    entries: list[str] = field(default_factory=list)
    has_more: bool = False
    cursor: str | None = None


class BaseStorage(abc.ABC):
    """Interface for the remote folder that receives backup files.

    Entries are addressed by file name relative to the configured remote
    folder; backends translate names into their own paths or keys.
    """

    @abc.abstractmethod
    def list_page(self, cursor: str | None = None) -> ListPage:
        """Fetch one page of the remote folder listing.

        Args:
            cursor: ``None`` for the first page, otherwise the cursor returned
                with the previous page.

        Raises:
            RemoteListError: If the listing call fails.
        """

    @abc.abstractmethod
    def upload(self, name: str, stream: BinaryIO) -> str:
        """Upload a byte stream as ``name``.

        Returns:
            The full location of the stored file.

        Raises:
            UploadError: If the transfer fails.
        """

    @abc.abstractmethod
    def delete(self, name: str) -> None:
        """Delete the remote file ``name``.

        Raises:
            DeleteError: If the delete call fails.
        """

    def close(self) -> None:
        """Release any client resources held by the backend."""

    def __enter__(self) -> BaseStorage:
        return self

    def __exit__(
            self,
            exc_type: type[BaseException] | None,
            exc: BaseException | None,
            tb: TracebackType | None,
    ) -> None:
        self.close()
