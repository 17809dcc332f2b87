from abc import ABC, abstractmethod
from dataclasses import dataclass

from ai_tools_dashboard.errors import NotFoundError


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document read from the store. Missing documents have ``exists=False``."""

    id: str
    data: dict | None = None
    exists: bool = True

    @classmethod
    def missing(cls, doc_id: str) -> "DocumentSnapshot":
        return cls(id=doc_id, data=None, exists=False)

    def require_data(self) -> dict:
        if not self.exists or self.data is None:
            raise NotFoundError(self.id)
        return self.data


def join_path(*parts: str | None) -> str:
    return "/".join(p.strip("/") for p in parts if p)


class DocumentStore(ABC):
    """Read-only document store boundary.

    Lookups report a missing document as a snapshot with ``exists=False``.
    Only transport failures raise (``TransportError``).
    """

    @abstractmethod
    async def get_document(self, path: str) -> DocumentSnapshot:
        ...

    @abstractmethod
    async def query_recent(
        self,
        collection_path: str,
        doc_id: str,
        subcollection: str,
        order_by: str,
        descending: bool = True,
        limit: int = 1,
    ) -> list[DocumentSnapshot]:
        ...

    @abstractmethod
    async def list_documents(self, collection_path: str) -> list[DocumentSnapshot]:
        ...

    async def get_aggregate(
        self, collection_path: str, doc_id: str, sub_path: str | None = None
    ) -> DocumentSnapshot:
        return await self.get_document(join_path(collection_path, doc_id, sub_path))

    async def aclose(self) -> None:
        pass
