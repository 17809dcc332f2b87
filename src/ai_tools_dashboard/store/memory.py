"""In-process document store.

Holds documents keyed by their slash path, e.g.
``all_categories/ai_chatbots/time_windows/30_days``. Loadable from a JSON dump
of the same mapping so builds can run offline against a captured snapshot.
"""

import json
from pathlib import Path

from .base import DocumentSnapshot, DocumentStore, join_path


class InMemoryStore(DocumentStore):
    def __init__(self, documents: dict[str, dict] | None = None):
        self._documents = {path.strip("/"): data for path, data in (documents or {}).items()}
        self.reads = 0

    @classmethod
    def from_json_file(cls, path: Path | str) -> "InMemoryStore":
        with open(path, encoding="utf-8") as f:
            return cls(json.load(f))

    def put(self, path: str, data: dict) -> None:
        self._documents[path.strip("/")] = data

    async def get_document(self, path: str) -> DocumentSnapshot:
        self.reads += 1
        path = path.strip("/")
        doc_id = path.rsplit("/", 1)[-1]
        data = self._documents.get(path)
        if data is None:
            return DocumentSnapshot.missing(doc_id)
        return DocumentSnapshot(id=doc_id, data=data)

    def _children(self, collection_path: str) -> list[DocumentSnapshot]:
        prefix = collection_path.strip("/") + "/"
        docs = []
        for path, data in self._documents.items():
            if path.startswith(prefix) and "/" not in path[len(prefix):]:
                docs.append(DocumentSnapshot(id=path[len(prefix):], data=data))
        return docs

    async def query_recent(
        self,
        collection_path: str,
        doc_id: str,
        subcollection: str,
        order_by: str,
        descending: bool = True,
        limit: int = 1,
    ) -> list[DocumentSnapshot]:
        self.reads += 1
        docs = [
            d for d in self._children(join_path(collection_path, doc_id, subcollection))
            if d.data.get(order_by) is not None
        ]
        docs.sort(key=lambda d: d.data[order_by], reverse=descending)
        return docs[:limit]

    async def list_documents(self, collection_path: str) -> list[DocumentSnapshot]:
        self.reads += 1
        docs = {d.id: d for d in self._children(collection_path)}
        # Parent documents that only exist through their subcollections
        prefix = collection_path.strip("/") + "/"
        for path in self._documents:
            if path.startswith(prefix):
                doc_id = path[len(prefix):].split("/", 1)[0]
                docs.setdefault(doc_id, DocumentSnapshot(id=doc_id, data={}))
        return sorted(docs.values(), key=lambda d: d.id)
