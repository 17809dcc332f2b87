"""Firestore REST v1 document store.

Reads documents over plain HTTPS with ``httpx`` so the dashboard needs no
service SDK. Firestore encodes every field as a typed value
(``{"integerValue": "42"}``, ``{"mapValue": {"fields": {...}}}``) which is
decoded here into plain Python values before anything else sees it.

Public data can be read with the project's web API key; private projects need
an OAuth access token (FIRESTORE_ACCESS_TOKEN).
"""

import base64
import logging

import httpx

from ai_tools_dashboard.config import settings
from ai_tools_dashboard.errors import TransportError

from .base import DocumentSnapshot, DocumentStore, join_path

logger = logging.getLogger(__name__)

PAGE_SIZE = 300


def decode_value(value: dict):
    """Decode one Firestore typed value."""
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return value["timestampValue"]
    if "referenceValue" in value:
        return value["referenceValue"]
    if "bytesValue" in value:
        return base64.b64decode(value["bytesValue"])
    if "geoPointValue" in value:
        point = value["geoPointValue"]
        return {"latitude": point.get("latitude", 0.0), "longitude": point.get("longitude", 0.0)}
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    logger.debug("Unknown Firestore value type: %s", list(value))
    return None


def decode_fields(fields: dict) -> dict:
    return {key: decode_value(value) for key, value in fields.items()}


def decode_document(document: dict) -> DocumentSnapshot:
    doc_id = document.get("name", "").rsplit("/", 1)[-1]
    return DocumentSnapshot(id=doc_id, data=decode_fields(document.get("fields", {})))


class FirestoreRestStore(DocumentStore):
    def __init__(
        self,
        project_id: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.project_id = project_id or settings.firestore_project_id
        self.api_key = api_key if api_key is not None else settings.firestore_api_key
        access_token = access_token if access_token is not None else settings.firestore_access_token
        self._headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=settings.http_timeout_secs, follow_redirects=True
        )
        self._root = (
            f"{settings.firestore_base_url.rstrip('/')}/projects/{self.project_id}"
            "/databases/(default)/documents"
        )

    def _url(self, path: str) -> str:
        return f"{self._root}/{path.strip('/')}" if path else self._root

    def _params(self, **extra) -> dict:
        params = {k: v for k, v in extra.items() if v is not None}
        if self.api_key:
            params["key"] = self.api_key
        return params

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"Firestore request failed: {e}") from e
        if resp.status_code == 404:
            return resp
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Firestore returned HTTP {resp.status_code} for {url}", status_code=resp.status_code
            ) from e
        return resp

    async def get_document(self, path: str) -> DocumentSnapshot:
        resp = await self._request("GET", self._url(path), params=self._params())
        if resp.status_code == 404:
            return DocumentSnapshot.missing(path.rstrip("/").rsplit("/", 1)[-1])
        return decode_document(resp.json())

    async def query_recent(
        self,
        collection_path: str,
        doc_id: str,
        subcollection: str,
        order_by: str,
        descending: bool = True,
        limit: int = 1,
    ) -> list[DocumentSnapshot]:
        body = {
            "structuredQuery": {
                "from": [{"collectionId": subcollection}],
                "orderBy": [{
                    "field": {"fieldPath": order_by},
                    "direction": "DESCENDING" if descending else "ASCENDING",
                }],
                "limit": limit,
            }
        }
        parent = self._url(join_path(collection_path, doc_id))
        resp = await self._request("POST", f"{parent}:runQuery", params=self._params(), json=body)
        if resp.status_code == 404:
            return []
        # runQuery streams one object per result; entries without a document carry only readTime
        return [decode_document(row["document"]) for row in resp.json() if "document" in row]

    async def list_documents(self, collection_path: str) -> list[DocumentSnapshot]:
        docs: list[DocumentSnapshot] = []
        page_token = None
        while True:
            resp = await self._request(
                "GET",
                self._url(collection_path),
                params=self._params(pageSize=PAGE_SIZE, pageToken=page_token, showMissing="true"),
            )
            if resp.status_code == 404:
                return docs
            payload = resp.json()
            docs.extend(decode_document(d) for d in payload.get("documents", []))
            page_token = payload.get("nextPageToken")
            if not page_token:
                return docs

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
