# backoffice/core/document_store.py

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
from loguru import logger

from backoffice.core.exceptions import UpstreamError


class ServerTimestamp:
    """Sentinela: o campo recebe o relógio do servidor do banco ao ser gravado."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = ServerTimestamp()


@dataclass
class DocumentSnapshot:
    id: str
    data: Dict[str, Any]


@dataclass
class MutationEvent:
    """Notificação de mutação de um documento (before/after completos)."""

    collection: str
    document_id: str
    before: Optional[Dict[str, Any]]
    after: Optional[Dict[str, Any]]


MutationCallback = Callable[[MutationEvent], Awaitable[None]]


def _listener_name(callback: MutationCallback) -> str:
    return getattr(callback, "__name__", repr(callback))


class DocumentStore:
    """
    Adaptador de document store sobre um banco Motor.

    Ids são gerados pelo banco (ObjectId, exposto como string). Expõe callbacks
    de mutação por coleção (`on_update` / `on_delete`), executados como tasks
    independentes: falhas são logadas e nunca chegam a quem fez a mutação.
    """

    def __init__(self, db: Any):
        self.db = db
        self._update_listeners: Dict[str, List[MutationCallback]] = defaultdict(list)
        self._delete_listeners: Dict[str, List[MutationCallback]] = defaultdict(list)
        self._pending: set[asyncio.Task] = set()

    # --- Helpers ---

    @staticmethod
    def _to_key(doc_id: Any) -> Any:
        """Ids hexadecimais válidos viram ObjectId; os demais são usados como string."""
        if isinstance(doc_id, ObjectId):
            return doc_id
        doc_id = str(doc_id)
        return ObjectId(doc_id) if ObjectId.is_valid(doc_id) else doc_id

    @staticmethod
    def _build_update(data: Dict[str, Any]) -> Dict[str, Any]:
        fields_to_set = {}
        server_stamped = {}
        for key, value in data.items():
            if key in ("_id", "id"):
                continue
            if value is SERVER_TIMESTAMP:
                server_stamped[key] = True
            else:
                fields_to_set[key] = value

        update: Dict[str, Any] = {}
        if fields_to_set:
            update["$set"] = fields_to_set
        if server_stamped:
            update["$currentDate"] = server_stamped
        if not update:
            raise ValueError("Nothing to write: data has no fields.")
        return update

    @staticmethod
    def _to_data(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if document is None:
            return None
        data = dict(document)
        data.pop("_id", None)
        return data

    @classmethod
    def _to_snapshot(cls, document: Dict[str, Any]) -> DocumentSnapshot:
        return DocumentSnapshot(id=str(document["_id"]), data=cls._to_data(document))

    @staticmethod
    def _handle_db_exception(e: Exception, operation: str, collection: str, doc_id: Any = None):
        context = f"op='{operation}' coll='{collection}'"
        if doc_id is not None:
            context += f" id='{doc_id}'"
        logger.exception(f"DB Error during {context}: {e}")
        raise UpstreamError(f"Database error during operation: {operation}") from e

    # --- Escrita ---

    async def add(self, collection: str, data: Dict[str, Any]) -> DocumentSnapshot:
        """Cria um novo documento com id gerado e retorna o documento gravado."""
        key = ObjectId()
        try:
            document = await self.db[collection].find_one_and_update(
                {"_id": key},
                self._build_update(data),
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            self._handle_db_exception(e, "add", collection)
        logger.debug(f"Document created: ID {key}, Collection: {collection}")
        return self._to_snapshot(document)

    async def update(
        self, collection: str, doc_id: Any, fields: Dict[str, Any]
    ) -> Optional[Tuple[Dict[str, Any], Dict[str, Any]]]:
        """
        Atualiza campos (`$set`). Retorna (before, after), ou None se o documento
        não existe ou foi removido antes da leitura do after (sem notificar listeners).
        """
        key = self._to_key(doc_id)
        coll = self.db[collection]
        try:
            before = await coll.find_one_and_update(
                {"_id": key},
                self._build_update(fields),
                return_document=ReturnDocument.BEFORE,
            )
            if before is None:
                logger.warning(f"Document not found for update: ID {doc_id}, Collection: {collection}")
                return None
            after = await coll.find_one({"_id": key})
        except PyMongoError as e:
            self._handle_db_exception(e, "update", collection, doc_id)

        if after is None:
            logger.warning(f"Document removed before post-update read: ID {doc_id}, Collection: {collection}")
            return None
        event = MutationEvent(collection, str(key), self._to_data(before), self._to_data(after))
        self._dispatch(self._update_listeners, event)
        return event.before, event.after

    async def upsert(self, collection: str, match: Dict[str, Any], data: Dict[str, Any]) -> DocumentSnapshot:
        """Grava com merge no documento que casa com `match`, criando-o se não existir."""
        coll = self.db[collection]
        try:
            before = await coll.find_one_and_update(
                match,
                self._build_update(data),
                upsert=True,
                return_document=ReturnDocument.BEFORE,
            )
            after = await coll.find_one(match if before is None else {"_id": before["_id"]})
        except PyMongoError as e:
            self._handle_db_exception(e, "upsert", collection)

        if after is None:
            logger.warning(f"Document removed before post-upsert read: match {match}, Collection: {collection}")
            raise UpstreamError("Database error during operation: upsert")
        snapshot = self._to_snapshot(after)
        if before is not None:
            self._dispatch(
                self._update_listeners,
                MutationEvent(collection, snapshot.id, self._to_data(before), snapshot.data),
            )
        return snapshot

    async def set(self, collection: str, doc_id: Any, data: Dict[str, Any]) -> DocumentSnapshot:
        """Grava (merge) o documento de id conhecido."""
        return await self.upsert(collection, {"_id": self._to_key(doc_id)}, data)

    async def delete(self, collection: str, doc_id: Any) -> Optional[DocumentSnapshot]:
        """Remove o documento e retorna o último snapshot (None se não existia)."""
        key = self._to_key(doc_id)
        try:
            document = await self.db[collection].find_one_and_delete({"_id": key})
        except PyMongoError as e:
            self._handle_db_exception(e, "delete", collection, doc_id)

        if document is None:
            logger.warning(f"Document not found for deletion: ID {doc_id}, Collection: {collection}")
            return None
        logger.info(f"Document deleted: ID {doc_id}, Collection: {collection}")
        snapshot = self._to_snapshot(document)
        self._dispatch(
            self._delete_listeners,
            MutationEvent(collection, snapshot.id, snapshot.data, None),
        )
        return snapshot

    # --- Leitura ---

    async def get(self, collection: str, doc_id: Any) -> Optional[DocumentSnapshot]:
        try:
            document = await self.db[collection].find_one({"_id": self._to_key(doc_id)})
        except PyMongoError as e:
            self._handle_db_exception(e, "get", collection, doc_id)
        return self._to_snapshot(document) if document else None

    async def find(self, collection: str, query: Optional[Dict[str, Any]] = None) -> List[DocumentSnapshot]:
        """Lista documentos na ordem natural (ordem de inserção)."""
        try:
            documents = await self.db[collection].find(query or {}).to_list(length=None)
        except PyMongoError as e:
            self._handle_db_exception(e, "find", collection)
        return [self._to_snapshot(doc) for doc in documents]

    # --- Callbacks de mutação ---

    def on_update(self, collection: str, callback: MutationCallback) -> None:
        self._update_listeners[collection].append(callback)
        logger.debug(f"Update listener '{_listener_name(callback)}' registered for collection '{collection}'")

    def on_delete(self, collection: str, callback: MutationCallback) -> None:
        self._delete_listeners[collection].append(callback)
        logger.debug(f"Delete listener '{_listener_name(callback)}' registered for collection '{collection}'")

    def _dispatch(self, listeners: Dict[str, List[MutationCallback]], event: MutationEvent) -> None:
        for callback in listeners.get(event.collection, []):
            task = asyncio.create_task(self._run_listener(callback, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def _run_listener(self, callback: MutationCallback, event: MutationEvent) -> None:
        log = logger.bind(collection=event.collection, document_id=event.document_id)
        try:
            await callback(event)
        except Exception as e:
            # Sem retry: a falha fica registrada e não afeta a mutação original
            log.exception(f"Mutation listener '{_listener_name(callback)}' failed: {e}")

    async def drain(self) -> None:
        """Aguarda os callbacks de mutação pendentes."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
