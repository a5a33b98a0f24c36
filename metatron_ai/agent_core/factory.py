from __future__ import annotations

"""Convenience factories for wiring the gateway from ``Settings``.

``create_gateway_deps`` turns the environment-driven configuration into the
long-lived ``GatewayDeps`` the registry builder needs:

- the relational database (``METATRON_DATABASE_URL``) always holds the
  notebook and the media records;
- when ``METATRON_MONGO_URL`` is set, ``db_query`` runs against MongoDB
  (document mode); otherwise it runs raw SQL against the relational database
  (SQL mode);
- media files live under ``METATRON_MEDIA_DIR``;
- the Brave and image provider configs carry their base URLs and timeouts.

Callers that manage connection lifecycles themselves can pass their own engine
or Mongo database.
"""

from typing import Optional

import httpx
from pymongo.asynchronous.database import AsyncDatabase
from sqlalchemy.ext.asyncio import AsyncEngine

from metatron_ai.core.config import Settings
from metatron_ai.core.logging_config import get_logger

from .capabilities.registry import GatewayDeps
from .executor import DocumentExecutor, SqlExecutor
from .integrations import MediaFileStore
from .notebook import AgentNotebook
from .policy import CollectionPolicy, SqlStatementPolicy, StorePolicy
from .stores.mongo import MongoDocumentStore, create_client
from .stores.sql import (
    SqlMediaRepository,
    SqlSettingsRepository,
    SqlStatementStore,
    create_engine,
    create_sessionmaker,
)

logger = get_logger(__name__)


def create_gateway_deps(
    settings: Settings,
    *,
    engine: Optional[AsyncEngine] = None,
    mongo_database: Optional[AsyncDatabase] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    collection_policy: Optional[CollectionPolicy] = None,
) -> GatewayDeps:
    """
    Build ``GatewayDeps`` from settings.

    Args:
        settings: Loaded configuration.
        engine: Relational engine to use instead of one created from ``settings.database.url``.
        mongo_database: Document database to use instead of one opened from ``settings.mongo``.
            Supplying it selects document mode even when no Mongo URL is configured.
        http_client: Client shared by the web search and image tools.
        collection_policy: Tier tables; the defaults apply when omitted.

    Returns:
        GatewayDeps wired for document mode or SQL mode.
    """
    engine = engine or create_engine(settings.database.url)
    sessions = create_sessionmaker(engine)
    store_policy = StorePolicy(collection_policy)

    mongo = settings.mongo
    if mongo_database is None and mongo.url:
        mongo_database = create_client(mongo.url)[mongo.database]

    document_executor: Optional[DocumentExecutor] = None
    sql_executor: Optional[SqlExecutor] = None
    if mongo_database is not None:
        document_executor = DocumentExecutor(MongoDocumentStore(mongo_database), store_policy)
        logger.info(f"db_query runs in document mode on database '{mongo_database.name}'")
    else:
        sql_executor = SqlExecutor(SqlStatementStore(engine), SqlStatementPolicy(store_policy))
        logger.info(f"db_query runs in SQL mode on {engine.url.drivername}")

    return GatewayDeps(
        notebook=AgentNotebook(SqlSettingsRepository(sessions)),
        document_executor=document_executor,
        sql_executor=sql_executor,
        store_policy=store_policy,
        media_repository=SqlMediaRepository(sessions),
        media_files=MediaFileStore(settings.media.directory),
        http_client=http_client,
        brave_config=settings.brave_search,
        image_config=settings.image_providers,
    )
