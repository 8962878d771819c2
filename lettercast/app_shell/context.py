from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from lettercast.adapters.dev_email import DevEmailAdapter
from lettercast.adapters.http_email import HttpEmailClient
from lettercast.adapters.sqlite.migrator import SQLiteMigrator
from lettercast.adapters.sqlite_db import SQLiteConnectionPool, SQLiteSubscriberStore
from lettercast.components.newsletter import BroadcastWorkflow, DeliveryPolicy
from lettercast.components.subscriptions import ConfirmationWorkflow, SubscriptionWorkflow
from lettercast.core.ports.db import SubscriberStorePort
from lettercast.core.ports.email import EmailPort
from lettercast.settings.models import EmailClientSettings, Settings

logger = logging.getLogger(__name__)


def build_email_sender(config: EmailClientSettings) -> EmailPort:
    if config.backend == "dev":
        return DevEmailAdapter()
    return HttpEmailClient(
        base_url=config.base_url,
        sender=config.sender_email,
        authorization_token=config.authorization_token.get_secret_value(),
        timeout_ms=config.timeout_ms,
    )


@dataclass
class ServiceContext:
    """
    Process-wide dependencies, built once at startup.

    Workflows are cheap and stateless; a fresh one is created per request
    from these shared handles.
    """

    settings: Settings
    pool: SQLiteConnectionPool
    store: SubscriberStorePort
    email_sender: EmailPort

    @classmethod
    def create(
        cls,
        settings: Settings,
        email_sender: EmailPort | None = None,
        run_migrations: bool = True,
    ) -> ServiceContext:
        db = settings.database
        pool = SQLiteConnectionPool(
            db.path,
            size=db.pool_size,
            checkout_timeout=db.checkout_timeout_s,
        )
        if run_migrations:
            os.makedirs(os.path.dirname(db.path) or ".", exist_ok=True)
            SQLiteMigrator(db.path, settings.migrations_dir).run_migrations()

        return cls(
            settings=settings,
            pool=pool,
            store=SQLiteSubscriberStore(pool),
            email_sender=email_sender or build_email_sender(settings.email_client),
        )

    @property
    def base_url(self) -> str:
        return self.settings.application.base_url

    @property
    def broadcast_policy(self) -> DeliveryPolicy:
        return DeliveryPolicy(self.settings.broadcast_policy)

    def subscription_workflow(self) -> SubscriptionWorkflow:
        return SubscriptionWorkflow(self.store, self.email_sender)

    def confirmation_workflow(self) -> ConfirmationWorkflow:
        return ConfirmationWorkflow(self.store)

    def broadcast_workflow(self) -> BroadcastWorkflow:
        return BroadcastWorkflow(self.store, self.email_sender, policy=self.broadcast_policy)

    def close(self) -> None:
        self.pool.close()
        close = getattr(self.email_sender, "close", None)
        if close is not None:
            close()
        logger.info("Service context closed")
