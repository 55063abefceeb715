"""Service wiring shared by the API routes and the CLI."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.api.database import SessionDep, SessionFactoryDep
from neriah.auth.google import GoogleOAuth
from neriah.core.config import Config
from neriah.providers.base import MailProvider
from neriah.providers.gmail import GmailMailProvider
from neriah.repositories.oauth_token import OAuthTokenRepository
from neriah.repositories.push_subscription import PushSubscriptionRepository
from neriah.services.auth_service import AuthService
from neriah.services.extractor import MODELS, LLMExtractor
from neriah.services.push_notification import PushNotificationService
from neriah.services.scheduled_sync import ScheduledSyncService, SessionFactory
from neriah.services.sync_policy import policies_from_config
from neriah.services.sync_service import SyncService


def build_mail_provider(session: AsyncSession, config: Config) -> MailProvider:
    """Gmail provider with token refresh backed by the session."""
    oauth = GoogleOAuth(config.google_client_id or "", config.google_client_secret or "")
    return GmailMailProvider(AuthService(oauth, OAuthTokenRepository(session)))


def build_extractor(config: Config) -> LLMExtractor:
    """LLM extractor for the configured model."""
    model = MODELS.get(config.extraction_model, config.extraction_model)
    api_key = config.anthropic_api_key if model.startswith("anthropic/") else config.openai_api_key
    return LLMExtractor(model=model, api_key=api_key)


def build_sync_service(session: AsyncSession, config: Config) -> SyncService:
    """Assemble a SyncService bound to one session.

    Args:
        session: Database session for this run.
        config: Pipeline configuration.

    Returns:
        Ready-to-run orchestrator.
    """
    notifier = PushNotificationService(
        PushSubscriptionRepository(session),
        vapid_private_key=config.vapid_private_key if config.has_push() else None,
        vapid_subject=config.vapid_subject,
    )
    return SyncService(
        session,
        build_mail_provider(session, config),
        build_extractor(config),
        notifier,
        pacing=config.pacing_policy(),
        policies=policies_from_config(config),
    )


def build_scheduled_sync(session_factory: SessionFactory, config: Config) -> ScheduledSyncService:
    """Assemble the sweep runner."""
    return ScheduledSyncService(
        session_factory,
        lambda session: build_sync_service(session, config),
        inter_user_delay_seconds=config.inter_user_delay_seconds,
    )


def get_pipeline_config(request: Request) -> Config:
    """Pipeline configuration loaded at startup.

    Raises:
        HTTPException: If the configuration was not loaded.
    """
    config = getattr(request.app.state, "pipeline_config", None)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline not configured",
        )
    return config


PipelineConfigDep = Annotated[Config, Depends(get_pipeline_config)]


def get_sync_service(session: SessionDep, config: PipelineConfigDep) -> SyncService:
    """Request-scoped sync orchestrator."""
    return build_sync_service(session, config)


def get_scheduled_sync(
    session_factory: SessionFactoryDep,
    config: PipelineConfigDep,
) -> ScheduledSyncService:
    """Sweep runner using the app's session factory."""
    return build_scheduled_sync(session_factory, config)


def get_mail_provider(session: SessionDep, config: PipelineConfigDep) -> MailProvider:
    """Request-scoped mail provider."""
    return build_mail_provider(session, config)


SyncServiceDep = Annotated[SyncService, Depends(get_sync_service)]
ScheduledSyncDep = Annotated[ScheduledSyncService, Depends(get_scheduled_sync)]
MailProviderDep = Annotated[MailProvider, Depends(get_mail_provider)]
