"""FastAPI dependencies."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from salesnote.core.config import settings
from salesnote.db.database import get_db
from salesnote.services.catalog.db_catalog import DatabaseCatalogProvider
from salesnote.services.catalog.in_memory_catalog import InMemoryCatalogProvider
from salesnote.services.catalog.repository import CatalogRepository
from salesnote.services.completion.client import CompletionService, GenerationParams
from salesnote.services.draft.manager import DraftSessionManager
from salesnote.services.extraction.pipeline import ExtractionPipeline
from salesnote.services.extraction.resolver import EntityResolver
from salesnote.services.persistence.ledger import LedgerService
from salesnote.services.speech.stt import SpeechToTextService


def get_catalog_repository(db: AsyncSession = Depends(get_db)) -> CatalogRepository:
    """Get catalog repository instance (YAML file if configured, database otherwise)."""
    if settings.catalog_file:
        provider = InMemoryCatalogProvider(settings.catalog_file)
    else:
        provider = DatabaseCatalogProvider(db)
    return CatalogRepository(
        provider=provider,
        inventory_limit=settings.inventory_prompt_limit,
        vendor_limit=settings.vendor_prompt_limit,
    )


def get_completion_service() -> CompletionService:
    return CompletionService(api_key=settings.openai_api_key)


def get_transcription_service() -> SpeechToTextService:
    return SpeechToTextService(
        api_key=settings.openai_api_key, model=settings.transcription_model
    )


def get_ledger(db: AsyncSession = Depends(get_db)) -> LedgerService:
    return LedgerService(db)


def get_extraction_pipeline(
    completion_service: CompletionService = Depends(get_completion_service),
) -> ExtractionPipeline:
    """Get extraction pipeline configured from settings."""
    return ExtractionPipeline(
        completion_service=completion_service,
        resolver=EntityResolver(
            product_threshold=settings.product_match_threshold,
            customer_threshold=settings.customer_match_threshold,
            customer_recovery_threshold=settings.customer_recovery_threshold,
        ),
        params=GenerationParams(
            model=settings.completion_model,
            temperature=settings.completion_temperature,
            max_tokens=settings.completion_max_tokens,
        ),
        inventory_limit=settings.inventory_prompt_limit,
        vendor_limit=settings.vendor_prompt_limit,
    )


def get_draft_manager(
    catalog_repository: CatalogRepository = Depends(get_catalog_repository),
    pipeline: ExtractionPipeline = Depends(get_extraction_pipeline),
    ledger: LedgerService = Depends(get_ledger),
    transcription_service: SpeechToTextService = Depends(get_transcription_service),
) -> DraftSessionManager:
    """Get draft session manager; sessions themselves live at module level."""
    return DraftSessionManager(
        catalog_repository=catalog_repository,
        pipeline=pipeline,
        ledger=ledger,
        transcription_service=transcription_service,
        fallback_on_completion_failure=settings.fallback_on_completion_failure,
    )
