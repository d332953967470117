# File: order_scout/engine.py
"""order_scout.engine: оркестрация конвейера MSID → токен → инстанс → ревизия → страница."""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Sequence

from order_scout.analysis.locator import PageValidator, locate
from order_scout.analysis.revisions import select_from_response
from order_scout.client.api import BackofficeClient
from order_scout.client.models import BatchResult
from order_scout.config import ScoutConfig, load_config
from order_scout.exceptions import MissingFieldError, ScoutError
from order_scout.logger import logger

__all__ = ["Engine", "process_identifier", "process_batch", "run_pipeline"]

ClientFactory = Callable[[ScoutConfig], BackofficeClient]


async def process_identifier(client: BackofficeClient, msid: str, config: ScoutConfig) -> BatchResult:
    """Прогоняет один MSID через все шаги; ошибки ScoutError превращаются в BatchResult."""
    logger.info("Processing MSID: %s", msid)
    try:
        token = await client.get_signature(msid)
        logger.info("[%s] Step 1: authentication header obtained", msid)

        instance_id = await client.get_instance_id(msid, token)
        logger.info("[%s] Step 2: %s instance ID: %s", msid, config.html_app_def_id, instance_id)

        payload = await client.list_revisions(instance_id, token)
        selection = select_from_response(payload, config.cutoff)
        logger.info(
            "[%s] Step 3: %d revisions -> %d filtered (published, modified < %s)",
            msid,
            selection.total_count,
            selection.filtered_count,
            config.cutoff.date().isoformat(),
        )

        if selection.selected is None:
            logger.warning("[%s] No revision matches the criteria, skipping content analysis", msid)
            return BatchResult(identifier=msid, success=True, selection=selection)
        if not selection.selected.filename:
            raise MissingFieldError("Selected revision has no filename")

        document = await client.fetch_revision(selection.selected.filename)
        finding = await locate(document, PageValidator(client, config.restaurants_app_id))
        if finding.found:
            logger.info(
                "[%s] Step 4: page %r found (%s, hidden=%s)",
                msid,
                finding.page_uri_seo,
                finding.search_type,
                finding.hidden,
            )
        else:
            logger.info("[%s] Step 4: no online ordering page found", msid)
        return BatchResult(identifier=msid, success=True, selection=selection, finding=finding)
    except ScoutError as exc:
        logger.error("Failed to process MSID %s: %s", msid, exc)
        return BatchResult(identifier=msid, success=False, error=str(exc))


async def process_batch(
    client: BackofficeClient,
    identifiers: Sequence[str],
    config: ScoutConfig,
) -> List[BatchResult]:
    """Запускает конвейеры параллельно (не более config.concurrency одновременно).

    Падение одного конвейера не затрагивает остальные: любое исключение
    превращается в BatchResult(success=False).
    """
    semaphore = asyncio.Semaphore(config.concurrency)

    async def _bounded(index: int, msid: str) -> BatchResult:
        async with semaphore:
            logger.debug("[%d/%d] Started processing: %s", index + 1, len(identifiers), msid)
            return await process_identifier(client, msid, config)

    outcomes = await asyncio.gather(
        *(_bounded(i, msid) for i, msid in enumerate(identifiers)),
        return_exceptions=True,
    )

    results: List[BatchResult] = []
    for msid, outcome in zip(identifiers, outcomes):
        if isinstance(outcome, BaseException):
            logger.error("Unexpected error while processing %s: %r", msid, outcome)
            message = str(outcome) or type(outcome).__name__
            results.append(BatchResult(identifier=msid, success=False, error=message))
        else:
            results.append(outcome)
    return results


async def run_pipeline(
    identifiers: Sequence[str],
    config: ScoutConfig,
    client_factory: Optional[ClientFactory] = None,
) -> List[BatchResult]:
    """Открывает один клиент на весь запуск и обрабатывает все MSID."""
    factory = client_factory or BackofficeClient
    async with factory(config) as client:
        return await process_batch(client, identifiers, config)


class Engine:
    """Фасад для CLI и тестов: загрузка конфига и синхронный запуск конвейера."""

    @staticmethod
    def load_config(path: Optional[str]) -> ScoutConfig:
        """Загружает конфиг из YAML/JSON."""
        return load_config(path)

    def __init__(self, config: ScoutConfig, client_factory: Optional[ClientFactory] = None) -> None:
        self.config = config
        self.client_factory = client_factory

    def run(self, identifiers: Sequence[str]) -> List[BatchResult]:
        """Обрабатывает MSID и возвращает результаты в порядке входа."""
        logger.info("Processing %d MSID(s), concurrency=%d", len(identifiers), self.config.concurrency)
        return asyncio.run(run_pipeline(identifiers, self.config, self.client_factory))
