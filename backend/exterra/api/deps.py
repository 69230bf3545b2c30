"""Dependency wiring for FastAPI endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import requests

from exterra.integrations.footprints import OverpassFootprintClient
from exterra.integrations.geocoder import NominatimGeocoder
from exterra.integrations.imagery import GoogleImageryClient
from exterra.integrations.recognition import ClarifaiRecognizer, VlmRecognizer
from exterra.integrations.records import JsonFileRecordStore
from exterra.integrations.storage import AzureBlobStore
from exterra.services.measurement_resolver import (
    FootprintStrategy,
    MeasurementResolver,
    MeasurementStrategy,
    OutlineStrategy,
    PhotoStrategy,
    RegionalDefaultStrategy,
    SatelliteStrategy,
)
from exterra.services.opening_detector import OpeningDetector
from exterra.services.pipeline import RemodelPipeline
from exterra.services.roof_estimator import RoofEstimator

if TYPE_CHECKING:
    from exterra.config import Settings
    from exterra.integrations.recognition import ImageRecognizer
    from exterra.integrations.records import RecordStore
    from exterra.integrations.storage import BlobStore

logger = logging.getLogger(__name__)


def create_recognizer(settings: Settings) -> ImageRecognizer | None:
    """Clarifai when configured, else Anthropic vision, else None."""
    timeout = settings.recognition_timeout_seconds
    if settings.clarifai_api_key:
        return ClarifaiRecognizer(api_key=settings.clarifai_api_key, timeout=timeout)
    if settings.anthropic_api_key:
        return VlmRecognizer(api_key=settings.anthropic_api_key, timeout=timeout)
    logger.warning(
        "No CLARIFAI_API_KEY or ANTHROPIC_API_KEY set; "
        "window/door detection will use fallback counts"
    )
    return None


def create_blob_store(settings: Settings) -> AzureBlobStore | None:
    """Azure Blob Storage when a connection string is set, else None.

    Without a blob store images are not kept and the record carries no
    image URLs.
    """
    if not settings.azure_storage_connection_string:
        logger.warning(
            "No AZURE_STORAGE_CONNECTION_STRING set; images will not be stored"
        )
        return None
    return AzureBlobStore.from_connection_string(
        settings.azure_storage_connection_string,
        settings.blob_container,
        ttl_seconds=settings.signed_url_ttl_seconds,
    )


def create_record_store(settings: Settings) -> JsonFileRecordStore:
    return JsonFileRecordStore(settings.data_dir / "remodels")


def create_pipeline(
    settings: Settings,
    record_store: RecordStore | None = None,
    blob_store: BlobStore | None = None,
) -> RemodelPipeline:
    """Create a RemodelPipeline with every client built once.

    Google imagery (satellite tiles, street view) is only wired in when
    GOOGLE_MAPS_API_KEY is set; without it those fallback stages are
    skipped.
    """
    session = requests.Session()
    timeout = settings.http_timeout_seconds

    geocoder = NominatimGeocoder(
        user_agent=settings.user_agent, timeout=timeout, session=session
    )
    footprints = OverpassFootprintClient(
        user_agent=settings.user_agent, timeout=timeout, session=session
    )
    imagery = (
        GoogleImageryClient(
            api_key=settings.google_maps_api_key, timeout=timeout, session=session
        )
        if settings.google_maps_api_key
        else None
    )
    recognizer = create_recognizer(settings)

    strategies: list[MeasurementStrategy] = [
        FootprintStrategy(footprints),
        OutlineStrategy(),
    ]
    if imagery is not None:
        strategies.append(SatelliteStrategy(imagery))
    if recognizer is not None:
        strategies.append(
            PhotoStrategy(recognizer, timeout=settings.recognition_timeout_seconds)
        )
    strategies.append(RegionalDefaultStrategy())

    resolver = MeasurementResolver(strategies)
    logger.info("Measurement strategies: %s", ", ".join(resolver.strategy_names))

    return RemodelPipeline(
        geocoder=geocoder,
        resolver=resolver,
        roof_estimator=RoofEstimator(imagery=imagery),
        opening_detector=OpeningDetector(
            recognizer,
            timeout=settings.recognition_timeout_seconds,
            imagery=imagery,
        ),
        record_store=record_store or create_record_store(settings),
        blob_store=blob_store or create_blob_store(settings),
        imagery=imagery,
    )
