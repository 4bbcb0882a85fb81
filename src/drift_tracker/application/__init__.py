from .use_cases import DriftTrackingService
from .interfaces import ITrackingUseCase
from .errors import (
    TrackerError,
    ConfigurationError,
    PersistenceError,
    EntryError,
    CloneError,
    PackageManagerDetectionError,
    InstallError,
    DriftCalculationError,
    EnrichmentFetchError,
    StageError,
    ProvisioningError,
)

__all__ = [
    "DriftTrackingService",
    "ITrackingUseCase",
    "TrackerError",
    "ConfigurationError",
    "PersistenceError",
    "EntryError",
    "CloneError",
    "PackageManagerDetectionError",
    "InstallError",
    "DriftCalculationError",
    "EnrichmentFetchError",
    "StageError",
    "ProvisioningError",
]
