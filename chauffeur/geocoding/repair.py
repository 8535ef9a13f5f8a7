"""Coordinate repair with bounded-parallel lookups."""

import asyncio
import time
from collections.abc import Collection, Sequence
from enum import Enum

from pydantic import Field

from chauffeur.config.models import GeocodingConfig, RegionConfig
from chauffeur.geocoding.base import GeocodingError, GeocodingProvider
from chauffeur.geocoding.consistency import CoordinateValidator, RepairDiagnosis, RepairReason
from chauffeur.itinerary.models import FrozenWireModel, Waypoint
from chauffeur.observability.logging import get_logger
from chauffeur.observability.metrics import GEOCODE_LATENCY, GEOCODE_REPAIRS

logger = get_logger(__name__)


class RepairStatus(str, Enum):
    """What happened to a repair attempt."""

    REPAIRED = "repaired"
    UNVERIFIED = "unverified"
    REJECTED = "rejected"
    FAILED = "failed"
    TIMEOUT = "timeout"
    SKIPPED = "skipped"


class RepairOutcome(FrozenWireModel):
    """Record of one repair attempt; the waypoint is untouched unless repaired."""

    index: int = Field(..., description="Position in the assembled waypoint list")
    waypoint_id: str = Field(...)
    reason: RepairReason = Field(...)
    status: RepairStatus = Field(...)
    query: str | None = Field(default=None)
    detail: str = Field(default="")

    @property
    def repaired(self) -> bool:
        return self.status == RepairStatus.REPAIRED


class CoordinateRepairer:
    """Re-geocode waypoints whose coordinates fail the consistency checks.

    Lookups run concurrently, bounded by ``max_parallel``, each under its own
    timeout. Any provider error or timeout leaves the waypoint as it was.
    """

    def __init__(
        self,
        provider: GeocodingProvider,
        validator: CoordinateValidator,
        timeout_ms: int = 5000,
        max_parallel: int = 8,
    ) -> None:
        """Initialize the repairer.

        Args:
            provider: Geocoding collaborator
            validator: Consistency checks
            timeout_ms: Maximum time per lookup
            max_parallel: Maximum concurrent lookups
        """
        self._provider = provider
        self._validator = validator
        self._timeout_ms = timeout_ms
        self._semaphore = asyncio.Semaphore(max_parallel)

    @classmethod
    def from_config(
        cls,
        provider: GeocodingProvider,
        config: GeocodingConfig,
    ) -> "CoordinateRepairer":
        return cls(
            provider=provider,
            validator=CoordinateValidator(config),
            timeout_ms=config.timeout_ms,
            max_parallel=config.max_parallel,
        )

    @property
    def validator(self) -> CoordinateValidator:
        return self._validator

    async def repair(
        self,
        waypoint: Waypoint,
        region: RegionConfig,
        index: int = 0,
    ) -> tuple[Waypoint, RepairOutcome | None]:
        """Check one waypoint and repair it if needed.

        Returns:
            Tuple of (waypoint, outcome); outcome is None when no repair
            was needed
        """
        diagnosis = self._validator.diagnose(waypoint, region)
        if diagnosis is None:
            return waypoint, None
        return await self._repair_diagnosed(waypoint, diagnosis, region, index)

    async def repair_all(
        self,
        waypoints: Sequence[Waypoint],
        region: RegionConfig,
        stale: Collection[int] = (),
        targets: Collection[int] | None = None,
    ) -> tuple[list[Waypoint], list[RepairOutcome]]:
        """Check waypoints and repair the inconsistent ones concurrently.

        Results are reassembled by index, so completion order never affects
        the returned order.

        Args:
            waypoints: Assembled waypoints
            region: Region of the trip
            stale: Indices whose address changed without new coordinates;
                they are looked up even when every check passes
            targets: Indices to check; every waypoint when None. Stale
                indices are always checked.
        """
        result = list(waypoints)
        pending: list[tuple[int, Waypoint, RepairDiagnosis]] = []
        for index, waypoint in enumerate(waypoints):
            if targets is not None and index not in targets and index not in stale:
                continue
            diagnosis = self._validator.diagnose(waypoint, region)
            if diagnosis is None and index in stale:
                diagnosis = RepairDiagnosis(
                    reason=RepairReason.STALE_COORDINATES,
                    detail="address changed without new coordinates",
                )
            if diagnosis is not None:
                pending.append((index, waypoint, diagnosis))
        if not pending:
            return result, []

        repaired = await asyncio.gather(
            *(
                self._repair_diagnosed(waypoint, diagnosis, region, index)
                for index, waypoint, diagnosis in pending
            )
        )

        outcomes: list[RepairOutcome] = []
        for (index, _, _), (waypoint, outcome) in zip(pending, repaired, strict=True):
            result[index] = waypoint
            outcomes.append(outcome)
        return result, outcomes

    async def _repair_diagnosed(
        self,
        waypoint: Waypoint,
        diagnosis: RepairDiagnosis,
        region: RegionConfig,
        index: int,
    ) -> tuple[Waypoint, RepairOutcome]:
        request = self._validator.build_query(waypoint, diagnosis, region)

        def outcome(status: RepairStatus, detail: str) -> RepairOutcome:
            GEOCODE_REPAIRS.labels(reason=diagnosis.reason.value, outcome=status.value).inc()
            return RepairOutcome(
                index=index,
                waypoint_id=waypoint.id,
                reason=diagnosis.reason,
                status=status,
                query=request.query if request else None,
                detail=detail,
            )

        if request is None:
            return waypoint, outcome(RepairStatus.SKIPPED, "no address text to look up")

        start_time = time.perf_counter()
        try:
            async with self._semaphore:
                result = await asyncio.wait_for(
                    self._provider.geocode(request),
                    timeout=self._timeout_ms / 1000,
                )
        except TimeoutError:
            logger.warning("geocode_timeout", waypoint_id=waypoint.id, timeout_ms=self._timeout_ms)
            return waypoint, outcome(RepairStatus.TIMEOUT, f"lookup exceeded {self._timeout_ms} ms")
        except GeocodingError as exc:
            logger.warning(
                "geocode_failed",
                waypoint_id=waypoint.id,
                error_code=exc.error_code.value,
                error=exc.message,
            )
            return waypoint, outcome(RepairStatus.FAILED, exc.message)
        except Exception as exc:  # noqa: BLE001
            logger.error("geocode_unexpected_error", waypoint_id=waypoint.id, error=str(exc))
            return waypoint, outcome(RepairStatus.FAILED, str(exc))
        finally:
            GEOCODE_LATENCY.labels(provider=self._provider.provider_name).observe(
                time.perf_counter() - start_time
            )

        if not result.usable:
            return waypoint, outcome(RepairStatus.UNVERIFIED, "lookup returned no usable match")

        candidate = waypoint.model_copy(
            update={
                "lat": result.lat,
                "lng": result.lng,
                "formatted_address": result.formatted_address,
            }
        )
        if self._validator.still_fails(candidate, diagnosis, region):
            logger.info(
                "geocode_repair_rejected",
                waypoint_id=waypoint.id,
                reason=diagnosis.reason.value,
                formatted_address=result.formatted_address,
            )
            return waypoint, outcome(
                RepairStatus.REJECTED,
                f"lookup result {result.formatted_address!r} still fails {diagnosis.reason.value}",
            )

        logger.info(
            "geocode_repaired",
            waypoint_id=waypoint.id,
            reason=diagnosis.reason.value,
            lat=result.lat,
            lng=result.lng,
        )
        return candidate, outcome(
            RepairStatus.REPAIRED,
            f"{diagnosis.detail}; now {result.formatted_address}",
        )
