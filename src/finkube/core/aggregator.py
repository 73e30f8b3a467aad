# src/finkube/core/aggregator.py
"""
Fans a set of queries out to the metrics backend and joins the partial
results into per-entity, per-timestamp records.

Each query (a `Dimension`) fills one field of the joined records. All
queries of a call run concurrently; the call fails as a whole if any of
them failed, so callers never see a partially joined result.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from ..models.cost import CostRecord, EntityKey, TimeWindow
from ..models.prometheus import PromSeries
from ..query.prom_client import PromQueryClient
from .exceptions import AggregateError, DataInconsistencyError

logger = logging.getLogger(__name__)

Labels = Dict[str, str]
KeyFunc = Callable[[str, Labels], Optional[EntityKey]]
FieldSpec = Union[str, Callable[[Labels], Optional[str]]]
JoinedRows = Dict[Tuple[EntityKey, int], Dict[str, float]]


def _identity(value: float) -> float:
    return value


@dataclass(frozen=True)
class Dimension:
    """
    One query of an aggregation.

    Attributes:
        name: Used in logs and error messages
        promql: The query, evaluated as a range query over the window
            unless `instant` is set (then once, at the window end)
        key_fn: Maps (cluster_id, series labels) to the join key; returning
            None drops the series
        field: Record field the values go to, or a function choosing it
            from the series labels (e.g. by `resource`); None drops the series
        normalize: Converts a raw sample value into the field's unit
        single_valued: The query must return exactly one series
    """

    name: str
    promql: str
    key_fn: KeyFunc
    field: FieldSpec
    normalize: Callable[[float], float] = _identity
    instant: bool = False
    single_valued: bool = False

    def field_for(self, labels: Labels) -> Optional[str]:
        if callable(self.field):
            return self.field(labels)
        return self.field


class QueryAggregator:
    """Concurrent fan-out over a PromQueryClient, followed by a keyed join."""

    def __init__(self, client: PromQueryClient):
        self.client = client

    async def _run(self, dimension: Dimension, tenant: Optional[str], window: TimeWindow) -> List[PromSeries]:
        if dimension.instant:
            samples = await self.client.query(dimension.promql, time=window.end, tenant=tenant)
            return [sample.as_series() for sample in samples]
        return await self.client.query_range(
            dimension.promql, window.start, window.end, window.step_seconds, tenant=tenant
        )

    async def fan_out(
        self, tenant: Optional[str], window: TimeWindow, dimensions: Sequence[Dimension]
    ) -> List[List[PromSeries]]:
        """
        Runs every dimension concurrently and returns their series, slot i
        holding the result of dimensions[i].

        Raises:
            AggregateError: After all queries finished, if any of them failed.
        """
        slots = await asyncio.gather(
            *(self._run(dimension, tenant, window) for dimension in dimensions),
            return_exceptions=True,
        )

        errors = []
        for dimension, slot in zip(dimensions, slots):
            if isinstance(slot, BaseException):
                logger.error(f"Query '{dimension.name}' failed: {slot}")
                errors.append(slot)
        if errors:
            raise AggregateError(errors)
        return list(slots)

    @staticmethod
    def check_single_valued(dimension: Dimension, series: List[PromSeries]) -> None:
        if dimension.single_valued and len(series) != 1:
            raise DataInconsistencyError(
                f"Query '{dimension.name}' should match exactly one series, got {len(series)}"
            )

    def join(self, cluster_id: str, dimensions: Sequence[Dimension], results: Sequence[List[PromSeries]]) -> JoinedRows:
        """
        Joins the series of every dimension by (entity key, timestamp).

        Values landing on the same key, timestamp and field are summed.

        Raises:
            DataInconsistencyError: If a single-valued dimension did not match
                exactly one series.
        """
        rows: JoinedRows = {}
        for dimension, series_list in zip(dimensions, results):
            self.check_single_valued(dimension, series_list)
            for series in series_list:
                key = dimension.key_fn(cluster_id, series.labels)
                field = dimension.field_for(series.labels)
                if key is None or field is None:
                    logger.debug(f"Dropping series {series.labels} of query '{dimension.name}'")
                    continue
                for timestamp, value in series.points:
                    row = rows.setdefault((key, timestamp), {})
                    row[field] = row.get(field, 0.0) + dimension.normalize(value)
        return rows

    async def aggregate(
        self,
        tenant: Optional[str],
        cluster_id: str,
        window: TimeWindow,
        dimensions: Sequence[Dimension],
    ) -> List[CostRecord]:
        """
        Returns the joined records sorted by timestamp.

        Raises:
            AggregateError: If any query failed.
            DataInconsistencyError: If a single-valued query matched zero or
                several series.
        """
        results = await self.fan_out(tenant, window, dimensions)
        rows = self.join(cluster_id, dimensions, results)
        records = [CostRecord(key=key, timestamp=timestamp, **fields) for (key, timestamp), fields in rows.items()]
        records.sort(key=lambda record: (record.timestamp, record.key.namespace, record.key.name))
        logger.debug(f"Aggregated {len(records)} records for cluster {cluster_id} from {len(dimensions)} queries.")
        return records
