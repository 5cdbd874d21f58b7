"""
Folding of provider payloads into the response returned to the caller.
"""

from __future__ import annotations

import copy
from typing import Dict, Sequence

from shared.errors import UpstreamError
from service_kundli.app.domain.models import (
    DASHA,
    KUNDLI,
    PLANET_POSITION,
    MergedResponse,
    UpstreamResult,
)


def merge(results: Sequence[UpstreamResult]) -> MergedResponse:
    """Merge fan-out results, failing on the first unsuccessful endpoint.

    ``results`` must be in endpoint declaration order; that order decides
    which failure is reported when several endpoints fail together.
    """
    for result in results:
        if not result.ok:
            raise UpstreamError(
                result.endpoint_name,
                result.error or "API error.",
                details={"status_code": result.status_code},
            )

    by_name: Dict[str, UpstreamResult] = {result.endpoint_name: result for result in results}
    for required in (KUNDLI, DASHA):
        if required not in by_name:
            raise UpstreamError(required, "result is missing")

    kundli_data = copy.deepcopy(by_name[KUNDLI].payload)
    planet_result = by_name.get(PLANET_POSITION)
    if planet_result is not None:
        _graft_planet_positions(kundli_data, planet_result.payload)

    return MergedResponse(kundli_data=kundli_data, dasha_data=by_name[DASHA].payload)


def _graft_planet_positions(kundli_data: dict, planet_payload: dict) -> None:
    planet_data = planet_payload.get("data") or {}
    target = kundli_data.get("data")
    if not isinstance(target, dict):
        target = kundli_data["data"] = {}

    if "ascendant" in planet_data:
        target["ascendant"] = planet_data["ascendant"]
    if "planets" in planet_data:
        target["planet_positions"] = planet_data["planets"]
