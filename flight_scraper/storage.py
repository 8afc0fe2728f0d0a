"""Export of presented search results with async I/O"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import aiofiles
import orjson
from loguru import logger

from .models import SearchRequest, SearchResult


def build_result_document(
    result: SearchResult, request: Optional[SearchRequest] = None
) -> Dict[str, Any]:
    document: Dict[str, Any] = {}
    if request is not None:
        document["search_metadata"] = {
            "origin": request.origin,
            "destination": request.destination,
            "depart_date": request.depart_date,
            "return_date": request.return_date,
            "trip_type": request.trip_type.value,
            "cabin_class": request.cabin_class.value,
            "passengers": request.passengers.total,
            "currency": request.currency or None,
            "sort": request.sort_option.value,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }
    document.update(result.to_dict())
    document["total_results"] = len(result.flights)
    return document


async def save_search_result(
    result: SearchResult,
    output_file: Path,
    request: Optional[SearchRequest] = None,
) -> Path:
    """
    Write a result as indented JSON without blocking the event loop.

    Args:
        result: Presented (filtered/sorted) result
        output_file: Destination path, parent directories are created
        request: Optional request to include as search_metadata

    Returns:
        Path to saved file
    """
    output_file.parent.mkdir(parents=True, exist_ok=True)
    json_bytes = orjson.dumps(build_result_document(result, request), option=orjson.OPT_INDENT_2)

    async with aiofiles.open(output_file, "wb") as f:
        await f.write(json_bytes)

    logger.success(
        f"💾 Saved {len(result.flights)} flights: {output_file.name} ({len(json_bytes)/1024:.1f}KB)"
    )
    return output_file
