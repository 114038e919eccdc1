"""Message-channel entry point for hosts running the engine in the background.

A host (thread, subprocess, queue consumer) hands over one request dict and a
``post_message`` callable. The engine posts any number of ``progress``
messages followed by exactly one ``result`` or ``error`` message:

    {"type": "progress", "data": {...ProgressUpdate...}}
    {"type": "result", "data": {...serialized AnalysisResult...}}
    {"type": "error", "error": "<message>", "stack": "<trace or None>"}
"""
from __future__ import annotations

import traceback
from typing import Any, Callable, Dict, Mapping

from loguru import logger

from reporting.serializer import result_to_dict
from utils.config import AnalysisParams
from .pipeline import analyze_structure

PostMessage = Callable[[Dict[str, Any]], None]


def _error_message(error: str, stack: str | None = None) -> Dict[str, Any]:
    return {"type": "error", "error": error, "stack": stack}


def run_analysis_message(request: Mapping[str, Any], post_message: PostMessage) -> None:
    if request.get("type") != "analyze":
        post_message(_error_message(f"Unknown message type: {request.get('type')!r}"))
        return

    try:
        params = AnalysisParams().with_overrides(**dict(request.get("params") or {}))
    except (KeyError, TypeError, ValueError) as exc:
        logger.error(f"Rejected analysis request parameters: {exc}")
        post_message(_error_message(f"Invalid parameters: {exc}", traceback.format_exc()))
        return

    content = request.get("content")
    if not isinstance(content, str):
        post_message(_error_message("Request is missing structure text in 'content'"))
        return

    result = analyze_structure(
        content,
        params,
        filename=request.get("filename"),
        progress_callback=lambda update: post_message({"type": "progress", "data": update.to_dict()}),
        enable_water_bridges=request.get("enable_water_bridges"),
    )
    if result.success:
        post_message({"type": "result", "data": result_to_dict(result)})
    else:
        post_message(_error_message(result.error or "Analysis failed", result.trace))
