"""HTTP response helpers for rendered views.

``BoundView`` wraps a ``Renderer``; every helper renders first, so render
errors propagate to Flask's error handling unchanged.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from flask import Response

from lace.dom.nodes import Document
from lace.rendering.renderer import Renderer
from lace.utils.logging import get_logger

LOG = get_logger("lace.responses")

HTML_MIMETYPE = "text/html"


class BoundView:
    def __init__(self, renderer: Renderer) -> None:
        self.renderer = renderer

    @property
    def model(self) -> Any:
        return self.renderer.model

    def get_processed_dom(self) -> Document:
        return self.renderer.get_processed_dom()

    def render(self) -> str:
        return self.renderer.render()

    def response(self, status: int = 200, headers: Optional[Mapping[str, str]] = None) -> Response:
        body = self.render()
        LOG.debug("%s rendered status=%s bytes=%d", self.model.identifier(), status, len(body))
        return Response(body, status=status, headers=dict(headers or {}), mimetype=HTML_MIMETYPE)

    def http_status(self, code: int, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.response(code, headers)

    def http_ok(self, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.response(200, headers)

    def http_created(self, location: str, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.response(201, {**dict(headers or {}), "Location": location})

    def http_bad_request(self, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.response(400, headers)

    def http_not_found(self, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.response(404, headers)

    def __str__(self) -> str:
        return self.render()


__all__ = ["BoundView", "HTML_MIMETYPE"]
