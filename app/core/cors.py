"""CORS middleware that answers successful preflights with 204 No Content."""

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

# Starlette's preflight is a 200 "OK" text body; these headers describe that body.
_BODY_HEADERS = ("content-length", "content-type")


class PreflightCORSMiddleware(CORSMiddleware):
    """Allow-list CORS; origins are echoed exactly, never '*', so credentials work."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in _BODY_HEADERS
        }
        return Response(status_code=204, headers=headers)
