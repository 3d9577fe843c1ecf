from __future__ import annotations

from http import HTTPStatus

# default success status per verb; PATCH shares PUT's
DEFAULT_STATUS = {
    "GET": "200",
    "POST": "201",
    "DELETE": "202",
    "PUT": "204",
    "PATCH": "204",
}


def default_status(method: str) -> str:
    return DEFAULT_STATUS.get(method.upper(), "200")


def reason_phrase(code: str | int) -> str:
    try:
        return HTTPStatus(int(code)).phrase
    except ValueError:
        return ""
