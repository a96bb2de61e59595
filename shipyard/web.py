from flask import request

from .errors import NotAcceptable, NotFound


def base_url():
    return request.url_root.rstrip("/")


def request_content():
    content = request.get_json(silent=True)
    if isinstance(content, dict):
        return content
    return {}


def parse_id(value, message):
    # Datastore numeric ids are positive integers
    try:
        id = int(value)
    except (TypeError, ValueError):
        raise NotFound(message)
    if id <= 0:
        raise NotFound(message)
    return id


# Assert request accepts JSON
def require_json():
    accept = request.accept_mimetypes
    if accept and not accept.accept_json:
        raise NotAcceptable(
            "Unsupported 'Accept' header: '{}'. Must accept 'application/json'".format(
                request.headers.get("Accept")))
