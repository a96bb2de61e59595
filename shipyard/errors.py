from flask import current_app, jsonify
from google.api_core import exceptions as gcloud_exceptions
from werkzeug.exceptions import HTTPException


SERVER_ERROR = "Something went wrong. We will fix it shortly."
UNAUTHORIZED = "Missing/invalid authorization"
CONFLICT = "The resource was modified by another request, try again"
RESOURCE_NOT_FOUND = "Resource not found."


class ApiError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(ApiError):
    status_code = 400


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class NotAcceptable(ApiError):
    status_code = 406


# This code is adapted from https://auth0.com/docs/quickstart/backend/python/01-authorization
class AuthError(Exception):
    def __init__(self, error, status_code):
        super().__init__(error.get("description"))
        self.error = error
        self.status_code = status_code


def error_response(message, status_code):
    response = jsonify({"Error": message})
    response.status_code = status_code
    return response


def handle_api_error(ex):
    return error_response(ex.message, ex.status_code)


def handle_auth_error(ex):
    current_app.logger.info("Rejected token: %s (%s)", ex.error.get("code"), ex.error.get("description"))
    return error_response(UNAUTHORIZED, ex.status_code)


def handle_http_exception(ex):
    # Routing errors (unknown path, unsupported verb) keep their status and headers
    if ex.code == 404:
        message = RESOURCE_NOT_FOUND
    else:
        message = ex.description
    response = error_response(message, ex.code)
    for name, value in ex.get_headers():
        if name.lower() != "content-type":
            response.headers[name] = value
    return response


def handle_datastore_conflict(ex):
    current_app.logger.warning("Transaction aborted: %s", ex)
    return error_response(CONFLICT, 409)


def handle_server_error(ex):
    current_app.logger.exception("Unhandled error: %s", ex)
    return error_response(SERVER_ERROR, 500)


def register_error_handlers(app):
    app.register_error_handler(ApiError, handle_api_error)
    app.register_error_handler(AuthError, handle_auth_error)
    app.register_error_handler(HTTPException, handle_http_exception)
    app.register_error_handler(gcloud_exceptions.Conflict, handle_datastore_conflict)
    app.register_error_handler(gcloud_exceptions.Aborted, handle_datastore_conflict)
    app.register_error_handler(Exception, handle_server_error)
