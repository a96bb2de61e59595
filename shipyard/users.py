import logging

from flask import Blueprint, redirect, request, session, url_for
from google.api_core import exceptions as gcloud_exceptions

from .config import USERS
from .store import get_store


logger = logging.getLogger(__name__)

bp = Blueprint("users", __name__)


def register_user(store, subject):
    """Create the user keyed by ``subject`` unless it already exists.

    Returns True when a new user was stored.
    """
    try:
        with store.transaction():
            if store.get(USERS, subject) is not None:
                return False
            store.put(store.entity(USERS, subject))
    except gcloud_exceptions.Conflict:
        # A concurrent request registered the same subject first
        logger.info("User %s was registered concurrently", subject)
        return False

    logger.info("Registered user %s", subject)
    return True


@bp.route("/user", methods=["GET"])
def user_info():
    if "profile" not in session:
        # Come back here once the login flow completes
        session["return_to"] = request.full_path.rstrip("?")
        return redirect(url_for("login.login"))

    subject = session["profile"]["user_id"]
    register_user(get_store(), subject)

    return {"id": subject, "jwt": session.get("id_token")}


@bp.route("/users", methods=["GET"])
def list_users():
    return [{"id": user.key.name} for user in get_store().all(USERS)]
