from urllib.parse import urlencode

from authlib.integrations.base_client import OAuthError
from authlib.integrations.flask_client import OAuth
from flask import Blueprint, current_app, redirect, session, url_for

from .errors import SERVER_ERROR, error_response


OAUTH_EXTENSION = "shipyard.oauth"

bp = Blueprint("login", __name__, url_prefix="/auth")


def init_oauth(app):
    oauth = OAuth(app)
    domain = app.config["AUTH0_DOMAIN"]
    oauth.register(
        "auth0",
        client_id=app.config["AUTH0_CLIENT_ID"],
        client_secret=app.config["AUTH0_CLIENT_SECRET"],
        client_kwargs={
            "scope": "openid email profile",
        },
        server_metadata_url="https://" + domain + "/.well-known/openid-configuration"
    )
    app.extensions[OAUTH_EXTENSION] = oauth
    return oauth


def get_auth0():
    return current_app.extensions[OAUTH_EXTENSION].auth0


@bp.route("/login")
def login():
    return get_auth0().authorize_redirect(redirect_uri=current_app.config["AUTH0_CALLBACK_URL"])


# Handles response from token endpoint
@bp.route("/callback")
def callback():
    auth0 = get_auth0()
    token = auth0.authorize_access_token()
    userinfo = token.get("userinfo") or auth0.userinfo()
    if not userinfo or "sub" not in userinfo:
        return redirect(url_for("login.login"))

    # Store the user information in flask session
    session["profile"] = {
        "user_id": userinfo["sub"],
        "name": userinfo.get("name"),
        "picture": userinfo.get("picture")
    }
    session["id_token"] = token.get("id_token")

    return redirect(session.pop("return_to", None) or url_for("users.user_info"))


@bp.route("/logout")
def logout():
    # Clear session stored data
    session.clear()

    # Redirect user to logout endpoint
    params = {
        "client_id": current_app.config["AUTH0_CLIENT_ID"],
        "returnTo": url_for("login.login", _external=True)
    }
    return redirect("https://" + current_app.config["AUTH0_DOMAIN"] + "/v2/logout?" + urlencode(params))


@bp.errorhandler(OAuthError)
def handle_oauth_error(ex):
    current_app.logger.error("Identity provider error: %s", ex)
    return error_response(SERVER_ERROR, 500)
