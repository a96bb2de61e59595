from flask import Blueprint, current_app, g, request

from . import relationships
from .auth import require_jwt, require_registered
from .config import BOATS
from .errors import BadRequest
from .relationships import BOAT_NOT_FOUND, BOAT_OR_LOAD_NOT_FOUND
from .representations import boat_repr, collection_repr
from .store import get_store
from .web import base_url, parse_id, request_content, require_json


bp = Blueprint("boats", __name__, url_prefix="/boats")

# Validate JWT, then registration, then the Accept header
bp.before_request(require_jwt)
bp.before_request(require_registered)
bp.before_request(require_json)

BAD_REQUEST = "The request object is missing at least one of the required attributes"

BOAT_PROPS = ("name", "type", "length")


def get_boat_props(content):
    return {prop: content.get(prop) for prop in BOAT_PROPS}


def is_bad_request(props):
    # The boat's name, type, and length must all be present
    return not all(props[prop] for prop in BOAT_PROPS)


@bp.route("", methods=["POST"])
def create_boat():
    boat = get_boat_props(request_content())
    if is_bad_request(boat):
        raise BadRequest(BAD_REQUEST)

    boat["loads"] = []
    boat["owner"] = g.user["sub"]
    entity = get_store().insert(BOATS, boat)

    return boat_repr(entity.key.id, entity, base_url()), 201


@bp.route("", methods=["GET"])
def list_boats():
    boats, cursor = get_store().page(
        BOATS,
        current_app.config["PAGE_SIZE"],
        request.args.get("cursor"),
        filters=[("owner", "=", g.user["sub"])]
    )

    items = [boat_repr(boat.key.id, boat, base_url(), singleton=False) for boat in boats]
    return collection_repr(items, base_url(), "boats", cursor)


@bp.route("/<boat_id>", methods=["GET"])
def get_boat(boat_id):
    id = parse_id(boat_id, BOAT_NOT_FOUND)
    boat = relationships.find_boat(get_store(), id, g.user["sub"])
    return boat_repr(id, boat, base_url())


@bp.route("/<boat_id>", methods=["PUT"])
def replace_boat(boat_id):
    props = get_boat_props(request_content())
    if is_bad_request(props):
        raise BadRequest(BAD_REQUEST)

    id = parse_id(boat_id, BOAT_NOT_FOUND)
    boat = relationships.update_boat(get_store(), id, props, g.user["sub"])
    return boat_repr(id, boat, base_url())


@bp.route("/<boat_id>", methods=["PATCH"])
def edit_boat(boat_id):
    content = request_content()
    props = {prop: content[prop] for prop in BOAT_PROPS if content.get(prop)}
    if not props:
        raise BadRequest(BAD_REQUEST)

    id = parse_id(boat_id, BOAT_NOT_FOUND)
    boat = relationships.update_boat(get_store(), id, props, g.user["sub"])
    return boat_repr(id, boat, base_url())


@bp.route("/<boat_id>", methods=["DELETE"])
def delete_boat(boat_id):
    id = parse_id(boat_id, BOAT_NOT_FOUND)
    relationships.delete_boat(get_store(), id, g.user["sub"])
    return "", 204


@bp.route("/<boat_id>/loads/<load_id>", methods=["PUT"])
def add_load(boat_id, load_id):
    boat_id = parse_id(boat_id, BOAT_OR_LOAD_NOT_FOUND)
    load_id = parse_id(load_id, BOAT_OR_LOAD_NOT_FOUND)
    relationships.assign_load(get_store(), boat_id, load_id, g.user["sub"])
    return "", 204


@bp.route("/<boat_id>/loads/<load_id>", methods=["DELETE"])
def remove_load(boat_id, load_id):
    boat_id = parse_id(boat_id, BOAT_OR_LOAD_NOT_FOUND)
    load_id = parse_id(load_id, BOAT_OR_LOAD_NOT_FOUND)
    relationships.unassign_load(get_store(), boat_id, load_id, g.user["sub"])
    return "", 204
