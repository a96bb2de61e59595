from datetime import datetime

from flask import Blueprint, current_app, request

from . import relationships
from .config import LOADS
from .errors import BadRequest, NotFound
from .relationships import LOAD_NOT_FOUND
from .representations import collection_repr, load_repr
from .store import get_store
from .web import base_url, parse_id, request_content, require_json


bp = Blueprint("loads", __name__, url_prefix="/loads")

bp.before_request(require_json)

BAD_REQUEST = "The request object is missing at least one of the required attributes"
INVALID_DATE = "creation_date must be a valid date"

LOAD_PROPS = ("volume", "content", "creation_date")


def parse_date(value):
    # ISO 8601 dates and datetimes, or MM/DD/YYYY
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return datetime.strptime(value, "%m/%d/%Y")
    except ValueError:
        return None


def clean_props(props):
    if "creation_date" in props:
        creation_date = parse_date(props["creation_date"])
        if creation_date is None:
            raise BadRequest(INVALID_DATE)
        props["creation_date"] = creation_date
    return props


def get_load_props(content):
    props = {prop: content.get(prop) for prop in LOAD_PROPS}

    # The load's volume, content, and creation_date must all be present
    if not all(props.values()):
        raise BadRequest(BAD_REQUEST)
    return clean_props(props)


def find_load(id):
    load = get_store().get(LOADS, id)
    if load is None:
        raise NotFound(LOAD_NOT_FOUND)
    return load


@bp.route("", methods=["POST"])
def create_load():
    load = get_load_props(request_content())
    load["carrier"] = None
    entity = get_store().insert(LOADS, load)

    return load_repr(entity.key.id, entity, base_url()), 201


@bp.route("", methods=["GET"])
def list_loads():
    loads, cursor = get_store().page(LOADS, current_app.config["PAGE_SIZE"], request.args.get("cursor"))

    items = [load_repr(load.key.id, load, base_url()) for load in loads]
    return collection_repr(items, base_url(), "loads", cursor)


@bp.route("/<load_id>", methods=["GET"])
def get_load(load_id):
    id = parse_id(load_id, LOAD_NOT_FOUND)
    return load_repr(id, find_load(id), base_url())


@bp.route("/<load_id>", methods=["PUT"])
def replace_load(load_id):
    props = get_load_props(request_content())

    id = parse_id(load_id, LOAD_NOT_FOUND)
    load = relationships.update_load(get_store(), id, props)

    return load_repr(id, load, base_url())


@bp.route("/<load_id>", methods=["PATCH"])
def edit_load(load_id):
    content = request_content()
    props = {prop: content[prop] for prop in LOAD_PROPS if content.get(prop)}
    if not props:
        raise BadRequest(BAD_REQUEST)
    clean_props(props)

    id = parse_id(load_id, LOAD_NOT_FOUND)
    load = relationships.update_load(get_store(), id, props)

    return load_repr(id, load, base_url())


@bp.route("/<load_id>", methods=["DELETE"])
def delete_load(load_id):
    id = parse_id(load_id, LOAD_NOT_FOUND)
    relationships.delete_load(get_store(), id)
    return "", 204
