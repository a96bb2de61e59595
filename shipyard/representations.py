"""JSON representations of stored entities.

These functions do no I/O: every link is derived from the entity id and the
base URL of the incoming request.
"""
from urllib.parse import urlencode


def format_date(value):
    # en-US locale date, e.g. 3/7/2021
    if value is None or isinstance(value, str):
        return value
    return "{}/{}/{}".format(value.month, value.day, value.year)


def carrier_repr(carrier, base_url):
    if not carrier:
        return None
    return {
        "id": carrier["id"],
        "name": carrier.get("name"),
        "self": "{}/boats/{}".format(base_url, carrier["id"])
    }


def load_repr(id, load, base_url):
    return {
        "id": id,
        "volume": load.get("volume"),
        "carrier": carrier_repr(load.get("carrier"), base_url),
        "content": load.get("content"),
        "creation_date": format_date(load.get("creation_date")),
        "self": "{}/loads/{}".format(base_url, id)
    }


def boat_repr(id, boat, base_url, singleton=True):
    representation = {
        "id": id,
        "name": boat.get("name"),
        "type": boat.get("type"),
        "length": boat.get("length")
    }

    # List views leave out the loads to keep pages small
    if singleton:
        representation["loads"] = [
            {"id": load["id"], "self": "{}/loads/{}".format(base_url, load["id"])}
            for load in boat.get("loads") or []
        ]

    representation["owner"] = boat.get("owner")
    representation["self"] = "{}/boats/{}".format(base_url, id)
    return representation


def collection_repr(items, base_url, collection, cursor=None):
    body = {"items": items}
    if cursor:
        body["next"] = "{}/{}?{}".format(base_url, collection, urlencode({"cursor": cursor}))
    return body
