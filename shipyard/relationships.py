"""Keeps boats and the loads they carry consistent with each other.

A load names its boat in ``carrier`` and the boat lists the load in ``loads``.
Every operation here reads and writes both sides inside one datastore
transaction, so either both documents change or neither does. Transactions
are optimistic: if another request commits one of the entities first, the
commit fails with a conflict and nothing is written.
"""
import logging

from .config import BOATS, LOADS
from .errors import Forbidden, NotFound


logger = logging.getLogger(__name__)

BOAT_NOT_FOUND = "No boat with this boat_id exists"
BOAT_OR_LOAD_NOT_FOUND = "The specified boat and/or load does not exist"
LOAD_NOT_FOUND = "No load with this load_id exists"
LOAD_ALREADY_ASSIGNED = "The load is already assigned"
LOAD_ELSEWHERE = "The load is not on this boat"
NOT_OWNER = "The associated user does not own the boat with the requested boat_id"


def check_owner(boat, subject):
    # A subject of None skips the ownership check
    if subject is not None and boat.get("owner") != subject:
        raise Forbidden(NOT_OWNER)


def find_boat(store, boat_id, subject=None):
    boat = store.get(BOATS, boat_id)
    if boat is None:
        raise NotFound(BOAT_NOT_FOUND)
    check_owner(boat, subject)
    return boat


def find_pair(store, boat_id, load_id):
    boat = store.get(BOATS, boat_id)
    load = store.get(LOADS, load_id)
    if boat is None or load is None:
        raise NotFound(BOAT_OR_LOAD_NOT_FOUND)
    return boat, load


def carries(load, boat_id):
    carrier = load.get("carrier")
    return bool(carrier) and carrier.get("id") == boat_id


def remove_load_entry(boat, load_id):
    loads = boat.get("loads") or []
    for index, entry in enumerate(loads):
        if entry["id"] == load_id:
            del loads[index]
            return True
    return False


def assign_load(store, boat_id, load_id, subject=None):
    with store.transaction():
        boat, load = find_pair(store, boat_id, load_id)
        check_owner(boat, subject)

        if load.get("carrier"):
            raise Forbidden(LOAD_ALREADY_ASSIGNED)

        load["carrier"] = {"id": boat_id, "name": boat.get("name")}
        boat["loads"] = list(boat.get("loads") or [])
        boat["loads"].append({"id": load_id})
        store.put_multi([load, boat])

    logger.info("Assigned load %s to boat %s", load_id, boat_id)


def unassign_load(store, boat_id, load_id, subject=None):
    with store.transaction():
        boat, load = find_pair(store, boat_id, load_id)
        check_owner(boat, subject)

        if not carries(load, boat_id):
            raise Forbidden(LOAD_ELSEWHERE)

        load["carrier"] = None
        remove_load_entry(boat, load_id)
        store.put_multi([load, boat])

    logger.info("Removed load %s from boat %s", load_id, boat_id)


def delete_boat(store, boat_id, subject=None):
    with store.transaction():
        boat = find_boat(store, boat_id, subject)

        load_ids = [entry["id"] for entry in boat.get("loads") or []]
        if load_ids:
            # Only loads that still name this boat are released
            released = [load for load in store.get_multi(LOADS, load_ids) if carries(load, boat_id)]
            for load in released:
                load["carrier"] = None
            store.put_multi(released)

        store.delete(BOATS, boat_id)

    logger.info("Deleted boat %s, released %d load(s)", boat_id, len(load_ids))


def delete_load(store, load_id):
    with store.transaction():
        load = store.get(LOADS, load_id)
        if load is None:
            raise NotFound(LOAD_NOT_FOUND)

        carrier = load.get("carrier")
        if carrier:
            boat = store.get(BOATS, carrier["id"])
            if boat is not None and remove_load_entry(boat, load_id):
                store.put(boat)

        store.delete(LOADS, load_id)

    logger.info("Deleted load %s", load_id)


def update_boat(store, boat_id, props, subject=None):
    """Merge ``props`` into a stored boat.

    Owner and loads are never touched. A new name is copied onto the
    carrier of every load the boat carries.
    """
    with store.transaction():
        boat = find_boat(store, boat_id, subject)
        renamed = "name" in props and props["name"] != boat.get("name")
        boat.update(props)

        changed = [boat]
        load_ids = [entry["id"] for entry in boat.get("loads") or []]
        if renamed and load_ids:
            for load in store.get_multi(LOADS, load_ids):
                if carries(load, boat_id):
                    load["carrier"]["name"] = boat["name"]
                    changed.append(load)
        store.put_multi(changed)

    return boat


def update_load(store, load_id, props):
    """Merge ``props`` into a stored load, leaving its carrier as committed."""
    with store.transaction():
        load = store.get(LOADS, load_id)
        if load is None:
            raise NotFound(LOAD_NOT_FOUND)
        load.update(props)
        store.put(load)

    return load
