"""Trip visibility from users' privacy settings.

Pure domain functions. User documents and traveler ids are fetched by the caller.
"""

DEFAULT_TRIPS_VISIBILITY = "circle"


def trips_visibility(user: dict | None) -> str:
    privacy = (user or {}).get("privacy") or {}
    return privacy.get("tripsVisibility") or DEFAULT_TRIPS_VISIBILITY


def filter_trips_by_privacy(
    trips: list[dict],
    viewer_id: str,
    owners_by_id: dict[str, dict],
) -> list[dict]:
    """Drop trips whose owner keeps trips private, unless the viewer is that owner.

    Owners missing from ``owners_by_id`` are treated as visible.
    """
    visible = []
    for trip in trips:
        owner_id = trip.get("createdBy")
        if owner_id == viewer_id:
            visible.append(trip)
            continue
        owner = owners_by_id.get(owner_id)
        if owner is not None and trips_visibility(owner) == "private":
            continue
        visible.append(trip)
    return visible


def filter_trips_by_traveler_privacy(
    trips: list[dict],
    viewer_id: str,
    traveler_ids_by_trip: dict[str, list[str]],
    users_by_id: dict[str, dict],
) -> list[dict]:
    """Drop trips that any active traveler keeps private, unless the viewer travels on them.

    The creator always sees their trip, and a trip with no active travelers
    stays visible. ``traveler_ids_by_trip`` comes from ``active_traveler_ids``.
    """
    visible = []
    for trip in trips:
        traveler_ids = traveler_ids_by_trip.get(trip.get("id")) or []
        if trip.get("createdBy") == viewer_id or viewer_id in traveler_ids:
            visible.append(trip)
            continue
        if any(trips_visibility(users_by_id.get(uid)) == "private" for uid in traveler_ids):
            continue
        visible.append(trip)
    return visible
