"""lambda/map_config.py — Public map SDK keys for the location widgets."""
import os

from helpers import ok, err, get_method


def handle_map_config(event, body, route):
    if get_method(event) != "GET":
        return err("Method not allowed", 405)
    return ok(
        googleMapsKey=os.environ.get("NEXT_PUBLIC_GOOGLE_MAPS_KEY") or None,
        naverMapsKey=os.environ.get("NEXT_PUBLIC_NAVER_MAPS_KEY") or None,
        tmapKey=os.environ.get("NEXT_PUBLIC_TMAP_API_KEY") or None,
    )
