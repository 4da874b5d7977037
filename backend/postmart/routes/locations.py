# backend/postmart/routes/locations.py
"""Public list of retail locations (used by the storefront to pick a counter)."""
from flask import Blueprint

from ..extensions import db
from ..models import Location


locations_bp = Blueprint("locations", __name__, url_prefix="/api/locations")


@locations_bp.get("")
def list_locations():
    locations = db.session.query(Location).order_by(Location.name.asc()).all()
    return {"items": [loc.to_dict() for loc in locations], "count": len(locations)}
