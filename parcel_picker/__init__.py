"""Parcel Picker spatial selection engine.

Interactive engine for selecting parcel points on a map: loads a pricing
parcel dataset and a comps dataset, filters them by acreage and by drawn
regions (circle, rectangle, polygon), culls markers to the viewport and
exports matched parcels before removing them from the working set.
"""

__version__ = "0.1.0"
