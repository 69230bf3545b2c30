"""Static lookup tables for the Exterra remodel estimator."""

from exterra.data.location_index import location_multiplier
from exterra.data.rates import UnitRate, roof_material_from_tag, roofing_rate
from exterra.data.regional_sizes import regional_average_sqft
from exterra.data.states import match_state

__all__ = [
    "UnitRate",
    "location_multiplier",
    "match_state",
    "regional_average_sqft",
    "roof_material_from_tag",
    "roofing_rate",
]
