"""Prometheus metrics for the itinerary engine."""

from prometheus_client import Counter

share_links_issued_total = Counter(
    "share_links_issued_total",
    "Total share links issued",
)

share_token_collisions_total = Counter(
    "share_token_collisions_total",
    "Total share token unique-constraint collisions",
)

share_resolutions_total = Counter(
    "share_resolutions_total",
    "Total share token resolutions",
    ["outcome"],
)

destination_reorders_total = Counter(
    "destination_reorders_total",
    "Total destination reorder requests",
    ["outcome"],
)

trip_imports_total = Counter(
    "trip_imports_total",
    "Total trip import attempts",
    ["outcome"],
)
