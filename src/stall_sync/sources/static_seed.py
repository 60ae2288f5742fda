"""Curated fallback dataset used when every live source comes back empty.

The seed keeps the catalog from emptying during an upstream outage. It is
never blended with live data: the sync engine substitutes it only when the
freshly assembled set is empty, and flags the run when it does.
"""

from __future__ import annotations

from stall_sync.sources.schemas import SourceRecord

STATIC_SEED_ROW_PREFIX = "static-seed"

_SEED_ROWS: list[dict[str, object]] = [
    {
        "name": "Hill Street Tai Hwa Pork Noodle",
        "address": "466 Crawford Lane, #01-12, Singapore 190466",
        "cuisine": "bak-chor-mee",
        "cuisine_label": "Bak Chor Mee",
        "episode_number": 1,
        "dish_name": "Bak Chor Mee (Dry)",
        "price": 8.0,
        "rating_original": 3,
        "rating_moderated": 3,
        "opening_times": "9.30am - 8.30pm, closed Mondays",
        "media_ref": "VtI1jReYURc",
        "media_title": "Singapore's Best Bak Chor Mee? Episode 1",
        "awards": ["Michelin Star 2016"],
        "hits": ["Springy noodles", "Generous liver"],
        "misses": ["Long queue"],
        "lat": 1.3048,
        "lng": 103.8625,
    },
    {
        "name": "Da Shi Jia Big Prawn Mee",
        "address": "89 Killiney Road, Singapore 239534",
        "cuisine": "prawn-mee",
        "cuisine_label": "Prawn Mee",
        "episode_number": 2,
        "dish_name": "Big Prawn Noodle Soup",
        "price": 12.0,
        "rating_original": 2,
        "rating_moderated": 2,
        "opening_times": "9am - 9pm daily",
        "media_ref": "HCEt9dZewQI",
        "media_title": "Prawn Mee Tour Episode 2",
        "hits": ["Rich broth"],
        "misses": [],
        "lat": 1.2996,
        "lng": 103.8401,
    },
    {
        "name": "Ng Ah Sio Bak Kut Teh",
        "address": "208 Rangoon Road, Hong Building, Singapore 218453",
        "cuisine": "bak-kut-teh",
        "cuisine_label": "Bak Kut Teh",
        "episode_number": 3,
        "dish_name": "Pork Rib Soup",
        "price": 9.8,
        "rating_original": 2,
        "rating_moderated": 3,
        "opening_times": "9am - 9pm",
        "media_ref": "C3ZHkCbk9lE",
        "media_title": "Bak Kut Teh Showdown Episode 3",
        "awards": ["Michelin Bib Gourmand"],
        "hits": ["Peppery soup"],
        "misses": ["Pricey"],
        "lat": 1.3128,
        "lng": 103.8510,
    },
    {
        "name": "Ng Ah Sio Bak Kut Teh",
        "address": "2 Chin Swee Road, #01-03, Singapore 169876",
        "cuisine": "bak-kut-teh",
        "cuisine_label": "Bak Kut Teh",
        "episode_number": 3,
        "dish_name": "Pork Rib Soup",
        "price": 9.8,
        "opening_times": "10am - 8pm",
        "lat": 1.2868,
        "lng": 103.8400,
    },
    {
        "name": "Sungei Road Laksa",
        "address": "27 Jalan Berseh, #01-100, Singapore 200027",
        "cuisine": "laksa",
        "cuisine_label": "Laksa",
        "episode_number": 4,
        "dish_name": "Charcoal Laksa",
        "price": 4.0,
        "rating_original": 3,
        "rating_moderated": 2,
        "opening_times": "9.30am - 4pm, closed Wednesdays",
        "media_ref": "7ulGVnQtdUQ",
        "media_title": "Laksa Hunt Episode 4",
        "hits": ["Cockles", "Charcoal-heated gravy"],
        "misses": ["Sells out early"],
        "lat": 1.3077,
        "lng": 103.8573,
    },
]


def static_seed_records() -> list[SourceRecord]:
    """Return the seed as SourceRecords so it flows through the normal pipeline."""
    return [
        SourceRecord.model_validate(
            {"source_row_key": f"{STATIC_SEED_ROW_PREFIX}-{index}", "country": "SG", **row}
        )
        for index, row in enumerate(_SEED_ROWS)
    ]
