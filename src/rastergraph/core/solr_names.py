from __future__ import annotations

# Dynamic field suffixes from the stock Solr schema used by Hydra applications.
STORED_SEARCHABLE = "_tesim"
SYMBOL = "_ssim"
STORED_SORTABLE_DATE = "_dtsi"

SUFFIXES = {
    "text": STORED_SEARCHABLE,
    "symbol": SYMBOL,
    "date": STORED_SORTABLE_DATE,
}


def solr_name(field_name: str, index_type: str) -> str:
    try:
        suffix = SUFFIXES[index_type]
    except KeyError:
        raise ValueError(f"Unknown index type: {index_type}") from None
    return f"{field_name}{suffix}"
