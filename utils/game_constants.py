"""Gameplay-related constants shared across services."""

# Default printing per basic land. Regular basics use Foundations (FDN),
# Wastes uses Oath of the Gatewatch, snow-covered basics use Coldsnap (CSP)
# except Snow-Covered Wastes which only exists in Modern Horizons 3.
BASIC_LAND_PRINTINGS: dict[str, str] = {
    "Forest": "d232fcc2-12f6-401a-b1aa-ddff11cb9378",  # FDN #280
    "Island": "23635e40-d040-40b7-8b98-90ed362aa028",  # FDN #275
    "Mountain": "1edc5050-69bd-416d-b04c-7f82de2a1901",  # FDN #279
    "Plains": "4ef17ed4-a9b5-4b8e-b4cb-2ecb7e5898c3",  # FDN #272
    "Swamp": "13505c15-14e0-4200-82bd-fb9bce949e68",  # FDN #277
    "Wastes": "60682c00-c661-4a9d-8326-f3f014a04e3e",  # OGW #184a
    "Snow-Covered Forest": "838c915d-8153-43c2-b513-dfbe4e9388a5",  # CSP #155
    "Snow-Covered Island": "6abf0692-07d1-4b72-af06-93d0e338589d",  # CSP #152
    "Snow-Covered Mountain": "0dc9a6d1-a1ca-4b8f-894d-71c2a9933f79",  # CSP #154
    "Snow-Covered Plains": "b1e3a010-dae3-41b6-8dd8-e31d14c3ac4a",  # CSP #151
    "Snow-Covered Swamp": "c4dacaf1-09b8-42bb-8064-990190fdaf81",  # CSP #153
    "Snow-Covered Wastes": "ad21a874-525e-4d11-bd8e-bc44918bec40",  # MH3 #309
}


def is_basic_land(card_name: str) -> bool:
    """Exact, case-sensitive match against the basic land table."""
    return card_name in BASIC_LAND_PRINTINGS


__all__ = ["BASIC_LAND_PRINTINGS", "is_basic_land"]
