"""Pydantic models for Brave Search API responses.

Only the fields the tools format are modelled; everything else in the
payload is ignored.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _BraveModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WebResult(_BraveModel):
    title: str = ""
    description: str = ""
    url: str = ""
    language: str | None = None
    published: str | None = None
    rank: int | None = None


class WebResults(_BraveModel):
    results: list[WebResult] = Field(default_factory=list)


class LocationResult(_BraveModel):
    id: str = ""
    title: str | None = None


class LocationResults(_BraveModel):
    results: list[LocationResult] = Field(default_factory=list)


class BraveWebResponse(_BraveModel):
    """Response of ``GET /web/search``."""

    web: WebResults | None = None
    locations: LocationResults | None = None

    @property
    def web_results(self) -> list[WebResult]:
        return self.web.results if self.web else []

    @property
    def location_ids(self) -> list[str]:
        if not self.locations:
            return []
        return [result.id for result in self.locations.results if result.id]


class Address(_BraveModel):
    street_address: str | None = None
    address_locality: str | None = None
    address_region: str | None = None
    postal_code: str | None = None

    def format(self) -> str:
        parts = [
            part
            for part in (
                self.street_address,
                self.address_locality,
                self.address_region,
                self.postal_code,
            )
            if part
        ]
        return ", ".join(parts) if parts else "N/A"


class Coordinates(_BraveModel):
    latitude: float | None = None
    longitude: float | None = None


class Rating(_BraveModel):
    rating_value: float | None = None
    rating_count: int | None = None


class BraveLocation(_BraveModel):
    id: str = ""
    name: str = ""
    address: Address = Field(default_factory=Address)
    coordinates: Coordinates | None = None
    phone: str | None = None
    rating: Rating | None = None
    opening_hours: list[str] | None = None
    price_range: str | None = None


class BravePoiResponse(_BraveModel):
    """Response of ``GET /local/pois``."""

    results: list[BraveLocation] = Field(default_factory=list)


class BraveDescriptionResponse(_BraveModel):
    """Response of ``GET /local/descriptions``."""

    descriptions: dict[str, str] = Field(default_factory=dict)
