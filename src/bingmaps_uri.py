"""Bing Maps launch URI builder.

Builds `bingmaps:?...` URIs through chained setter calls:

    BingMapsUriBuilder().set_center_point(47.6, -122.3).query("coffee").build()
    -> "bingmaps:?cp=47.6~-122.3&q=coffee"

- Every setter appends exactly one query term and returns the same builder.
- Terms are separated by '&'; no separator precedes the first term.
- Numbers are formatted locale-independently (shortest round-trip, '.' decimal point).
- Text values (addresses, search terms) are appended as given; callers supply URI-safe text.

References:
- Bing Maps URI scheme: https://learn.microsoft.com/windows/uwp/launch-resume/launch-maps-app
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Optional, Tuple, Union

if TYPE_CHECKING:
    from concurrent.futures import Future

    import uri_launcher


SCHEME_PREFIX = "bingmaps:?"
PARAM_SEPARATOR = "&"

MIN_ZOOM_EXCLUSIVE = 0.0
MAX_ZOOM = 20.0


# ------------------------------
# Value types
# ------------------------------


class MapStyle(Enum):
    AERIAL = "aerial"
    ROAD = "road"


_STYLE_CODES = {
    MapStyle.AERIAL: "a",
    MapStyle.ROAD: "r",
}


class Coordinate(NamedTuple):
    lat: float
    lon: float


@dataclass(frozen=True)
class Address:
    text: str

    def __str__(self) -> str:
        return self.text


# A plain (lat, lon) tuple counts as a Coordinate, a plain str as an Address.
RouteEndpoint = Union[Coordinate, Address, Tuple[float, float], str]


# ------------------------------
# Formatting helpers
# ------------------------------


def format_number(value: float) -> str:
    """Format a number independently of the process locale.

    Shortest round-trip digits, '.' as decimal point, no digit grouping.
    Integral values drop the fractional part (10.0 -> "10") and exponents
    use an upper-case marker (1e-05 -> "1E-05").
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    if text.endswith(".0"):
        text = text[:-2]
    return text.replace("e", "E")


def format_endpoint(endpoint: RouteEndpoint) -> str:
    """Return `pos.<lat>_<lon>` for coordinates, `adr.<text>` for addresses."""
    if isinstance(endpoint, Address):
        return f"adr.{endpoint.text}"
    if isinstance(endpoint, str):
        return f"adr.{endpoint}"
    lat, lon = endpoint
    return f"pos.{format_number(lat)}_{format_number(lon)}"


def is_valid_zoom(zoom_level: float) -> bool:
    # NaN fails both comparisons and is rejected too.
    return MIN_ZOOM_EXCLUSIVE < zoom_level <= MAX_ZOOM


def parse_map_style(name: str) -> MapStyle:
    """Resolve 'aerial' / 'road' (any casing) to a MapStyle."""
    try:
        return MapStyle(name.strip().lower())
    except ValueError:
        choices = ", ".join(s.value for s in MapStyle)
        raise ValueError(
            f"Unknown map style {name!r}; expected one of: {choices}"
        ) from None


# ------------------------------
# Builder
# ------------------------------


class BingMapsUriBuilder:
    def __init__(self) -> None:
        self._value = SCHEME_PREFIX

    def _append(self, term: str) -> "BingMapsUriBuilder":
        divider = PARAM_SEPARATOR if len(self._value) > len(SCHEME_PREFIX) else ""
        self._value = self._value + divider + term
        return self

    def set_center_point(self, latitude: float, longitude: float) -> "BingMapsUriBuilder":
        """Center the map view on a point."""
        return self._append(f"cp={format_number(latitude)}~{format_number(longitude)}")

    def set_bounding_box(
        self,
        south_lat: float,
        north_lat: float,
        west_lon: float,
        east_lon: float,
    ) -> "BingMapsUriBuilder":
        """Show the rectangular area bounded by the given latitudes and longitudes."""
        return self._append(
            "bb={}_{}~{}_{}".format(
                format_number(south_lat),
                format_number(north_lat),
                format_number(west_lon),
                format_number(east_lon),
            )
        )

    def where(self, address: str) -> "BingMapsUriBuilder":
        """Search for a location, landmark or place and show it on the map."""
        return self._append(f"where={address}")

    def query(self, term: str) -> "BingMapsUriBuilder":
        """Search for a local business or category of businesses."""
        return self._append(f"q={term}")

    def set_zoom_level(self, zoom_level: float) -> "BingMapsUriBuilder":
        """Set the zoom level; valid values are in (0, 20], 1 being zoomed all the way out.

        Raises ValueError for anything else and leaves the URI untouched.
        """
        if not is_valid_zoom(zoom_level):
            raise ValueError(
                f"Zoom level must be greater than 0 and at most 20 (got {zoom_level!r})."
            )
        return self._append(f"lvl={format_number(zoom_level)}")

    def set_map_style(self, style: MapStyle) -> "BingMapsUriBuilder":
        if style not in _STYLE_CODES:
            raise ValueError(f"Unsupported map style: {style!r}")
        return self._append(f"sty={_STYLE_CODES[style]}")

    def show_traffic(self, show: bool) -> "BingMapsUriBuilder":
        return self._append(f"trfc={'1' if show else '0'}")

    def show_route(
        self, origin: RouteEndpoint, destination: RouteEndpoint
    ) -> "BingMapsUriBuilder":
        """Draw a route between two endpoints.

        Each endpoint is either a Coordinate / (lat, lon) tuple or an
        Address / address string:

            show_route(Coordinate(47.6, -122.3), "Seattle, WA")
            -> "rtp=pos.47.6_-122.3~adr.Seattle, WA"
        """
        return self._append(
            f"rtp={format_endpoint(origin)}~{format_endpoint(destination)}"
        )

    @property
    def value(self) -> str:
        return self._value

    def build(self) -> str:
        return self._value

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"BingMapsUriBuilder({self._value!r})"

    def show_map(
        self, launcher: Optional["uri_launcher.UriLauncher"] = None
    ) -> "Future[uri_launcher.LaunchResult]":
        """Hand the URI to the OS map handler without waiting for it.

        Uses a one-off default launcher when none is given. Dispatch failures
        are reported through the returned future's LaunchResult, never raised.
        """
        import uri_launcher

        if launcher is None:
            launcher = uri_launcher.UriLauncher()
            try:
                return launcher.launch(self.build())
            finally:
                launcher.shutdown(wait=False)
        return launcher.launch(self.build())
