"""Command line: build a Bing Maps launch URI and optionally open it.

Example:
    python src/build_uri.py --center 47.6 -122.3 --query coffee
    -> bingmaps:?cp=47.6~-122.3&q=coffee

Terms are emitted in a fixed order: cp, bb, where, q, lvl, sty, trfc, rtp.
Zoom level, map style and traffic fall back to the config `defaults` section
when their flags are absent.
"""

from __future__ import annotations

import argparse
import math
from typing import List, Optional

import bingmaps_uri as bm  # type: ignore
import config_loader  # type: ignore
import uri_launcher  # type: ignore


def parse_endpoint(text: str) -> bm.RouteEndpoint:
    """Parse 'lat,lon' into a Coordinate; anything else is an Address.

    Non-finite parts such as 'nan,inf' are not coordinates.
    """
    parts = text.split(",")
    if len(parts) == 2:
        try:
            lat, lon = float(parts[0]), float(parts[1])
        except ValueError:
            pass
        else:
            if math.isfinite(lat) and math.isfinite(lon):
                return bm.Coordinate(lat, lon)
    return bm.Address(text.strip())


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a bingmaps: launch URI.")
    parser.add_argument("--config", required=False, help="Path to YAML config file.")
    parser.add_argument(
        "--center", nargs=2, type=float, metavar=("LAT", "LON"), help="Map center."
    )
    parser.add_argument(
        "--bbox",
        nargs=4,
        type=float,
        metavar=("SOUTH", "NORTH", "WEST", "EAST"),
        help="Bounding box latitudes and longitudes.",
    )
    parser.add_argument("--where", help="Location, landmark or place to show.")
    parser.add_argument("--query", help="Local business search term.")
    parser.add_argument("--zoom", type=float, help="Zoom level in (0, 20].")
    parser.add_argument("--style", choices=[s.value for s in bm.MapStyle])
    parser.add_argument("--traffic", choices=["on", "off"])
    parser.add_argument(
        "--route-from", help="Route origin: 'lat,lon' or an address."
    )
    parser.add_argument(
        "--route-to", help="Route destination: 'lat,lon' or an address."
    )
    parser.add_argument(
        "--launch",
        action="store_true",
        help="Open the URI with the OS map handler after printing it.",
    )
    args = parser.parse_args(argv)

    if args.zoom is not None and not bm.is_valid_zoom(args.zoom):
        parser.error("--zoom must be greater than 0 and at most 20")
    if (args.route_from is None) != (args.route_to is None):
        parser.error("--route-from and --route-to must be given together")
    return args


def build_from_args(
    args: argparse.Namespace,
    defaults: Optional[config_loader.BuilderDefaults] = None,
) -> bm.BingMapsUriBuilder:
    defaults = defaults or config_loader.BuilderDefaults()
    builder = bm.BingMapsUriBuilder()

    if args.center:
        builder.set_center_point(*args.center)
    if args.bbox:
        builder.set_bounding_box(*args.bbox)
    if args.where is not None:
        builder.where(args.where)
    if args.query is not None:
        builder.query(args.query)

    zoom = args.zoom if args.zoom is not None else defaults.zoom_level
    if zoom is not None:
        builder.set_zoom_level(zoom)

    style = bm.parse_map_style(args.style) if args.style else defaults.map_style
    if style is not None:
        builder.set_map_style(style)

    if args.traffic is not None:
        builder.show_traffic(args.traffic == "on")
    elif defaults.show_traffic is not None:
        builder.show_traffic(defaults.show_traffic)

    if args.route_from is not None and args.route_to is not None:
        builder.show_route(parse_endpoint(args.route_from), parse_endpoint(args.route_to))

    return builder


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    cfg = config_loader.load_config(args.config) if args.config else None

    builder = build_from_args(args, cfg.defaults if cfg else None)
    uri = builder.build()
    print(uri, flush=True)

    if args.launch:
        if cfg:
            launcher = uri_launcher.UriLauncher.from_config(cfg)
        else:
            launcher = uri_launcher.UriLauncher()
        with launcher:
            result = builder.show_map(launcher).result()
        print(f"Launch {result.status}: {' '.join(result.command)}", flush=True)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
