"""TopoJSON output built from a GeoJSON export."""

from __future__ import annotations

from pathlib import Path

import geojson
import topojson

TOPOLOGY_OBJECT = "features"


def write_topology(features_path: Path, destination: Path) -> None:
    """Build a topology from the GeoJSON at *features_path* and write it to *destination*."""

    with features_path.open(encoding="utf-8") as handle:
        collection = geojson.load(handle)
    topology = topojson.Topology(collection, object_name=TOPOLOGY_OBJECT)
    destination.write_text(topology.to_json(), encoding="utf-8")


__all__ = ["write_topology"]
