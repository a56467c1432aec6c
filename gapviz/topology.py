"""Decode TopoJSON topologies into GeoJSON features.

A topology stores every shared border once, as an arc.  Geometries refer
to arcs by index (a negative index ``~i`` means arc ``i`` reversed) and,
when the topology is quantized, arc points are delta-encoded integers
that must be accumulated and scaled by the ``transform``.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

Position = List[float]


class _Decoder:
    def __init__(self, topology: dict):
        transform = topology.get("transform")
        if transform:
            self._scale = transform["scale"]
            self._translate = transform["translate"]
        else:
            self._scale = None
            self._translate = None
        self._arcs = [self._decode_arc(arc) for arc in topology.get("arcs", [])]

    def _decode_arc(self, arc: Sequence[Sequence[float]]) -> List[Position]:
        if self._scale is None:
            return [list(map(float, p)) for p in arc]
        (sx, sy), (tx, ty) = self._scale, self._translate
        x = y = 0
        points = []
        for p in arc:
            x += p[0]
            y += p[1]
            points.append([x * sx + tx, y * sy + ty, *p[2:]])
        return points

    def point(self, p: Sequence[float]) -> Position:
        # Point coordinates are quantized but not delta-encoded.
        if self._scale is None:
            return list(map(float, p))
        (sx, sy), (tx, ty) = self._scale, self._translate
        return [p[0] * sx + tx, p[1] * sy + ty, *p[2:]]

    def line(self, arc_indexes: Sequence[int]) -> List[Position]:
        points: List[Position] = []
        for index in arc_indexes:
            arc = self._arcs[~index][::-1] if index < 0 else self._arcs[index]
            if points:
                # Consecutive arcs share their joining point.
                points.pop()
            points.extend(p[:] for p in arc)
        if len(points) < 2 and points:
            points.append(points[0][:])
        return points

    def ring(self, arc_indexes: Sequence[int]) -> List[Position]:
        points = self.line(arc_indexes)
        while points and len(points) < 4:
            points.append(points[0][:])
        return points

    def geometry(self, obj: Optional[dict]) -> Optional[dict]:
        if obj is None:
            return None
        kind = obj.get("type")
        if kind is None:
            return None
        if kind == "GeometryCollection":
            return {
                "type": kind,
                "geometries": [self.geometry(g) for g in obj.get("geometries", [])],
            }
        if kind == "Point":
            coordinates = self.point(obj["coordinates"])
        elif kind == "MultiPoint":
            coordinates = [self.point(p) for p in obj["coordinates"]]
        elif kind == "LineString":
            coordinates = self.line(obj["arcs"])
        elif kind == "MultiLineString":
            coordinates = [self.line(arcs) for arcs in obj["arcs"]]
        elif kind == "Polygon":
            coordinates = [self.ring(arcs) for arcs in obj["arcs"]]
        elif kind == "MultiPolygon":
            coordinates = [[self.ring(arcs) for arcs in polygon] for polygon in obj["arcs"]]
        else:
            raise ValueError(f"Unsupported TopoJSON geometry type: {kind}")
        return {"type": kind, "coordinates": coordinates}

    def feature(self, obj: dict) -> dict:
        feature: Dict[str, object] = {
            "type": "Feature",
            "properties": obj.get("properties") or {},
            "geometry": self.geometry(obj),
        }
        if "id" in obj:
            feature["id"] = obj["id"]
        return feature


def feature(topology: dict, object_name: str) -> dict:
    """
    Convert one named topology object to GeoJSON.

    Parameters
    ----------
    topology : dict
        Parsed TopoJSON document.
    object_name : str
        Key under ``topology["objects"]``, e.g. ``"countries"``.

    Returns
    -------
    dict
        A ``FeatureCollection`` for geometry collections, otherwise a single
        ``Feature``.

    Raises
    ------
    KeyError
        If the topology has no object with that name.
    """
    objects = topology.get("objects", {})
    if object_name not in objects:
        raise KeyError(f"Topology has no object {object_name!r}; found {sorted(objects)}")

    decoder = _Decoder(topology)
    obj = objects[object_name]
    if obj.get("type") == "GeometryCollection":
        return {
            "type": "FeatureCollection",
            "features": [decoder.feature(g) for g in obj.get("geometries", [])],
        }
    return decoder.feature(obj)
