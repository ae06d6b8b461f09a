#
# MIT License
#
# Copyright (c) 2020 Airbyte
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#

import base64
from typing import Any, List, Mapping, NamedTuple, Union

from neo4j import graph, spatial, time

from source_neo4j_query.errors import RowMappingError


class ScalarValue(NamedTuple):
    """
    Value of an ordinary typed column (boolean, number, string, list, temporal...)
    """
    value: Any

    def to_json(self) -> Any:
        if isinstance(self.value, list):
            return [item.to_json() for item in self.value]
        return self.value


class BinaryValue(NamedTuple):
    """
    Raw byte sequence copied through verbatim
    """
    value: bytes

    def to_json(self) -> str:
        return base64.b64encode(self.value).decode("ascii")


class MappingValue(NamedTuple):
    """
    String-keyed mapping of a node, a relationship, a path or a map returned by the query
    """
    value: Mapping[str, Any]

    def to_json(self) -> Mapping[str, Any]:
        return {key: item.to_json() for key, item in self.value.items()}


FieldValue = Union[ScalarValue, BinaryValue, MappingValue]

SCALAR_JSON_SCHEMA_TYPES = [
    (bool, "boolean"),
    (int, "integer"),
    (float, "number"),
    (str, "string"),
    (list, "array"),
]


def resolve_value(value: Any) -> FieldValue:
    """
    Resolve the shape of a value returned by the neo4j driver
    The driver has no type code for graph values, so the shape is found from the value itself
    :return: ScalarValue, BinaryValue or MappingValue
    """
    if isinstance(value, (bytes, bytearray)):
        return BinaryValue(bytes(value))

    if isinstance(value, graph.Node):
        properties = {
            "_identity": value.element_id,
            "_labels": sorted(value.labels),
        }
        return MappingValue(_resolve_mapping({**properties, **dict(value.items())}))

    if isinstance(value, graph.Relationship):
        # prepend the names with an underscore to avoid collision with the name of a property
        properties = {
            "_identity": value.element_id,
            "_start": value.start_node.element_id if value.start_node is not None else None,
            "_end": value.end_node.element_id if value.end_node is not None else None,
            "_type": value.type,
        }
        return MappingValue(_resolve_mapping({**properties, **dict(value.items())}))

    if isinstance(value, graph.Path):
        return MappingValue({
            "nodes": ScalarValue([resolve_value(node) for node in value.nodes]),
            "relationships": ScalarValue([resolve_value(rel) for rel in value.relationships]),
        })

    if isinstance(value, Mapping):
        return MappingValue(_resolve_mapping(value))

    if value is None or isinstance(value, (bool, int, float, str)):
        return ScalarValue(value)

    if isinstance(value, (time.Date, time.Time, time.DateTime, time.Duration)):
        return ScalarValue(value.iso_format())

    # points are tuples of coordinates
    if isinstance(value, spatial.Point):
        return ScalarValue(_point_to_dict(value))

    if isinstance(value, (list, tuple)):
        return ScalarValue([resolve_value(item) for item in value])

    raise RowMappingError("Unable to map value of type '{}'".format(type(value).__name__))


def _resolve_mapping(value: Mapping[Any, Any]) -> Mapping[str, FieldValue]:
    resolved = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise RowMappingError("Unable to map key {!r}: mapping keys must be strings".format(key))
        resolved[key] = resolve_value(item)

    return resolved


def _point_to_dict(point: spatial.Point) -> Mapping[str, Any]:
    axes = ["x", "y", "z"]
    coordinates = {axis: coordinate for axis, coordinate in zip(axes, point)}
    return {"srid": point.srid, **coordinates}


def json_schema_for(field_value: FieldValue) -> Mapping[str, Any]:
    """
    Get the json schema of a field from a resolved value
    :return: dict schema
    """
    if isinstance(field_value, BinaryValue):
        return {"type": ["null", "string"], "contentEncoding": "base64"}

    if isinstance(field_value, MappingValue):
        return {"type": ["null", "object"]}

    # a null value gives no information on the real type of the column
    if field_value.value is None:
        return {}

    if isinstance(field_value.value, Mapping):
        return {"type": ["null", "object"]}

    for python_type, json_schema_type in SCALAR_JSON_SCHEMA_TYPES:
        if isinstance(field_value.value, python_type):
            return {"type": ["null", json_schema_type]}

    raise RowMappingError("Unable to map type to json_schema type : unknown type '{}'".format(
        type(field_value.value).__name__
    ))


class Neo4jRecord:
    """
    Maps the rows fetched by the python driver to airbyte records
    """

    def __init__(self, fields: List[str] = None) -> None:
        self._fields = fields

    def resolve(self, record: Mapping[str, Any]) -> Mapping[str, FieldValue]:
        """
        Resolve every declared field of a row
        All the keys of the row are used when no field is declared
        :return: dict of resolved values
        """
        keys = self._fields if self._fields is not None else list(record.keys())

        resolved = {}
        for key in keys:
            if key not in record.keys():
                raise RowMappingError("Field '{}' not found in record with keys {}".format(key, list(record.keys())))
            resolved[key] = resolve_value(record[key])

        return resolved

    def to_dict(self, record: Mapping[str, Any]) -> Mapping[str, Any]:
        """
        Transform a record fetched by the python driver to dict
        :return: dict of the record object
        """
        return {key: value.to_json() for key, value in self.resolve(record).items()}
