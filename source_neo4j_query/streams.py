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

import inspect
import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from airbyte_cdk.models import SyncMode
from airbyte_cdk.sources.streams import Stream
from airbyte_cdk.sources.utils.schema_helpers import ResourceSchemaLoader

from source_neo4j_query.config import Neo4jSourceConfig
from source_neo4j_query.neo4j import Neo4jClient
from source_neo4j_query.record import Neo4jRecord, json_schema_for, resolve_value


def package_name_from_class(cls: object) -> str:
    """Find the package name given a class name"""
    module: Any = inspect.getmodule(cls)
    return module.__name__.split(".")[0]


class CypherQueryStream(Stream):
    """
    Stream corresponding to the read-only cypher query configured by the user
    Results are partitioned into splits ordered by the configured field
    """

    def __init__(self, client: Neo4jClient, config: Neo4jSourceConfig) -> None:
        """
        Constructor
        """
        self._client = client
        self._config = config


    @property
    def logger(self) -> logging.Logger:
        """
        Get logger
        :return: logging.Logger
        """
        return logging.getLogger("airbyte")


    @property
    def name(self) -> str:
        """
        :return: reference name as stream name
        """
        return self._config.reference_name


    @property
    def entity_type(self) -> str:
        return "cypher"


    @property
    def primary_key(self) -> Optional[Union[str, List[str], List[List[str]]]]:
        """
        :return: None as rows returned by a custom query have no known identity
        """
        return None


    @property
    def query(self) -> str:
        return self._client.clean_cypher_query(self._config.input_query)


    def get_json_schema(self) -> Mapping[str, Any]:
        """
        :return: A dict of the JSON schema representing this stream.

        The base schema is completed with the columns returned by the query, typed from a one row sample.
        Overrides Stream.get_json_schema()
        """
        base_schema = ResourceSchemaLoader(package_name_from_class(self.__class__)).get_schema(self.entity_type)
        base_schema["properties"] = {**base_schema["properties"], **self._get_specific_json_schema()}

        return base_schema


    def _get_specific_json_schema(self) -> Mapping[str, Any]:
        """
        Get the json schema of the columns returned by the query
        """
        cache_key = "json_schema_{}".format(self.query)
        schema = self._client.get_cached(cache_key)

        if schema is None:
            schema = {}
            for record in self._client.fetch_results(self.query, max_records=1):
                for key in record.keys():
                    schema[key] = json_schema_for(resolve_value(record[key]))

            self._client.set_cached(cache_key, schema)

        return schema


    def stream_slices(
        self, *, sync_mode: SyncMode, cursor_field: List[str] = None, stream_state: Mapping[str, Any] = None
    ) -> Iterable[Optional[Mapping[str, Any]]]:
        """
        Generate one slice per split
        :return: list of dict {"split": index, "skip": value, "limit": value}
        """
        # no split configured, we return one empty slice
        if self._config.split_num == 1:
            return [None]

        count = self._count_records()
        return self._get_split_slices(count, self._config.split_num)


    def _count_records(self) -> int:
        """
        Count the rows returned by the input query
        :return: int
        """
        # the query is run as is, wrapping it in a subquery would require aliasing every returned expression
        return self._client.count_results(self.query)


    @staticmethod
    def _get_split_slices(count: int, split_num: int) -> List[Mapping[str, Any]]:
        """
        Partition count rows into split_num disjoint ranges
        The first splits get one more row when count is not divisible by split_num
        :return: list of dict {"split": index, "skip": value, "limit": value}
        """
        size, remainder = divmod(count, split_num)

        slices = []
        skip = 0
        for split in range(split_num):
            limit = size + (1 if split < remainder else 0)
            slices.append({"split": split, "skip": skip, "limit": limit})
            skip += limit

        return slices


    def _get_cypher_query(self, stream_slice: Mapping[str, Any] = None) -> Any:
        """
        Get cypher query and optional parameters for fetching rows of a slice
        :return: string cypher query or dict with "query" and "params" keys
        """
        if stream_slice is None:
            return self.query

        return {
            "query": "{} ORDER BY {} SKIP $skip LIMIT $limit".format(self.query, self._config.order_by),
            "params": {"skip": stream_slice["skip"], "limit": stream_slice["limit"]},
        }


    def read_records(
        self,
        sync_mode: SyncMode,
        cursor_field: List[str] = None,
        stream_slice: Mapping[str, Any] = None,
        stream_state: Mapping[str, Any] = None,
    ) -> Iterable[Mapping[str, Any]]:
        """
        Read the rows of a slice and map them to records
        """
        if stream_slice is not None and stream_slice["limit"] == 0:
            return []

        query = self._get_cypher_query(stream_slice=stream_slice)
        self.logger.info("Reading stream {} split {}".format(
            self.name, stream_slice["split"] if stream_slice is not None else 0
        ))

        return self._client.fetch_results(query, Neo4jRecord().to_dict)
