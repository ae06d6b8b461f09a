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

import pytest

from airbyte_cdk.models import SyncMode
from source_neo4j_query.neo4j import Neo4jClient
from source_neo4j_query.streams import CypherQueryStream


@pytest.fixture
def split_config(valid_config):
    return valid_config.with_options(split_num=3, order_by="n.id")


def test_stream_name(valid_config):
    stream = CypherQueryStream(client=Neo4jClient(valid_config), config=valid_config)

    assert stream.name == "ref_name"
    assert stream.primary_key is None
    assert not stream.supports_incremental


def test_stream_slices_without_split(mocker, valid_config):
    fetch_results = mocker.patch.object(Neo4jClient, "fetch_results")
    stream = CypherQueryStream(client=Neo4jClient(valid_config), config=valid_config)

    assert list(stream.stream_slices(sync_mode=SyncMode.full_refresh)) == [None]
    fetch_results.assert_not_called()


def test_stream_slices_with_splits(mocker, split_config):
    count_results = mocker.patch.object(Neo4jClient, "count_results", return_value=10)
    stream = CypherQueryStream(client=Neo4jClient(split_config), config=split_config)

    expected = [
        {"split": 0, "skip": 0, "limit": 4},
        {"split": 1, "skip": 4, "limit": 3},
        {"split": 2, "skip": 7, "limit": 3},
    ]
    assert list(stream.stream_slices(sync_mode=SyncMode.full_refresh)) == expected
    count_results.assert_called_once_with("MATCH (n:Test) RETURN n")


@pytest.mark.parametrize(
    "count,split_num,expected_limits",
    [
        (0, 2, [0, 0]),
        (2, 3, [1, 1, 0]),
        (9, 3, [3, 3, 3]),
        (100, 1, [100]),
    ],
)
def test_get_split_slices(count, split_num, expected_limits):
    slices = CypherQueryStream._get_split_slices(count, split_num)

    assert [s["limit"] for s in slices] == expected_limits
    assert sum(s["limit"] for s in slices) == count

    # ranges are disjoint and contiguous
    for previous, current in zip(slices, slices[1:]):
        assert current["skip"] == previous["skip"] + previous["limit"]


def test_get_cypher_query(split_config):
    stream = CypherQueryStream(client=Neo4jClient(split_config), config=split_config)

    assert stream._get_cypher_query() == "MATCH (n:Test) RETURN n"
    assert stream._get_cypher_query({"split": 1, "skip": 4, "limit": 3}) == {
        "query": "MATCH (n:Test) RETURN n ORDER BY n.id SKIP $skip LIMIT $limit",
        "params": {"skip": 4, "limit": 3},
    }


def test_read_records(mocker, valid_config):
    rows = [{"n": {"id": 1}, "avatar": bytes([1, 2, 3, 4]), "count": 2}]
    mocker.patch.object(Neo4jClient, "fetch_results", side_effect=lambda query, transform_func: map(transform_func, rows))
    stream = CypherQueryStream(client=Neo4jClient(valid_config), config=valid_config)

    records = list(stream.read_records(sync_mode=SyncMode.full_refresh, stream_slice=None))

    assert records == [{"n": {"id": 1}, "avatar": "AQIDBA==", "count": 2}]


def test_read_records_of_slice(mocker, split_config):
    fetch_results = mocker.patch.object(Neo4jClient, "fetch_results", return_value=iter([]))
    stream = CypherQueryStream(client=Neo4jClient(split_config), config=split_config)

    list(stream.read_records(sync_mode=SyncMode.full_refresh, stream_slice={"split": 2, "skip": 7, "limit": 3}))

    query = fetch_results.call_args[0][0]
    assert query["params"] == {"skip": 7, "limit": 3}


def test_read_records_of_empty_slice(mocker, split_config):
    fetch_results = mocker.patch.object(Neo4jClient, "fetch_results")
    stream = CypherQueryStream(client=Neo4jClient(split_config), config=split_config)

    records = stream.read_records(sync_mode=SyncMode.full_refresh, stream_slice={"split": 2, "skip": 0, "limit": 0})

    assert list(records) == []
    fetch_results.assert_not_called()


def test_get_json_schema(mocker, valid_config):
    record = {"n": {"id": 1}, "avatar": bytes([1, 2, 3, 4]), "count": 2, "name": None}
    fetch_results = mocker.patch.object(Neo4jClient, "fetch_results", return_value=iter([record]))
    stream = CypherQueryStream(client=Neo4jClient(valid_config), config=valid_config)

    schema = stream.get_json_schema()

    assert schema["type"] == "object"
    assert schema["properties"] == {
        "n": {"type": ["null", "object"]},
        "avatar": {"type": ["null", "string"], "contentEncoding": "base64"},
        "count": {"type": ["null", "integer"]},
        "name": {},
    }
    fetch_results.assert_called_once_with("MATCH (n:Test) RETURN n", max_records=1)

    # the schema is cached
    assert stream.get_json_schema()["properties"]["count"] == {"type": ["null", "integer"]}
    fetch_results.assert_called_once()
