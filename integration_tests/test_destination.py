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

import logging

import pytest
from airbyte_cdk.models import (
    AirbyteMessage,
    AirbyteRecordMessage,
    AirbyteStateMessage,
    AirbyteStream,
    ConfiguredAirbyteCatalog,
    ConfiguredAirbyteStream,
    DestinationSyncMode,
    Status,
    SyncMode,
    Type,
)
from destination_neo4j_query.destination import DestinationNeo4jQuery
from neo4j import GraphDatabase


@pytest.fixture
def destination_config():
    return {
        **pytest.neo4j_connection_config,
        "outputQuery": "MERGE (c:City {code: $code}) SET c.name = $name",
        "batchSize": 2,
    }


@pytest.fixture
def configured_catalog():
    stream = AirbyteStream(name="cities", json_schema={}, supported_sync_modes=[SyncMode.full_refresh])
    return ConfiguredAirbyteCatalog(streams=[
        ConfiguredAirbyteStream(stream=stream, sync_mode=SyncMode.full_refresh, destination_sync_mode=DestinationSyncMode.append)
    ])


def _record(code, name):
    return AirbyteMessage(
        type=Type.RECORD,
        record=AirbyteRecordMessage(stream="cities", data={"code": code, "name": name}, emitted_at=0),
    )


def test_check(destination_config):
    status = DestinationNeo4jQuery().check(logging.getLogger("airbyte"), destination_config)

    assert status.status == Status.SUCCEEDED


def test_write(destination_config, configured_catalog):
    state = AirbyteMessage(type=Type.STATE, state=AirbyteStateMessage(data={"cursor": 3}))
    messages = [_record("PAR", "Paris"), _record("LYS", "Lyon"), _record("NCE", "Nice"), state, _record("PAR", "Paris 2")]

    output = list(DestinationNeo4jQuery().write(destination_config, configured_catalog, messages))
    assert output == [state]

    config = pytest.neo4j_connection_config
    with GraphDatabase.driver(
        "bolt://{}:{}".format(config["neo4jHost"], config["neo4jPort"]), auth=(config["username"], config["password"])
    ) as driver:
        records, _, _ = driver.execute_query("MATCH (c:City) RETURN c.code AS code, c.name AS name ORDER BY code")

    assert [(r["code"], r["name"]) for r in records] == [("LYS", "Lyon"), ("NCE", "Nice"), ("PAR", "Paris 2")]
