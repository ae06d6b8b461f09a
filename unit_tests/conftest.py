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

from source_neo4j_query.config import Neo4jSourceConfig


@pytest.fixture(autouse=True)
def local_root(monkeypatch, tmp_path):
    # keep the schema cache of each test isolated
    monkeypatch.setenv("LOCAL_ROOT", str(tmp_path))
    return tmp_path


@pytest.fixture
def source_config_dict():
    return {
        "referenceName": "ref_name",
        "neo4jHost": "localhost",
        "neo4jPort": 7687,
        "username": "user",
        "password": "password",
        "inputQuery": "MATCH (n:Test) RETURN n",
    }


@pytest.fixture
def valid_config(source_config_dict):
    return Neo4jSourceConfig.from_config(source_config_dict)


@pytest.fixture
def sink_config_dict():
    return {
        "referenceName": "ref_name",
        "neo4jHost": "localhost",
        "neo4jPort": 7687,
        "username": "user",
        "password": "password",
        "outputQuery": "MERGE (n:Test {id: $id}) SET n.name = $name",
    }
