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

import os
import time

import pytest

from docker_neo4j.neo4j_container import Neo4jTestInstance


@pytest.fixture(scope="session", autouse=True)
def neo4j_container():
    """ Neo4j container populated with test data, shared by all integration tests """

    # lauch docker compose to get a neo4j container
    neo4j = Neo4jTestInstance(docker_compose_filepath=os.path.join(os.path.dirname(os.path.dirname(__file__)), "docker_neo4j"))
    try:
        neo4j.start()
        neo4j.populate_test_data()

        pytest.neo4j_connection_config = neo4j.config

    except Exception as e:
        # stop the container before raising the exception
        neo4j.stop()

        # wait 10s to let the container stop
        time.sleep(10)

        raise e

    yield neo4j
    neo4j.stop()


@pytest.fixture
def source_config():
    return {
        **pytest.neo4j_connection_config,
        "inputQuery": "MATCH (p:Person) RETURN p.id AS id, p.name AS name, p.avatar AS avatar, p AS person",
    }
