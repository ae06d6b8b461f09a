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
import sys
import time

from neo4j import GraphDatabase
from testcontainers.compose import DockerCompose


class Neo4jTestInstance(object):

    def __init__(self, docker_compose_filepath, docker_compose_filename = "docker-compose.yml") -> None:
        self.compose = DockerCompose(
            docker_compose_filepath,
            compose_file_name=docker_compose_filename,
            pull=True
        )
        self._config = {}


    @property
    def config(self):
        """
        Connector configuration of the running database, without the query keys
        """
        return self._config


    def start(self):
        """
        Start neo4j container and wait until neo4j is ready to handle requests
        """
        self.compose.start()

        self._config = {
            "referenceName": "neo4j_test",
            "neo4jHost": self.compose.get_service_host("neo4j", 7687),
            "neo4jPort": 7687,
            "username": "neo4j",
            "password": "testpassword"
        }

        self.driver = GraphDatabase.driver(
            "bolt://{}:{}".format(self._config["neo4jHost"], self._config["neo4jPort"]),
            auth=(self._config["username"], self._config["password"])
        )

        self._wait_database_ready(max_time = 30)
        print("Neo4j container is ready to be used")


    def stop(self):
        """
        Stop neo4j container
        """
        if hasattr(self, "driver"):
            self.driver.close()
        self.compose.stop()


    def _wait_database_ready(self, max_time = 30):
        """
        Wait until the database is ready to handle requests
        It checks connectivity every second until max time
        """
        while True:
            try:
                self.driver.verify_connectivity()
                return
            except Exception:
                if max_time == 0:
                    raise

                max_time = max_time - 1
                time.sleep(1)


    @staticmethod
    def neo4j_create_persons_tx(tx, persons):
        """
        Create person nodes
        """
        return tx.run(
            "UNWIND $persons AS person CREATE (p:Person) SET p = person",
            persons=persons
        ).consume()


    @staticmethod
    def neo4j_create_knows_tx(tx, from_id, to_id):
        """
        Create a relationship between two persons
        """
        query = """
        MATCH (n:Person {id: $from_id})
        MATCH (m:Person {id: $to_id})
        CREATE (n)-[:KNOWS {since: $from_id}]->(m)
        """
        return tx.run(query, from_id=from_id, to_id=to_id).consume()


    def populate_test_data(self):
        """
        Populate neo4j with test data
        """
        persons = []
        for id in range(1, 101):
            persons.append({"id": id, "name": "person {}".format(id), "avatar": bytes([id % 256, 0, 1, 2])})

        with self.driver.session() as session:
            session.execute_write(self.neo4j_create_persons_tx, persons)

            for id in range(1, 100):
                session.execute_write(self.neo4j_create_knows_tx, from_id=id, to_id=id + 1)


    def clear_test_data(self):
        """
        Remove every node and relationship
        """
        with self.driver.session() as session:
            session.execute_write(lambda tx: tx.run("MATCH (n) DETACH DELETE n").consume())



if __name__ == "__main__":
    if sys.argv[1] not in ["start", "stop"]:
        print("Command must be 'start' or 'stop'. Unknow command '{}'.".format(sys.argv[1]))

    neo4j = Neo4jTestInstance(docker_compose_filepath=os.path.dirname(__file__))

    if sys.argv[1] == "start":
        neo4j.start()
        neo4j.populate_test_data()

    elif sys.argv[1] == "stop":
        neo4j.stop()
