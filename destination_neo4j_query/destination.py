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
from typing import Any, Iterable, List, Mapping

from airbyte_cdk.destinations import Destination
from airbyte_cdk.models import AirbyteConnectionStatus, AirbyteMessage, ConfiguredAirbyteCatalog, Status, Type

from destination_neo4j_query.config import Neo4jSinkConfig
from source_neo4j_query.errors import ConfigurationError
from source_neo4j_query.neo4j import Neo4jClient


class DestinationNeo4jQuery(Destination):
    """
    Destination writing each record to a Neo4j database with a cypher query configured by the user
    """
    @property
    def logger(self) -> logging.Logger:
        """
        Get logger
        :return: logging.Logger
        """
        return logging.getLogger("airbyte")


    @staticmethod
    def _parse_config(config: Mapping[str, Any]) -> Neo4jSinkConfig:
        """
        Parse and validate the user config before any connection is opened
        """
        sink_config = Neo4jSinkConfig.from_config(config)

        failures = sink_config.validation_failures()
        if failures:
            raise ConfigurationError(" ".join(failures))

        return sink_config


    def check(self, logger: logging.Logger, config: Mapping[str, Any]) -> AirbyteConnectionStatus:
        """
        Tests if the input configuration can be used to successfully connect to the destination with the needed permissions

        :param logger: Logging object to display debug/info/error to the logs
        :param config: Json object containing the configuration of this destination, content of this json is as specified in
        the properties of the spec.json file

        :return: AirbyteConnectionStatus indicating a Success or Failure
        """
        try:
            sink_config = self._parse_config(config)
        except ConfigurationError as e:
            error = "Invalid configuration, reason: {}".format(str(e))
            logger.error(error)
            return AirbyteConnectionStatus(status=Status.FAILED, message=error)

        client = Neo4jClient(sink_config)
        try:
            client.verify_connectivity()
        except Exception as e:
            error = "Unable to connect to neo4j on {}, reason: {}".format(client.uri, str(e))
            logger.error(error)
            return AirbyteConnectionStatus(status=Status.FAILED, message=error)

        return AirbyteConnectionStatus(status=Status.SUCCEEDED)


    def write(
        self, config: Mapping[str, Any], configured_catalog: ConfiguredAirbyteCatalog, input_messages: Iterable[AirbyteMessage]
    ) -> Iterable[AirbyteMessage]:
        """
        Write the records of the configured streams with the output query
        Records are buffered and written in one transaction per batch
        A state message is emitted once every record received before it is written

        :param config: dict of JSON configuration matching the configuration declared in spec.json
        :param configured_catalog: The Configured Catalog describing the schema of the data being received and how it should be persisted in the
                                    destination
        :param input_messages: The stream of input messages received from the source
        :return: Iterable of AirbyteStateMessages wrapped in AirbyteMessage structs
        """
        sink_config = self._parse_config(config)
        client = Neo4jClient(sink_config)

        streams = {configured_stream.stream.name for configured_stream in configured_catalog.streams}
        buffer: List[Mapping[str, Any]] = []
        written = 0

        for message in input_messages:
            if message.type == Type.STATE:
                written += client.write_records(sink_config.output_query, buffer)
                buffer = []
                yield message

            elif message.type == Type.RECORD:
                if message.record.stream not in streams:
                    self.logger.debug("Ignoring record of stream {} absent from the catalog".format(message.record.stream))
                    continue

                buffer.append(message.record.data)
                if len(buffer) >= sink_config.batch_size:
                    written += client.write_records(sink_config.output_query, buffer)
                    buffer = []

        written += client.write_records(sink_config.output_query, buffer)
        self.logger.info("{} records written to neo4j".format(written))
