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
from typing import Any, List, Mapping, Optional, Tuple

from airbyte_cdk.models import AirbyteCatalog
from airbyte_cdk.sources import AbstractSource
from airbyte_cdk.sources.streams import Stream

from source_neo4j_query.config import Neo4jSourceConfig
from source_neo4j_query.errors import ConfigurationError
from source_neo4j_query.neo4j import Neo4jClient
from source_neo4j_query.streams import CypherQueryStream


class SourceNeo4jQuery(AbstractSource):
    """
    Source reading the results of a read-only cypher query from a Neo4j database
    """
    @property
    def logger(self) -> logging.Logger:
        """
        Get logger
        :return: logging.Logger
        """
        return logging.getLogger("airbyte")


    @staticmethod
    def _parse_config(config: Mapping[str, Any]) -> Neo4jSourceConfig:
        """
        Parse and validate the user config before any connection is opened
        All validation failures are reported in the raised error
        """
        source_config = Neo4jSourceConfig.from_config(config)

        failures = source_config.validation_failures()
        if failures:
            raise ConfigurationError(" ".join(failures))

        return source_config


    def check_connection(self, logger: logging.Logger, config: Mapping[str, Any]) -> Tuple[bool, Optional[Any]]:
        """
        Check if connection to Neo4j database is available with the configuration provided

        :param config:  the user-input config object conforming to the connector's spec.json
        :param logger:  logger object
        :return Tuple[bool, any]: (True, None) if the input config can be used to connect to the API successfully, (False, error) otherwise.
        """
        try:
            source_config = self._parse_config(config)
        except ConfigurationError as e:
            error = "Invalid configuration, reason: {}".format(str(e))
            logger.error(error)
            return (False, error)

        client = Neo4jClient(source_config)
        try:
            # check connectivity to the neo4j database
            client.verify_connectivity()
        except Exception as e:
            error = "Unable to connect to neo4j on {}, reason: {}".format(client.uri, str(e))
            logger.error(error)
            return (False, error)

        return (True, None)


    def discover(self, logger: logging.Logger, config: Mapping[str, Any]) -> AirbyteCatalog:
        """
        Implements the Discover operation from the Airbyte Specification. See https://docs.airbyte.io/architecture/airbyte-specification.

        Overrided from AbstractSource to clear cache when discovering streams only
        """
        Neo4jClient(self._parse_config(config), clear_cache=True)

        return super().discover(logger=logger, config=config)


    def streams(self, config: Mapping[str, Any]) -> List[Stream]:
        """
        Expose the configured cypher query as a single stream

        :param config: A Mapping of the user input configuration as defined in the connector spec.
        """
        source_config = self._parse_config(config)
        client = Neo4jClient(source_config)

        return [CypherQueryStream(client=client, config=source_config)]
