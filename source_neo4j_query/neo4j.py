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

import hashlib
import logging
import os
import tempfile
from itertools import islice
from typing import Any, Iterable, Mapping

from neo4j import GraphDatabase

from diskcache import Cache

from source_neo4j_query.config import Neo4jConnectionConfig


class Neo4jClient:
    """
    Wrapper to the neo4j python driver
    """

    def __init__(self, config: Neo4jConnectionConfig, clear_cache: bool = False) -> None:
        if not isinstance(config, Neo4jConnectionConfig):
            raise TypeError("config must be a Neo4jConnectionConfig")

        self._config = config
        if clear_cache:
            self.clear_cache()


    @property
    def logger(self) -> logging.Logger:
        """
        Get logger
        :return: logging.Logger
        """
        return logging.getLogger("airbyte")


    @property
    def config(self) -> Neo4jConnectionConfig:
        return self._config


    @property
    def uri(self) -> str:
        """
        Get connection uri for the driver
        :return: str
        """
        return self._config.uri


    @property
    def driver(self) -> Any:
        """
        Get neo4j python driver
        :return: Any
        """
        if not hasattr(self, "_driver"):
            self._driver = GraphDatabase.driver(self.uri, auth=self._config.auth)

        return self._driver


    def close(self) -> None:
        """
        Close the driver if it was opened
        It will be opened again on next use
        """
        if hasattr(self, "_driver"):
            try:
                self._driver.close()
            finally:
                del self._driver


    def fetch_results(self, cypher_query: Any, transform_func = None, max_records: int = None) -> Iterable[Any]:
        """
        Fetch all results corresponding to the cypher query
        Only the first max_records records are fetched if set
        :return: list of records
        """
        query, params = self._parse_cypher_query(cypher_query)

        if transform_func is not None:
            if not callable(transform_func):
                raise TypeError("transform_func is not callable")
        else:
            transform_func = lambda x: x

        try:
            with self.driver.session() as session:
                self.logger.debug("Executing cypher query '{}' with params {}".format(query, str(params)))
                results = session.execute_read(self._do_cypher_tx, query, params, max_records)

            for record in results:
                yield transform_func(record)

        except Exception:
            self.logger.exception("Failed executing cypher query '{}' with params {}".format(query, str(params)))
            raise

        finally:
            # ensure connection is closed whatever happens
            self.close()


    def count_results(self, cypher_query: Any) -> int:
        """
        Count the records returned by the cypher query
        Records are consumed as they are streamed, none is kept in memory
        :return: int
        """
        query, params = self._parse_cypher_query(cypher_query)

        try:
            with self.driver.session() as session:
                self.logger.debug("Counting results of cypher query '{}' with params {}".format(query, str(params)))
                return session.execute_read(self._do_cypher_count_tx, query, params)

        except Exception:
            self.logger.exception("Failed counting results of cypher query '{}' with params {}".format(query, str(params)))
            raise

        finally:
            self.close()


    def write_records(self, cypher_query: str, records: Iterable[Mapping[str, Any]]) -> int:
        """
        Run the cypher query once per record in a single write transaction
        Fields of each record are bound as query parameters
        :return: number of records written
        """
        query, _ = self._parse_cypher_query(cypher_query)
        records = list(records)

        if len(records) == 0:
            return 0

        try:
            with self.driver.session() as session:
                self.logger.debug("Writing {} records with cypher query '{}'".format(len(records), query))
                session.execute_write(self._do_cypher_write_tx, query, records)

        except Exception:
            self.logger.exception("Failed writing {} records with cypher query '{}'".format(len(records), query))
            raise

        finally:
            self.close()

        return len(records)


    def verify_connectivity(self) -> Any:
        """
        Check if the database is accessible
        Raises an exception if connection failed
        :return:
        """
        try:
            return self.driver.verify_connectivity()
        finally:
            self.close()


    @staticmethod
    def _do_cypher_tx(tx, query: str, params: Mapping[str, Any] = None, max_records: int = None):
        """
        Execute cypher query
        :return: list of records
        """
        return list(islice(tx.run(query, params), max_records))


    @staticmethod
    def _do_cypher_count_tx(tx, query: str, params: Mapping[str, Any] = None) -> int:
        return sum(1 for _ in tx.run(query, params))


    @staticmethod
    def _do_cypher_write_tx(tx, query: str, records: Iterable[Mapping[str, Any]]):
        """
        Execute cypher query for each record
        """
        for record in records:
            tx.run(query, dict(record)).consume()


    def _parse_cypher_query(self, cypher_query: Any):
        """
        Get the cleaned query and its parameters
        :return: tuple (query, params)
        """
        if isinstance(cypher_query, str):
            query = cypher_query
            params = None
        elif isinstance(cypher_query, Mapping):
            query = cypher_query.get("query") or ""
            params = cypher_query.get("params")
        else:
            raise TypeError("cypher query must be a string or dict")

        query = self.clean_cypher_query(query)

        if query == "":
            raise ValueError("cypher query is empty")

        return query, params


    @staticmethod
    def clean_cypher_query(query: str) -> str:
        """
        Remove all unwanted characters (extra spaces, line feed and trailing semicolon)
        """
        query = query.strip() # remove leading and trailing spaces
        query = query.rstrip(";").rstrip() # remove statement terminator
        query = query.replace("\n", " ") # remove line feed
        query = " ".join(query.split()) # remove extra inner spaces

        return query


    def get_cached(self, key: str) -> Any:
        """
        Get a value cached for this database
        :return: cached value or None
        """
        with Cache(self._get_cache_directory()) as cache:
            value = cache.get(self._generate_cache_key(key))

        if value is not None:
            self.logger.debug("{} loaded from cache".format(key))

        return value


    def set_cached(self, key: str, value: Any) -> None:
        with Cache(self._get_cache_directory()) as cache:
            cache.set(key=self._generate_cache_key(key), value=value)


    def _generate_cache_key(self, key: str) -> str:
        """
        Generate a key for caching
        """
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return "{}_{}_{}".format(self._config.host, self._config.port, digest)


    def _get_cache_directory(self) -> str:
        """
        Get directory where cache files will be stored
        """
        local_root_path = os.getenv("LOCAL_ROOT")

        if local_root_path is None:
            self.logger.warning("LOCAL_ROOT environment variable is not set. Default temp directory used for caching.")
            local_root_path = tempfile.gettempdir()

        return os.sep.join([local_root_path, "source-neo4j-query", "cache"])


    def clear_cache(self) -> None:
        """
        Clear cache of all cypher results
        """
        with Cache(self._get_cache_directory()) as cache:
            self.logger.debug("Clearing cache of cypher results")
            cache.clear()
