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

import re
from typing import Any, ClassVar, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from source_neo4j_query.errors import ConfigurationError


NEO4J_CONNECTION_STRING_FORMAT = "jdbc:neo4j:bolt://{}:{}/?username={},password={}"
NEO4J_DRIVER_URI_FORMAT = "bolt://{}:{}"

RETURN_CLAUSE_PATTERN = re.compile(r"\bRETURN\b")
RESULT_MODIFIERS_PATTERN = re.compile(r"\b(ORDER\s+BY|SKIP|LIMIT)\b")


class Neo4jConnectionConfig(BaseModel):
    """
    Connection parameters shared by the source and the destination
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    reference_name: str = Field(alias="referenceName")
    host: str = Field(alias="neo4jHost")
    port: int = Field(alias="neo4jPort")
    username: str = Field(alias="username")
    password: SecretStr = Field(alias="password")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]):
        """
        Build the config from the user-input config object conforming to the connector's spec.json
        :return: config instance
        """
        if not isinstance(config, Mapping):
            raise ConfigurationError("Config must be a dict")

        try:
            return cls.model_validate(dict(config))
        except ValidationError as e:
            raise ConfigurationError("Invalid configuration: {}".format(e)) from e

    @property
    def connection_string(self) -> str:
        """
        Get the JDBC-style connection string
        It embeds the plaintext password and must never be logged
        :return: str
        """
        return NEO4J_CONNECTION_STRING_FORMAT.format(
            self.host, self.port, self.username, self.password.get_secret_value()
        )

    @property
    def uri(self) -> str:
        """
        Get connection uri for the python driver
        :return: str
        """
        return NEO4J_DRIVER_URI_FORMAT.format(self.host, self.port)

    @property
    def auth(self) -> Tuple[str, str]:
        return (self.username, self.password.get_secret_value())

    def with_options(self, **changes: Any):
        """
        Copy the config with some fields changed
        :return: new config instance
        """
        values = {**self.model_dump(), "password": self.password.get_secret_value(), **changes}

        try:
            return self.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError("Invalid configuration: {}".format(e)) from e

    def connection_failures(self) -> List[str]:
        failures = []

        for name in ["reference_name", "host", "username"]:
            if not getattr(self, name).strip():
                failures.append("Connection parameter '{}' must not be empty.".format(name))

        if not 1 <= self.port <= 65535:
            failures.append("Port must be between 1 and 65535, got {}.".format(self.port))

        return failures

    def validation_failures(self) -> List[str]:
        return []

    def validate(self) -> None:
        """
        Check the config is usable
        Raises a ConfigurationError with the first failure found
        """
        failures = self.validation_failures()
        if failures:
            raise ConfigurationError(failures[0])


class Neo4jSourceConfig(Neo4jConnectionConfig):
    """
    Config of the source: connection parameters, read query and splits
    """
    UNAVAILABLE_QUERY_KEYWORDS: ClassVar[List[str]] = ["UNWIND", "CREATE", "DELETE", "SET", "REMOVE", "MERGE"]
    REQUIRED_QUERY_KEYWORDS: ClassVar[List[str]] = ["MATCH", "RETURN"]

    input_query: str = Field(alias="inputQuery")
    split_num: int = Field(default=1, alias="splitNum")
    order_by: Optional[str] = Field(default=None, alias="orderBy")

    @field_validator("split_num", mode="before")
    @classmethod
    def _default_split_num(cls, value: Any) -> Any:
        return 1 if value is None else value

    @field_validator("order_by")
    @classmethod
    def _empty_order_by(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value.strip() == "":
            return None
        return value

    def validation_failures(self) -> List[str]:
        """
        Check the query is read-only and the splits are consistent
        Keywords are searched as plain substrings of the upper-cased query
        :return: list of failure messages, empty if the config is valid
        """
        failures = []
        query = self.input_query.upper()

        if any(keyword in query for keyword in self.UNAVAILABLE_QUERY_KEYWORDS):
            failures.append(
                "The input request must not contain any of the following keywords: '{}'".format(
                    self.UNAVAILABLE_QUERY_KEYWORDS
                )
            )

        if not all(keyword in query for keyword in self.REQUIRED_QUERY_KEYWORDS):
            failures.append(
                "The input request must contain following keywords: '{}'".format(self.REQUIRED_QUERY_KEYWORDS)
            )

        if self.split_num <= 0:
            failures.append("Splits number must be greater than 0.")
        elif self.split_num > 1 and self.order_by is None:
            failures.append("Order by field required if Splits number greater than 1.")
        elif self.split_num > 1 and self._has_result_modifiers(query):
            failures.append(
                "The input request must not end with ORDER BY, SKIP or LIMIT if Splits number greater than 1."
            )

        return failures

    @staticmethod
    def _has_result_modifiers(query: str) -> bool:
        """
        Check if the last RETURN clause of the upper-cased query is already ordered or paginated
        Splits append their own ORDER BY, SKIP and LIMIT to the query
        """
        last_return = RETURN_CLAUSE_PATTERN.split(query)[-1]
        return RESULT_MODIFIERS_PATTERN.search(last_return) is not None
