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

from typing import ClassVar, List

from pydantic import Field

from source_neo4j_query.config import Neo4jConnectionConfig


class Neo4jSinkConfig(Neo4jConnectionConfig):
    """
    Config of the destination: connection parameters and write query
    """
    WRITE_QUERY_KEYWORDS: ClassVar[List[str]] = ["CREATE", "MERGE", "SET", "DELETE"]

    output_query: str = Field(alias="outputQuery")
    batch_size: int = Field(default=1000, alias="batchSize")

    def validation_failures(self) -> List[str]:
        """
        Check the connection parameters and that the query writes something
        :return: list of failure messages, empty if the config is valid
        """
        failures = self.connection_failures()
        query = self.output_query.upper()

        if query.strip() == "":
            failures.append("The output query must not be empty.")
        elif not any(keyword in query for keyword in self.WRITE_QUERY_KEYWORDS):
            failures.append(
                "The output query must contain at least one of the following keywords: '{}'".format(
                    self.WRITE_QUERY_KEYWORDS
                )
            )

        if self.batch_size <= 0:
            failures.append("Batch size must be greater than 0.")

        return failures
