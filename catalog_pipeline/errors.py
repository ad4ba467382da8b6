# -*- coding: utf-8 -*-
"""Error types shared by the pipeline stages."""


class MalformedRecordError(ValueError):
    """Input that cannot be read as a record (or table) at all."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)
