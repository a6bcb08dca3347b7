from typing import Annotated, Optional

from fastapi import Path, Query
from pydantic import Field


# path-segment safe: no "/", no "$", no leading "."
ID_PATTERN = r"^[A-Za-z0-9_:@\-][A-Za-z0-9_.:@\-]*$"

Identifier = Annotated[str, Field(min_length=1, max_length=128, pattern=ID_PATTERN)]
PathId = Annotated[str, Path(min_length=1, max_length=128, pattern=ID_PATTERN)]
QueryId = Annotated[Optional[str], Query(min_length=1, max_length=128, pattern=ID_PATTERN)]
