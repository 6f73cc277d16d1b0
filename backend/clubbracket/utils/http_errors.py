"""
Translate service errors into HTTP errors.

NotFoundError -> 404, BadRequestError -> 400. Anything else propagates.
"""
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException

from clubbracket.services.errors import BadRequestError, NotFoundError


@contextmanager
def service_errors() -> Iterator[None]:
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
