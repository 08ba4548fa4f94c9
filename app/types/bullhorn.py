"""Type definitions for Bullhorn API responses."""

from typing import NotRequired, TypedDict


class TokenResponseTD(TypedDict):
    """OAuth token endpoint response."""

    access_token: str
    token_type: NotRequired[str]
    expires_in: NotRequired[int]
    refresh_token: NotRequired[str]


class LoginResponseTD(TypedDict):
    """rest-services/login response."""

    BhRestToken: str
    restUrl: str


class CandidateMatchTD(TypedDict):
    """Single candidate row from search/Candidate."""

    id: int
    email: NotRequired[str | None]
    email2: NotRequired[str | None]
    email3: NotRequired[str | None]


class CategoryTD(TypedDict):
    """Single category row from query/Category."""

    id: int
    name: str


class CandidateNameTD(TypedDict, total=False):
    """Name fields from entity/Candidate/{id}."""

    id: int
    firstName: str | None
    lastName: str | None
