"""
Entity Profiles

One profile per entity kind: which fields search/category/owner filters
read, and how the kind deletes in bulk. Every collection view is the same
state machine parameterised by one of these.
"""

from dataclasses import dataclass
from typing import Dict

from .bulk import BatchDeleteStrategy, DeleteStrategy, SequentialDeleteStrategy
from .query import QueryFields, field_getter
from .store import EntityKind


@dataclass(frozen=True)
class EntityProfile:
    """Per-kind configuration of a collection view."""
    kind: EntityKind
    label: str                      # plural, used in notices
    fields: QueryFields
    delete_strategy: DeleteStrategy
    id_field: str = "id"

    def record_id(self, record: Dict) -> str:
        return str(record[self.id_field])


KEYWORD_PROFILE = EntityProfile(
    kind=EntityKind.KEYWORD,
    label="keywords",
    fields=QueryFields(
        search=(field_getter("keyword"),),
        category=field_getter("category"),
    ),
    delete_strategy=BatchDeleteStrategy(),
)

CLIENT_KEYWORD_PROFILE = EntityProfile(
    kind=EntityKind.CLIENT_KEYWORD,
    label="client keywords",
    fields=QueryFields(
        search=(field_getter("keyword"), field_getter("client_name")),
        category=field_getter("category"),
        owner=field_getter("client_name"),
    ),
    delete_strategy=SequentialDeleteStrategy(),
)

COMPETITOR_PROFILE = EntityProfile(
    kind=EntityKind.COMPETITOR,
    label="competitors",
    fields=QueryFields(
        search=(field_getter("competitor_name"), field_getter("area")),
        category=field_getter("category"),
        owner=field_getter("client_name"),
    ),
    delete_strategy=SequentialDeleteStrategy(),
)

PROFILES: Dict[EntityKind, EntityProfile] = {
    profile.kind: profile
    for profile in (KEYWORD_PROFILE, CLIENT_KEYWORD_PROFILE, COMPETITOR_PROFILE)
}


def get_profile(kind: EntityKind) -> EntityProfile:
    """Get the profile for an entity kind."""
    return PROFILES[kind]
