"""ULID primary keys: sortable by creation time, 26 characters."""

import ulid


def generate_ulid() -> str:
    return str(ulid.ULID())
