"""Command data model."""

from .command import (
    RGB,
    Command,
    Constant,
    Health,
    Pulse,
    Stream,
    describe,
    to_owned,
)
