"""Example module: greetings in a few styles.

Run from this directory inside an engine session with ``dagmod``. The
``dagmod.yaml`` next to this file is picked up from the working directory;
set ``DAGMOD_CONFIG`` to use a different file.
"""

from __future__ import annotations

import enum
from typing import Annotated, Optional

from dagmod import Arg, enum_type, enum_value, field, function, object_type


@enum_type(values={"SHOUT": enum_value(description="All capitals")})
class Style(enum.Enum):
    """How a greeting is rendered."""

    PLAIN = "plain"
    SHOUT = "shout"


@object_type
class Greeting:
    """A rendered greeting."""

    text: str = field(description="The greeting text")
    style: Style = field(default=Style.PLAIN)

    def __init__(self, text: str = "", style: Style = Style.PLAIN) -> None:
        self.text = text
        self.style = style

    @function
    def length(self) -> int:
        """Number of characters in the greeting."""
        return len(self.text)


@object_type
class Hello:
    """Say hello."""

    greeting: str = field(default="Hello")

    def __init__(self, greeting: str = "Hello") -> None:
        self.greeting = greeting

    @function
    def hello(self, name: str = "world", style: Style = Style.PLAIN) -> Greeting:
        """Greet someone.

        Args:
            name: Who to greet.
            style: How to render the greeting.
        """
        text = f"{self.greeting}, {name}!"
        if style is Style.SHOUT:
            text = text.upper()
        return Greeting(text, style)

    @function(cache="never")
    async def many(
        self,
        names: list[str],
        separator: Annotated[Optional[str], Arg(description="Joins the greetings")] = None,
    ) -> str:
        """Greet several people at once."""
        return (separator or " ").join(f"{self.greeting}, {n}!" for n in names)
