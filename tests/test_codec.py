"""Tests for the argument/result Codec."""

from __future__ import annotations

import decimal
import enum
from typing import Any, Optional, Sequence

import pytest
from pydantic import BaseModel

from dagmod.codec import Codec, exposed_fields
from dagmod.decorator import field, ignore, object_type
from dagmod.errors import DecodeError, IdTypeNotFoundError, LoaderNotFoundError
from dagmod.types import JSON, RemoteObject, Scalar

from engine_helpers import Container, ContainerID, FakeEngineClient, Secret
from greeter_module import Point, Status


class Orphan(RemoteObject):
    """Remote type the fake client cannot load."""


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


class Size(enum.IntEnum):
    SMALL = 1
    LARGE = 2


class Token(Scalar):
    pass


@object_type
class Badge:
    title: str = field(default="")
    level: int = field(name="rank_level", default=1)
    secret: str = ignore(field(default="hidden"))

    def __init__(self) -> None:
        self.note = "not a field"


@object_type
class Draft:
    title: str = field(default="t")
    scratch = field(default="x")


class Profile(BaseModel):
    name: str
    tags: list[str] = []


@pytest.fixture
def client() -> FakeEngineClient:
    return FakeEngineClient()


@pytest.fixture
def codec(client: FakeEngineClient) -> Codec:
    return Codec(client)


# === Decoding ===


class TestDecodePrimitives:
    """Primitive decoding with strict kind checks."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("value", "target"),
        [
            (0, int),
            (-17, int),
            (2**63 - 1, int),
            (0.0, float),
            (-2.5, float),
            ("", str),
            ("héllo", str),
            (True, bool),
            (False, bool),
        ],
    )
    async def test_primitives_round_trip(self, codec, value, target):
        """Primitives survive encode then decode unchanged."""
        assert await codec.decode(await codec.encode(value), target) == value

    @pytest.mark.asyncio
    async def test_integral_float_to_int(self, codec):
        """Integral floats decode to int."""
        assert await codec.decode(3.0, int) == 3

    @pytest.mark.asyncio
    async def test_non_integral_float_rejected(self, codec):
        """Non-integral numbers are not truncated into int."""
        with pytest.raises(DecodeError):
            await codec.decode(3.5, int)

    @pytest.mark.asyncio
    async def test_bool_not_an_int(self, codec):
        """Booleans are not accepted as integers."""
        with pytest.raises(DecodeError):
            await codec.decode(True, int)

    @pytest.mark.asyncio
    async def test_int_to_float(self, codec):
        """Integers widen to float."""
        result = await codec.decode(2, float)
        assert result == 2.0
        assert isinstance(result, float)

    @pytest.mark.asyncio
    async def test_string_not_a_bool(self, codec):
        """Strings are not coerced into booleans."""
        with pytest.raises(DecodeError):
            await codec.decode("true", bool)

    @pytest.mark.asyncio
    async def test_number_not_a_string(self, codec):
        """Numbers are not coerced into strings."""
        with pytest.raises(DecodeError) as exc_info:
            await codec.decode(5, str)
        assert exc_info.value.details["target"] == "builtins.str"

    @pytest.mark.asyncio
    async def test_decimal(self, codec):
        """Decimals decode from numbers and numeric strings."""
        assert await codec.decode("1.25", decimal.Decimal) == decimal.Decimal("1.25")
        assert await codec.decode(2, decimal.Decimal) == decimal.Decimal("2")
        with pytest.raises(DecodeError):
            await codec.decode("abc", decimal.Decimal)

    @pytest.mark.asyncio
    async def test_null_zero_values(self, codec):
        """Null decodes to the zero value of non-nullable numeric types."""
        assert await codec.decode(None, int) == 0
        assert await codec.decode(None, float) == 0.0
        assert await codec.decode(None, bool) is False

    @pytest.mark.asyncio
    async def test_null_nullable(self, codec):
        """Null decodes to None for nullable targets and references."""
        assert await codec.decode(None, Optional[int]) is None
        assert await codec.decode(None, str) is None
        assert await codec.decode(None, list[int]) is None


class TestDecodeEnums:
    """Enum decoding by member name."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("wire", ["ACTIVE", "active", "Active"])
    async def test_case_insensitive(self, codec, wire):
        """Member names match regardless of case."""
        assert await codec.decode(wire, Status) is Status.Active

    @pytest.mark.asyncio
    async def test_unknown(self, codec):
        """Unknown names fail to decode."""
        with pytest.raises(DecodeError, match="Unknown value 'unknown'"):
            await codec.decode("unknown", Status)

    @pytest.mark.asyncio
    async def test_override_value(self, codec):
        """An overridden wire value decodes to its member."""
        assert await codec.decode("GONE", Status) is Status.ARCHIVED

    @pytest.mark.asyncio
    async def test_int_enum_by_name(self, codec):
        """IntEnum members are decoded by name, not by value."""
        assert await codec.decode("large", Size) is Size.LARGE
        with pytest.raises(DecodeError):
            await codec.decode(2, Size)

    @pytest.mark.asyncio
    async def test_plain_enum(self, codec):
        """Enums without metadata decode by name too."""
        assert await codec.decode("green", Color) is Color.GREEN


class TestDecodeReferences:
    """Scalars, remote objects and JSON passthrough."""

    @pytest.mark.asyncio
    async def test_scalar_from_string(self, codec):
        """Scalars wrap raw strings."""
        assert await codec.decode("tok-1", Token) == Token("tok-1")

    @pytest.mark.asyncio
    async def test_scalar_from_structure(self, codec):
        """Non-string scalar values are kept as JSON text."""
        assert await codec.decode({"a": 1}, Token) == Token('{"a": 1}')

    @pytest.mark.asyncio
    async def test_remote_from_bare_id(self, codec, client):
        """A bare ID string is resolved through the client loader."""
        result = await codec.decode("ctr-1", Container)
        assert isinstance(result, Container)
        assert client.loaded == [ContainerID("ctr-1")]

    @pytest.mark.asyncio
    async def test_remote_from_id_object(self, codec, client):
        """An ``{"id": ...}`` object resolves to the same handle."""
        result = await codec.decode({"id": "ctr-2"}, Container)
        assert result.ident == "ctr-2"
        assert client.loaded == [ContainerID("ctr-2")]

    @pytest.mark.asyncio
    async def test_remote_empty_id(self, codec, client):
        """An empty ID decodes to None without a lookup."""
        assert await codec.decode("", Container) is None
        assert client.loaded == []

    @pytest.mark.asyncio
    async def test_remote_without_loader(self, codec):
        """A remote type the client cannot load is an error."""
        with pytest.raises(LoaderNotFoundError):
            await codec.decode("x", Orphan)

    @pytest.mark.asyncio
    async def test_remote_without_id_type(self, codec):
        """A remote type without an ID scalar is an error."""
        with pytest.raises(IdTypeNotFoundError):
            await codec.decode("x", Secret)

    @pytest.mark.asyncio
    async def test_json_passthrough(self, codec):
        """JSON targets hold the wire value unchanged."""
        assert await codec.decode({"a": [1, 2]}, JSON) == JSON({"a": [1, 2]})

    @pytest.mark.asyncio
    async def test_dict_target(self, codec):
        """Mappings are validated by pydantic."""
        assert await codec.decode({"a": 1}, dict[str, int]) == {"a": 1}
        with pytest.raises(DecodeError):
            await codec.decode({"a": "x"}, dict[str, int])

    @pytest.mark.asyncio
    async def test_object_without_factory(self, codec):
        """Object types need an object factory."""
        with pytest.raises(DecodeError):
            await codec.decode({"x": 1}, Point)

    @pytest.mark.asyncio
    async def test_object_with_factory(self, client):
        """Object types are built by the object factory from their state."""
        seen: list[Any] = []

        async def factory(cls: type, state: Any) -> Any:
            seen.append((cls, state))
            return cls(**state)

        codec = Codec(client, object_factory=factory)
        point = await codec.decode({"x": 1, "y": 2}, Point)
        assert (point.x, point.y) == (1, 2)
        assert seen == [(Point, {"x": 1, "y": 2})]


class TestDecodeLists:
    """List-like targets."""

    @pytest.mark.asyncio
    async def test_list(self, codec):
        """Lists decode element-wise."""
        assert await codec.decode([1, 2], list[int]) == [1, 2]

    @pytest.mark.asyncio
    async def test_materialised_shapes(self, codec):
        """Tuples, sets and frozensets are materialised as such."""
        assert await codec.decode(["a", "b"], tuple[str, ...]) == ("a", "b")
        assert await codec.decode([1, 1, 2], set[int]) == {1, 2}
        assert await codec.decode([1], frozenset[int]) == frozenset({1})
        assert await codec.decode(["x"], Sequence[str]) == ["x"]

    @pytest.mark.asyncio
    async def test_nested_enums(self, codec):
        """Elements use the element type's rules."""
        assert await codec.decode(["red", "GREEN"], list[Color]) == [Color.RED, Color.GREEN]

    @pytest.mark.asyncio
    async def test_not_a_list(self, codec):
        """A non-list wire value fails for list targets."""
        with pytest.raises(DecodeError):
            await codec.decode("abc", list[str])


# === Encoding ===


class _Plain:
    def __init__(self, value: int) -> None:
        self.value = value


class TestEncode:
    """Result encoding."""

    @pytest.mark.asyncio
    async def test_primitives(self, codec):
        """Primitives and None pass through."""
        assert await codec.encode(None) is None
        assert await codec.encode("s") == "s"
        assert await codec.encode(3) == 3
        assert await codec.encode(False) is False

    @pytest.mark.asyncio
    async def test_decimal(self, codec):
        """Decimals encode as floats."""
        assert await codec.encode(decimal.Decimal("1.5")) == 1.5

    @pytest.mark.asyncio
    async def test_enum_by_name(self, codec):
        """Enums encode as their member name."""
        assert await codec.encode(Status.ARCHIVED) == "ARCHIVED"
        assert await codec.encode(Size.SMALL) == "SMALL"

    @pytest.mark.asyncio
    async def test_scalar(self, codec):
        """Scalars encode as their string value."""
        assert await codec.encode(Token("t")) == "t"

    @pytest.mark.asyncio
    async def test_json(self, codec):
        """JSON values are emitted as plain structures."""
        assert await codec.encode(JSON({"a": (1, 2)})) == {"a": [1, 2]}

    @pytest.mark.asyncio
    async def test_collections(self, codec):
        """Mappings and iterables encode recursively."""
        assert await codec.encode({"k": [Color.RED, (1, 2)]}) == {"k": ["RED", [1, 2]]}
        assert await codec.encode(x for x in range(3)) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_remote_by_id(self, codec):
        """Remote objects encode as their opaque ID."""
        assert await codec.encode(Container("ctr-9")) == "ctr-9"
        assert await codec.encode([Container("a"), Container("b")]) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_value_object_fields_only(self, codec):
        """Value objects encode exactly their exposed fields, case-normalized."""
        badge = Badge()
        badge.title = "gold"
        badge.level = 3
        assert await codec.encode(badge) == {"title": "gold", "rankLevel": 3}

    @pytest.mark.asyncio
    async def test_value_object_with_state(self, codec):
        """With state, public attributes are included as well."""
        result = await codec.encode_object(Badge(), include_state=True)
        assert result == {"title": "", "rankLevel": 1, "note": "not a field"}

    @pytest.mark.asyncio
    async def test_pydantic_model(self, codec):
        """Pydantic models encode as their JSON dump."""
        assert await codec.encode(Profile(name="ana", tags=["x"])) == {"name": "ana", "tags": ["x"]}

    @pytest.mark.asyncio
    async def test_fallback(self, codec):
        """Unknown objects fall back to pydantic's JSON conversion."""
        assert await codec.encode(b"raw") == "raw"


class TestExposedFields:
    def test_ignored_fields_excluded(self):
        """Ignored fields are not exposed; names are camelCased."""
        assert exposed_fields(Badge) == [("title", "title"), ("level", "rankLevel")]

    def test_plain_class_has_none(self):
        assert exposed_fields(_Plain) == []

    def test_unannotated_fields_excluded(self):
        """Fields without an annotation are never registered, so they are not encoded."""
        assert exposed_fields(Draft) == [("title", "title")]

    @pytest.mark.asyncio
    async def test_encode_skips_unannotated_fields(self, codec):
        assert await codec.encode(Draft()) == {"title": "t"}
