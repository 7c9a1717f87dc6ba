from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, conint, model_validator


class Suit(str, Enum):
    m = "m"
    p = "p"
    s = "s"
    z = "z"


class BlockType(str, Enum):
    MENTSU = "MENTSU"
    TOITSU = "TOITSU"
    TATSU_RYANMEN = "RYANMEN"
    TATSU_PENCHAN = "PENCHAN"
    TATSU_KANCHAN = "KANCHAN"
    COMPLEX = "COMPLEX"
    ISOLATED = "ISOLATED"


class CalculationStatus(str, Enum):
    idle = "idle"
    loading = "loading"
    ready = "ready"


TileKey = str
WallState = dict[TileKey, int]


class Tile(BaseModel):
    suit: Suit
    rank: conint(ge=1, le=9)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_honor_rank(self) -> Tile:
        if self.suit == Suit.z and self.rank > 7:
            raise ValueError(f"honor rank must be 1..7, got {self.rank}")
        return self

    @property
    def key(self) -> TileKey:
        return f"{self.rank}{self.suit.value}"

    @property
    def is_honor(self) -> bool:
        return self.suit == Suit.z

    def __str__(self) -> str:
        return self.key


class UkeireResult(BaseModel):
    shanten: int
    primary_acceptance: list[TileKey] = Field(default_factory=list)
    secondary_acceptance: list[TileKey] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class BlockUkeire(BaseModel):
    primary: list[TileKey] = Field(default_factory=list)
    secondary: list[TileKey] = Field(default_factory=list)


class HandBlock(BaseModel):
    id: str
    tiles: list[Tile]
    type: BlockType
    ukeire: BlockUkeire = Field(default_factory=BlockUkeire)
    sub_blocks: list[HandBlock] | None = None


class DiscardOption(BaseModel):
    tile: TileKey
    indices: list[int]
    shanten: int
    primary_count: int
    secondary_count: int
    ukeire: UkeireResult


class CalculationResult(BaseModel):
    generation: int
    shanten: int
    ukeire: UkeireResult
    discard_results: dict[int, UkeireResult] | None = None


HandNotation = str | list[TileKey]


class ShantenRequest(BaseModel):
    hand: HandNotation


class ShapeShanten(BaseModel):
    standard: int
    chiitoi: int
    kokushi: int


class ShantenResponse(BaseModel):
    hand: list[TileKey]
    shanten: int
    by_shape: ShapeShanten


class UkeireRequest(BaseModel):
    hand: HandNotation
    wall: WallState | None = None


class UkeireResponse(BaseModel):
    hand: list[TileKey]
    result: UkeireResult
    primary_count: int
    secondary_count: int


class PartitionRequest(BaseModel):
    hand: HandNotation
    ukeire: UkeireResult | None = None


class PartitionResponse(BaseModel):
    blocks: list[HandBlock]


class DiscardsResponse(BaseModel):
    hand: list[TileKey]
    shanten: int
    options: list[DiscardOption]


class SessionStateRequest(BaseModel):
    hand: HandNotation
    wall: WallState | None = None


class SessionResponse(BaseModel):
    session_id: UUID
    status: CalculationStatus
    generation: int
    created_at: datetime
    expires_at: datetime
    hand: list[TileKey] = Field(default_factory=list)
    result: CalculationResult | None = None
