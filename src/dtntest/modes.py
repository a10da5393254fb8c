"""Alternate execution modes.

Stress, fuzz and connection load runs replace the default sweep entirely.
The harness only decides that one was requested and hands it to a runner
registered under the mode name; what the runner does is up to the suite.
"""

import logging
from typing import Annotated, Callable, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, field_validator

log = logging.getLogger(__name__)


class StressMode(BaseModel):
    """Time-bounded stress run."""

    name: Literal["stress"] = "stress"
    minutes: int = Field(description="Duration of the stress run")

    @field_validator("minutes")
    @classmethod
    def validate_minutes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Incorrect stress minutes: {v}")
        return v


class FuzzMode(BaseModel):
    """Time-bounded fuzz run."""

    name: Literal["fuzz"] = "fuzz"
    minutes: int = Field(description="Duration of the fuzz run")

    @field_validator("minutes")
    @classmethod
    def validate_minutes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Incorrect fuzz minutes: {v}")
        return v


class CorruptedFileFuzzMode(BaseModel):
    """Corrupted file fuzzer, fixed number of rounds."""

    name: Literal["cf_fuzz"] = "cf_fuzz"
    rounds: int = Field(description="Number of fuzz rounds")

    @field_validator("rounds")
    @classmethod
    def validate_rounds(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Incorrect number of cf_fuzz rounds: {v}")
        return v


class ConnectionStressMode(BaseModel):
    """Many concurrent connections for a number of minutes."""

    name: Literal["cnx_stress"] = "cnx_stress"
    minutes: int = Field(description="Duration of the run")
    connections: int = Field(description="Number of connections")

    @field_validator("minutes")
    @classmethod
    def validate_minutes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Incorrect cnx stress minutes: {v}")
        return v

    @field_validator("connections")
    @classmethod
    def validate_connections(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Incorrect cnx stress number of connections: {v}")
        return v


class ConnectionFloodMode(BaseModel):
    """Connection flood: packets sent at a fixed interval."""

    name: Literal["cnx_ddos"] = "cnx_ddos"
    packets: int = Field(description="Number of packets to send")
    interval_us: int = Field(description="Interval between packets, in microseconds")
    log_dir: Optional[str] = Field(default=None, description="Log directory, None disables logs")

    @field_validator("packets")
    @classmethod
    def validate_packets(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Incorrect cnx ddos packets: {v}")
        return v

    @field_validator("interval_us")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Incorrect cnx ddos interval: {v}")
        return v

    @field_validator("log_dir")
    @classmethod
    def validate_log_dir(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "-":
            return None
        return v


AlternateMode = Annotated[
    Union[StressMode, FuzzMode, CorruptedFileFuzzMode, ConnectionStressMode, ConnectionFloodMode],
    Field(discriminator="name"),
]

MODE_NAMES = ("stress", "fuzz", "cf_fuzz", "cnx_stress", "cnx_ddos")

ModeRunner = Callable[[BaseModel], int]


def run_mode(mode: BaseModel, runners: Mapping[str, ModeRunner]) -> int:
    """Run an alternate mode with the runner registered for it.

    Returns the runner's result code, or 0 when nothing is registered
    for the mode.
    """
    runner = runners.get(mode.name)
    if runner is None:
        log.warning("No runner configured for %s mode, nothing to do", mode.name)
        return 0

    log.info("Starting %s mode: %s", mode.name, mode.model_dump(exclude={"name"}))
    return runner(mode)
