"""Client configuration used when building producers and consumers."""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from streamtable.copartition import COPARTITIONING_STRATEGY

OFFSET_NEWEST = -1
OFFSET_OLDEST = -2

DEFAULT_CHANNEL_BUFFER_SIZE = 256
DEFAULT_MAX_PROCESSING_TIME = 1.0
DEFAULT_FLUSH_FREQUENCY = 0.1
DEFAULT_FLUSH_BYTES = 64 * 1024
DEFAULT_PRODUCER_MAX_RETRIES = 10

DEFAULT_VERSION: tuple[int, ...] = (2, 0, 0, 0)


class Compression(IntEnum):
    """Compression codec used for produced messages."""

    NONE = 0
    GZIP = 1
    SNAPPY = 2
    LZ4 = 3
    ZSTD = 4


class RequiredAcks(IntEnum):
    """Acknowledgements the producer waits for."""

    NO_RESPONSE = 0
    WAIT_FOR_LOCAL = 1
    WAIT_FOR_ALL = -1


@dataclass
class ConsumerConfig:
    """Consumer settings; times are in seconds."""

    return_errors: bool = False
    max_processing_time: float = 0.1
    offsets_initial: int = OFFSET_NEWEST
    rebalance_strategy: Any = None


@dataclass
class ProducerConfig:
    """Producer settings; times are in seconds."""

    required_acks: RequiredAcks = RequiredAcks.WAIT_FOR_LOCAL
    compression: Compression = Compression.NONE
    flush_frequency: float = 0.0
    flush_bytes: int = 0
    return_successes: bool = False
    return_errors: bool = True
    retry_max: int = 3
    partitioner: Any = None


@dataclass
class Config:
    """Settings for connecting to the cluster."""

    version: tuple[int, ...] = DEFAULT_VERSION
    client_id: str = ""
    consumer: ConsumerConfig = field(default_factory=ConsumerConfig)
    producer: ProducerConfig = field(default_factory=ProducerConfig)


def default_config() -> Config:
    """Return a new config with the defaults used by this package."""
    return Config(
        version=DEFAULT_VERSION,
        consumer=ConsumerConfig(
            return_errors=True,
            max_processing_time=DEFAULT_MAX_PROCESSING_TIME,
            # initial offset for streams; tables are always read from the oldest offset
            offsets_initial=OFFSET_NEWEST,
            rebalance_strategy=COPARTITIONING_STRATEGY,
        ),
        producer=ProducerConfig(
            required_acks=RequiredAcks.WAIT_FOR_LOCAL,
            compression=Compression.SNAPPY,
            flush_frequency=DEFAULT_FLUSH_FREQUENCY,
            flush_bytes=DEFAULT_FLUSH_BYTES,
            return_successes=True,
            return_errors=True,
            retry_max=DEFAULT_PRODUCER_MAX_RETRIES,
        ),
    )


_lock = threading.Lock()
_global_config = default_config()


def replace_global_config(config: Config | None) -> None:
    """Register the config used when no other config is given."""
    global _global_config
    if config is None:
        raise ValueError("None config registered as global config")
    with _lock:
        _global_config = copy.deepcopy(config)


def global_config() -> Config:
    """Return a copy of the registered global config."""
    with _lock:
        return copy.deepcopy(_global_config)