from dataclasses import dataclass

from linkcrawl.cache import LOCK_MODES
from linkcrawl.datasets import GO_TOUR_ROOT

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class Config:
    root_url: str = GO_TOUR_ROOT
    max_depth: int = 4

    # 資料來源：固定資料集（預設 Go tour）或真實 HTTP
    dataset_file: str | None = None
    live: bool = False
    request_timeout: float = 10.0
    simulation_delay_ms: int = 0

    # 快取
    lock_mode: str = "global"
    lock_timeout: float | None = None

    # 優化選項
    dedup_traversal: bool = False
    use_bloom_filter: bool = False
    bloom_capacity: int = 100_000
    bloom_error_rate: float = 0.01

    stream_maxsize: int = 0
    metrics_port: int | None = None
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError("max_depth must be non-negative")
        if self.lock_mode not in LOCK_MODES:
            raise ValueError(f"lock_mode must be one of {LOCK_MODES}")
        if self.lock_timeout is not None and self.lock_timeout <= 0:
            raise ValueError("lock_timeout must be positive")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.simulation_delay_ms < 0:
            raise ValueError("simulation_delay_ms must be non-negative")
        if self.stream_maxsize < 0:
            raise ValueError("stream_maxsize must be non-negative")
        if self.use_bloom_filter and not self.dedup_traversal:
            raise ValueError("use_bloom_filter requires dedup_traversal")
        if not 0 < self.bloom_error_rate < 1:
            raise ValueError("bloom_error_rate must be between 0 and 1")
        if self.live and self.dataset_file:
            raise ValueError("live and dataset_file are mutually exclusive")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")

    @property
    def mode(self) -> str:
        return "http" if self.live else "static"
