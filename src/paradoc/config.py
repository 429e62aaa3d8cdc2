# paradoc/config.py
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any
from multiprocessing import cpu_count


DEFAULT_THRESHOLD = 50
DEFAULT_LANGUAGES = ["eng"]
DEFAULT_TASK_TIMEOUT = 300.0


def default_concurrency() -> int:
    # OCR is CPU bound, more parallel calls than cores only adds memory pressure
    return max(1, min(4, cpu_count()))


@dataclass
class ParadocConfig:
    """Configuration for a paradoc conversion run."""
    threshold: int = DEFAULT_THRESHOLD
    languages: List[str] = field(default_factory=lambda: list(DEFAULT_LANGUAGES))

    max_concurrency: int = field(default_factory=default_concurrency)
    per_task_timeout: float = DEFAULT_TASK_TIMEOUT
    dpi: int = 200

    ocr_backend: str = "tesseract"
    ocr_backend_kwargs: Dict[str, Any] = field(default_factory=dict)

    show_progress: bool = False

    def __post_init__(self):
        if isinstance(self.languages, str):
            self.languages = [s.strip() for s in self.languages.split(",") if s.strip()]
        self.languages = list(self.languages or DEFAULT_LANGUAGES)

        for key in ("threshold", "max_concurrency", "dpi"):
            value = getattr(self, key)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"{key} must be a positive integer, got {value!r}")
        if not self.per_task_timeout or self.per_task_timeout <= 0:
            raise ValueError(f"per_task_timeout must be positive, got {self.per_task_timeout!r}")
        self.per_task_timeout = float(self.per_task_timeout)

    def to_dict(self):
        """Converts config to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: dict):
        d = dict(config_dict)

        # allow explicit None to mean use default
        for key in ["threshold", "languages", "max_concurrency", "per_task_timeout", "dpi",
                    "ocr_backend", "ocr_backend_kwargs"]:
            if d.get(key) is None:
                d.pop(key, None)

        known = set(cls.__dataclass_fields__)
        unknown = sorted(k for k in d if k not in known)
        if unknown:
            raise ValueError(f"Unknown config keys, {unknown}")

        return cls(**d)
