"""Runtime configuration for the dealer analytics server.

Settings come from environment variables (optionally seeded from a ``.env``
file at the project root).  The status vocabulary used by the classification
predicates is configuration data: upstream exports use free-text statuses and
there is no canonical enumeration to validate against.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

CLOCK_POLICY = "clock"
DATA_MAX_POLICY = "data_max"
REFERENCE_POLICIES = (CLOCK_POLICY, DATA_MAX_POLICY)

_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_DEFAULT_DB_PATH = os.path.join(os.path.dirname(__file__), "data", "records.db")


@dataclass(frozen=True)
class StatusVocabulary:
    """Case-insensitive substrings that classify free-text status fields."""

    converted: tuple[str, ...] = ("DEAL", "SPK")
    delivered: tuple[str, ...] = ("terkirim",)
    bpkb_done: tuple[str, ...] = ("sudah jadi",)
    credit: tuple[str, ...] = ("kredit",)
    male: tuple[str, ...] = ("pria", "laki-laki", "male")
    female: tuple[str, ...] = ("wanita", "perempuan", "female")


DEFAULT_VOCABULARY = StatusVocabulary()


@dataclass(frozen=True)
class DashboardSettings:
    """Deployment settings resolved once per process."""

    db_path: str = _DEFAULT_DB_PATH
    reference_policy: str = DATA_MAX_POLICY
    supabase_url: str = ""
    supabase_key: str = ""
    vocabulary: StatusVocabulary = field(default_factory=StatusVocabulary)

    @classmethod
    def from_env(cls) -> DashboardSettings:
        policy = os.environ.get("DEALER_DASH_REFERENCE_POLICY", DATA_MAX_POLICY).strip().lower()
        if policy not in REFERENCE_POLICIES:
            raise ValueError(
                f"DEALER_DASH_REFERENCE_POLICY must be one of {', '.join(REFERENCE_POLICIES)}, "
                f"got {policy!r}"
            )
        return cls(
            db_path=os.environ.get("DEALER_DASH_DB_PATH", _DEFAULT_DB_PATH),
            reference_policy=policy,
            supabase_url=os.environ.get("SUPABASE_URL", "").strip(),
            supabase_key=os.environ.get("SUPABASE_KEY", "").strip(),
        )


def load_env_file(path: Path = _ENV_FILE) -> None:
    """Load KEY=VALUE lines into ``os.environ`` without overriding existing values."""
    if not path.is_file():
        return
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            k, _, v = line.partition("=")
            os.environ.setdefault(k.strip(), v.strip())


_settings: DashboardSettings | None = None


def get_settings() -> DashboardSettings:
    """Return the process settings, reading the environment on first use."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = DashboardSettings.from_env()
    return _settings


def set_settings(settings: DashboardSettings | None) -> None:
    """Inject settings (tests); ``None`` re-reads the environment on next use."""
    global _settings  # noqa: PLW0603
    _settings = settings
